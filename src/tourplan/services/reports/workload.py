"""Run statistics and per-tour workload summaries."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ...models.domain import Tour, Visit, WageSettings
from ..costs.model import CostModel
from ..optimization.models import OptimizationStatistics, TourWorkload
from ..optimization.scoring import TourState


def build_tour_workloads(
    tours: Sequence[Tour],
    states: Mapping[str, TourState],
    sequences: Mapping[str, Sequence[Visit]],
    *,
    cost_model: CostModel,
    wage_settings: Optional[WageSettings],
) -> list[TourWorkload]:
    workloads: list[TourWorkload] = []
    for tour in tours:
        state = states.get(tour.tour_id)
        if state is None:
            continue
        total_minutes = state.assigned_minutes
        workloads.append(
            TourWorkload(
                tour_id=tour.tour_id,
                tour_name=tour.name or tour.tour_id,
                visit_ids=[visit.visit_id for visit in sequences.get(tour.tour_id, [])],
                total_minutes=total_minutes,
                total_hours=round(total_minutes / 60, 2),
                employee_name=state.employee.name if state.employee else None,
                committed_minutes=state.committed_minutes,
                estimated_cost=cost_model.labor_cost(state.total_minutes, state.employee, wage_settings),
            )
        )
    return workloads


def compute_statistics(total_visits: int, assigned: int, workloads: Sequence[TourWorkload]) -> OptimizationStatistics:
    return OptimizationStatistics(
        total_visits=total_visits,
        assigned_visits=assigned,
        unassigned_visits=total_visits - assigned,
        tours_used=sum(1 for workload in workloads if workload.visit_ids),
        total_tours=len(workloads),
    )
