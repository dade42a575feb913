"""Optimization orchestration service."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Sequence

from ...models.domain import PlanningSnapshot, Tour, Visit
from ...schemas.optimization import (
    AdjustedVisitModel,
    AssignmentModel,
    OptimizationRequest,
    OptimizationResponse,
    PotentialIssueModel,
    PotentialRecommendationModel,
    PotentialRequest,
    PotentialResponse,
    StatisticsModel,
    TourWorkloadModel,
)
from ..costs.model import CostModel
from ..geospatial import GeoDistance
from ..reports import analyze_potential, build_tour_workloads, compute_statistics
from ..zones.model import ZoneModel
from .assignment import AssignmentEngine
from .models import (
    AdjustedVisit,
    OptimizationParameterError,
    OptimizationParameters,
    OptimizationResult,
    Scope,
)
from .scoring import ScoringWeights
from .sequencing import RouteSequencer
from .timing import TimingAdjuster


def select_scope(snapshot: PlanningSnapshot, parameters: OptimizationParameters) -> tuple[list[Visit], list[Tour]]:
    """Return the visits to (re)assign and the candidate tours for ``parameters.scope``."""

    real_visits = snapshot.real_visits()
    if parameters.scope is Scope.TOUR:
        tour = snapshot.tour(parameters.tour_id)
        if tour is None:
            raise OptimizationParameterError(f"Tour '{parameters.tour_id}' not found.")
        return [visit for visit in real_visits if visit.tour_id == tour.tour_id], [tour]
    return [visit for visit in real_visits if visit.day_index == parameters.day_index], list(snapshot.tours)


def _split_by_day(visits: Sequence[Visit]) -> dict[int, list[Visit]]:
    by_day: dict[int, list[Visit]] = {}
    for visit in visits:
        by_day.setdefault(visit.day_index, []).append(visit)
    return dict(sorted(by_day.items()))


def run_optimization(
    snapshot: PlanningSnapshot,
    parameters: OptimizationParameters,
    *,
    zone_model: ZoneModel | None = None,
    weights: ScoringWeights | None = None,
) -> OptimizationResult:
    """Assign, sequence and retime the visits selected by ``parameters``.

    The snapshot is never modified; rewritten times are returned as
    ``optimized_visits`` for the caller to persist.
    """

    zone_model = zone_model or ZoneModel.default()
    geo = GeoDistance.for_wage_settings(zone_model, snapshot.wage_settings)
    cost_model = CostModel()

    visits, tours = select_scope(snapshot, parameters)
    logging.info(
        f"Optimizing {len(visits)} visit(s) across {len(tours)} tour(s) "
        f"(objective={parameters.objective.value}, scope={parameters.scope.value}, "
        f"type_separation={parameters.type_separation.value})"
    )

    engine = AssignmentEngine(
        snapshot,
        objective=parameters.objective,
        type_separation=parameters.type_separation,
        zone_model=zone_model,
        geo=geo,
        cost_model=cost_model,
        weights=weights,
    )
    outcome = engine.assign(visits, tours)

    sequencer = RouteSequencer(snapshot, zone_model)
    adjuster = TimingAdjuster(snapshot, geo)
    sequences: dict[str, list[Visit]] = {}
    optimized_visits: list[AdjustedVisit] = []
    for tour in tours:
        state = outcome.states.get(tour.tour_id)
        ordered: list[Visit] = []
        for day_visits in _split_by_day(outcome.visits_for(tour.tour_id)).values():
            day_sequence = sequencer.sequence(day_visits)
            ordered.extend(day_sequence)
            if parameters.adjust_timings:
                employee = state.employee if state else None
                optimized_visits.extend(
                    AdjustedVisit(visit_id=visit.visit_id, day_index=visit.day_index, start=visit.start, end=visit.end)
                    for visit in adjuster.adjust(day_sequence, employee)
                )
        sequences[tour.tour_id] = ordered

    workloads = build_tour_workloads(
        tours,
        outcome.states,
        sequences,
        cost_model=cost_model,
        wage_settings=snapshot.wage_settings,
    )
    statistics = compute_statistics(len(visits), len(outcome.assignments), workloads)
    logging.info(
        f"Optimization assigned {statistics.assigned_visits}/{statistics.total_visits} visit(s), "
        f"{statistics.tours_used}/{statistics.total_tours} tour(s) used"
    )
    if outcome.unassigned_visit_ids:
        logging.warning(f"Unassigned visits: {', '.join(outcome.unassigned_visit_ids)}")

    metadata = {
        "objective": parameters.objective.value,
        "type_separation": parameters.type_separation.value,
        "scope": parameters.scope.value,
        "processing_order": outcome.processing_order,
    }
    if parameters.scope is Scope.DAY:
        metadata["day_index"] = parameters.day_index
    else:
        metadata["tour_id"] = parameters.tour_id

    return OptimizationResult(
        parameters=parameters,
        assignments=outcome.assignments,
        unassigned_visit_ids=outcome.unassigned_visit_ids,
        workloads=workloads,
        statistics=statistics,
        optimized_visits=optimized_visits,
        metadata=metadata,
    )


def _parameters_from_request(payload: OptimizationRequest) -> OptimizationParameters:
    return OptimizationParameters(
        objective=payload.objective,
        type_separation=payload.type_separation,
        scope=payload.scope,
        day_index=payload.day_index,
        tour_id=payload.tour_id,
        adjust_timings=payload.adjust_timings,
    )


def optimize_tours(payload: OptimizationRequest) -> OptimizationResponse:
    result = run_optimization(payload.to_snapshot(), _parameters_from_request(payload))
    return OptimizationResponse(
        assignments=[AssignmentModel(**asdict(assignment)) for assignment in result.assignments],
        unassigned_visit_ids=result.unassigned_visit_ids,
        tour_workloads=[TourWorkloadModel(**asdict(workload)) for workload in result.workloads],
        optimized_visits=[AdjustedVisitModel(**asdict(visit)) for visit in result.optimized_visits],
        statistics=StatisticsModel(**asdict(result.statistics)),
        metadata=result.metadata,
    )


def analyze_optimization_potential(payload: PotentialRequest, *, zone_model: ZoneModel | None = None) -> PotentialResponse:
    snapshot = payload.to_snapshot()
    geo = GeoDistance.for_wage_settings(zone_model or ZoneModel.default(), snapshot.wage_settings)
    report = analyze_potential(snapshot, geo, day_index=payload.day_index)
    return PotentialResponse(
        has_potential=report.has_potential,
        issues=[PotentialIssueModel(**asdict(issue)) for issue in report.issues],
        recommendations=[PotentialRecommendationModel(**asdict(item)) for item in report.recommendations],
        total_potential_savings=report.total_potential_savings,
        summary=report.summary,
    )
