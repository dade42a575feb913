"""Greedy visit-to-tour assignment."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ...models.domain import PlanningSnapshot, Tour, Visit
from ..costs.model import CostModel
from ..geospatial import GeoDistance
from ..zones.model import ZoneModel
from .models import Assignment, Objective, TypeSeparation, coerce_enum
from .scoring import Candidate, CandidateScorer, ScoringWeights, TourState


@dataclass(slots=True)
class AssignmentOutcome:
    assignments: list[Assignment]
    unassigned_visit_ids: list[str]
    states: dict[str, TourState]
    processing_order: list[str] = field(default_factory=list)

    def visits_for(self, tour_id: str) -> list[Visit]:
        state = self.states.get(tour_id)
        if state is None:
            return []
        return [placed.visit for placed in state.placed]


def group_by_zone(snapshot: PlanningSnapshot, visits: Iterable[Visit]) -> dict[str, list[Visit]]:
    """Group visits by zone (groups in order of first appearance), each group sorted by start."""

    groups: dict[str, list[Visit]] = {}
    for visit in visits:
        groups.setdefault(snapshot.zone_for(visit), []).append(visit)
    for zone_visits in groups.values():
        zone_visits.sort(key=lambda visit: visit.start_minutes)
    return groups


class AssignmentEngine:
    """Places each visit on the candidate tour with the lowest finite score.

    Visits are processed zone group by zone group so tours fill up with
    zone-contiguous work before a visit elsewhere is considered. Exact score
    ties keep the first tour, which makes runs deterministic for a fixed
    input order.
    """

    def __init__(
        self,
        snapshot: PlanningSnapshot,
        *,
        objective: Objective = Objective.TIME,
        type_separation: TypeSeparation = TypeSeparation.FLEXIBLE,
        zone_model: ZoneModel | None = None,
        geo: GeoDistance | None = None,
        cost_model: CostModel | None = None,
        weights: ScoringWeights | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.zone_model = zone_model or ZoneModel.default()
        self.geo = geo or GeoDistance.for_wage_settings(self.zone_model, snapshot.wage_settings)
        self.scorer = CandidateScorer(
            objective=coerce_enum(Objective, objective, "objective"),
            type_separation=coerce_enum(TypeSeparation, type_separation, "type separation"),
            zone_model=self.zone_model,
            geo=self.geo,
            cost_model=cost_model or CostModel(),
            wage_settings=snapshot.wage_settings,
            weights=weights,
        )

    def _initial_states(self, tours: Sequence[Tour], visit_ids: set[str]) -> dict[str, TourState]:
        states = {
            tour.tour_id: TourState(tour=tour, employee=self.snapshot.employee_for(tour))
            for tour in tours
        }
        for visit in self.snapshot.real_visits():
            if visit.visit_id in visit_ids or visit.tour_id not in states:
                continue
            states[visit.tour_id].committed_minutes += visit.workload_minutes
        return states

    def _employee_baseline(self, visit_ids: set[str], candidate_tour_ids: set[str]) -> dict[str, float]:
        """Minutes already committed per employee on tours that are not candidates in this run."""

        baseline: dict[str, float] = {}
        for visit in self.snapshot.real_visits():
            if visit.visit_id in visit_ids or visit.tour_id in candidate_tour_ids:
                continue
            tour = self.snapshot.tour(visit.tour_id)
            if tour is None or not tour.employee_id:
                continue
            baseline[tour.employee_id] = baseline.get(tour.employee_id, 0.0) + visit.workload_minutes
        return baseline

    def assign(self, visits: Sequence[Visit], tours: Sequence[Tour]) -> AssignmentOutcome:
        real_visits = [visit for visit in visits if not visit.is_travel]
        visit_ids = {visit.visit_id for visit in real_visits}
        states = self._initial_states(tours, visit_ids)
        baseline = self._employee_baseline(visit_ids, set(states))

        employee_tours: dict[str, list[TourState]] = {}
        for state in states.values():
            if state.employee is not None:
                employee_tours.setdefault(state.employee.employee_id, []).append(state)

        def employee_minutes(state: TourState) -> float:
            if state.employee is None:
                return 0.0
            employee_id = state.employee.employee_id
            return baseline.get(employee_id, 0.0) + sum(s.total_minutes for s in employee_tours[employee_id])

        assignments: list[Assignment] = []
        unassigned: list[str] = []
        order: list[str] = []

        for zone, zone_visits in group_by_zone(self.snapshot, real_visits).items():
            for visit in zone_visits:
                order.append(visit.visit_id)
                candidate = Candidate(
                    visit=visit,
                    zone=zone,
                    location=self.snapshot.location_for(visit),
                    service_types=self.snapshot.service_types_for(visit),
                )
                if candidate.location is None and visit.location_id:
                    logging.debug(f"Visit {visit.visit_id} references unknown location {visit.location_id}")

                best_state: TourState | None = None
                best_score = math.inf
                for state in states.values():
                    score = self.scorer.score(candidate, state, employee_minutes(state))
                    if score < best_score:
                        best_score = score
                        best_state = state

                if best_state is None:
                    logging.warning(f"No feasible tour for visit {visit.visit_id} ({visit.title}) in zone {zone}")
                    unassigned.append(visit.visit_id)
                    continue

                best_state.place(visit, zone, candidate.location)
                assignments.append(
                    Assignment(visit_id=visit.visit_id, tour_id=best_state.tour.tour_id, score=best_score)
                )

        return AssignmentOutcome(
            assignments=assignments,
            unassigned_visit_ids=unassigned,
            states=states,
            processing_order=order,
        )
