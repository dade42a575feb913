"""Candidate scoring for placing one visit on one tour.

Lower scores are better and ``math.inf`` means the visit cannot be placed on
the tour. The score starts from an objective-specific base value and is then
scaled by preference, clustering and workload multipliers before the hard
constraints are checked.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from ...config import settings
from ...models.domain import OUTSIDE_ZONE, Employee, Location, Tour, Visit, WageSettings
from ..costs.model import CostModel
from ..geospatial import GeoDistance
from ..zones.model import ZoneModel
from .models import Objective, TypeSeparation


@dataclass(slots=True)
class ScoringWeights:
    empty_tour_penalty: float = settings.empty_tour_penalty_minutes
    home_zone_minutes: float = settings.home_zone_travel_minutes
    away_zone_minutes: float = settings.away_zone_travel_minutes
    home_zone_km: float = settings.home_zone_distance_km
    away_zone_km: float = settings.away_zone_distance_km
    gap_penalty_threshold: float = settings.gap_penalty_threshold_minutes
    gap_penalty_divisor: float = settings.gap_penalty_divisor
    type_mismatch_penalty: float = settings.type_mismatch_penalty
    zone_bonus_single: float = settings.zone_bonus_single
    zone_bonus_multiple: float = settings.zone_bonus_multiple
    zone_switch_penalty: float = settings.zone_switch_penalty
    zone_switch_threshold_km: float = settings.zone_switch_threshold_km
    hour_balance_weight: float = settings.hour_balance_weight
    overtime_threshold_ratio: float = settings.overtime_threshold_ratio
    overtime_penalty: float = settings.overtime_penalty
    default_weekly_hours: float = settings.default_weekly_hours


@dataclass(slots=True)
class PlacedVisit:
    visit: Visit
    zone: str
    location: Optional[Location]


@dataclass(slots=True)
class TourState:
    """Working accumulators for one tour during a single run."""

    tour: Tour
    employee: Optional[Employee]
    committed_minutes: float = 0.0
    placed: list[PlacedVisit] = field(default_factory=list)
    assigned_minutes: float = 0.0
    last_zone: Optional[str] = None
    zone_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_minutes(self) -> float:
        return self.committed_minutes + self.assigned_minutes

    def previous_for(self, visit: Visit) -> Optional[PlacedVisit]:
        """Same-day placed visit that ends latest at or before ``visit`` starts."""

        start = visit.start_minutes
        previous: Optional[PlacedVisit] = None
        for placed in self.placed:
            if placed.visit.day_index != visit.day_index or placed.visit.end_minutes > start:
                continue
            if previous is None or placed.visit.end_minutes > previous.visit.end_minutes:
                previous = placed
        return previous

    def overlaps(self, visit: Visit) -> bool:
        start, end = visit.start_minutes, visit.end_minutes
        return any(
            placed.visit.day_index == visit.day_index
            and start < placed.visit.end_minutes
            and end > placed.visit.start_minutes
            for placed in self.placed
        )

    def place(self, visit: Visit, zone: str, location: Optional[Location]) -> None:
        self.placed.append(PlacedVisit(visit=visit, zone=zone, location=location))
        self.assigned_minutes += visit.workload_minutes
        self.last_zone = zone
        self.zone_counts[zone] = self.zone_counts.get(zone, 0) + 1


@dataclass(slots=True)
class Candidate:
    """The visit being placed, with its references already resolved."""

    visit: Visit
    zone: str
    location: Optional[Location]
    service_types: frozenset[str]


class CandidateScorer:
    def __init__(
        self,
        *,
        objective: Objective,
        type_separation: TypeSeparation,
        zone_model: ZoneModel,
        geo: GeoDistance,
        cost_model: CostModel,
        wage_settings: Optional[WageSettings] = None,
        weights: ScoringWeights | None = None,
    ) -> None:
        self.objective = objective
        self.type_separation = type_separation
        self.zone_model = zone_model
        self.geo = geo
        self.cost_model = cost_model
        self.wage_settings = wage_settings
        self.weights = weights or ScoringWeights()

    def score(self, candidate: Candidate, state: TourState, employee_minutes: float) -> float:
        """Score ``candidate`` on ``state``; ``employee_minutes`` covers all of the employee's tours."""

        score = self._base_score(candidate, state)
        if math.isinf(score):
            return score
        score = self._apply_type_preference(score, candidate, state.tour)
        score = self._apply_zone_consistency(score, candidate, state)
        score = self._apply_zone_switch(score, candidate, state)
        score = self._apply_hour_balance(score, candidate, state.employee, employee_minutes)

        limit = state.tour.weekly_hours_limit
        if limit and state.total_minutes + candidate.visit.workload_minutes > limit * 60:
            return math.inf
        if state.overlaps(candidate.visit):
            return math.inf
        return score

    def _home_estimate(self, candidate: Candidate, employee: Optional[Employee], *, home: float, away: float) -> float:
        if employee is not None and employee.home_zone == candidate.zone:
            return home
        return away

    def _base_score(self, candidate: Candidate, state: TourState) -> float:
        weights = self.weights
        visit = candidate.visit
        duration = visit.duration_minutes
        # Visits placed later in the run may start earlier in the day; only
        # stops that end before this one starts count as its predecessor.
        previous = state.previous_for(visit)

        match self.objective:
            case Objective.TIME:
                if previous is None:
                    home = self._home_estimate(
                        candidate, state.employee, home=weights.home_zone_minutes, away=weights.away_zone_minutes
                    )
                    return home + duration + weights.empty_tour_penalty
                gap = visit.start_minutes - previous.visit.end_minutes
                travel = self.geo.travel_minutes(previous.location, candidate.location)
                gap_penalty = gap / weights.gap_penalty_divisor if gap > weights.gap_penalty_threshold else 0.0
                return travel + duration + gap_penalty
            case Objective.DISTANCE:
                if previous is None:
                    return self._home_estimate(
                        candidate, state.employee, home=weights.home_zone_km, away=weights.away_zone_km
                    )
                return self.geo.distance_km(previous.location, candidate.location)
            case Objective.COST:
                rate = self.cost_model.hourly_rate(state.employee, self.wage_settings)
                if previous is None:
                    home = self._home_estimate(
                        candidate, state.employee, home=weights.home_zone_minutes, away=weights.away_zone_minutes
                    )
                    return (home + duration) * rate
                travel = self.geo.travel_minutes(previous.location, candidate.location)
                return (state.total_minutes + travel + duration) * rate
        raise ValueError(f"Unsupported objective '{self.objective}'.")

    def _apply_type_preference(self, score: float, candidate: Candidate, tour: Tour) -> float:
        if not tour.preferred_types or candidate.service_types & tour.preferred_types:
            return score
        match self.type_separation:
            case TypeSeparation.STRICT:
                return math.inf
            case TypeSeparation.FLEXIBLE:
                return score * self.weights.type_mismatch_penalty
        raise ValueError(f"Unsupported type separation '{self.type_separation}'.")

    def _apply_zone_consistency(self, score: float, candidate: Candidate, state: TourState) -> float:
        same_zone = state.zone_counts.get(candidate.zone, 0)
        if same_zone >= 2:
            return score * self.weights.zone_bonus_multiple
        if same_zone == 1:
            return score * self.weights.zone_bonus_single
        return score

    def _apply_zone_switch(self, score: float, candidate: Candidate, state: TourState) -> float:
        last_zone = state.last_zone
        if not last_zone or last_zone == candidate.zone:
            return score
        if OUTSIDE_ZONE in (last_zone, candidate.zone):
            return score
        if self.zone_model.distance(last_zone, candidate.zone) > self.weights.zone_switch_threshold_km:
            return score * self.weights.zone_switch_penalty
        return score

    def _apply_hour_balance(
        self, score: float, candidate: Candidate, employee: Optional[Employee], employee_minutes: float
    ) -> float:
        if employee is None:
            return score
        target = (employee.weekly_hours or self.weights.default_weekly_hours) * 60
        projected = employee_minutes + candidate.visit.workload_minutes
        if target > 0:
            difference = max(-1.0, min(1.0, (target - projected) / target))
            score *= 1 + difference * self.weights.hour_balance_weight
        if projected > target * self.weights.overtime_threshold_ratio:
            score *= self.weights.overtime_penalty
        return score
