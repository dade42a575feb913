"""Nearest-neighbor ordering of the visits on one tour."""

from __future__ import annotations

import math
from typing import Sequence

from ...config import settings
from ...models.domain import PlanningSnapshot, Visit
from ..zones.model import ZoneModel


class RouteSequencer:
    def __init__(
        self,
        snapshot: PlanningSnapshot,
        zone_model: ZoneModel,
        *,
        overlap_penalty: float = settings.overlap_sequence_penalty,
        gap_divisor: float = settings.gap_penalty_divisor,
    ) -> None:
        self.snapshot = snapshot
        self.zone_model = zone_model
        self.overlap_penalty = overlap_penalty
        self.gap_divisor = gap_divisor

    def _step_score(self, current: Visit, candidate: Visit) -> float:
        current_zone = self.snapshot.location_for(current).zone
        candidate_zone = self.snapshot.location_for(candidate).zone
        distance = self.zone_model.distance(current_zone, candidate_zone)
        time_gap = candidate.start_minutes - current.end_minutes
        if time_gap >= 0:
            return distance + time_gap / self.gap_divisor
        return distance + self.overlap_penalty

    def sequence(self, visits: Sequence[Visit]) -> list[Visit]:
        """Return a permutation of ``visits`` starting at the earliest visit.

        Each next stop is the unused visit with the lowest zone distance plus
        gap penalty. Visits without a resolvable location are appended in
        their input order.
        """

        if len(visits) <= 1:
            return list(visits)

        resolvable = [visit for visit in visits if self.snapshot.location_for(visit) is not None]
        unresolvable = [visit for visit in visits if self.snapshot.location_for(visit) is None]
        if not resolvable:
            return list(visits)

        remaining = sorted(resolvable, key=lambda visit: visit.start_minutes)
        current = remaining.pop(0)
        ordered = [current]
        while remaining:
            best_index = 0
            best_score = math.inf
            for index, candidate in enumerate(remaining):
                score = self._step_score(current, candidate)
                if score < best_score:
                    best_score = score
                    best_index = index
            current = remaining.pop(best_index)
            ordered.append(current)

        return ordered + unresolvable
