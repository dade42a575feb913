"""Rewrite visit times so gaps reflect travel between consecutive stops."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Employee, PlanningSnapshot, Visit
from ..clock import ceil_to_step, minutes_to_time
from ..geospatial import GeoDistance


class TimingAdjuster:
    def __init__(self, snapshot: PlanningSnapshot, geo: GeoDistance, *, step: int = settings.time_step_minutes) -> None:
        self.snapshot = snapshot
        self.geo = geo
        self.step = step

    def _moved(self, visit: Visit, start: int) -> Visit:
        duration = visit.duration_minutes
        return replace(visit, start=minutes_to_time(start), end=minutes_to_time(start + duration))

    def adjust(self, visits: Sequence[Visit], employee: Optional[Employee]) -> list[Visit]:
        """Return copies of the sequenced ``visits`` with rewritten start/end times.

        The first visit moves earlier by the home travel time when that is
        known and stays at or after midnight. Every later visit starts at the
        previous end plus travel time, rounded up to the time step.
        Durations and day indexes are preserved.
        """

        if not visits:
            return []

        first = replace(visits[0])
        home_travel = self.geo.home_travel_minutes(employee, self.snapshot.location_for(first))
        current_start = first.start_minutes
        if 0 < home_travel < current_start:
            suggested = ceil_to_step(current_start - home_travel, self.step)
            if 0 <= suggested < current_start:
                first = self._moved(first, suggested)

        adjusted = [first]
        for visit in visits[1:]:
            previous = adjusted[-1]
            travel = self.geo.travel_minutes(
                self.snapshot.location_for(previous),
                self.snapshot.location_for(visit),
            )
            adjusted.append(self._moved(visit, ceil_to_step(previous.end_minutes + travel, self.step)))
        return adjusted
