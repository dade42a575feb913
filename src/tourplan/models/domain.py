"""Domain models for zones, visits, tours and the people who drive them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ..services.clock import parse_time_to_minutes

OUTSIDE_ZONE = "Außerhalb"
UNKNOWN_ZONE = "unbekannt"


class Rhythm(str, Enum):
    """Recurrence cadence of a visit."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    THREE_WEEKLY = "threeweekly"
    FOUR_WEEKLY = "fourweekly"

    @property
    def period_weeks(self) -> int:
        return {
            Rhythm.WEEKLY: 1,
            Rhythm.BIWEEKLY: 2,
            Rhythm.THREE_WEEKLY: 3,
            Rhythm.FOUR_WEEKLY: 4,
        }[self]


class TransportMode(str, Enum):
    CAR = "car"
    PUBLIC = "public"


@dataclass(slots=True, frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True, frozen=True)
class Zone:
    """A named district with relative (x, y) coordinates used for coarse distances."""

    name: str
    x: float
    y: float
    postal_code: Optional[str] = None
    color: Optional[str] = None


@dataclass(slots=True)
class Location:
    """A pool item: a client address that visits are scheduled at."""

    location_id: str
    title: str
    zone: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    service_types: frozenset[str] = frozenset()


@dataclass(slots=True)
class Visit:
    """A scheduled visit (an "event") on one weekday."""

    visit_id: str
    title: str
    day_index: int
    start: str
    end: str
    location_id: Optional[str] = None
    zone: Optional[str] = None
    tour_id: Optional[str] = None
    service_types: frozenset[str] = frozenset()
    rhythm: Rhythm = Rhythm.WEEKLY
    is_travel: bool = False

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    @property
    def workload_minutes(self) -> float:
        """Duration spread over the rhythm period, as counted against weekly hours."""

        return self.duration_minutes / self.rhythm.period_weeks


@dataclass(slots=True)
class Tour:
    tour_id: str
    name: str
    employee_id: Optional[str] = None
    weekly_hours_limit: Optional[float] = None
    preferred_types: frozenset[str] = frozenset()


@dataclass(slots=True)
class Employee:
    employee_id: str
    name: str
    home_zone: Optional[str] = None
    home_coordinates: Optional[Coordinates] = None
    transport: TransportMode = TransportMode.CAR
    weekly_hours: Optional[float] = None
    wage_group: Optional[str] = None


@dataclass(slots=True, frozen=True)
class WageGroup:
    group_id: str
    name: str = ""
    hourly_rate: Optional[float] = None


@dataclass(slots=True)
class WageSettings:
    wage_groups: tuple[WageGroup, ...] = ()
    avg_speed: Optional[float] = None

    def group(self, group_id: Optional[str]) -> Optional[WageGroup]:
        if not group_id:
            return None
        for group in self.wage_groups:
            if group.group_id == group_id:
                return group
        return None


@dataclass(slots=True)
class PlanningSnapshot:
    """Read-only bundle of everything one optimization run looks at."""

    visits: Sequence[Visit]
    tours: Sequence[Tour]
    employees: Sequence[Employee] = ()
    locations: Sequence[Location] = ()
    wage_settings: Optional[WageSettings] = None
    _locations_by_id: dict[str, Location] = field(init=False, repr=False)
    _employees_by_id: dict[str, Employee] = field(init=False, repr=False)
    _tours_by_id: dict[str, Tour] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._locations_by_id = {location.location_id: location for location in self.locations}
        self._employees_by_id = {employee.employee_id: employee for employee in self.employees}
        self._tours_by_id = {tour.tour_id: tour for tour in self.tours}

    def location(self, location_id: Optional[str]) -> Optional[Location]:
        if not location_id:
            return None
        return self._locations_by_id.get(location_id)

    def location_for(self, visit: Visit) -> Optional[Location]:
        return self.location(visit.location_id)

    def employee(self, employee_id: Optional[str]) -> Optional[Employee]:
        if not employee_id:
            return None
        return self._employees_by_id.get(employee_id)

    def employee_for(self, tour: Tour) -> Optional[Employee]:
        return self.employee(tour.employee_id)

    def tour(self, tour_id: Optional[str]) -> Optional[Tour]:
        if not tour_id:
            return None
        return self._tours_by_id.get(tour_id)

    def zone_for(self, visit: Visit) -> str:
        """Zone of the visit's location, then the visit's own zone, then ``UNKNOWN_ZONE``."""

        location = self.location_for(visit)
        if location is not None and location.zone:
            return location.zone
        return visit.zone or UNKNOWN_ZONE

    def service_types_for(self, visit: Visit) -> frozenset[str]:
        location = self.location_for(visit)
        if location is not None and location.service_types:
            return location.service_types
        return visit.service_types

    def real_visits(self) -> list[Visit]:
        return [visit for visit in self.visits if not visit.is_travel]
