"""Geospatial helper functions and location-to-location travel estimates."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..config import settings
from ..models.domain import Coordinates, Employee, Location, TransportMode, WageSettings
from .clock import round_half_up
from .zones.model import ZoneModel

EARTH_RADIUS_KM = 6371.0

# (optimistic, realistic, pessimistic) km/h per transport mode
TRANSPORT_SPEEDS_KMH: dict[TransportMode, tuple[float, float, float]] = {
    TransportMode.CAR: (30.0, 25.0, 20.0),
    TransportMode.PUBLIC: (18.0, 15.0, 12.0),
}
SUGGESTION_FLOORS_MINUTES = (3, 5, 8)
UNKNOWN_DISTANCE_SUGGESTION = (5, 10, 15)


@dataclass(slots=True, frozen=True)
class TravelTimeSuggestion:
    """Optimistic, realistic and pessimistic travel minutes for one leg."""

    optimistic: int
    realistic: int
    pessimistic: int
    distance_km: float
    transport: TransportMode


def travel_time_suggestions(
    distance_km: Optional[float], transport: TransportMode | str = TransportMode.CAR
) -> TravelTimeSuggestion:
    """Travel-time range for ``distance_km`` by car or public transport.

    Public transport is slower to account for waiting and changing lines.
    A missing or non-positive distance yields the fixed 5/10/15 minute range.
    """

    mode = TransportMode(transport)
    if not distance_km or distance_km <= 0:
        optimistic, realistic, pessimistic = UNKNOWN_DISTANCE_SUGGESTION
        return TravelTimeSuggestion(optimistic, realistic, pessimistic, 0.0, mode)

    optimistic, realistic, pessimistic = (
        max(floor, int(round_half_up(distance_km / speed * 60)))
        for speed, floor in zip(TRANSPORT_SPEEDS_KMH[mode], SUGGESTION_FLOORS_MINUTES)
    )
    return TravelTimeSuggestion(optimistic, realistic, pessimistic, distance_km, mode)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _coordinate_distance_km(a: Coordinates, b: Coordinates) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


class GeoDistance:
    """Distances between locations: real coordinates first, zone table as fallback."""

    def __init__(
        self,
        zone_model: ZoneModel,
        *,
        road_factor: float = settings.road_detour_factor,
        speed_kmh: float = settings.urban_speed_kmh,
        min_minutes: int = settings.min_travel_minutes,
        max_minutes: int = settings.max_travel_minutes,
        default_minutes: int = settings.default_travel_minutes,
    ) -> None:
        if min_minutes > max_minutes:
            raise ValueError("min_minutes must not exceed max_minutes")
        self.zone_model = zone_model
        self.road_factor = road_factor
        self.speed_kmh = speed_kmh
        self.zone_speed_kmh = speed_kmh
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes
        self.default_minutes = default_minutes

    @classmethod
    def for_wage_settings(cls, zone_model: ZoneModel, wage_settings: Optional[WageSettings]) -> "GeoDistance":
        """Zone travel times use the configured average speed when the wage settings carry one."""

        geo = cls(zone_model)
        if wage_settings is not None and wage_settings.avg_speed:
            geo.zone_speed_kmh = wage_settings.avg_speed
        return geo

    def zone_travel_minutes(self, zone_a: Optional[str], zone_b: Optional[str]) -> int:
        return self.zone_model.travel_time(zone_a, zone_b, speed_kmh=self.zone_speed_kmh)

    def travel_suggestions(
        self, loc_a: Optional[Location], loc_b: Optional[Location], transport: TransportMode | str = TransportMode.CAR
    ) -> TravelTimeSuggestion:
        if loc_a is None or loc_b is None:
            return travel_time_suggestions(None, transport)
        return travel_time_suggestions(self.distance_km(loc_a, loc_b), transport)

    def _minutes_for(self, distance_km: float) -> int:
        return int(round_half_up(distance_km / self.speed_kmh * 60))

    def _clamp(self, minutes: int) -> int:
        return max(self.min_minutes, min(self.max_minutes, minutes))

    def distance_km(self, loc_a: Optional[Location], loc_b: Optional[Location]) -> float:
        if loc_a is None or loc_b is None:
            logging.debug("Location missing for distance estimate, using default distance")
            return self.zone_model.default_distance_km
        if loc_a.coordinates is not None and loc_b.coordinates is not None:
            return _coordinate_distance_km(loc_a.coordinates, loc_b.coordinates) * self.road_factor
        return self.zone_model.distance(loc_a.zone, loc_b.zone)

    def travel_minutes(self, loc_a: Optional[Location], loc_b: Optional[Location]) -> int:
        """Travel minutes between two locations, clamped to the configured window."""

        if loc_a is None or loc_b is None:
            logging.debug("Location missing for travel estimate, using default travel time")
            return self._clamp(self.default_minutes)
        return self._clamp(self._minutes_for(self.distance_km(loc_a, loc_b)))

    def home_travel_minutes(self, employee: Optional[Employee], location: Optional[Location]) -> int:
        """Minutes from the employee's home to ``location``; 0 means unknown, not free."""

        if employee is None or location is None:
            return 0
        if employee.home_coordinates is not None and location.coordinates is not None:
            distance = _coordinate_distance_km(employee.home_coordinates, location.coordinates) * self.road_factor
            return max(self.min_minutes, self._minutes_for(distance))
        if employee.home_zone and location.zone:
            return self._clamp(self._minutes_for(self.zone_model.distance(employee.home_zone, location.zone)))
        return 0

    def home_distance_km(self, employee: Optional[Employee], location: Optional[Location]) -> Optional[float]:
        if employee is None or location is None:
            return None
        if employee.home_coordinates is not None and location.coordinates is not None:
            return _coordinate_distance_km(employee.home_coordinates, location.coordinates) * self.road_factor
        if employee.home_zone and location.zone:
            return self.zone_model.distance(employee.home_zone, location.zone)
        return None

    def home_travel_suggestions(self, employee: Employee, location: Optional[Location]) -> TravelTimeSuggestion:
        """Travel-time range from the employee's home by their own transport mode."""

        return travel_time_suggestions(self.home_distance_km(employee, location), employee.transport)
