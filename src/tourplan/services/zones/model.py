"""Zone-based distance and travel-time estimates."""

from __future__ import annotations

from typing import Iterable, Optional

from shapely.geometry import Point

from ...config import settings
from ...data.zones_repository import EXTRA_POSTAL_CODES, load_zones
from ...models.domain import OUTSIDE_ZONE, Zone
from ..clock import round_half_up


class ZoneModel:
    """Static zone table with coarse inter-zone distances.

    Unknown or missing zone names never raise; they resolve to the default
    distance so partially configured records stay usable.
    """

    def __init__(
        self,
        zones: Iterable[Zone],
        *,
        extra_postal_codes: dict[str, str] | None = None,
        scale_factor: float = settings.zone_scale_factor,
        default_distance_km: float = settings.default_distance_km,
        same_zone_distance_km: float = settings.same_zone_distance_km,
        outside_distance_km: float = settings.outside_zone_distance_km,
        min_travel_minutes: int = settings.min_zone_travel_minutes,
    ) -> None:
        self._zones = {zone.name: zone for zone in zones}
        self._points = {name: Point(zone.x, zone.y) for name, zone in self._zones.items()}
        self._extra_postal_codes = dict(extra_postal_codes or {})
        self.scale_factor = scale_factor
        self.default_distance_km = default_distance_km
        self.same_zone_distance_km = same_zone_distance_km
        self.outside_distance_km = outside_distance_km
        self.min_travel_minutes = min_travel_minutes

    @classmethod
    def default(cls) -> "ZoneModel":
        return cls(load_zones(), extra_postal_codes=EXTRA_POSTAL_CODES)

    def __contains__(self, name: object) -> bool:
        return name in self._zones

    @property
    def names(self) -> list[str]:
        return list(self._zones)

    def get(self, name: Optional[str]) -> Optional[Zone]:
        if not name:
            return None
        return self._zones.get(name)

    def distance(self, zone_a: Optional[str], zone_b: Optional[str]) -> float:
        """Approximate road distance in km between two zones."""

        if not zone_a or not zone_b:
            return self.default_distance_km
        if zone_a == zone_b:
            return self.same_zone_distance_km
        if zone_a == OUTSIDE_ZONE or zone_b == OUTSIDE_ZONE:
            return self.outside_distance_km

        point_a = self._points.get(zone_a)
        point_b = self._points.get(zone_b)
        if point_a is None or point_b is None:
            return self.default_distance_km
        return round_half_up(point_a.distance(point_b) * self.scale_factor, 1)

    def travel_time(self, zone_a: Optional[str], zone_b: Optional[str], speed_kmh: float = settings.urban_speed_kmh) -> int:
        """Travel minutes between two zones at ``speed_kmh``, never below the floor."""

        if speed_kmh <= 0:
            raise ValueError("speed_kmh must be > 0")
        minutes = round_half_up(self.distance(zone_a, zone_b) / speed_kmh * 60)
        return max(int(minutes), self.min_travel_minutes)

    def zone_for_postal_code(self, postal_code: Optional[str]) -> Optional[str]:
        if not postal_code:
            return None
        normalized = str(postal_code).strip()
        if normalized in self._extra_postal_codes:
            return self._extra_postal_codes[normalized]
        for zone in self._zones.values():
            if zone.postal_code and zone.postal_code.strip() == normalized:
                return zone.name
        return None
