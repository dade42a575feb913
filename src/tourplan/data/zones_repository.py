"""Zone table loader: built-in district table or a configured JSON file."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Optional

from ..config import settings
from ..models.domain import OUTSIDE_ZONE, Zone

# (name, x, y, postal code, color); x runs west to east, y south to north.
_DEFAULT_ZONES: tuple[tuple[str, float, float, Optional[str], str], ...] = (
    ("Alt-/Neustadt", 4, 3.5, "45879", "#e11d48"),
    ("Beckhausen", 3.5, 8, "45899", "#b45309"),
    ("Bismarck", 4, 5, "45889", "#7c3aed"),
    ("Buer", 5, 8, "45894", "#0891b2"),
    ("Bulmke-Hüllen", 6, 4, "45888", "#059669"),
    ("Erle", 6, 6, "45891", "#16a34a"),
    ("Feldmark", 4, 4, "45883", "#65a30d"),
    ("Hassel", 3, 8, "45768", "#ca8a04"),
    ("Heßler", 3, 3, "45883", "#ea580c"),
    ("Horst", 2, 5, "45899", "#dc2626"),
    ("Resser Mark", 6, 9, "45892", "#9333ea"),
    ("Resse", 4, 9, "45892", "#2563eb"),
    ("Rotthausen", 7, 2, "45884", "#c026d3"),
    ("Schalke", 5, 5, "45881", "#0284c7"),
    ("Scholven", 2, 8, "45896", "#4f46e5"),
    ("Ückendorf", 6, 3, "45886", "#0d9488"),
    (OUTSIDE_ZONE, 5, 5, None, "#525252"),
)

# Postal codes shared by a zone on top of its primary code.
EXTRA_POSTAL_CODES: dict[str, str] = {"45897": "Buer"}


def default_zones() -> tuple[Zone, ...]:
    return tuple(
        Zone(name=name, x=float(x), y=float(y), postal_code=postal_code, color=color)
        for name, x, y, postal_code, color in _DEFAULT_ZONES
    )


def _zone_from_record(record: dict) -> Zone:
    try:
        name = str(record["name"]).strip()
        x, y = record["coordinates"]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid zone record {record!r}: expected 'name' and 'coordinates' [x, y].") from exc
    if not name:
        raise ValueError("Zone record has an empty name.")
    postal_code = record.get("postal_code") or record.get("postalCode")
    return Zone(
        name=name,
        x=float(x),
        y=float(y),
        postal_code=str(postal_code).strip() if postal_code else None,
        color=record.get("color"),
    )


@functools.lru_cache(maxsize=1)
def load_zones(source: Optional[Path] = None) -> tuple[Zone, ...]:
    """Load the zone table from ``source`` or the configured file, else the built-in table."""

    zones_path = source or settings.zones_file
    if zones_path is None:
        return default_zones()
    if not zones_path.exists():
        raise FileNotFoundError(f"Zone file not found: {zones_path}")

    with zones_path.open(mode="r", encoding="utf-8") as handle:
        payload = json.load(handle)
    records = payload.get("zones") if isinstance(payload, dict) else payload
    if not isinstance(records, list) or not records:
        raise ValueError(f"Zone file '{zones_path}' does not contain a list of zones.")

    zones = tuple(_zone_from_record(record) for record in records)
    if not any(zone.name == OUTSIDE_ZONE for zone in zones):
        zones = zones + (Zone(name=OUTSIDE_ZONE, x=0.0, y=0.0),)
    logging.info(f"Loaded {len(zones)} zones from {zones_path}")
    return zones
