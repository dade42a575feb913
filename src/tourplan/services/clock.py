"""Wall-clock helpers for ``HH:MM`` visit times."""

from __future__ import annotations

import math
from typing import Optional


def parse_time_to_minutes(value: Optional[str]) -> int:
    """Convert ``HH:MM`` into minutes after midnight; empty values count as 0."""

    if not value:
        return 0
    hours, _, minutes = value.strip().partition(":")
    try:
        return int(hours or 0) * 60 + int(minutes or 0)
    except ValueError as exc:
        raise ValueError(f"Invalid time '{value}', expected HH:MM.") from exc


def minutes_to_time(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def ceil_to_step(minutes: float, step: int = 5) -> int:
    """Round up to the next multiple of ``step`` minutes."""

    return int(math.ceil(minutes / step) * step)


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale
