"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TOURPLAN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    zones_file: Optional[Path] = Field(
        default=None,
        description="Optional JSON file replacing the built-in zone table.",
    )

    # Distance model
    default_distance_km: float = Field(default=5.0, ge=0.0)
    same_zone_distance_km: float = Field(default=1.0, ge=0.0)
    outside_zone_distance_km: float = Field(default=8.0, ge=0.0)
    zone_scale_factor: float = Field(default=1.2, gt=0.0, description="Kilometres per relative zone unit.")
    road_detour_factor: float = Field(default=1.4, ge=1.0, description="Haversine to road distance factor.")
    urban_speed_kmh: float = Field(default=25.0, gt=0.0)
    min_zone_travel_minutes: int = Field(default=3, ge=0)
    min_travel_minutes: int = Field(default=5, ge=0)
    max_travel_minutes: int = Field(default=30, ge=1)
    default_travel_minutes: int = Field(default=15, ge=0)

    # Cost model
    default_hourly_rate: float = Field(default=14.0, ge=0.0)
    default_weekly_hours: float = Field(default=40.0, gt=0.0)

    # Assignment scoring
    empty_tour_penalty_minutes: float = Field(default=30.0, ge=0.0)
    home_zone_travel_minutes: float = Field(default=5.0, ge=0.0)
    away_zone_travel_minutes: float = Field(default=15.0, ge=0.0)
    home_zone_distance_km: float = Field(default=2.0, ge=0.0)
    away_zone_distance_km: float = Field(default=10.0, ge=0.0)
    gap_penalty_threshold_minutes: float = Field(default=60.0, ge=0.0)
    gap_penalty_divisor: float = Field(default=10.0, gt=0.0)
    type_mismatch_penalty: float = Field(default=1.3, ge=1.0)
    zone_bonus_single: float = Field(default=0.8, gt=0.0, le=1.0)
    zone_bonus_multiple: float = Field(default=0.7, gt=0.0, le=1.0)
    zone_switch_penalty: float = Field(default=1.1, ge=1.0)
    zone_switch_threshold_km: float = Field(default=5.0, ge=0.0)
    hour_balance_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    overtime_threshold_ratio: float = Field(default=1.2, ge=1.0)
    overtime_penalty: float = Field(default=1.5, ge=1.0)

    # Sequencing and timing
    overlap_sequence_penalty: float = Field(default=1000.0, ge=0.0)
    time_step_minutes: int = Field(default=5, ge=1)

    # Potential analysis
    potential_min_gap_minutes: int = Field(default=30, ge=0)
    potential_excess_gap_minutes: int = Field(default=15, ge=0)

    @field_validator("zones_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()


settings = Settings()
