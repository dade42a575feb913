"""Optimization run parameters and result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class OptimizationParameterError(ValueError):
    """Raised for invocation parameters that indicate an integration mistake."""


class Objective(str, Enum):
    TIME = "time"
    DISTANCE = "distance"
    COST = "cost"


class TypeSeparation(str, Enum):
    STRICT = "strict"
    FLEXIBLE = "flexible"


class Scope(str, Enum):
    DAY = "day"
    TOUR = "tour"


def coerce_enum(enum_cls: type[Enum], value: Any, name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise OptimizationParameterError(f"Unknown {name} '{value}'. Expected one of: {allowed}.") from exc


@dataclass(slots=True)
class OptimizationParameters:
    """Validated knobs of one run; invalid values fail at construction."""

    objective: Objective = Objective.TIME
    type_separation: TypeSeparation = TypeSeparation.FLEXIBLE
    scope: Scope = Scope.DAY
    day_index: Optional[int] = None
    tour_id: Optional[str] = None
    adjust_timings: bool = True

    def __post_init__(self) -> None:
        self.objective = coerce_enum(Objective, self.objective, "objective")
        self.type_separation = coerce_enum(TypeSeparation, self.type_separation, "type separation")
        self.scope = coerce_enum(Scope, self.scope, "scope")
        if self.day_index is not None and not 0 <= self.day_index <= 6:
            raise OptimizationParameterError(f"Invalid day index {self.day_index} (0-6 required).")
        if self.scope is Scope.DAY and self.day_index is None:
            raise OptimizationParameterError("Day scope requires a day index (0-6).")
        if self.scope is Scope.TOUR and not self.tour_id:
            raise OptimizationParameterError("Tour scope requires a tour id.")


@dataclass(slots=True)
class Assignment:
    visit_id: str
    tour_id: str
    score: float


@dataclass(slots=True)
class AdjustedVisit:
    visit_id: str
    day_index: int
    start: str
    end: str


@dataclass(slots=True)
class TourWorkload:
    tour_id: str
    tour_name: str
    visit_ids: List[str]
    total_minutes: float
    total_hours: float
    employee_name: Optional[str]
    committed_minutes: float = 0.0
    estimated_cost: float = 0.0


@dataclass(slots=True)
class OptimizationStatistics:
    total_visits: int
    assigned_visits: int
    unassigned_visits: int
    tours_used: int
    total_tours: int


@dataclass(slots=True)
class OptimizationResult:
    parameters: OptimizationParameters
    assignments: List[Assignment]
    unassigned_visit_ids: List[str]
    workloads: List[TourWorkload]
    statistics: OptimizationStatistics
    optimized_visits: List[AdjustedVisit] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


@dataclass(slots=True)
class PotentialIssue:
    type: str
    day_index: int
    message: str
    count: Optional[int] = None
    tour_id: Optional[str] = None
    gap_minutes: Optional[float] = None


@dataclass(slots=True)
class PotentialRecommendation:
    type: str
    count: int
    message: str


@dataclass(slots=True)
class PotentialReport:
    has_potential: bool
    issues: List[PotentialIssue]
    recommendations: List[PotentialRecommendation]
    total_potential_savings: int
    summary: str
