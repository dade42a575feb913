"""Optimization request/response schemas."""

from __future__ import annotations

import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.domain import (
    Coordinates,
    Employee,
    Location,
    PlanningSnapshot,
    Rhythm,
    Tour,
    TransportMode,
    Visit,
    WageGroup,
    WageSettings,
)
from ..services.optimization.models import Objective, Scope, TypeSeparation

TIME_PATTERN = r"^\d{1,2}:\d{2}$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CoordinatesModel(_CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class VisitModel(_CamelModel):
    id: str
    title: str = ""
    start: str = Field(..., pattern=TIME_PATTERN)
    end: str = Field(..., pattern=TIME_PATTERN)
    day_index: int = Field(..., ge=0, le=6, alias="dayIndex")
    zone: Optional[str] = None
    location_ref: Optional[str] = Field(None, alias="locationRef")
    service_types: List[str] = Field(default_factory=list, alias="serviceTypes")
    rhythm: Rhythm = Rhythm.WEEKLY
    tour_ref: Optional[str] = Field(None, alias="tourRef")
    is_travel: bool = Field(False, alias="isTravel")

    @model_validator(mode="after")
    def _check_window(self) -> "VisitModel":
        start_hours, start_minutes = (int(part) for part in self.start.split(":"))
        end_hours, end_minutes = (int(part) for part in self.end.split(":"))
        if end_hours * 60 + end_minutes < start_hours * 60 + start_minutes:
            raise ValueError(f"Visit '{self.id}' ends before it starts.")
        return self

    def to_domain(self) -> Visit:
        return Visit(
            visit_id=self.id,
            title=self.title,
            day_index=self.day_index,
            start=self.start,
            end=self.end,
            location_id=self.location_ref,
            zone=self.zone,
            tour_id=self.tour_ref,
            service_types=frozenset(self.service_types),
            rhythm=self.rhythm,
            is_travel=self.is_travel,
        )


class TourModel(_CamelModel):
    id: str
    name: str = ""
    employee_ref: Optional[str] = Field(None, alias="employeeRef")
    weekly_hours_limit: Optional[float] = Field(None, gt=0, alias="weeklyHoursLimit")
    preferred_types: Optional[List[str]] = Field(None, alias="preferredTypes")

    def to_domain(self) -> Tour:
        return Tour(
            tour_id=self.id,
            name=self.name,
            employee_id=self.employee_ref,
            weekly_hours_limit=self.weekly_hours_limit,
            preferred_types=frozenset(self.preferred_types or ()),
        )


class EmployeeModel(_CamelModel):
    id: str
    name: str = ""
    home_zone: Optional[str] = Field(None, alias="homeZone")
    coordinates: Optional[CoordinatesModel] = None
    transport_mode: TransportMode = Field(TransportMode.CAR, alias="transportMode")
    weekly_hours: Optional[float] = Field(None, ge=0, alias="weeklyHours")
    wage_group_ref: Optional[str] = Field(None, alias="wageGroupRef")

    def to_domain(self) -> Employee:
        return Employee(
            employee_id=self.id,
            name=self.name,
            home_zone=self.home_zone,
            home_coordinates=self.coordinates.to_domain() if self.coordinates else None,
            transport=self.transport_mode,
            weekly_hours=self.weekly_hours,
            wage_group=self.wage_group_ref,
        )


class LocationModel(_CamelModel):
    id: str
    title: str = ""
    zone: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = Field(None, alias="postalCode")
    coordinates: Optional[CoordinatesModel] = None
    service_types: List[str] = Field(default_factory=list, alias="serviceTypes")

    def to_domain(self) -> Location:
        return Location(
            location_id=self.id,
            title=self.title,
            zone=self.zone,
            address=self.address,
            postal_code=self.postal_code,
            coordinates=self.coordinates.to_domain() if self.coordinates else None,
            service_types=frozenset(self.service_types),
        )


class WageGroupModel(_CamelModel):
    id: str
    name: str = ""
    hourly_rate: Optional[float] = Field(None, ge=0, alias="hourlyRate")


class WageSettingsModel(_CamelModel):
    wage_groups: List[WageGroupModel] = Field(default_factory=list, alias="wageGroups")
    avg_speed: Optional[float] = Field(None, gt=0, alias="avgSpeed")

    def to_domain(self) -> WageSettings:
        return WageSettings(
            wage_groups=tuple(
                WageGroup(group_id=group.id, name=group.name, hourly_rate=group.hourly_rate)
                for group in self.wage_groups
            ),
            avg_speed=self.avg_speed,
        )


class SnapshotModel(_CamelModel):
    visits: List[VisitModel] = Field(default_factory=list)
    tours: List[TourModel] = Field(default_factory=list)
    employees: List[EmployeeModel] = Field(default_factory=list)
    locations: List[LocationModel] = Field(default_factory=list)
    wage_settings: Optional[WageSettingsModel] = Field(None, alias="wageSettings")

    def to_snapshot(self) -> PlanningSnapshot:
        return PlanningSnapshot(
            visits=[visit.to_domain() for visit in self.visits],
            tours=[tour.to_domain() for tour in self.tours],
            employees=[employee.to_domain() for employee in self.employees],
            locations=[location.to_domain() for location in self.locations],
            wage_settings=self.wage_settings.to_domain() if self.wage_settings else None,
        )


class OptimizationRequest(SnapshotModel):
    objective: Objective = Objective.TIME
    type_separation: TypeSeparation = Field(TypeSeparation.FLEXIBLE, alias="typeSeparation")
    scope: Scope = Scope.DAY
    day_index: Optional[int] = Field(None, ge=0, le=6, alias="dayIndex")
    tour_id: Optional[str] = Field(None, alias="tourId")
    adjust_timings: bool = Field(True, alias="adjustTimings")

    @model_validator(mode="after")
    def _check_scope(self) -> "OptimizationRequest":
        if self.scope is Scope.DAY and self.day_index is None:
            raise ValueError("dayIndex (0-6) is required for day scope.")
        if self.scope is Scope.TOUR and not self.tour_id:
            raise ValueError("tourId is required for tour scope.")
        return self


class PotentialRequest(SnapshotModel):
    day_index: Optional[int] = Field(None, ge=0, le=6, alias="dayIndex")


class AssignmentModel(_CamelModel):
    visit_id: str = Field(..., alias="visitId")
    tour_id: str = Field(..., alias="tourId")
    score: float

    @field_validator("score")
    @classmethod
    def _finite_score(cls, value: float) -> float:
        if math.isinf(value) or math.isnan(value):
            raise ValueError("assignment score must be finite")
        return value


class TourWorkloadModel(_CamelModel):
    tour_id: str = Field(..., alias="tourId")
    tour_name: str = Field(..., alias="tourName")
    visit_ids: List[str] = Field(..., alias="visitIds")
    total_minutes: float = Field(..., alias="totalMinutes")
    total_hours: float = Field(..., alias="totalHours")
    employee_name: Optional[str] = Field(None, alias="employeeName")
    committed_minutes: float = Field(0.0, alias="committedMinutes")
    estimated_cost: float = Field(0.0, alias="estimatedCost")


class AdjustedVisitModel(_CamelModel):
    visit_id: str = Field(..., alias="visitId")
    day_index: int = Field(..., alias="dayIndex")
    start: str
    end: str


class StatisticsModel(_CamelModel):
    total_visits: int = Field(..., alias="totalVisits")
    assigned_visits: int = Field(..., alias="assignedVisits")
    unassigned_visits: int = Field(..., alias="unassignedVisits")
    tours_used: int = Field(..., alias="toursUsed")
    total_tours: int = Field(..., alias="totalTours")


class OptimizationResponse(_CamelModel):
    assignments: List[AssignmentModel]
    unassigned_visit_ids: List[str] = Field(..., alias="unassignedVisitIds")
    tour_workloads: List[TourWorkloadModel] = Field(..., alias="tourWorkloads")
    optimized_visits: List[AdjustedVisitModel] = Field(default_factory=list, alias="optimizedVisits")
    statistics: StatisticsModel
    metadata: dict = Field(default_factory=dict)


class PotentialIssueModel(_CamelModel):
    type: str
    day_index: int = Field(..., alias="dayIndex")
    message: str
    count: Optional[int] = None
    tour_id: Optional[str] = Field(None, alias="tourId")
    gap_minutes: Optional[float] = Field(None, alias="gapMinutes")


class PotentialRecommendationModel(_CamelModel):
    type: str
    count: int
    message: str


class PotentialResponse(_CamelModel):
    has_potential: bool = Field(..., alias="hasPotential")
    issues: List[PotentialIssueModel]
    recommendations: List[PotentialRecommendationModel]
    total_potential_savings: int = Field(..., alias="totalPotentialSavings")
    summary: str
