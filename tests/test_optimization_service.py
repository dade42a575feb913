from dataclasses import replace

import pytest
from pydantic import ValidationError

from src.tourplan.models.domain import Location, PlanningSnapshot, Tour, Visit
from src.tourplan.schemas.optimization import OptimizationRequest
from src.tourplan.services.optimization.models import (
    Objective,
    OptimizationParameterError,
    OptimizationParameters,
    Scope,
)
from src.tourplan.services.optimization.service import optimize_tours, run_optimization
from src.tourplan.services.outputs.optimization_formatter import optimization_result_to_json


def _payload(**overrides) -> dict:
    payload = {
        "locations": [
            {"id": "L1", "title": "Client Horst 1", "zone": "Horst"},
            {"id": "L2", "title": "Client Horst 2", "zone": "Horst"},
            {"id": "L3", "title": "Client Rotthausen", "zone": "Rotthausen"},
        ],
        "employees": [
            {"id": "E1", "name": "Anna", "homeZone": "Horst"},
            {"id": "E2", "name": "Ben", "homeZone": "Rotthausen"},
        ],
        "tours": [
            {"id": "T1", "name": "Tour 1", "employeeRef": "E1"},
            {"id": "T2", "name": "Tour 2", "employeeRef": "E2"},
        ],
        "visits": [
            {"id": "V1", "title": "Morning care", "start": "08:00", "end": "08:30", "dayIndex": 0, "locationRef": "L1", "tourRef": "T1"},
            {"id": "V2", "title": "Medication", "start": "08:15", "end": "08:45", "dayIndex": 0, "locationRef": "L2", "tourRef": "T2"},
            {"id": "V3", "title": "Wound care", "start": "09:00", "end": "09:30", "dayIndex": 0, "locationRef": "L3", "tourRef": "T1"},
            {"id": "V4", "title": "Morning care", "start": "08:00", "end": "08:30", "dayIndex": 1, "locationRef": "L1", "tourRef": "T1"},
            {"id": "R1", "title": "Drive", "start": "08:30", "end": "08:40", "dayIndex": 0, "tourRef": "T1", "isTravel": True},
        ],
        "objective": "time",
        "typeSeparation": "flexible",
        "scope": "day",
        "dayIndex": 0,
    }
    payload.update(overrides)
    return payload


def _request(**overrides) -> OptimizationRequest:
    return OptimizationRequest.model_validate(_payload(**overrides))


def _parameters(request: OptimizationRequest) -> OptimizationParameters:
    return OptimizationParameters(
        objective=request.objective,
        type_separation=request.type_separation,
        scope=request.scope,
        day_index=request.day_index,
        tour_id=request.tour_id,
        adjust_timings=request.adjust_timings,
    )


def test_request_accepts_camel_case_payload():
    request = _request()
    snapshot = request.to_snapshot()

    assert request.type_separation.value == "flexible"
    assert snapshot.location("L3").zone == "Rotthausen"
    assert snapshot.tour("T1").employee_id == "E1"
    assert [visit.visit_id for visit in snapshot.real_visits()] == ["V1", "V2", "V3", "V4"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"dayIndex": None},
        {"dayIndex": 7},
        {"scope": "tour"},
        {"objective": "speed"},
        {"typeSeparation": "loose"},
    ],
)
def test_request_rejects_invalid_parameters(overrides):
    with pytest.raises(ValidationError):
        _request(**overrides)


def test_request_rejects_visit_ending_before_start():
    payload = _payload()
    payload["visits"][0]["end"] = "07:00"

    with pytest.raises(ValidationError):
        OptimizationRequest.model_validate(payload)


def test_parameters_validate_on_construction():
    assert OptimizationParameters(objective="cost", day_index=3).objective is Objective.COST

    with pytest.raises(OptimizationParameterError):
        OptimizationParameters(objective="speed", day_index=0)
    with pytest.raises(OptimizationParameterError):
        OptimizationParameters(day_index=7)
    with pytest.raises(OptimizationParameterError):
        OptimizationParameters(scope=Scope.DAY)
    with pytest.raises(OptimizationParameterError):
        OptimizationParameters(scope="tour")


def test_unknown_tour_is_rejected():
    snapshot = _request().to_snapshot()
    parameters = OptimizationParameters(scope="tour", tour_id="T9")

    with pytest.raises(OptimizationParameterError):
        run_optimization(snapshot, parameters)


def test_day_scope_assigns_every_visit_of_the_day():
    request = _request()
    result = run_optimization(request.to_snapshot(), _parameters(request))

    by_visit = {assignment.visit_id: assignment.tour_id for assignment in result.assignments}
    assert set(by_visit) == {"V1", "V2", "V3"}
    assert by_visit["V1"] == "T1"
    assert by_visit["V2"] == "T2"
    assert result.unassigned_visit_ids == []
    stats = result.statistics
    assert stats.total_visits == 3
    assert stats.assigned_visits + stats.unassigned_visits == stats.total_visits
    assert result.metadata["day_index"] == 0
    assert result.metadata["processing_order"] == ["V1", "V2", "V3"]


def test_no_tour_receives_overlapping_visits():
    request = _request()
    snapshot = request.to_snapshot()
    result = run_optimization(snapshot, _parameters(request))

    for workload in result.workloads:
        visits = sorted(
            (visit for visit in snapshot.visits if visit.visit_id in workload.visit_ids),
            key=lambda visit: visit.start_minutes,
        )
        for current, following in zip(visits, visits[1:]):
            if current.day_index == following.day_index:
                assert following.start_minutes >= current.end_minutes


def test_overlapping_visits_without_second_tour_stay_unassigned():
    payload = _payload()
    payload["tours"] = payload["tours"][:1]
    request = OptimizationRequest.model_validate(payload)

    result = run_optimization(request.to_snapshot(), _parameters(request))

    assert result.unassigned_visit_ids == ["V2"]
    assert result.statistics.unassigned_visits == 1
    assert all(assignment.tour_id == "T1" for assignment in result.assignments)


def test_tour_scope_handles_each_day_separately():
    request = _request(scope="tour", tourId="T1", dayIndex=None)
    result = run_optimization(request.to_snapshot(), _parameters(request))

    assert {assignment.visit_id for assignment in result.assignments} == {"V1", "V3", "V4"}
    assert result.metadata["tour_id"] == "T1"
    [workload] = result.workloads
    assert workload.visit_ids == ["V1", "V3", "V4"]
    assert workload.employee_name == "Anna"
    assert workload.total_minutes == 90

    adjusted = {visit.visit_id: (visit.day_index, visit.start, visit.end) for visit in result.optimized_visits}
    # home travel within Horst is the 5 minute floor
    assert adjusted["V1"] == (0, "07:55", "08:25")
    # 17 minutes from Horst to Rotthausen after 08:25, rounded up to 08:45
    assert adjusted["V3"] == (0, "08:45", "09:15")
    assert adjusted["V4"] == (1, "07:55", "08:25")


def test_tour_scope_is_stable_across_runs():
    request = _request(scope="tour", tourId="T1", dayIndex=None)

    first = run_optimization(request.to_snapshot(), _parameters(request))
    second = run_optimization(request.to_snapshot(), _parameters(request))

    assert optimization_result_to_json(first) == optimization_result_to_json(second)
    assert all(assignment.tour_id == "T1" for assignment in first.assignments)


def test_snapshot_is_not_modified():
    request = _request()
    snapshot = request.to_snapshot()
    before = [(visit.visit_id, visit.tour_id, visit.start, visit.end) for visit in snapshot.visits]

    run_optimization(snapshot, _parameters(request))

    assert [(visit.visit_id, visit.tour_id, visit.start, visit.end) for visit in snapshot.visits] == before


def test_timings_can_be_left_untouched():
    request = _request(adjustTimings=False)
    result = run_optimization(request.to_snapshot(), _parameters(request))

    assert result.optimized_visits == []


def test_formatter_uses_camel_case_keys():
    request = _request()
    payload = optimization_result_to_json(run_optimization(request.to_snapshot(), _parameters(request)))

    assert payload["success"] is True
    assert payload["metadata"]["objective"] == "time"
    assert set(payload["optimizedAssignments"]) == {
        "assignments",
        "unassignedVisitIds",
        "optimizedVisits",
        "tourWorkloads",
    }
    assert set(payload["statistics"]) == {"totalVisits", "assignedVisits", "unassignedVisits", "toursUsed", "totalTours"}
    assert {"visitId", "tourId", "score"} == set(payload["optimizedAssignments"]["assignments"][0])


def test_optimize_tours_returns_response_model():
    response = optimize_tours(_request())
    dumped = response.model_dump(by_alias=True)

    assert dumped["statistics"]["totalVisits"] == 3
    assert len(dumped["assignments"]) == 3
    assert {workload["tourId"] for workload in dumped["tourWorkloads"]} == {"T1", "T2"}
    assert all(visit["dayIndex"] == 0 for visit in dumped["optimizedVisits"])


def _interleaved_snapshot() -> PlanningSnapshot:
    return PlanningSnapshot(
        visits=[
            Visit(visit_id="V1", title="Morning care", day_index=0, start="08:00", end="08:30", location_id="L-BIS-1", tour_id="T1"),
            Visit(visit_id="V2", title="Medication", day_index=0, start="09:00", end="09:30", location_id="L-HOR", tour_id="T1"),
            Visit(visit_id="V3", title="Wound care", day_index=0, start="10:00", end="10:30", location_id="L-BIS-2", tour_id="T1"),
        ],
        tours=[Tour(tour_id="T1", name="Tour 1")],
        locations=[
            Location(location_id="L-BIS-1", title="Bismarck 1", zone="Bismarck"),
            Location(location_id="L-BIS-2", title="Bismarck 2", zone="Bismarck"),
            Location(location_id="L-HOR", title="Horst", zone="Horst"),
        ],
    )


def test_rerunning_an_assigned_tour_with_interleaved_zones_keeps_it():
    snapshot = _interleaved_snapshot()
    parameters = OptimizationParameters(scope="tour", tour_id="T1")

    first = run_optimization(snapshot, parameters)

    assert first.unassigned_visit_ids == []
    assert {assignment.visit_id: assignment.tour_id for assignment in first.assignments} == {
        "V1": "T1",
        "V2": "T1",
        "V3": "T1",
    }

    tour_by_visit = {assignment.visit_id: assignment.tour_id for assignment in first.assignments}
    reassigned = PlanningSnapshot(
        visits=[replace(visit, tour_id=tour_by_visit.get(visit.visit_id)) for visit in snapshot.visits],
        tours=snapshot.tours,
        locations=snapshot.locations,
    )
    second = run_optimization(reassigned, parameters)

    assert second.unassigned_visit_ids == []
    assert second.assignments == first.assignments
    assert [workload.visit_ids for workload in second.workloads] == [["V1", "V2", "V3"]]


def test_average_speed_and_legacy_wage_fields_are_accepted():
    request = _request(wageSettings={"avgSpeed": 30, "kmRate": 0.3, "employerFactor": 1.5})

    snapshot = request.to_snapshot()

    assert snapshot.wage_settings.avg_speed == 30
    assert run_optimization(snapshot, _parameters(request)).statistics.assigned_visits == 3
