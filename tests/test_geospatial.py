import pytest

from src.tourplan.models.domain import Coordinates, Employee, Location, TransportMode, WageGroup, WageSettings
from src.tourplan.services.costs.model import CostModel
from src.tourplan.services.geospatial import GeoDistance, haversine_km, travel_time_suggestions
from src.tourplan.services.zones.model import ZoneModel


def _location(lid: str, zone: str | None, coords: tuple[float, float] | None = None) -> Location:
    return Location(
        location_id=lid,
        title=f"Client {lid}",
        zone=zone,
        coordinates=Coordinates(*coords) if coords else None,
    )


@pytest.fixture
def geo() -> GeoDistance:
    return GeoDistance(ZoneModel.default())


def test_haversine_known_distance():
    # one hundredth of a degree of latitude is roughly 1.11 km
    assert haversine_km(51.5, 7.1, 51.51, 7.1) == pytest.approx(1.112, abs=0.001)


def test_distance_prefers_coordinates(geo: GeoDistance):
    a = _location("A", "Horst", (51.5, 7.1))
    b = _location("B", "Rotthausen", (51.51, 7.1))

    assert geo.distance_km(a, b) == pytest.approx(haversine_km(51.5, 7.1, 51.51, 7.1) * 1.4)


def test_distance_falls_back_to_zones(geo: GeoDistance):
    a = _location("A", "Horst", (51.5, 7.1))
    b = _location("B", "Rotthausen")

    assert geo.distance_km(a, b) == pytest.approx(7.0)
    assert geo.distance_km(None, b) == 5


def test_travel_minutes_are_clamped(geo: GeoDistance):
    near_a = _location("A", "Horst", (51.5, 7.1))
    near_b = _location("B", "Horst", (51.51, 7.1))
    far = _location("C", "Buer", (52.5, 7.1))

    assert geo.travel_minutes(near_a, near_b) == 5
    assert geo.travel_minutes(near_a, far) == 30
    assert geo.travel_minutes(_location("D", "Horst"), _location("E", "Rotthausen")) == 17
    assert geo.travel_minutes(None, near_a) == 15


def test_travel_minutes_stay_in_window(geo: GeoDistance):
    zone_model = geo.zone_model
    locations = [_location(name, name) for name in zone_model.names] + [_location("X", None)]
    for a in locations:
        for b in locations:
            assert 5 <= geo.travel_minutes(a, b) <= 30


def test_home_travel_minutes(geo: GeoDistance):
    location = _location("A", "Rotthausen")
    by_zone = Employee(employee_id="E1", name="Anna", home_zone="Horst")
    by_coords = Employee(
        employee_id="E2", name="Ben", home_zone="Horst", home_coordinates=Coordinates(51.5, 7.1)
    )
    far_location = _location("B", "Buer", (52.5, 7.1))
    unknown = Employee(employee_id="E3", name="Cleo")

    assert geo.home_travel_minutes(by_zone, location) == 17
    assert geo.home_travel_minutes(by_coords, far_location) > 30
    assert geo.home_travel_minutes(by_coords, _location("C", "Horst", (51.5, 7.1))) == 5
    assert geo.home_travel_minutes(unknown, location) == 0
    assert geo.home_travel_minutes(None, location) == 0
    assert geo.home_travel_minutes(by_zone, None) == 0


def test_hourly_rate_defaults():
    cost_model = CostModel()
    wage_settings = WageSettings(
        wage_groups=(
            WageGroup(group_id="fachkraft", name="Fachkraft", hourly_rate=18.0),
            WageGroup(group_id="azubi", name="Auszubildende/r", hourly_rate=None),
        )
    )
    skilled = Employee(employee_id="E1", name="Anna", wage_group="fachkraft")
    trainee = Employee(employee_id="E2", name="Ben", wage_group="azubi")
    unknown_group = Employee(employee_id="E3", name="Cleo", wage_group="chef")

    assert cost_model.hourly_rate(skilled, wage_settings) == 18.0
    assert cost_model.hourly_rate(trainee, wage_settings) == 14.0
    assert cost_model.hourly_rate(unknown_group, wage_settings) == 14.0
    assert cost_model.hourly_rate(skilled, None) == 14.0
    assert cost_model.hourly_rate(None, wage_settings) == 14.0
    assert cost_model.labor_cost(90, skilled, wage_settings) == 27.0


def test_travel_time_suggestions_by_transport():
    by_car = travel_time_suggestions(7.0)
    by_transit = travel_time_suggestions(7.0, "public")

    assert (by_car.optimistic, by_car.realistic, by_car.pessimistic) == (14, 17, 21)
    assert (by_transit.optimistic, by_transit.realistic, by_transit.pessimistic) == (23, 28, 35)
    assert by_transit.transport is TransportMode.PUBLIC


def test_travel_time_suggestions_floors_and_unknown_distance():
    short = travel_time_suggestions(0.5)
    unknown = travel_time_suggestions(None)

    assert (short.optimistic, short.realistic, short.pessimistic) == (3, 5, 8)
    assert (unknown.optimistic, unknown.realistic, unknown.pessimistic) == (5, 10, 15)
    assert unknown.distance_km == 0


def test_home_travel_suggestions_follow_employee_transport(geo: GeoDistance):
    commuter = Employee(employee_id="E1", name="Anna", home_zone="Horst", transport=TransportMode.PUBLIC)
    unknown = Employee(employee_id="E2", name="Ben")
    location = _location("A", "Rotthausen")

    suggestion = geo.home_travel_suggestions(commuter, location)

    assert suggestion.distance_km == pytest.approx(7.0)
    assert (suggestion.optimistic, suggestion.realistic, suggestion.pessimistic) == (23, 28, 35)
    assert geo.home_travel_suggestions(unknown, location).realistic == 10
    assert geo.travel_suggestions(None, location).realistic == 10
    assert geo.travel_suggestions(_location("B", "Horst"), location, TransportMode.CAR).realistic == 17


def test_average_speed_from_wage_settings_drives_zone_travel_time():
    zone_model = ZoneModel.default()
    fast = GeoDistance.for_wage_settings(zone_model, WageSettings(avg_speed=30))
    default = GeoDistance.for_wage_settings(zone_model, WageSettings())

    assert fast.zone_travel_minutes("Horst", "Rotthausen") == 14
    assert default.zone_travel_minutes("Horst", "Rotthausen") == 17
    assert GeoDistance.for_wage_settings(zone_model, None).zone_travel_minutes("Horst", "Rotthausen") == 17
    # optimizer travel accounting stays at the urban speed
    assert fast.travel_minutes(_location("A", "Horst"), _location("B", "Rotthausen")) == 17
