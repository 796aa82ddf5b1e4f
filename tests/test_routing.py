import pytest

from esb_planner.src.config.settings import RouteSettings
from esb_planner.src.core.charging import LocationType, PublicCharger
from esb_planner.src.core.geometry import Location, distance_miles
from esb_planner.src.core.route import StopType
from esb_planner.src.routing.generator import StraightLineRouteGenerator, clamp_one_way_distance
from esb_planner.src.routing.service import StraightLineRouter, route_with_fallback
from esb_planner.src.routing.stations import available_charging_stations

from conftest import build_route

ANCHOR = Location(42.886, -78.878)


@pytest.mark.parametrize("requested,expected", [(5, 10), (10, 10), (35, 35), (60, 60), (90, 60)])
def test_clamp_one_way_distance(requested, expected):
    assert clamp_one_way_distance(requested) == expected


def test_generator_lays_out_round_trip():
    route, chargers = StraightLineRouteGenerator(seed=7).generate(ANCHOR, 25)
    types = [s.stop_type for s in route.stops]
    assert types == (
        [StopType.DEPOT] + [StopType.PICKUP] * 3 + [StopType.SCHOOL] + [StopType.DROPOFF] * 3 + [StopType.DEPOT]
    )
    assert route.stops[0].location == route.stops[-1].location
    assert distance_miles(route.stops[0].location, ANCHOR) <= 0.5 * 1.01
    assert route.distance_miles > 0
    assert 2 <= len(chargers) <= 3
    for charger in chargers:
        assert 1.0 <= charger.distance_from_school_miles <= 3.0


def test_generator_is_reproducible_with_seed():
    a, _ = StraightLineRouteGenerator(seed=3).generate(ANCHOR, 30)
    b, _ = StraightLineRouteGenerator(seed=3).generate(ANCHOR, 30)
    assert [s.location for s in a.stops] == [s.location for s in b.stops]
    assert a.distance_miles == pytest.approx(b.distance_miles)


def test_straight_line_router_applies_circuity():
    start, end = Location(42.0, -78.0), Location(42.05, -78.0)
    path, miles = StraightLineRouter(1.3).route_between(start, end)
    assert path == [start, end]
    assert miles == pytest.approx(distance_miles(start, end) * 1.3)


class BrokenRouter:
    def route_between(self, start, end):
        raise ConnectionError("routing service unreachable")


class EmptyRouter:
    def route_between(self, start, end):
        return [], None


@pytest.mark.parametrize("router", [BrokenRouter(), EmptyRouter(), None])
def test_routing_failure_falls_back_to_straight_line(router):
    start, end = Location(42.0, -78.0), Location(42.05, -78.0)
    path, miles = route_with_fallback(router, start, end)
    assert path == [start, end]
    assert miles == pytest.approx(distance_miles(start, end) * RouteSettings().DEADHEAD_CIRCUITY_FACTOR)


def test_station_options_and_ranking(settings):
    route = build_route(school_has_charger=True)
    school = route.school_stop().location
    public = [PublicCharger("public-charger-1", "Public Charger #1", Location(school.lat + 0.02, school.lon), 1.4)]

    stations = available_charging_stations(route, public, settings)
    ids = [s.station_id for s in stations]
    assert ids[:2] == ["school-level2", "school-level3"]
    assert set(ids) == {
        "school-level2", "school-level3",
        "depot-level2", "depot-level3",
        "public-charger-1-level2", "public-charger-1-level3",
    }

    by_id = {s.station_id: s for s in stations}
    assert by_id["school-level2"].rate == pytest.approx(0.36)
    assert by_id["school-level3"].rate == pytest.approx(0.432)
    assert by_id["depot-level3"].rate == pytest.approx(0.468)
    assert by_id["public-charger-1-level2"].rate == pytest.approx(0.504)
    assert by_id["public-charger-1-level3"].rate == pytest.approx(0.576)
    assert by_id["depot-level2"].kwh_per_hour == 13.0
    assert by_id["depot-level3"].kwh_per_hour == 50.0

    assert by_id["school-level2"].deadhead_miles == 0.0
    assert not by_id["school-level2"].requires_deadhead
    assert by_id["depot-level2"].location_type == LocationType.DEPOT
    assert by_id["depot-level2"].deadhead_miles == pytest.approx(distance_miles(school, route.depot_stop().location))
    assert by_id["public-charger-1-level3"].deadhead_miles == 1.4

    off_route_rates = [s.rate for s in stations if not s.on_route]
    assert off_route_rates == sorted(off_route_rates)


def test_no_school_charger_means_no_school_option(settings):
    stations = available_charging_stations(build_route(school_has_charger=False), [], settings)
    assert all(s.location_type != LocationType.SCHOOL for s in stations)
    assert len(stations) == 2
