import pytest

from esb_planner.src.config.settings import ScenarioConfig, Settings
from esb_planner.src.core.geometry import Location, offset_location
from esb_planner.src.core.route import Route, Stop, StopType
from esb_planner.src.fleet.bus import Bus
from esb_planner.src.scoring.engine import ScoreState
from esb_planner.src.simulation.state import SimulationContext

DEPOT = Location(lat=42.0, lon=-78.0)


def build_route(
    straight_one_way_miles: float = 5.0,
    distance_miles: float = 44.0,
    school_has_charger: bool = True,
    route_id: str = "test-route"
) -> Route:
    """Depot, 3 pickups, school, 3 dropoffs, depot on a straight eastward line."""
    spacing = straight_one_way_miles / 4
    points = [offset_location(DEPOT, spacing * i, 0.0) for i in range(1, 5)]

    stops = [Stop("depot-start", "Depot", StopType.DEPOT, DEPOT, has_charger=True)]
    for i in range(3):
        stops.append(Stop(f"pickup-{i}", f"Stop {i + 1}", StopType.PICKUP, points[i]))
    stops.append(Stop("school", "School", StopType.SCHOOL, points[3], has_charger=school_has_charger))
    for i in range(2, -1, -1):
        stops.append(Stop(f"dropoff-{i}", f"Stop {i + 1}", StopType.DROPOFF, points[i]))
    stops.append(Stop("depot-end", "Depot", StopType.DEPOT, DEPOT, has_charger=True))

    return Route(route_id=route_id, name="Test Route", stops=stops, distance_miles=distance_miles)


class FixedRouteProvider:
    """Route provider that always hands back a route of the requested one-way length."""

    def __init__(self, school_has_charger: bool = True):
        self.school_has_charger = school_has_charger
        self.calls = []

    def generate(self, anchor, one_way_miles):
        self.calls.append(one_way_miles)
        return build_route(distance_miles=one_way_miles * 2, school_has_charger=self.school_has_charger), []


class FailingRouteProvider:
    def generate(self, anchor, one_way_miles):
        raise RuntimeError("generator offline")


def drive(bus: Bus, ctx: SimulationContext, seconds_per_tick: float = 30.0, max_ticks: int = 5000) -> int:
    """Tick a bus on its own until it finishes or waits for a station choice."""
    for n in range(max_ticks):
        if bus.is_finished or ctx.pending_charge is not None:
            return n
        ctx.sim_seconds += seconds_per_tick
        for event in ctx.scheduled.pop_due(ctx.sim_seconds):
            bus.resume_moving()
        bus.step(ctx, seconds_per_tick / 3600)
    return max_ticks


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def route():
    return build_route()


@pytest.fixture
def scenario():
    return ScenarioConfig(bus_class="A", guess_distance_miles=22, weather_pattern="spring")


@pytest.fixture
def make_context(settings, scenario):
    def _make(route: Route, weather: str = "fair", public_chargers=None) -> SimulationContext:
        return SimulationContext(
            settings=settings,
            scenario=scenario,
            route=route,
            score=ScoreState(),
            weather=weather,
            public_chargers=list(public_chargers or [])
        )
    return _make


@pytest.fixture
def make_bus():
    def _make(route: Route, capacity_kwh: float = 100.0, charge_percent: float = 100.0, bus_class: str = "A") -> Bus:
        bus = Bus(bus_id="bus-1", route_id=route.route_id, bus_class=bus_class, battery_capacity_kwh=capacity_kwh)
        bus.reset_for_new_day(route, charge_percent)
        return bus
    return _make
