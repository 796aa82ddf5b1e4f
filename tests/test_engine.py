import pytest

from esb_planner.src.config.settings import ScenarioConfig
from esb_planner.src.fleet.bus import BusStatus
from esb_planner.src.planning.policy import GreedyPolicy, NightlyChargeDecision
from esb_planner.src.scoring.engine import PERFECT_ROUTE, PERFECT_WEEK
from esb_planner.src.simulation.engine import EngineStatus, SimulationEngine
from esb_planner.src.simulation.event_queue import EventType

from conftest import FailingRouteProvider, FixedRouteProvider, build_route


def make_engine(weather="spring", guess=22, distance_miles=44.0, school_has_charger=True, **kwargs):
    scenario = ScenarioConfig(bus_class="A", guess_distance_miles=guess, weather_pattern=weather)
    route = build_route(distance_miles=distance_miles, school_has_charger=school_has_charger)
    kwargs.setdefault("route_provider", FixedRouteProvider(school_has_charger))
    return SimulationEngine(scenario, route=route, **kwargs)


def test_tick_before_start_is_an_error():
    engine = make_engine()
    with pytest.raises(RuntimeError):
        engine.tick()
    with pytest.raises(RuntimeError):
        engine.select_station("school-level2")


def test_start_twice_is_an_error():
    engine = make_engine()
    engine.start()
    with pytest.raises(RuntimeError):
        engine.start()


def test_day_one_starts_full():
    engine = make_engine()
    engine.start()
    assert engine.status == EngineStatus.RUNNING
    assert engine.bus.battery_percent == 100.0
    assert engine.ctx.weather == "fair"
    assert engine.week.nightly_decisions == []


def test_speed_multiplier_targets_fixed_wall_time():
    engine = make_engine(distance_miles=50.0)
    engine.start()
    # 50 mi at 25 mph = 2 h = 7200 s, squeezed into 15 s
    assert engine.speed_multiplier == pytest.approx(7200 / 15)


def test_perfect_scenario_with_policy():
    engine = make_engine(weather="spring", guess=22, distance_miles=44.0)

    status = engine.run(policy=GreedyPolicy(engine.settings))

    assert status == EngineStatus.COMPLETED
    result = engine.result
    assert result.days_completed == 3
    assert result.midday_charges == 0
    assert [d.day for d in engine.week.day_results] == [1, 2, 3]
    assert [d.weather for d in engine.week.day_results] == ["fair", "fair", "cold"]
    reasons = [b.reason for b in engine.score.bonuses]
    assert reasons.count(PERFECT_WEEK) == 1
    assert PERFECT_ROUTE in reasons
    # 250 + (250 + 75) * 2 + 500 + 1000
    assert result.final_score == 2400
    assert result.diesel_cost > 0
    assert result.annual.school_days == 180
    assert len(engine.ctx.events.of_type(EventType.WEEK_COMPLETED)) == 1


def test_engine_pauses_for_nightly_decision():
    engine = make_engine()
    status = engine.run()

    assert status == EngineStatus.AWAITING_NIGHTLY
    prompt = engine.nightly_prompt
    assert prompt.next_day == 2
    assert prompt.next_weather == "fair"
    assert prompt.current_percent == pytest.approx(engine.bus.battery_percent)

    # Ticking while paused changes nothing
    seconds = engine.ctx.sim_seconds
    engine.tick()
    assert engine.ctx.sim_seconds == seconds


def test_overnight_charge_cost_and_reset():
    engine = make_engine()
    engine.run()
    engine.bus.battery_kwh = 20.0

    engine.confirm_nightly(NightlyChargeDecision(target_percent=40.0))

    record = engine.week.nightly_decisions[0]
    assert record.day == 2
    assert record.start_percent == pytest.approx(20.0)
    assert record.energy_charged_kwh == pytest.approx(20.0)
    assert record.cost == pytest.approx(20.0 * 0.18)
    assert engine.week.total_overnight_cost == pytest.approx(3.6)
    assert engine.bus.battery_percent == pytest.approx(40.0)
    assert engine.bus.battery_kwh == pytest.approx(40.0)
    assert engine.bus.status == BusStatus.WAITING
    assert engine.ctx.day == 2
    assert engine.ctx.stats.overnight_kwh == pytest.approx(20.0)
    assert engine.status == EngineStatus.RUNNING


def test_v2g_discharge_before_overnight_charge():
    engine = make_engine()
    engine.run()
    engine.bus.battery_kwh = 60.0
    assert engine.v2g_available_kwh() == pytest.approx(40.0)

    engine.confirm_nightly(NightlyChargeDecision(target_percent=70.0, v2g_discharge_kwh=30.0))

    record = engine.week.nightly_decisions[0]
    assert record.v2g_kwh == 30.0
    assert record.v2g_earned == pytest.approx(9.0)
    # 60 - 30 = 30 kWh left, charged back up to 70
    assert record.energy_charged_kwh == pytest.approx(40.0)
    assert engine.week.total_v2g_earnings == pytest.approx(9.0)
    assert engine.bus.battery_kwh == pytest.approx(70.0)


@pytest.mark.parametrize("decision", [
    NightlyChargeDecision(target_percent=120.0),
    NightlyChargeDecision(target_percent=-5.0),
    NightlyChargeDecision(target_percent=80.0, v2g_discharge_kwh=500.0),
    NightlyChargeDecision(target_percent=80.0, v2g_discharge_kwh=-1.0),
    NightlyChargeDecision(target_percent=80.0, new_route_distance_one_way=0.0),
])
def test_invalid_nightly_decisions_rejected(decision):
    engine = make_engine()
    engine.run()
    with pytest.raises(ValueError):
        engine.confirm_nightly(decision)
    assert engine.status == EngineStatus.AWAITING_NIGHTLY
    assert engine.week.nightly_decisions == []


def test_repeated_nightly_confirmation_is_ignored():
    engine = make_engine()
    engine.run()
    engine.confirm_nightly(NightlyChargeDecision(target_percent=80.0))
    engine.confirm_nightly(NightlyChargeDecision(target_percent=30.0))

    assert len(engine.week.nightly_decisions) == 1
    assert engine.bus.battery_percent == pytest.approx(80.0)


def test_route_regenerated_when_distance_changes():
    provider = FixedRouteProvider()
    engine = make_engine(route_provider=provider)
    engine.run()

    engine.confirm_nightly(NightlyChargeDecision(target_percent=90.0, new_route_distance_one_way=5.0))

    assert provider.calls == [10.0]
    assert engine.ctx.route.distance_miles == pytest.approx(20.0)
    assert engine.week.nightly_decisions[0].route_adjusted
    assert engine.week.nightly_decisions[0].new_route_distance == 10.0


def test_same_distance_keeps_route():
    provider = FixedRouteProvider()
    engine = make_engine(guess=22, route_provider=provider)
    engine.run()
    route = engine.ctx.route

    engine.confirm_nightly(NightlyChargeDecision(target_percent=90.0, new_route_distance_one_way=22.0))

    assert provider.calls == []
    assert engine.ctx.route is route
    assert not engine.week.nightly_decisions[0].route_adjusted


def test_route_regeneration_failure_keeps_current_route():
    engine = make_engine(route_provider=FailingRouteProvider())
    engine.run()
    route = engine.ctx.route

    engine.confirm_nightly(NightlyChargeDecision(target_percent=90.0, new_route_distance_one_way=40.0))

    assert engine.ctx.route is route
    assert not engine.week.nightly_decisions[0].route_adjusted
    assert engine.status == EngineStatus.RUNNING


def test_midday_charge_at_school():
    engine = make_engine(weather="polar", guess=30, distance_miles=60.0)
    status = engine.run()

    assert status == EngineStatus.AWAITING_STATION
    requirement = engine.ctx.pending_charge
    assert requirement.stations[0].station_id == "school-level2"

    with pytest.raises(ValueError):
        engine.select_station("no-such-station")

    engine.select_station("school-level2")
    assert engine.bus.status == BusStatus.CHARGING

    # A second choice for the same stop is ignored
    engine.select_station("school-level3")
    assert engine.bus.activity.station.station_id == "school-level2"

    status = engine.run()
    assert status == EngineStatus.AWAITING_NIGHTLY
    day = engine.week.day_results[0]
    assert day.midday_charged
    assert engine.week.total_midday_charges == 1
    assert engine.ctx.stats.midday_charging_kwh > 0
    expected_cost = (
        (engine.ctx.stats.energy_consumed_kwh - engine.ctx.stats.midday_charging_kwh) * 0.18
        + engine.ctx.stats.midday_charging_cost
    )
    assert day.cost == pytest.approx(expected_cost)
    assert engine.score.day_scores[0].points == 50


def test_deadhead_charge_energy_accounting():
    engine = make_engine(weather="polar", guess=30, distance_miles=60.0, school_has_charger=False)
    engine.run()
    ids = [s.station_id for s in engine.ctx.pending_charge.stations]
    assert ids[0] == "depot-level2"

    engine.select_station("depot-level3")
    assert engine.bus.status == BusStatus.TRAVELING_TO_CHARGER
    engine.run()

    stats = engine.ctx.stats
    assert engine.status == EngineStatus.AWAITING_NIGHTLY
    assert stats.deadhead_miles > 0
    route_miles = stats.distance_miles - stats.deadhead_miles
    assert engine.bus.energy_consumed_kwh == pytest.approx(route_miles * 1.9 + stats.deadhead_miles * 1.9 * 1.5)
    assert engine.score.penalties[0].reason.startswith("Deadhead")


def test_stranding_ends_scenario_with_zero_score():
    engine = make_engine(weather="polar", distance_miles=200.0)
    status = engine.run()

    assert status == EngineStatus.STRANDED
    assert engine.result.final_score == 0
    assert engine.result.stranded
    assert engine.bus.battery_kwh == 0.0
    assert len(engine.ctx.events.of_type(EventType.BUS_STRANDED)) == 1

    engine.tick()
    assert engine.status == EngineStatus.STRANDED


def test_no_stations_continues_without_charge():
    engine = make_engine(weather="polar", guess=30, distance_miles=60.0, school_has_charger=False)
    engine.start()
    engine.ctx.station_provider = lambda route, chargers, settings: []

    status = engine.run()

    assert status in (EngineStatus.AWAITING_NIGHTLY, EngineStatus.STRANDED)
    assert engine.week.total_midday_charges == 0


def test_long_ticks_still_check_at_school():
    engine = make_engine(weather="polar", guess=30, distance_miles=60.0)
    engine.start()

    for _ in range(50):
        engine.tick(wall_seconds=3.0)
        if engine.bus.midday_checked:
            break

    assert engine.bus.progress <= engine.ctx.route.school_progress() + 1e-9
    assert engine.status == EngineStatus.AWAITING_STATION
    requirement = engine.ctx.pending_charge
    assert requirement.projection.remaining_miles == pytest.approx(30.0)
    # Only the AM leg has been paid for
    assert engine.bus.battery_kwh == pytest.approx(100.0 - 30.0 * 1.9)
    assert requirement.time_remaining_hours == pytest.approx(3.0)
