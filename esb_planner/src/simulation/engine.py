# src/simulation/engine.py
"""
Main simulation engine.
Orchestrates one 3-day scenario: scheduled events → bus step → clock → logging,
pausing for the mid-day station choice and the nightly charge decision.
"""

from enum import Enum
from typing import List, Optional

from esb_planner.src.config.settings import Settings, ScenarioConfig
from esb_planner.src.core.clock import simulated_hour, trip_phase
from esb_planner.src.core.charging import PublicCharger
from esb_planner.src.core.route import Route
from esb_planner.src.fleet.bus import Bus, BusSnapshot, BusStatus
from esb_planner.src.planning.decision_applier import apply_station_choice
from esb_planner.src.planning.policy import DecisionPolicy, NightlyChargeDecision, NightlyPrompt
from esb_planner.src.routing.generator import RouteProvider, StraightLineRouteGenerator, clamp_one_way_distance
from esb_planner.src.routing.service import RoutingService, StraightLineRouter
from esb_planner.src.scoring.engine import ScoreState, optimal_one_way_distance, score_day, score_week
from esb_planner.src.simulation.event_queue import EventType, SimulationEvent
from esb_planner.src.simulation.logger import SimulationLogger
from esb_planner.src.simulation.state import DayStats, NightlyDecisionRecord, SimulationContext, WeekState
from esb_planner.src.simulation.summary import WeekResult, build_week_result, print_week_summary, week_frame

MIDDAY_STATUSES = (
    BusStatus.AT_SCHOOL,
    BusStatus.TRAVELING_TO_CHARGER,
    BusStatus.CHARGING,
    BusStatus.RETURNING_FROM_CHARGER,
)


class EngineStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    AWAITING_STATION = "awaiting_station"
    AWAITING_NIGHTLY = "awaiting_nightly"
    COMPLETED = "completed"
    STRANDED = "stranded"


class SimulationEngine:
    def __init__(
        self,
        scenario: ScenarioConfig,
        settings: Optional[Settings] = None,
        route_provider: Optional[RouteProvider] = None,
        router: Optional[RoutingService] = None,
        logger: Optional[SimulationLogger] = None,
        route: Optional[Route] = None,
        public_chargers: Optional[List[PublicCharger]] = None,
        seed: Optional[int] = None
    ):
        self.scenario = scenario
        self.settings = settings or Settings()
        self.route_provider = route_provider or StraightLineRouteGenerator(seed=seed, settings=self.settings.routes)
        self.router = router or StraightLineRouter(self.settings.routes.DEADHEAD_CIRCUITY_FACTOR)
        self.logger = logger

        self.capacity_kwh = scenario.capacity_kwh(self.settings.battery)
        schedule = list(scenario.pattern.schedule)
        self.week = WeekState(
            schedule=schedule,
            days_total=min(self.settings.simulation.DAYS_PER_SCENARIO, len(schedule))
        )
        self.score = ScoreState()
        self.status = EngineStatus.NOT_STARTED
        self.speed_multiplier = 1.0
        self.one_way_target_miles = clamp_one_way_distance(scenario.guess_distance_miles, self.settings.routes)

        self.bus: Optional[Bus] = None
        self.ctx: Optional[SimulationContext] = None
        self.nightly_prompt: Optional[NightlyPrompt] = None
        self.result: Optional[WeekResult] = None

        self._initial_route = route
        self._initial_chargers = list(public_chargers or [])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        if self.status != EngineStatus.NOT_STARTED:
            raise RuntimeError("Scenario already started")

        if self._initial_route is not None:
            route, chargers = self._initial_route, self._initial_chargers
        else:
            route, chargers = self.route_provider.generate(self.scenario.anchor, self.one_way_target_miles)

        self.ctx = SimulationContext(
            settings=self.settings,
            scenario=self.scenario,
            route=route,
            score=self.score,
            public_chargers=list(chargers),
            router=self.router
        )
        self.bus = Bus(
            bus_id="bus-1",
            route_id=route.route_id,
            bus_class=self.scenario.bus_class,
            battery_capacity_kwh=self.capacity_kwh
        )

        pattern = self.scenario.pattern
        print(f"\n{'='*60}")
        print(f"SCENARIO START: {pattern.name} ({pattern.difficulty}), class {self.scenario.bus_class} "
              f"bus, {self.capacity_kwh:.0f} kWh")
        print(f"Route: {route}")
        print(f"{'='*60}\n")

        self._start_day(100.0)

    def _start_day(self, charge_percent: float, stats: Optional[DayStats] = None):
        ctx = self.ctx
        ctx.day = self.week.current_day
        ctx.weather = self.week.weather
        ctx.stats = stats or DayStats()
        ctx.sim_seconds = 0.0
        ctx.scheduled.clear()
        ctx.pending_charge = None
        ctx.clock_hour = self.settings.time_windows.AM_TRIP_START
        ctx.trip_phase = "am"

        self.bus.reset_for_new_day(ctx.route, charge_percent)
        self.speed_multiplier = self._speed_multiplier(ctx.route)
        self.status = EngineStatus.RUNNING

        ctx.emit(
            EventType.DAY_STARTED, self.bus.bus_id,
            weather=ctx.weather, battery_percent=self.bus.battery_percent, route_miles=ctx.route.distance_miles
        )
        ctx.log(f"Day {ctx.day} begins: {ctx.weather} weather, {ctx.efficiency:.2f} kWh/mi, "
                f"battery {self.bus.battery_percent:.0f}%, route {ctx.route.distance_miles:.1f} mi")

    def _speed_multiplier(self, route: Route) -> float:
        """Sim seconds per wall second, so the route takes the target wall time."""
        sim = self.settings.simulation
        if route.is_degenerate:
            return 1.0
        day_seconds = route.distance_miles / sim.BASE_SPEED_MPH * 3600
        return day_seconds / sim.TARGET_DAY_SECONDS

    @property
    def is_finished(self) -> bool:
        return self.status in (EngineStatus.COMPLETED, EngineStatus.STRANDED)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, wall_seconds: Optional[float] = None):
        """Advance one wall-clock tick. No-op while a decision is pending or the scenario is over."""
        if self.status == EngineStatus.NOT_STARTED:
            raise RuntimeError("Call start() before tick()")
        if self.status != EngineStatus.RUNNING:
            return

        if wall_seconds is None:
            wall_seconds = self.settings.simulation.UPDATE_INTERVAL_SECONDS
        if wall_seconds < 0:
            raise ValueError("wall_seconds must be non-negative")

        ctx = self.ctx
        sim_delta = wall_seconds * self.speed_multiplier
        ctx.sim_seconds += sim_delta

        # 1. Due scheduled events
        for event in ctx.scheduled.pop_due(ctx.sim_seconds):
            self._handle_scheduled(event)

        # 2. Bus step
        self.bus.step(ctx, sim_delta / 3600)

        # 3. Clock
        self._update_clock()

        # 4. Log
        if self.logger:
            self.logger.log_step(ctx, self.bus.snapshot())

        # 5. Transitions
        if self.bus.status == BusStatus.STRANDED:
            self._fail()
        elif self.bus.status == BusStatus.COMPLETED:
            self._finish_day()
        elif ctx.pending_charge is not None:
            if ctx.pending_charge.stations:
                self.status = EngineStatus.AWAITING_STATION
            else:
                ctx.log("No charging stations available, continuing without a mid-day charge")
                ctx.pending_charge = None
                self.bus.leave_school_uncharged(ctx)

    def _handle_scheduled(self, event: SimulationEvent):
        if event.event_type == EventType.RESUME_MOVING and event.bus_id == self.bus.bus_id:
            self.bus.resume_moving()

    def _update_clock(self):
        bus = self.bus
        at_school = bus.status in MIDDAY_STATUSES or (
            bus.status == BusStatus.DWELLING and bus.arrived_at_school and trip_phase(bus.progress) == "midday"
        )
        self.ctx.clock_hour = simulated_hour(
            bus.progress, bus.midday_charging_hours, at_school, self.settings.time_windows
        )
        self.ctx.trip_phase = trip_phase(bus.progress, charging=bus.status == BusStatus.CHARGING)

    def run(self, policy: Optional[DecisionPolicy] = None, max_ticks: int = 100000) -> EngineStatus:
        """
        Tick until the scenario ends, a decision is needed and no policy is given,
        or max_ticks is reached. Returns the engine status.
        """
        if self.status == EngineStatus.NOT_STARTED:
            self.start()

        for _ in range(max_ticks):
            if self.is_finished:
                break
            if self.status == EngineStatus.AWAITING_STATION:
                if policy is None:
                    break
                self.select_station(policy.choose_station(self.ctx.pending_charge))
                continue
            if self.status == EngineStatus.AWAITING_NIGHTLY:
                if policy is None:
                    break
                self.confirm_nightly(policy.nightly_decision(self.nightly_prompt))
                continue
            self.tick()

        return self.status

    # ------------------------------------------------------------------
    # External decisions
    # ------------------------------------------------------------------

    def select_station(self, station_id: str):
        if self.status == EngineStatus.NOT_STARTED:
            raise RuntimeError("Call start() before select_station()")

        requirement = self.ctx.pending_charge
        if self.status != EngineStatus.AWAITING_STATION or requirement is None:
            print(f"No charging decision pending, ignoring station {station_id}")
            return

        station = requirement.find_station(station_id)
        if station is None:
            raise ValueError(f"Unknown charging station {station_id!r}")

        apply_station_choice(self.bus, station, requirement, self.ctx)
        self.status = EngineStatus.RUNNING

    def v2g_available_kwh(self) -> float:
        floor_kwh = self.capacity_kwh * self.settings.v2g.MIN_DISCHARGE_LEVEL
        return max(0.0, self.bus.battery_kwh - floor_kwh)

    def _build_nightly_prompt(self) -> NightlyPrompt:
        next_day = self.week.current_day + 1
        return NightlyPrompt(
            next_day=next_day,
            next_weather=self.scenario.pattern.weather_for_day(next_day),
            bus_class=self.scenario.bus_class,
            current_percent=self.bus.battery_percent,
            current_kwh=self.bus.battery_kwh,
            capacity_kwh=self.capacity_kwh,
            route_distance_miles=self.ctx.route.distance_miles,
            v2g_available_kwh=self.v2g_available_kwh() if self.settings.v2g.ENABLED else 0.0
        )

    def confirm_nightly(self, decision: NightlyChargeDecision):
        """
        Apply the overnight decision: V2G discharge first, then charge from the
        post-discharge level up to the target, regenerate the route if asked, and
        start the next day.
        """
        if self.status == EngineStatus.NOT_STARTED:
            raise RuntimeError("Call start() before confirm_nightly()")
        if self.status != EngineStatus.AWAITING_NIGHTLY:
            print("No nightly decision pending, ignoring")
            return

        if not 0 <= decision.target_percent <= 100:
            raise ValueError(f"target_percent must be within 0-100, got {decision.target_percent}")
        v2g_kwh = decision.v2g_discharge_kwh or 0.0
        if v2g_kwh < 0:
            raise ValueError("v2g_discharge_kwh must be non-negative")
        if v2g_kwh > 0 and not self.settings.v2g.ENABLED:
            raise ValueError("V2G discharge is disabled")
        available = self.v2g_available_kwh()
        if v2g_kwh > available + 1e-9:
            raise ValueError(f"Cannot discharge {v2g_kwh:.1f} kWh, only {available:.1f} kWh available")
        if decision.new_route_distance_one_way is not None and decision.new_route_distance_one_way <= 0:
            raise ValueError("new_route_distance_one_way must be positive")

        costs = self.settings.costs
        start_percent = self.bus.battery_percent
        after_v2g_kwh = self.bus.battery_kwh - v2g_kwh
        v2g_earned = v2g_kwh * self.settings.v2g.DISCHARGE_RATE

        target_kwh = self.capacity_kwh * decision.target_percent / 100
        charged_kwh = max(0.0, target_kwh - after_v2g_kwh)
        cost = charged_kwh * costs.OVERNIGHT_RATE

        route_adjusted = self._maybe_regenerate_route(decision.new_route_distance_one_way)

        next_day = self.week.current_day + 1
        record = NightlyDecisionRecord(
            day=next_day,
            target_percent=decision.target_percent,
            start_percent=start_percent,
            energy_charged_kwh=charged_kwh,
            cost=cost,
            route_adjusted=route_adjusted,
            new_route_distance=self.one_way_target_miles if route_adjusted else None,
            v2g_kwh=v2g_kwh,
            v2g_earned=v2g_earned
        )
        self.week.record_nightly(record)

        self.ctx.emit(
            EventType.OVERNIGHT_CHARGED, self.bus.bus_id,
            target_percent=decision.target_percent, energy_kwh=charged_kwh, cost=cost,
            v2g_kwh=v2g_kwh, v2g_earned=v2g_earned
        )
        if v2g_kwh > 0:
            self.ctx.log(f"V2G: discharged {v2g_kwh:.1f} kWh, earned ${v2g_earned:.2f}")
        self.ctx.log(f"Overnight charge to {decision.target_percent:.0f}%: "
                     f"{charged_kwh:.1f} kWh, ${cost:.2f}")

        self.week.current_day = next_day
        self.nightly_prompt = None
        self._start_day(decision.target_percent, DayStats(
            overnight_kwh=charged_kwh,
            overnight_cost=cost,
            v2g_kwh=v2g_kwh,
            v2g_earnings=v2g_earned
        ))

    def _maybe_regenerate_route(self, one_way_miles: Optional[float]) -> bool:
        if one_way_miles is None:
            return False
        target = clamp_one_way_distance(one_way_miles, self.settings.routes)
        if target == self.one_way_target_miles:
            return False

        try:
            route, chargers = self.route_provider.generate(self.scenario.anchor, target)
        except Exception as e:
            print(f"Route regeneration failed ({e}), keeping the current route")
            return False

        self.ctx.route = route
        self.ctx.public_chargers = list(chargers)
        self.one_way_target_miles = target
        return True

    # ------------------------------------------------------------------
    # Day / week end
    # ------------------------------------------------------------------

    def _finish_day(self):
        ctx = self.ctx
        stats = ctx.stats
        costs = self.settings.costs

        base_kwh = max(0.0, stats.energy_consumed_kwh - stats.midday_charging_kwh)
        stats.electric_cost = base_kwh * costs.OVERNIGHT_RATE + stats.midday_charging_cost

        decision = self.week.decision_for_day(ctx.day)
        day_score = score_day(
            self.score,
            day=ctx.day,
            used_midday_charge=self.bus.used_midday_charge,
            energy_consumed_kwh=self.bus.energy_consumed_kwh,
            capacity_kwh=self.capacity_kwh,
            settings=self.settings,
            target_percent=decision.target_percent if decision else None
        )
        self.week.record_day(stats, ctx.weather)

        ctx.emit(
            EventType.DAY_COMPLETED, self.bus.bus_id,
            points=day_score.points, battery_percent=self.bus.battery_percent, cost=stats.electric_cost
        )
        ctx.log(f"Day {ctx.day} complete: {stats.distance_miles:.1f} mi, {stats.energy_consumed_kwh:.1f} kWh, "
                f"${stats.electric_cost:.2f}, {day_score.points:+d} points")
        for line in day_score.breakdown:
            print(f"    {line}")

        if self.week.has_more_days:
            self.nightly_prompt = self._build_nightly_prompt()
            self.status = EngineStatus.AWAITING_NIGHTLY
            ctx.emit(
                EventType.NIGHTLY_DECISION_REQUIRED, self.bus.bus_id,
                next_day=self.nightly_prompt.next_day,
                v2g_available_kwh=self.nightly_prompt.v2g_available_kwh
            )
        else:
            self._finish_week(EngineStatus.COMPLETED)

    def _fail(self):
        self.ctx.log("Scenario failed: the bus ran out of battery")
        self._finish_week(EngineStatus.STRANDED)

    def _finish_week(self, outcome: EngineStatus):
        if outcome == EngineStatus.COMPLETED:
            score_week(
                self.score,
                guess_distance_miles=self.scenario.guess_distance_miles,
                capacity_kwh=self.capacity_kwh,
                bus_class=self.scenario.bus_class,
                total_midday_charges=self.week.total_midday_charges,
                pattern=self.scenario.pattern,
                settings=self.settings
            )

        self.result = build_week_result(
            self.week,
            self.score,
            outcome=outcome.value,
            guess_distance_miles=self.scenario.guess_distance_miles,
            optimal_distance_miles=optimal_one_way_distance(self.capacity_kwh, self.scenario.bus_class, self.settings),
            bus_class=self.scenario.bus_class,
            settings=self.settings
        )
        self.status = outcome
        self.ctx.emit(
            EventType.WEEK_COMPLETED, self.bus.bus_id,
            outcome=outcome.value, final_score=self.result.final_score
        )
        print_week_summary(self.result, week_frame(self.week, self.score))
        if self.logger:
            print(f"Log saved to: {self.logger.log_path}")

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def snapshot(self) -> BusSnapshot:
        if self.bus is None:
            raise RuntimeError("Call start() before snapshot()")
        return self.bus.snapshot()
