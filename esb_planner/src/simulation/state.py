# src/simulation/state.py
"""
State containers for one scenario: per-day statistics, the week record, and the
SimulationContext handed to the bus and the decision logic on every call.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TYPE_CHECKING

from esb_planner.src.config.settings import Settings, ScenarioConfig
from esb_planner.src.core.route import Route
from esb_planner.src.core.charging import ChargingStation, PublicCharger
from esb_planner.src.core.clock import format_clock
from esb_planner.src.core.energy import efficiency
from esb_planner.src.routing.service import RoutingService, StraightLineRouter
from esb_planner.src.routing.stations import available_charging_stations
from esb_planner.src.simulation.event_queue import EventLog, EventQueue, EventType, SimulationEvent

if TYPE_CHECKING:
    from esb_planner.src.planning.charging_decision import ChargingRequirement
    from esb_planner.src.scoring.engine import ScoreState

StationProvider = Callable[[Route, Sequence[PublicCharger], Settings], List[ChargingStation]]


@dataclass
class DayStats:
    distance_miles: float = 0.0
    energy_consumed_kwh: float = 0.0
    midday_charges: int = 0
    midday_charging_kwh: float = 0.0
    midday_charging_cost: float = 0.0
    deadhead_miles: float = 0.0
    co2_avoided_lbs: float = 0.0
    pickups_completed: int = 0
    completed_routes: int = 0
    electric_cost: float = 0.0
    # Set from the nightly decision that started this day
    overnight_kwh: float = 0.0
    overnight_cost: float = 0.0
    v2g_kwh: float = 0.0
    v2g_earnings: float = 0.0


@dataclass
class DayResult:
    day: int
    weather: str
    midday_charged: bool
    distance_miles: float
    energy_consumed_kwh: float
    cost: float
    co2_avoided_lbs: float = 0.0
    pickups_completed: int = 0


@dataclass
class NightlyDecisionRecord:
    day: int                        # The day this charge is for
    target_percent: float
    start_percent: float
    energy_charged_kwh: float
    cost: float
    route_adjusted: bool = False
    new_route_distance: Optional[float] = None
    v2g_kwh: float = 0.0
    v2g_earned: float = 0.0


@dataclass
class WeekState:
    schedule: List[str]
    days_total: int = 3
    current_day: int = 1
    day_results: List[DayResult] = field(default_factory=list)
    nightly_decisions: List[NightlyDecisionRecord] = field(default_factory=list)
    total_midday_charges: int = 0
    total_midday_cost: float = 0.0
    total_overnight_cost: float = 0.0
    total_overnight_kwh: float = 0.0
    total_v2g_earnings: float = 0.0
    total_v2g_kwh: float = 0.0

    @property
    def weather(self) -> str:
        return self.schedule[min(self.current_day, len(self.schedule)) - 1]

    @property
    def has_more_days(self) -> bool:
        return self.current_day < self.days_total

    def record_day(self, stats: DayStats, weather: str) -> DayResult:
        result = DayResult(
            day=self.current_day,
            weather=weather,
            midday_charged=stats.midday_charges > 0,
            distance_miles=stats.distance_miles,
            energy_consumed_kwh=stats.energy_consumed_kwh,
            cost=stats.electric_cost,
            co2_avoided_lbs=stats.co2_avoided_lbs,
            pickups_completed=stats.pickups_completed
        )
        self.day_results.append(result)
        self.total_midday_charges += stats.midday_charges
        self.total_midday_cost += stats.midday_charging_cost
        return result

    def record_nightly(self, decision: NightlyDecisionRecord):
        self.nightly_decisions.append(decision)
        self.total_overnight_cost += decision.cost
        self.total_overnight_kwh += decision.energy_charged_kwh
        self.total_v2g_earnings += decision.v2g_earned
        self.total_v2g_kwh += decision.v2g_kwh

    def decision_for_day(self, day: int) -> Optional[NightlyDecisionRecord]:
        return next((d for d in self.nightly_decisions if d.day == day), None)

    @property
    def total_distance_miles(self) -> float:
        return sum(d.distance_miles for d in self.day_results)

    @property
    def total_co2_avoided_lbs(self) -> float:
        return sum(d.co2_avoided_lbs for d in self.day_results)


@dataclass
class SimulationContext:
    """Everything a bus step or a charging decision may read or record."""
    settings: Settings
    scenario: ScenarioConfig
    route: Route
    score: "ScoreState"
    day: int = 1
    weather: str = "fair"
    public_chargers: List[PublicCharger] = field(default_factory=list)
    router: RoutingService = field(default_factory=StraightLineRouter)
    station_provider: StationProvider = available_charging_stations
    stats: DayStats = field(default_factory=DayStats)
    sim_seconds: float = 0.0
    clock_hour: float = 5.0
    trip_phase: str = "am"
    scheduled: EventQueue = field(default_factory=EventQueue)
    events: EventLog = field(default_factory=EventLog)
    pending_charge: Optional["ChargingRequirement"] = None

    @property
    def efficiency(self) -> float:
        return efficiency(self.scenario.bus_class, self.weather, self.settings.energy)

    @property
    def time_string(self) -> str:
        return format_clock(self.clock_hour)

    def emit(self, event_type: EventType, bus_id: str, **data) -> SimulationEvent:
        event = SimulationEvent(self.sim_seconds, event_type, bus_id, day=self.day, data=data)
        self.events.emit(event)
        return event

    def schedule(self, delay_seconds: float, event_type: EventType, bus_id: str, **data):
        self.scheduled.add_event(
            SimulationEvent(self.sim_seconds + delay_seconds, event_type, bus_id, day=self.day, data=data)
        )

    def log(self, message: str):
        print(f"[Day {self.day} {self.time_string}] {message}")
