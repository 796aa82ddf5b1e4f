# src/fleet/bus.py
"""
Bus agent: battery, position along the route, and the day's state machine.

    waiting -> moving <-> dwelling
    moving -> at-school -> (dwelling | charging | traveling-to-charger)
    traveling-to-charger -> charging -> returning-from-charger -> moving
    moving -> completed
    any travelling state -> stranded

Status-specific data lives in `activity` so a status can never carry stale
fields from another state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

from esb_planner.src.core.charging import ChargingStation
from esb_planner.src.core.energy import co2_avoided_lbs, energy_for_distance
from esb_planner.src.core.geometry import Location, distance_miles
from esb_planner.src.core.route import Route, Stop, StopType
from esb_planner.src.fleet.deadhead import DeadheadLeg
from esb_planner.src.planning.charging_decision import ChargingRequirement, check_charging_needs
from esb_planner.src.simulation.event_queue import EventType

if TYPE_CHECKING:
    from esb_planner.src.simulation.state import SimulationContext


class BusStatus(str, Enum):
    WAITING = "waiting"
    MOVING = "moving"
    DWELLING = "dwelling"
    AT_SCHOOL = "at-school"
    TRAVELING_TO_CHARGER = "traveling-to-charger"
    CHARGING = "charging"
    RETURNING_FROM_CHARGER = "returning-from-charger"
    COMPLETED = "completed"
    STRANDED = "stranded"


@dataclass
class Dwelling:
    resume_at: float                # simulated seconds


@dataclass
class AtSchool:
    requirement: Optional[ChargingRequirement] = None


@dataclass
class ChargingSession:
    station: ChargingStation
    target_kwh: float
    elapsed_hours: float = 0.0
    energy_added_kwh: float = 0.0
    cost: float = 0.0
    return_leg: Optional[DeadheadLeg] = None


@dataclass
class TravelingToCharger:
    leg: DeadheadLeg
    session: ChargingSession


@dataclass
class ReturningFromCharger:
    leg: DeadheadLeg


Activity = Union[Dwelling, AtSchool, ChargingSession, TravelingToCharger, ReturningFromCharger, None]


@dataclass(frozen=True)
class BusSnapshot:
    bus_id: str
    status: BusStatus
    location: Optional[Location]
    progress: float
    battery_kwh: float
    battery_percent: float
    battery_capacity_kwh: float
    energy_consumed_kwh: float
    distance_traveled_miles: float
    current_stop_index: int
    charging_station_id: Optional[str] = None


@dataclass
class Bus:
    bus_id: str
    route_id: str
    bus_class: str = "A"
    battery_capacity_kwh: float = 100.0
    battery_kwh: Optional[float] = None

    # Dynamic state
    location: Optional[Location] = None
    progress: float = 0.0                   # Fraction of the round trip, monotonic within a day
    current_stop_index: int = 0             # Index of NEXT stop to visit
    energy_consumed_kwh: float = 0.0
    distance_traveled_miles: float = 0.0
    status: BusStatus = BusStatus.WAITING
    activity: Activity = None

    # Mid-day flags, reset every morning
    needs_midday_charge: bool = False
    midday_checked: bool = False
    arrived_at_school: bool = False
    used_midday_charge: bool = False
    midday_charging_hours: float = 0.0
    original_location: Optional[Location] = None

    def __post_init__(self):
        if self.battery_capacity_kwh <= 0:
            raise ValueError("battery_capacity_kwh must be positive")
        if self.battery_kwh is None:
            self.battery_kwh = self.battery_capacity_kwh
        self.battery_kwh = max(0.0, min(self.battery_capacity_kwh, self.battery_kwh))

    @property
    def battery_percent(self) -> float:
        return self.battery_kwh / self.battery_capacity_kwh * 100

    @property
    def is_finished(self) -> bool:
        return self.status in (BusStatus.COMPLETED, BusStatus.STRANDED)

    def _enter(self, status: BusStatus, activity: Activity = None):
        self.status = status
        self.activity = activity

    def _consume(self, ctx: "SimulationContext", miles: float, kwh: float):
        self.distance_traveled_miles += miles
        self.energy_consumed_kwh += kwh
        self.battery_kwh = max(0.0, self.battery_kwh - kwh)
        ctx.stats.distance_miles += miles
        ctx.stats.energy_consumed_kwh += kwh

    def reset_for_new_day(self, route: Route, charge_percent: float):
        """Morning state: at the start of `route` with `charge_percent` in the pack."""
        route.reset_stops()
        self.route_id = route.route_id
        self.battery_kwh = max(0.0, min(self.battery_capacity_kwh, self.battery_capacity_kwh * charge_percent / 100))
        self.location = route.start_location
        self.progress = 0.0
        self.current_stop_index = 0
        self.energy_consumed_kwh = 0.0
        self.distance_traveled_miles = 0.0
        self.needs_midday_charge = False
        self.midday_checked = False
        self.arrived_at_school = False
        self.used_midday_charge = False
        self.midday_charging_hours = 0.0
        self.original_location = None
        self._enter(BusStatus.WAITING)

    def snapshot(self) -> BusSnapshot:
        station_id = None
        if isinstance(self.activity, ChargingSession):
            station_id = self.activity.station.station_id
        elif isinstance(self.activity, TravelingToCharger):
            station_id = self.activity.session.station.station_id
        return BusSnapshot(
            bus_id=self.bus_id,
            status=self.status,
            location=self.location,
            progress=self.progress,
            battery_kwh=self.battery_kwh,
            battery_percent=self.battery_percent,
            battery_capacity_kwh=self.battery_capacity_kwh,
            energy_consumed_kwh=self.energy_consumed_kwh,
            distance_traveled_miles=self.distance_traveled_miles,
            current_stop_index=self.current_stop_index,
            charging_station_id=station_id
        )

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def step(self, ctx: "SimulationContext", hours: float):
        """
        Advance the bus by `hours` of simulated time.
        Dwelling and at-school buses do not move; dwelling ends through a
        scheduled RESUME_MOVING event and at-school through a station choice.
        """
        if self.is_finished:
            return

        if self.status == BusStatus.WAITING:
            self._enter(BusStatus.MOVING)
            ctx.log(f"{self.bus_id} departing depot with {self.battery_percent:.0f}% battery")

        if self.status == BusStatus.MOVING:
            self._move(ctx, hours)
        elif self.status == BusStatus.CHARGING:
            self._charge(ctx, hours)
        elif self.status == BusStatus.TRAVELING_TO_CHARGER:
            self._travel_to_charger(ctx, hours)
        elif self.status == BusStatus.RETURNING_FROM_CHARGER:
            self._return_from_charger(ctx, hours)

    def resume_moving(self):
        if self.status == BusStatus.DWELLING:
            self._enter(BusStatus.MOVING)

    # ------------------------------------------------------------------
    # On-route movement
    # ------------------------------------------------------------------

    def _move(self, ctx: "SimulationContext", hours: float):
        route = ctx.route
        if route.is_degenerate:
            ctx.log(f"{self.bus_id} route {route.route_id} has no usable path, holding position")
            return

        if self.battery_kwh <= 0:
            self._strand(ctx)
            return

        sim = ctx.settings.simulation
        target = min(1.0, self.progress + sim.BASE_SPEED_MPH * hours / route.distance_miles)
        school_at = route.school_progress(sim.SCHOOL_FALLBACK_PROGRESS)
        if not self.midday_checked:
            # Never run past school before the mid-day check; the rest of the tick is dropped
            target = min(target, max(self.progress, school_at))
        miles = (target - self.progress) * route.distance_miles

        self.progress = target
        self.location = route.position_at(self.progress)
        self._consume(ctx, miles, energy_for_distance(miles, ctx.efficiency, energy=ctx.settings.energy))

        if self.battery_kwh <= 0:
            self._strand(ctx)
            return

        self._check_stop_arrivals(ctx)
        if self.status != BusStatus.MOVING:
            return

        if not self.midday_checked and self.progress >= school_at:
            # School stop not matched by position; run the check anyway
            ctx.log(f"{self.bus_id} passed the school point without a stop match")
            self.arrive_at_school(ctx)
            return

        if self.progress >= sim.COMPLETION_PROGRESS:
            self._complete(ctx)

    def _check_stop_arrivals(self, ctx: "SimulationContext"):
        sim = ctx.settings.simulation
        stops = ctx.route.stops
        processed = 0

        while processed < sim.MAX_STOPS_PER_TICK and self.current_stop_index < len(stops):
            idx = self.current_stop_index
            stop = stops[idx]
            if stop.completed:
                self.current_stop_index += 1
                continue

            close_enough = distance_miles(self.location, stop.location) < sim.ARRIVAL_THRESHOLD_MILES
            passed = idx < len(ctx.route.stop_progress) and self.progress >= ctx.route.stop_progress[idx]
            if not (close_enough or passed):
                break

            stop.completed = True
            self.current_stop_index += 1
            processed += 1
            self._arrive_at_stop(ctx, stop)

            if self.status != BusStatus.MOVING:
                break

    def _arrive_at_stop(self, ctx: "SimulationContext", stop: Stop):
        ctx.emit(EventType.STOP_ARRIVED, self.bus_id, stop_id=stop.stop_id, stop_type=stop.stop_type.value)

        if stop.stop_type == StopType.SCHOOL:
            self.arrive_at_school(ctx)
            return

        if stop.serves_students:
            energy = ctx.settings.energy
            ctx.stats.co2_avoided_lbs += co2_avoided_lbs(energy.CO2_SEGMENT_MILES, self.bus_class, energy)
            ctx.stats.pickups_completed += 1
            ctx.log(f"{self.bus_id} {stop.stop_type.value} at {stop.name}, battery {self.battery_percent:.0f}%")
            self._dwell(ctx, ctx.settings.simulation.STOP_DWELL_SECONDS)

    def _dwell(self, ctx: "SimulationContext", seconds: float):
        self._enter(BusStatus.DWELLING, Dwelling(resume_at=ctx.sim_seconds + seconds))
        ctx.schedule(seconds, EventType.RESUME_MOVING, self.bus_id)

    def arrive_at_school(self, ctx: "SimulationContext"):
        """Single entry point for the mid-day check; later calls the same day are ignored."""
        if self.midday_checked:
            return

        self.arrived_at_school = True
        self._enter(BusStatus.AT_SCHOOL, AtSchool())
        ctx.emit(EventType.SCHOOL_ARRIVED, self.bus_id, battery_percent=self.battery_percent)
        ctx.log(f"AM trip complete! {self.bus_id} at school with {self.battery_percent:.0f}% battery")

        requirement = check_charging_needs(self, ctx)
        if requirement is None:
            ctx.log("No mid-day charging needed, continuing to PM trip")
            self._dwell(ctx, ctx.settings.simulation.SCHOOL_DWELL_SECONDS)
        else:
            self.activity = AtSchool(requirement)

    def leave_school_uncharged(self, ctx: "SimulationContext"):
        """Continue to the PM trip from school without charging."""
        if self.status == BusStatus.AT_SCHOOL:
            self._dwell(ctx, ctx.settings.simulation.SCHOOL_DWELL_SECONDS)

    def _complete(self, ctx: "SimulationContext"):
        self.progress = 1.0
        self.location = ctx.route.path[-1]
        self.current_stop_index = len(ctx.route.stops)
        ctx.route.complete_all_stops()
        ctx.stats.completed_routes += 1
        self._enter(BusStatus.COMPLETED)
        ctx.emit(EventType.ROUTE_COMPLETED, self.bus_id, battery_percent=self.battery_percent)
        ctx.log(f"{self.bus_id} back at depot with {self.battery_percent:.0f}% battery")

    def _strand(self, ctx: "SimulationContext"):
        self.battery_kwh = 0.0
        self._enter(BusStatus.STRANDED)
        ctx.emit(EventType.BUS_STRANDED, self.bus_id, progress=self.progress)
        ctx.log(f"BATTERY DEPLETED! {self.bus_id} stranded at {self.progress * 100:.0f}% of route")

    # ------------------------------------------------------------------
    # Mid-day charging
    # ------------------------------------------------------------------

    def start_charging(self, ctx: "SimulationContext", session: ChargingSession):
        self._enter(BusStatus.CHARGING, session)
        ctx.emit(
            EventType.CHARGING_STARTED, self.bus_id,
            station_id=session.station.station_id, target_kwh=session.target_kwh
        )
        ctx.log(
            f"{self.bus_id} charging at {session.station.name} "
            f"({session.station.kwh_per_hour:.0f} kWh/h, ${session.station.rate:.2f}/kWh), "
            f"target {session.target_kwh:.1f} kWh"
        )

    def start_deadhead(self, ctx: "SimulationContext", leg: DeadheadLeg, session: ChargingSession):
        self.original_location = self.location
        self._enter(BusStatus.TRAVELING_TO_CHARGER, TravelingToCharger(leg=leg, session=session))
        ctx.emit(
            EventType.DEADHEAD_STARTED, self.bus_id,
            station_id=session.station.station_id, distance_miles=leg.distance_miles
        )
        ctx.log(f"{self.bus_id} deadheading {leg.distance_miles:.1f} mi to {session.station.name}")

    def _charge(self, ctx: "SimulationContext", hours: float):
        session: ChargingSession = self.activity
        limits = ctx.settings.battery

        before = self.battery_kwh
        self.battery_kwh = min(self.battery_capacity_kwh, self.battery_kwh + session.station.kwh_per_hour * hours)
        added = self.battery_kwh - before
        cost = added * session.station.rate

        session.elapsed_hours += hours
        session.energy_added_kwh += added
        session.cost += cost
        self.midday_charging_hours += hours
        ctx.stats.midday_charging_kwh += added
        ctx.stats.midday_charging_cost += cost

        reached_target = self.battery_kwh >= session.target_kwh
        nearly_full = self.battery_percent >= limits.FULL_CHARGE_STOP_PERCENT
        expired = session.elapsed_hours >= ctx.settings.midday.MAX_CHARGING_HOURS
        if not (reached_target or nearly_full or expired):
            return

        if expired and not (reached_target or nearly_full):
            ctx.log(f"Charging window over, {self.bus_id} leaves with {self.battery_percent:.0f}%")
        else:
            ctx.log(f"Charging complete: {self.bus_id} at {self.battery_percent:.0f}%")
        ctx.emit(
            EventType.CHARGING_FINISHED, self.bus_id,
            station_id=session.station.station_id,
            energy_added_kwh=session.energy_added_kwh,
            cost=session.cost,
            reached_target=reached_target
        )

        if session.return_leg is not None:
            self._enter(BusStatus.RETURNING_FROM_CHARGER, ReturningFromCharger(leg=session.return_leg))
        else:
            self._enter(BusStatus.MOVING)

    def _advance_leg(self, ctx: "SimulationContext", hours: float, leg: DeadheadLeg) -> bool:
        """Move along an off-route leg; False if the bus stranded on the way."""
        miles = leg.advance(ctx.settings.simulation.BASE_SPEED_MPH * hours)
        kwh = energy_for_distance(miles, ctx.efficiency, deadhead=True, energy=ctx.settings.energy)
        self._consume(ctx, miles, kwh)
        ctx.stats.deadhead_miles += miles

        if self.battery_kwh <= 0:
            self.location = leg.position
            self._strand(ctx)
            return False

        self.location = leg.position
        return True

    def _travel_to_charger(self, ctx: "SimulationContext", hours: float):
        trip: TravelingToCharger = self.activity
        if not self._advance_leg(ctx, hours, trip.leg) or not trip.leg.arrived:
            return

        self.location = trip.leg.destination
        session = trip.session
        return_leg = trip.leg.reversed()
        return_energy = energy_for_distance(
            return_leg.distance_miles, ctx.efficiency, deadhead=True, energy=ctx.settings.energy
        )
        # Off-route chargers top up for the trip back as well, within a cap
        cap = self.battery_capacity_kwh * ctx.settings.midday.OFF_ROUTE_TARGET_CAP
        session.target_kwh = min(cap, session.target_kwh + return_energy)
        session.return_leg = return_leg

        ctx.emit(EventType.CHARGER_REACHED, self.bus_id, station_id=session.station.station_id)
        self.start_charging(ctx, session)

    def _return_from_charger(self, ctx: "SimulationContext", hours: float):
        leg = self.activity.leg
        if not self._advance_leg(ctx, hours, leg) or not leg.arrived:
            return

        self.location = leg.destination
        self.original_location = None
        self._enter(BusStatus.MOVING)
        ctx.emit(EventType.RETURNED_TO_ROUTE, self.bus_id, battery_percent=self.battery_percent)
        ctx.log(f"{self.bus_id} back on route with {self.battery_percent:.0f}% battery")

