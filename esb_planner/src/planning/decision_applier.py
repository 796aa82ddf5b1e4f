# src/planning/decision_applier.py
"""
Apply a player's (or policy's) charging station choice to a Bus waiting at school.
"""

from typing import TYPE_CHECKING

from esb_planner.src.core.charging import ChargingStation, LocationType
from esb_planner.src.fleet.bus import Bus, BusStatus, ChargingSession
from esb_planner.src.fleet.deadhead import DeadheadLeg
from esb_planner.src.planning.charging_decision import ChargingRequirement
from esb_planner.src.routing.service import route_with_fallback
from esb_planner.src.simulation.event_queue import EventType

if TYPE_CHECKING:
    from esb_planner.src.simulation.state import SimulationContext


def deadhead_penalty_points(station: ChargingStation, penalty_per_mile: float) -> int:
    if not station.requires_deadhead or station.deadhead_miles <= 0:
        return 0
    return round(station.deadhead_miles * penalty_per_mile)


def apply_station_choice(
    bus: Bus,
    station: ChargingStation,
    requirement: ChargingRequirement,
    ctx: "SimulationContext"
) -> None:
    """
    Start charging at school, or send the bus off-route toward the station.
    The charge target is the current battery plus the energy the requirement asks for;
    off-route stations add the trip back once the bus gets there.
    """
    if bus.status != BusStatus.AT_SCHOOL:
        raise RuntimeError(f"{bus.bus_id} is {bus.status.value}, not waiting at school")

    bus.used_midday_charge = True
    ctx.stats.midday_charges += 1
    ctx.pending_charge = None

    session = ChargingSession(station=station, target_kwh=bus.battery_kwh + requirement.energy_to_add_kwh)
    ctx.emit(
        EventType.STATION_SELECTED, bus.bus_id,
        station_id=station.station_id,
        location_type=station.location_type.value,
        charger_level=station.charger_level
    )
    print(f"→ {bus.bus_id}: charge at {station.name} ({station.charger_level}, "
          f"${station.rate:.2f}/kWh, {station.deadhead_miles:.1f} mi off-route)")

    penalty = deadhead_penalty_points(station, ctx.settings.midday.DEADHEAD_PENALTY_PER_MILE)
    if penalty:
        ctx.score.add_penalty(
            f"Deadhead to {station.location_type.value} charger ({station.deadhead_miles:.1f} mi)",
            -penalty,
            ctx.day
        )

    if station.location_type == LocationType.SCHOOL:
        bus.start_charging(ctx, session)
        return

    path, miles = route_with_fallback(ctx.router, bus.location, station.location, ctx.settings.routes)
    leg = DeadheadLeg(origin=bus.location, destination=station.location, distance_miles=miles, path=path)
    bus.start_deadhead(ctx, leg, session)
