# src/planning/charging_decision.py
"""
Mid-day charging check, run once per day when the bus reaches school.
Projects whether the battery covers the PM leg with the minimum return charge
left over and, if not, raises a ChargingRequirement that pauses the simulation
until a station is chosen.
"""

from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

from esb_planner.src.core.charging import ChargingStation
from esb_planner.src.core.clock import simulated_hour
from esb_planner.src.core.energy import energy_for_distance
from esb_planner.src.simulation.event_queue import EventType

if TYPE_CHECKING:
    from esb_planner.src.fleet.bus import Bus
    from esb_planner.src.simulation.state import SimulationContext


@dataclass(frozen=True)
class ReturnProjection:
    remaining_miles: float
    energy_needed_kwh: float
    predicted_kwh_at_depot: float
    predicted_percent_at_depot: float
    needs_charging: bool
    energy_to_add_kwh: float


@dataclass
class ChargingRequirement:
    bus_id: str
    day: int
    projection: ReturnProjection
    current_percent: float
    time_remaining_hours: float
    stations: List[ChargingStation] = field(default_factory=list)

    @property
    def energy_to_add_kwh(self) -> float:
        return self.projection.energy_to_add_kwh

    def find_station(self, station_id: str) -> Optional[ChargingStation]:
        return next((s for s in self.stations if s.station_id == station_id), None)


def project_return_trip(
    battery_kwh: float,
    capacity_kwh: float,
    remaining_miles: float,
    efficiency_kwh_per_mile: float,
    min_return_charge: float
) -> ReturnProjection:
    """
    Battery left at the depot after the PM leg, and how much to add so the bus
    gets back with `min_return_charge` (a fraction of capacity) in reserve.
    """
    energy_needed = energy_for_distance(remaining_miles, efficiency_kwh_per_mile)
    predicted_kwh = battery_kwh - energy_needed
    predicted_percent = predicted_kwh / capacity_kwh * 100
    needs_charging = predicted_percent < min_return_charge * 100

    energy_to_add = 0.0
    if needs_charging:
        target_at_depot = capacity_kwh * min_return_charge
        energy_to_add = max(0.0, target_at_depot + energy_needed - battery_kwh)

    return ReturnProjection(
        remaining_miles=remaining_miles,
        energy_needed_kwh=energy_needed,
        predicted_kwh_at_depot=predicted_kwh,
        predicted_percent_at_depot=predicted_percent,
        needs_charging=needs_charging,
        energy_to_add_kwh=energy_to_add
    )


def check_charging_needs(bus: "Bus", ctx: "SimulationContext") -> Optional[ChargingRequirement]:
    """
    Returns the requirement (and records it as pending on the context) when the
    bus must charge before the PM trip, None otherwise. Runs at most once per day.
    """
    if bus.midday_checked:
        return None

    bus.midday_checked = True

    route = ctx.route
    if route.school_stop() is None:
        ctx.log(f"{bus.bus_id} route has no school stop, skipping mid-day check")
        return None

    projection = project_return_trip(
        battery_kwh=bus.battery_kwh,
        capacity_kwh=bus.battery_capacity_kwh,
        remaining_miles=route.distance_miles / 2,
        efficiency_kwh_per_mile=ctx.efficiency,
        min_return_charge=ctx.settings.battery.MIN_RETURN_CHARGE
    )

    ctx.log(
        f"Mid-day check: battery {bus.battery_percent:.0f}% ({bus.battery_kwh:.1f} kWh), "
        f"PM leg {projection.remaining_miles:.1f} mi needs {projection.energy_needed_kwh:.1f} kWh, "
        f"predicted at depot {projection.predicted_percent_at_depot:.0f}%"
    )

    if not projection.needs_charging:
        return None

    bus.needs_midday_charge = True
    stations = ctx.station_provider(route, ctx.public_chargers, ctx.settings)
    windows = ctx.settings.time_windows
    # ctx.clock_hour still holds the previous tick here
    now = simulated_hour(bus.progress, bus.midday_charging_hours, at_school=True, windows=windows)
    requirement = ChargingRequirement(
        bus_id=bus.bus_id,
        day=ctx.day,
        projection=projection,
        current_percent=bus.battery_percent,
        time_remaining_hours=max(0.0, windows.MIDDAY_END - now),
        stations=stations
    )
    ctx.pending_charge = requirement
    ctx.emit(
        EventType.CHARGING_REQUIRED, bus.bus_id,
        energy_to_add_kwh=projection.energy_to_add_kwh,
        station_ids=[s.station_id for s in stations]
    )
    ctx.log(f"MID-DAY CHARGING NEEDED: add {projection.energy_to_add_kwh:.1f} kWh ({len(stations)} options)")
    return requirement
