# src/routing/stations.py
"""
Builds the ranked list of mid-day charging options for a route:
school (if it has a charger), depot, and off-route public chargers, each at
Level 2 and DC fast. On-route options come first, then cheapest rate.
"""

from typing import List, Sequence

from esb_planner.src.core.route import Route
from esb_planner.src.core.charging import ChargingStation, LocationType, PublicCharger
from esb_planner.src.core.geometry import distance_miles
from esb_planner.src.config.settings import Settings

LEVELS = ("level2", "level3")


def _options(
    settings: Settings,
    prefix: str,
    name: str,
    location_type: LocationType,
    location,
    multipliers: tuple,
    deadhead_miles: float,
    on_route: bool
) -> List[ChargingStation]:
    chargers = settings.chargers
    rates = {
        "level2": (multipliers[0], chargers.LEVEL2_KWH_PER_HOUR),
        "level3": (multipliers[1], chargers.LEVEL3_KWH_PER_HOUR),
    }
    options = []
    for level in LEVELS:
        multiplier, kwh_per_hour = rates[level]
        options.append(ChargingStation(
            station_id=f"{prefix}-{level}",
            name=name,
            location_type=location_type,
            location=location,
            charger_level=level,
            rate=settings.costs.DAYTIME_RATE * multiplier,
            kwh_per_hour=kwh_per_hour,
            deadhead_miles=deadhead_miles,
            on_route=on_route
        ))
    return options


def available_charging_stations(
    route: Route,
    public_chargers: Sequence[PublicCharger],
    settings: Settings
) -> List[ChargingStation]:
    stations: List[ChargingStation] = []
    chargers = settings.chargers

    school = route.school_stop()
    depot = route.depot_stop()

    if school and school.has_charger:
        stations += _options(
            settings, "school", "School", LocationType.SCHOOL, school.location,
            chargers.SCHOOL_RATE_MULTIPLIERS, deadhead_miles=0.0, on_route=True
        )

    if depot:
        school_to_depot = distance_miles(school.location, depot.location) if school else 0.0
        stations += _options(
            settings, "depot", "Depot", LocationType.DEPOT, depot.location,
            chargers.DEPOT_RATE_MULTIPLIERS, deadhead_miles=school_to_depot, on_route=False
        )

    for charger in public_chargers:
        stations += _options(
            settings, charger.site_id, charger.name, LocationType.PUBLIC, charger.location,
            chargers.PUBLIC_RATE_MULTIPLIERS,
            deadhead_miles=charger.distance_from_school_miles, on_route=False
        )

    return sorted(stations, key=lambda s: (not s.on_route, s.rate))
