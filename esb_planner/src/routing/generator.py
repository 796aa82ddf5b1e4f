# src/routing/generator.py
"""
Synthetic route generator.
Lays out Depot -> pickups -> School -> dropoffs (reverse) -> Depot on a straight
bearing from a city anchor, plus a few public chargers around the school.
The polyline is the stop sequence; the road distance is the straight-line
length scaled by the route circuity factor, so a guess of N miles one-way
yields a route of roughly N miles one-way.
"""

import uuid
from typing import List, Optional, Protocol, Tuple

import numpy as np

from esb_planner.src.core.geometry import Location, offset_location, path_length_miles
from esb_planner.src.core.route import Route, Stop, StopType
from esb_planner.src.core.charging import PublicCharger
from esb_planner.src.config.settings import RouteSettings


class RouteProvider(Protocol):
    def generate(self, anchor: Location, one_way_miles: float) -> Tuple[Route, List[PublicCharger]]:
        ...


def clamp_one_way_distance(miles: float, settings: RouteSettings = RouteSettings()) -> float:
    return max(settings.MIN_ONE_WAY_MILES, min(settings.MAX_ONE_WAY_MILES, miles))


class StraightLineRouteGenerator:
    def __init__(self, seed: Optional[int] = None, settings: RouteSettings = RouteSettings()):
        self.rng = np.random.default_rng(seed)
        self.settings = settings

    def _point_near(self, center: Location, radius_miles: float) -> Location:
        angle = self.rng.uniform(0, 2 * np.pi)
        distance = self.rng.uniform(0, radius_miles)
        return offset_location(center, distance, angle)

    def _build_stops(self, anchor: Location, one_way_miles: float) -> List[Stop]:
        s = self.settings
        depot_location = self._point_near(anchor, s.DEPOT_RADIUS_MILES)

        straight_one_way = one_way_miles / s.ROUTE_CIRCUITY_FACTOR
        spacing = straight_one_way / (s.NUM_PICKUPS + 1)
        bearing = self.rng.uniform(0, 2 * np.pi)

        stops = [Stop("depot-start", "Depot", StopType.DEPOT, depot_location, has_charger=True)]

        current = depot_location
        pickup_locations = []
        for i in range(s.NUM_PICKUPS):
            current = offset_location(current, spacing, bearing)
            pickup_locations.append(current)
            stops.append(Stop(f"pickup-{i}", f"Stop {i + 1}", StopType.PICKUP, current))

        school_location = offset_location(current, spacing, bearing)
        school_has_charger = bool(self.rng.random() < s.SCHOOL_CHARGER_CHANCE)
        stops.append(Stop("school", "School", StopType.SCHOOL, school_location, has_charger=school_has_charger))

        for i in range(s.NUM_PICKUPS - 1, -1, -1):
            stops.append(Stop(f"dropoff-{i}", f"Stop {i + 1}", StopType.DROPOFF, pickup_locations[i]))

        stops.append(Stop("depot-end", "Depot", StopType.DEPOT, depot_location, has_charger=True))
        return stops

    def _public_chargers(self, school: Location) -> List[PublicCharger]:
        s = self.settings
        count = int(self.rng.integers(s.MIN_PUBLIC_CHARGERS, s.MAX_PUBLIC_CHARGERS + 1))
        chargers = []
        for i in range(count):
            distance = float(self.rng.uniform(s.PUBLIC_CHARGER_MIN_MILES, s.PUBLIC_CHARGER_MAX_MILES))
            angle = (i / count) * 2 * np.pi + self.rng.uniform(0, 0.5)
            chargers.append(PublicCharger(
                site_id=f"public-charger-{i + 1}",
                name=f"Public Charger #{i + 1}",
                location=offset_location(school, distance, angle),
                distance_from_school_miles=distance
            ))
        return chargers

    def generate(self, anchor: Location, one_way_miles: float) -> Tuple[Route, List[PublicCharger]]:
        one_way_miles = clamp_one_way_distance(one_way_miles, self.settings)
        stops = self._build_stops(anchor, one_way_miles)
        path = [stop.location for stop in stops]
        road_distance = path_length_miles(path) * self.settings.ROUTE_CIRCUITY_FACTOR

        route = Route(
            route_id=uuid.uuid4().hex[:12],
            name="Route 1",
            stops=stops,
            path=path,
            distance_miles=road_distance
        )
        school = route.school_stop()
        print(f"Generated {route} (target {one_way_miles:.0f} mi one-way)")
        return route, self._public_chargers(school.location)
