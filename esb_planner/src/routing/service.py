# src/routing/service.py
"""
Point-to-point routing for deadhead legs.
Any object with `route_between(start, end) -> (path, miles)` can be used as the
routing service; failures fall back to a straight line with a circuity factor.
"""

from typing import List, Protocol, Tuple

from esb_planner.src.core.geometry import Location, distance_miles
from esb_planner.src.config.settings import RouteSettings


class RoutingService(Protocol):
    def route_between(self, start: Location, end: Location) -> Tuple[List[Location], float]:
        ...


class StraightLineRouter:
    """Routing service that draws a straight line and inflates its length."""

    def __init__(self, circuity_factor: float = RouteSettings().DEADHEAD_CIRCUITY_FACTOR):
        self.circuity_factor = circuity_factor

    def route_between(self, start: Location, end: Location) -> Tuple[List[Location], float]:
        return [start, end], distance_miles(start, end) * self.circuity_factor


def route_with_fallback(
    router: RoutingService,
    start: Location,
    end: Location,
    settings: RouteSettings = RouteSettings()
) -> Tuple[List[Location], float]:
    """
    Ask the routing service for a deadhead path. Returns the straight-line
    estimate if the service errors or hands back something unusable.
    """
    if router is not None:
        try:
            path, miles = router.route_between(start, end)
            if path and miles is not None and miles >= 0:
                return list(path), float(miles)
            print(f"Routing service returned no usable path ({start} -> {end}), using straight line")
        except Exception as e:
            print(f"Routing service failed ({e}), using straight line")

    return StraightLineRouter(settings.DEADHEAD_CIRCUITY_FACTOR).route_between(start, end)
