# src/routing/__init__.py
from .generator import RouteProvider, StraightLineRouteGenerator, clamp_one_way_distance
from .service import RoutingService, StraightLineRouter, route_with_fallback
from .stations import available_charging_stations

__all__ = [
    "RouteProvider",
    "StraightLineRouteGenerator",
    "clamp_one_way_distance",
    "RoutingService",
    "StraightLineRouter",
    "route_with_fallback",
    "available_charging_stations"
]
