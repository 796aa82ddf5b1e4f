# src/core/geometry.py
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from geopy.distance import geodesic
from shapely.geometry import LineString, Point


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float

    @property
    def geometry(self) -> Point:
        return Point(self.lon, self.lat)  # shapely uses (lon, lat)

    @property
    def tuple_latlon(self):
        return (self.lat, self.lon)


def distance_miles(a: Location, b: Location) -> float:
    return geodesic(a.tuple_latlon, b.tuple_latlon).miles


def path_length_miles(path: Sequence[Location]) -> float:
    if not path or len(path) < 2:
        return 0.0
    return sum(distance_miles(path[i], path[i + 1]) for i in range(len(path) - 1))


def lerp(start: Location, end: Location, t: float) -> Location:
    t = max(0.0, min(1.0, t))
    return Location(
        lat=start.lat + (end.lat - start.lat) * t,
        lon=start.lon + (end.lon - start.lon) * t,
    )


def interpolate_along(path: Sequence[Location], fraction: float) -> Location:
    """
    Position at `fraction` (0-1) of the way along a polyline.
    Degenerate paths return their first point.
    """
    if not path:
        raise ValueError("Cannot interpolate along an empty path")
    if len(path) == 1:
        return path[0]

    fraction = max(0.0, min(1.0, fraction))
    if fraction <= 0:
        return path[0]
    if fraction >= 1:
        return path[-1]

    line = LineString([p.geometry for p in path])
    if line.length == 0:
        return path[0]

    point = line.interpolate(fraction, normalized=True)
    return Location(lat=point.y, lon=point.x)


def offset_location(origin: Location, miles: float, bearing_radians: float) -> Location:
    """Flat-earth offset, good enough for the few miles a school route spans."""
    degrees = miles / 69.0
    return Location(
        lat=origin.lat + degrees * np.sin(bearing_radians),
        lon=origin.lon + degrees * np.cos(bearing_radians),
    )
