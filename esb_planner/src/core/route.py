# src/core/route.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from shapely.geometry import Point

from .geometry import Location, interpolate_along, path_length_miles


class StopType(str, Enum):
    DEPOT = "depot"
    PICKUP = "pickup"
    SCHOOL = "school"
    DROPOFF = "dropoff"


@dataclass
class Stop:
    """
    A stop on the daily round trip. `completed` is the only field that
    changes during a day.
    """
    stop_id: str
    name: str
    stop_type: StopType
    location: Location
    completed: bool = False
    has_charger: bool = False       # Only meaningful for the school and depot

    @property
    def geometry(self) -> Point:
        return self.location.geometry

    @property
    def serves_students(self) -> bool:
        return self.stop_type in (StopType.PICKUP, StopType.DROPOFF)

    def __hash__(self) -> int:
        return hash(self.stop_id)


@dataclass
class Route:
    """
    Depot -> pickups -> school -> dropoffs -> depot.
    `path` is the polyline the bus follows; if omitted the stop locations are
    used. `distance_miles` is the round-trip road distance; if omitted it is the
    geodesic length of the path.
    """
    route_id: str
    name: str
    stops: List[Stop] = field(default_factory=list)
    path: List[Location] = field(default_factory=list)
    distance_miles: Optional[float] = None
    stop_progress: List[float] = field(default_factory=list, init=False)

    def __post_init__(self):
        if not self.path:
            self.path = [s.location for s in self.stops]
        if self.distance_miles is None:
            self.distance_miles = path_length_miles(self.path)
        self._locate_stops()

    def _locate_stops(self):
        """Fraction of the path at which each stop sits, found by a forward-only
        nearest-vertex search so outbound and return stops at the same place stay ordered."""
        self.stop_progress = []
        if len(self.path) < 2:
            self.stop_progress = [0.0 for _ in self.stops]
            return

        cumulative = [0.0]
        for i in range(len(self.path) - 1):
            cumulative.append(cumulative[-1] + self.path[i].geometry.distance(self.path[i + 1].geometry))
        total = cumulative[-1]

        search_from = 0
        for stop in self.stops:
            best_idx = search_from
            best_dist = float("inf")
            for idx in range(search_from, len(self.path)):
                d = self.path[idx].geometry.distance(stop.geometry)
                if d < best_dist:
                    best_dist = d
                    best_idx = idx
            self.stop_progress.append(cumulative[best_idx] / total if total > 0 else 0.0)
            search_from = best_idx

    @property
    def is_degenerate(self) -> bool:
        return len(self.path) < 2 or not self.distance_miles

    @property
    def one_way_distance_miles(self) -> float:
        return (self.distance_miles or 0.0) / 2

    @property
    def start_location(self) -> Optional[Location]:
        if self.path:
            return self.path[0]
        if self.stops:
            return self.stops[0].location
        return None

    def position_at(self, progress: float) -> Location:
        return interpolate_along(self.path, progress)

    def school_stop(self) -> Optional[Stop]:
        return next((s for s in self.stops if s.stop_type == StopType.SCHOOL), None)

    def school_progress(self, default: float = 0.5) -> float:
        """Path fraction of the school stop; `default` when the route has none."""
        for stop, progress in zip(self.stops, self.stop_progress):
            if stop.stop_type == StopType.SCHOOL:
                return progress
        return default

    def depot_stop(self) -> Optional[Stop]:
        return next((s for s in self.stops if s.stop_type == StopType.DEPOT), None)

    def reset_stops(self):
        for stop in self.stops:
            stop.completed = False

    def complete_all_stops(self):
        for stop in self.stops:
            stop.completed = True

    def __len__(self) -> int:
        return len(self.stops)

    def __str__(self) -> str:
        return f"Route {self.route_id} - {self.name} ({len(self)} stops, {self.distance_miles:.1f} mi)"
