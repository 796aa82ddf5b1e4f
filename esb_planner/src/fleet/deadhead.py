# src/fleet/deadhead.py
"""
One directed off-route leg (school -> charger, or charger -> school).
The leg tracks its own progress in miles; energy accounting stays with the bus.
"""

from dataclasses import dataclass, field
from typing import List

from esb_planner.src.core.geometry import Location, interpolate_along, lerp


@dataclass
class DeadheadLeg:
    origin: Location
    destination: Location
    distance_miles: float
    path: List[Location] = field(default_factory=list)
    progress_miles: float = 0.0

    @property
    def remaining_miles(self) -> float:
        return max(0.0, self.distance_miles - self.progress_miles)

    @property
    def fraction(self) -> float:
        if self.distance_miles <= 0:
            return 1.0
        return min(1.0, self.progress_miles / self.distance_miles)

    @property
    def arrived(self) -> bool:
        return self.progress_miles >= self.distance_miles

    @property
    def position(self) -> Location:
        if self.arrived:
            return self.destination
        if len(self.path) > 1:
            return interpolate_along(self.path, self.fraction)
        return lerp(self.origin, self.destination, self.fraction)

    def advance(self, miles: float) -> float:
        """Move along the leg; returns the miles actually covered."""
        covered = min(miles, self.remaining_miles)
        self.progress_miles += covered
        return covered

    def reversed(self) -> "DeadheadLeg":
        return DeadheadLeg(
            origin=self.destination,
            destination=self.origin,
            distance_miles=self.distance_miles,
            path=list(reversed(self.path))
        )
