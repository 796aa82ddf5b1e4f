# src/core/charging.py
from dataclasses import dataclass
from enum import Enum

from .geometry import Location


class LocationType(str, Enum):
    SCHOOL = "school"
    DEPOT = "depot"
    PUBLIC = "public"


@dataclass(frozen=True)
class PublicCharger:
    """An off-route public charging site produced by the route generator."""
    site_id: str
    name: str
    location: Location
    distance_from_school_miles: float

    @property
    def geometry(self):
        return self.location.geometry


@dataclass(frozen=True)
class ChargingStation:
    """One selectable mid-day charging option (a site plus a charger level)."""
    station_id: str
    name: str
    location_type: LocationType
    location: Location
    charger_level: str            # "level2" or "level3"
    rate: float                   # $/kWh
    kwh_per_hour: float
    deadhead_miles: float = 0.0   # One-way detour from school
    on_route: bool = False

    @property
    def geometry(self):
        return self.location.geometry

    @property
    def requires_deadhead(self) -> bool:
        return self.location_type != LocationType.SCHOOL
