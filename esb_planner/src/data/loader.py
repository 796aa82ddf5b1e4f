# src/data/loader.py
"""
Data loading module.
Builds a Route (and its public chargers) from CSV tables instead of the
synthetic generator, e.g. for a real district route exported from a planner.

Stops CSV columns:    Seq Number, Stop Id, Stop Name, Stop Type, Stop lat, Stop lon[, Has Charger]
Chargers CSV columns: Charger Id, Location Name, Latitude, Longitude
"""

from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from esb_planner.src.core.geometry import Location, distance_miles
from esb_planner.src.core.route import Route, Stop, StopType
from esb_planner.src.core.charging import PublicCharger


def load_route(
    stops_csv: Union[str, Path],
    route_id: str = "route-1",
    name: str = "Route 1",
    distance_miles_override: Optional[float] = None
) -> Route:
    """
    Load an ordered stop table into a Route. Rows are sorted by sequence number;
    the polyline is the stop sequence.
    """
    df = pd.read_csv(stops_csv).sort_values("Seq Number")

    stops: List[Stop] = []
    for _, row in df.iterrows():
        stop_type = str(row["Stop Type"]).strip().lower()
        try:
            kind = StopType(stop_type)
        except ValueError:
            raise ValueError(f"Unknown stop type {stop_type!r} for stop {row['Stop Id']}")

        has_charger = row.get("Has Charger", False)
        stops.append(Stop(
            stop_id=str(row["Stop Id"]).strip(),
            name=str(row["Stop Name"]).strip(),
            stop_type=kind,
            location=Location(lat=float(row["Stop lat"]), lon=float(row["Stop lon"])),
            has_charger=bool(has_charger) if pd.notna(has_charger) else False
        ))

    if not any(s.stop_type == StopType.SCHOOL for s in stops):
        raise ValueError("Route must contain a school stop")

    return Route(route_id=route_id, name=name, stops=stops, distance_miles=distance_miles_override)


def load_public_chargers(chargers_csv: Union[str, Path], route: Route) -> List[PublicCharger]:
    df = pd.read_csv(chargers_csv)
    school = route.school_stop()

    chargers: List[PublicCharger] = []
    for _, row in df.iterrows():
        location = Location(lat=float(row["Latitude"]), lon=float(row["Longitude"]))
        chargers.append(PublicCharger(
            site_id=str(row["Charger Id"]).strip(),
            name=str(row["Location Name"]).strip(),
            location=location,
            distance_from_school_miles=distance_miles(school.location, location)
        ))
    return chargers
