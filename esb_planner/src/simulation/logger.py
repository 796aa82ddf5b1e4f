# src/simulation/logger.py
"""
CSV logger for the bus state over a scenario, one row per tick.
"""

import csv
from datetime import datetime

from esb_planner.src.fleet.bus import BusSnapshot
from esb_planner.src.simulation.state import SimulationContext
from esb_planner.src.config.paths import output_path


class SimulationLogger:
    def __init__(self, log_file: str = "simulation_log.csv"):
        self.log_path = output_path(log_file)
        self.fieldnames = [
            "timestamp",
            "day",
            "weather",
            "sim_seconds",
            "clock",
            "trip_phase",
            "bus_id",
            "status",
            "latitude",
            "longitude",
            "progress",
            "battery_kwh",
            "battery_percent",
            "energy_consumed_kwh",
            "distance_miles",
            "current_stop_index",
            "charging_station",
            "score"
        ]

        # Write header
        with open(self.log_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writeheader()

    def log_step(self, ctx: SimulationContext, snapshot: BusSnapshot):
        with open(self.log_path, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writerow({
                "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                "day": ctx.day,
                "weather": ctx.weather,
                "sim_seconds": round(ctx.sim_seconds, 1),
                "clock": ctx.time_string,
                "trip_phase": ctx.trip_phase,
                "bus_id": snapshot.bus_id,
                "status": snapshot.status.value,
                "latitude": snapshot.location.lat if snapshot.location else None,
                "longitude": snapshot.location.lon if snapshot.location else None,
                "progress": round(snapshot.progress, 4),
                "battery_kwh": round(snapshot.battery_kwh, 2),
                "battery_percent": round(snapshot.battery_percent, 2),
                "energy_consumed_kwh": round(snapshot.energy_consumed_kwh, 2),
                "distance_miles": round(snapshot.distance_traveled_miles, 2),
                "current_stop_index": snapshot.current_stop_index,
                "charging_station": snapshot.charging_station_id or "None",
                "score": ctx.score.total
            })
