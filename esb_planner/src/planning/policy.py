# src/planning/policy.py
"""
Automatic decision makers standing in for the player: pick a mid-day station
and an overnight charge target. Used by run_scenario.py and the tests.
"""

from dataclasses import dataclass
from math import ceil
from typing import Optional, Protocol

from esb_planner.src.config.settings import Settings
from esb_planner.src.core.energy import efficiency
from esb_planner.src.planning.charging_decision import ChargingRequirement


@dataclass(frozen=True)
class NightlyChargeDecision:
    target_percent: float
    new_route_distance_one_way: Optional[float] = None
    v2g_discharge_kwh: float = 0.0


@dataclass(frozen=True)
class NightlyPrompt:
    """What the player sees before choosing the overnight charge."""
    next_day: int
    next_weather: str
    bus_class: str
    current_percent: float
    current_kwh: float
    capacity_kwh: float
    route_distance_miles: float
    v2g_available_kwh: float


class DecisionPolicy(Protocol):
    def choose_station(self, requirement: ChargingRequirement) -> str:
        ...

    def nightly_decision(self, prompt: NightlyPrompt) -> NightlyChargeDecision:
        ...


class GreedyPolicy:
    """
    Cheapest on-route station first (the provider already ranks that way).
    Overnight: charge for tomorrow's route in tomorrow's weather and aim to
    come home inside the efficient end-of-day band; sell any surplus above
    that target back to the grid.
    """

    def __init__(self, settings: Settings = Settings(), use_v2g: bool = True):
        self.settings = settings
        self.use_v2g = use_v2g

    def choose_station(self, requirement: ChargingRequirement) -> str:
        return requirement.stations[0].station_id

    def nightly_decision(self, prompt: NightlyPrompt) -> NightlyChargeDecision:
        scoring = self.settings.scoring
        eff = efficiency(prompt.bus_class, prompt.next_weather, self.settings.energy)
        needed_percent = prompt.route_distance_miles * eff / prompt.capacity_kwh * 100
        end_percent = (scoring.EFFICIENT_END_PERCENT_MIN + scoring.EFFICIENT_END_PERCENT_MAX) / 2
        target = min(100.0, float(ceil(needed_percent + end_percent)))

        v2g = 0.0
        if self.use_v2g and self.settings.v2g.ENABLED:
            surplus = prompt.current_kwh - prompt.capacity_kwh * target / 100
            v2g = max(0.0, min(prompt.v2g_available_kwh, surplus))

        return NightlyChargeDecision(target_percent=target, v2g_discharge_kwh=v2g)
