# src/planning/__init__.py
from .charging_decision import ChargingRequirement, check_charging_needs, project_return_trip
from .policy import GreedyPolicy, NightlyChargeDecision, NightlyPrompt

__all__ = [
    "ChargingRequirement",
    "check_charging_needs",
    "project_return_trip",
    "GreedyPolicy",
    "NightlyChargeDecision",
    "NightlyPrompt"
]
