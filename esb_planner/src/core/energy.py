# src/core/energy.py
"""
Energy model: weather/class efficiency lookup and distance -> energy.
All functions are pure.
"""

from esb_planner.src.config.settings import EnergySettings, CostSettings

WEATHER_CONDITIONS = ("fair", "cold", "extreme")
BUS_CLASSES = ("A", "C")


def efficiency(bus_class: str, weather: str, energy: EnergySettings = EnergySettings()) -> float:
    """kWh per mile for a bus class under a weather condition."""
    if weather not in energy.EFFICIENCY_CLASS_A:
        raise ValueError(f"Unknown weather condition {weather!r}")
    base = energy.EFFICIENCY_CLASS_A[weather]
    if bus_class == "C":
        return base * energy.CLASS_C_MULTIPLIER
    return base


def energy_for_distance(
    distance_miles: float,
    efficiency_kwh_per_mile: float,
    deadhead: bool = False,
    energy: EnergySettings = EnergySettings()
) -> float:
    kwh = distance_miles * efficiency_kwh_per_mile
    if deadhead:
        kwh *= energy.DEADHEAD_ENERGY_PENALTY
    return kwh


def diesel_mpg(bus_class: str, energy: EnergySettings = EnergySettings()) -> float:
    return energy.DIESEL_MPG_CLASS_C if bus_class == "C" else energy.DIESEL_MPG_CLASS_A


def co2_avoided_lbs(distance_miles: float, bus_class: str, energy: EnergySettings = EnergySettings()) -> float:
    """Pounds of CO2 a diesel bus of the same class would have emitted over the distance."""
    gallons = distance_miles / diesel_mpg(bus_class, energy)
    co2 = gallons * energy.CO2_LBS_PER_GALLON
    if bus_class == "C":
        co2 *= energy.CO2_CLASS_C_MULTIPLIER
    return co2


def diesel_cost(
    distance_miles: float,
    bus_class: str,
    energy: EnergySettings = EnergySettings(),
    costs: CostSettings = CostSettings()
) -> float:
    return distance_miles / diesel_mpg(bus_class, energy) * costs.DIESEL_PRICE_PER_GALLON
