# src/config/settings.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from esb_planner.src.core.geometry import Location


@dataclass(frozen=True)
class EnergySettings:
    # Class A efficiency (kWh per mile) by weather
    EFFICIENCY_CLASS_A: Dict[str, float] = field(default_factory=lambda: {
        "fair": 1.3,       # >65°F
        "cold": 1.6,       # 40-65°F, partial heating
        "extreme": 1.9,    # <40°F, continuous heating
    })
    CLASS_C_MULTIPLIER: float = 1.5
    DEADHEAD_ENERGY_PENALTY: float = 1.5

    # Diesel comparison
    DIESEL_MPG_CLASS_A: float = 9.0
    DIESEL_MPG_CLASS_C: float = 6.0
    CO2_LBS_PER_GALLON: float = 19.4
    CO2_CLASS_C_MULTIPLIER: float = 1.5
    CO2_SEGMENT_MILES: float = 2.0              # Assumed distance credited per pickup/dropoff


@dataclass(frozen=True)
class BatterySettings:
    CLASS_A_CAPACITY_KWH: float = 100.0
    CLASS_C_CAPACITY_KWH: float = 185.0
    MIN_CAPACITY_KWH: float = 80.0
    MAX_CAPACITY_KWH: float = 220.0
    SAFETY_BUFFER: float = 0.15                 # Never counted as usable range
    MIN_RETURN_CHARGE: float = 0.15             # Minimum fraction on arrival at depot
    FULL_CHARGE_STOP_PERCENT: float = 95.0


@dataclass(frozen=True)
class CostSettings:
    OVERNIGHT_RATE: float = 0.18                # $/kWh
    DAYTIME_RATE: float = 0.36                  # $/kWh
    DIESEL_PRICE_PER_GALLON: float = 3.00


@dataclass(frozen=True)
class V2GSettings:
    ENABLED: bool = True
    DISCHARGE_RATE: float = 0.30                # $/kWh earned
    MIN_DISCHARGE_LEVEL: float = 0.20           # Don't discharge below 20%
    SCHOOL_DAYS_PER_YEAR: int = 180


@dataclass(frozen=True)
class SimulationSettings:
    TARGET_DAY_SECONDS: float = 15.0            # Wall-clock length of the longest route
    UPDATE_INTERVAL_SECONDS: float = 0.05       # Wall-clock tick
    BASE_SPEED_MPH: float = 25.0
    ARRIVAL_THRESHOLD_MILES: float = 0.15
    MAX_STOPS_PER_TICK: int = 3
    STOP_DWELL_SECONDS: float = 240.0           # Simulated
    SCHOOL_DWELL_SECONDS: float = 960.0         # Simulated
    COMPLETION_PROGRESS: float = 0.99
    SCHOOL_FALLBACK_PROGRESS: float = 0.5       # Mid-day check point on routes without a school stop
    DAYS_PER_SCENARIO: int = 3


@dataclass(frozen=True)
class TimeWindows:
    AM_TRIP_START: float = 5.0
    AM_TRIP_END: float = 9.0                    # School arrival, 50% progress
    MIDDAY_START: float = 9.0
    MIDDAY_END: float = 12.0
    PM_TRIP_START: float = 12.0
    PM_TRIP_END: float = 16.0


@dataclass(frozen=True)
class MiddayChargingSettings:
    DEADHEAD_PENALTY_PER_MILE: float = 5.0      # Points
    MAX_CHARGING_HOURS: float = 3.0
    OFF_ROUTE_TARGET_CAP: float = 0.9           # Fraction of capacity


@dataclass(frozen=True)
class ChargerTypeSettings:
    LEVEL2_KWH_PER_HOUR: float = 13.0
    LEVEL3_KWH_PER_HOUR: float = 50.0
    # Rate multipliers on the daytime rate: (level2, level3)
    SCHOOL_RATE_MULTIPLIERS: tuple = (1.0, 1.2)
    DEPOT_RATE_MULTIPLIERS: tuple = (1.0, 1.3)
    PUBLIC_RATE_MULTIPLIERS: tuple = (1.4, 1.6)


@dataclass(frozen=True)
class ScoringSettings:
    DAY_COMPLETED: int = 100
    NO_MIDDAY_CHARGE_BONUS: int = 150
    MIDDAY_CHARGE_PENALTY: int = -50
    EFFICIENT_CHARGE_BONUS: int = 75
    EFFICIENT_END_PERCENT_MIN: float = 10.0
    EFFICIENT_END_PERCENT_MAX: float = 25.0
    OVERCHARGE_PER_KWH_PENALTY: float = -2.0
    PERFECT_ROUTE_PREDICTION: int = 500
    PERFECT_ROUTE_TOLERANCE_MILES: float = 3.0
    PERFECT_WEEK_BONUS: int = 1000
    DIFFICULTY_MULTIPLIER: Dict[str, float] = field(default_factory=lambda: {
        "Easy": 1.0,
        "Medium": 1.5,
        "Hard": 2.0,
        "Expert": 3.0,
    })


@dataclass(frozen=True)
class RouteSettings:
    ROUTE_CIRCUITY_FACTOR: float = 2.2          # Road vs straight-line distance for generated routes
    DEADHEAD_CIRCUITY_FACTOR: float = 1.3       # Straight-line fallback for deadhead legs
    MIN_ONE_WAY_MILES: float = 10.0
    MAX_ONE_WAY_MILES: float = 60.0
    NUM_PICKUPS: int = 3
    DEPOT_RADIUS_MILES: float = 0.5
    SCHOOL_CHARGER_CHANCE: float = 0.5
    MIN_PUBLIC_CHARGERS: int = 2
    MAX_PUBLIC_CHARGERS: int = 3
    PUBLIC_CHARGER_MIN_MILES: float = 1.0
    PUBLIC_CHARGER_MAX_MILES: float = 3.0


@dataclass(frozen=True)
class Settings:
    """Immutable settings bundle, built once per scenario and passed around."""
    energy: EnergySettings = field(default_factory=EnergySettings)
    battery: BatterySettings = field(default_factory=BatterySettings)
    costs: CostSettings = field(default_factory=CostSettings)
    v2g: V2GSettings = field(default_factory=V2GSettings)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)
    time_windows: TimeWindows = field(default_factory=TimeWindows)
    midday: MiddayChargingSettings = field(default_factory=MiddayChargingSettings)
    chargers: ChargerTypeSettings = field(default_factory=ChargerTypeSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    routes: RouteSettings = field(default_factory=RouteSettings)


@dataclass(frozen=True)
class WeatherPattern:
    key: str
    name: str
    schedule: List[str]          # weather per day, index 0 = day 1
    difficulty: str

    def weather_for_day(self, day: int) -> Optional[str]:
        if 1 <= day <= len(self.schedule):
            return self.schedule[day - 1]
        return None


WEATHER_PATTERNS: Dict[str, WeatherPattern] = {
    "spring": WeatherPattern("spring", "Spring Days", ["fair", "fair", "cold"], "Easy"),
    "fall": WeatherPattern("fall", "Fall Days", ["fair", "cold", "extreme"], "Medium"),
    "winter": WeatherPattern("winter", "Winter Days", ["cold", "extreme", "extreme"], "Hard"),
    "polar": WeatherPattern("polar", "Polar Vortex", ["extreme", "extreme", "extreme"], "Expert"),
}


@dataclass(frozen=True)
class ScenarioConfig:
    """Player choices for one 3-day scenario."""
    bus_class: str = "A"
    battery_capacity_kwh: Optional[float] = None   # None -> class default
    guess_distance_miles: float = 25.0             # One-way route distance guess
    weather_pattern: str = "fall"
    anchor: Location = Location(lat=42.886, lon=-78.878)
    player_name: str = "Player"

    def __post_init__(self):
        """Validate configuration"""
        if self.bus_class not in ("A", "C"):
            raise ValueError(f"bus_class must be 'A' or 'C', got {self.bus_class!r}")
        if self.weather_pattern not in WEATHER_PATTERNS:
            raise ValueError(f"Unknown weather pattern {self.weather_pattern!r}")
        if self.guess_distance_miles <= 0:
            raise ValueError("guess_distance_miles must be positive")
        if self.battery_capacity_kwh is not None:
            limits = BatterySettings()
            if not limits.MIN_CAPACITY_KWH <= self.battery_capacity_kwh <= limits.MAX_CAPACITY_KWH:
                raise ValueError(
                    f"battery_capacity_kwh must be within "
                    f"{limits.MIN_CAPACITY_KWH:.0f}-{limits.MAX_CAPACITY_KWH:.0f} kWh"
                )

    @property
    def pattern(self) -> WeatherPattern:
        return WEATHER_PATTERNS[self.weather_pattern]

    def capacity_kwh(self, battery: BatterySettings) -> float:
        if self.battery_capacity_kwh is not None:
            return self.battery_capacity_kwh
        if self.bus_class == "C":
            return battery.CLASS_C_CAPACITY_KWH
        return battery.CLASS_A_CAPACITY_KWH
