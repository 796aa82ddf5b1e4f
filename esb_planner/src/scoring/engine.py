# src/scoring/engine.py
"""
Day and week scoring.

Every award or deduction is an additive ScoreRecord; the running total is
the sum of day scores plus week-level bonuses.
"""

from dataclasses import dataclass, field
from math import floor
from typing import List, Optional

from esb_planner.src.config.settings import Settings, WeatherPattern
from esb_planner.src.core.energy import efficiency


@dataclass(frozen=True)
class ScoreRecord:
    reason: str
    points: int
    day: Optional[int] = None


@dataclass
class DayScore:
    day: int
    points: int
    breakdown: List[str] = field(default_factory=list)


@dataclass
class ScoreState:
    total: int = 0
    day_scores: List[DayScore] = field(default_factory=list)
    bonuses: List[ScoreRecord] = field(default_factory=list)
    penalties: List[ScoreRecord] = field(default_factory=list)

    def add_day_score(self, day_score: DayScore):
        self.day_scores.append(day_score)
        self.total += day_score.points

    def add_bonus(self, reason: str, points: int, day: Optional[int] = None):
        self.bonuses.append(ScoreRecord(reason, points, day))
        self.total += points

    def add_penalty(self, reason: str, points: int, day: Optional[int] = None):
        """`points` is negative."""
        self.penalties.append(ScoreRecord(reason, points, day))
        self.total += points

    def has_bonus(self, reason: str) -> bool:
        return any(b.reason == reason for b in self.bonuses)


PERFECT_ROUTE = "Perfect route prediction"
PERFECT_WEEK = "Perfect week (no mid-day charging)"


def optimal_one_way_distance(capacity_kwh: float, bus_class: str, settings: Settings) -> int:
    """Longest one-way route a full battery covers in extreme weather, keeping the safety buffer."""
    usable_kwh = capacity_kwh * (1 - settings.battery.SAFETY_BUFFER)
    worst_efficiency = efficiency(bus_class, "extreme", settings.energy)
    return floor(usable_kwh / worst_efficiency / 2)


def score_day(
    state: ScoreState,
    day: int,
    used_midday_charge: bool,
    energy_consumed_kwh: float,
    capacity_kwh: float,
    settings: Settings,
    target_percent: Optional[float] = None
) -> DayScore:
    """
    Score one completed day. `target_percent` is the overnight charge chosen for
    this day; day 1 starts from a full battery with no decision and is not
    rated for charging efficiency.
    """
    scoring = settings.scoring
    points = scoring.DAY_COMPLETED
    breakdown = [f"Completed day {day}: +{scoring.DAY_COMPLETED}"]

    if used_midday_charge:
        points += scoring.MIDDAY_CHARGE_PENALTY
        breakdown.append(f"Mid-day charge: {scoring.MIDDAY_CHARGE_PENALTY}")
        state.penalties.append(ScoreRecord("Mid-day charge needed", scoring.MIDDAY_CHARGE_PENALTY, day))
    else:
        points += scoring.NO_MIDDAY_CHARGE_BONUS
        breakdown.append(f"No mid-day charge: +{scoring.NO_MIDDAY_CHARGE_BONUS}")

    if target_percent is not None:
        end_percent = target_percent - energy_consumed_kwh / capacity_kwh * 100
        if scoring.EFFICIENT_END_PERCENT_MIN <= end_percent <= scoring.EFFICIENT_END_PERCENT_MAX:
            points += scoring.EFFICIENT_CHARGE_BONUS
            breakdown.append(f"Efficient overnight charge ({end_percent:.0f}% left): +{scoring.EFFICIENT_CHARGE_BONUS}")
            state.bonuses.append(ScoreRecord("Efficient charging", scoring.EFFICIENT_CHARGE_BONUS, day))
        elif end_percent > scoring.EFFICIENT_END_PERCENT_MAX:
            wasted_kwh = (end_percent - scoring.EFFICIENT_END_PERCENT_MAX) / 100 * capacity_kwh
            penalty = round(wasted_kwh * scoring.OVERCHARGE_PER_KWH_PENALTY)
            if penalty:
                points += penalty
                breakdown.append(f"Overcharged ({end_percent:.0f}% left): {penalty}")
                state.penalties.append(ScoreRecord("Overcharging", penalty, day))

    day_score = DayScore(day=day, points=points, breakdown=breakdown)
    state.add_day_score(day_score)
    return day_score


def score_week(
    state: ScoreState,
    guess_distance_miles: float,
    capacity_kwh: float,
    bus_class: str,
    total_midday_charges: int,
    pattern: WeatherPattern,
    settings: Settings
) -> int:
    """Add the week-level bonuses and return the final total."""
    scoring = settings.scoring

    optimal = optimal_one_way_distance(capacity_kwh, bus_class, settings)
    if abs(guess_distance_miles - optimal) <= scoring.PERFECT_ROUTE_TOLERANCE_MILES:
        state.add_bonus(PERFECT_ROUTE, scoring.PERFECT_ROUTE_PREDICTION)

    if total_midday_charges == 0 and not state.has_bonus(PERFECT_WEEK):
        state.add_bonus(PERFECT_WEEK, scoring.PERFECT_WEEK_BONUS)

    multiplier = scoring.DIFFICULTY_MULTIPLIER.get(pattern.difficulty, 1.0)
    difficulty_bonus = round(state.total * (multiplier - 1))
    if difficulty_bonus > 0:
        state.add_bonus(f"{pattern.difficulty} difficulty ({multiplier}x)", difficulty_bonus)

    return state.total
