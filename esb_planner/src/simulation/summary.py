# src/simulation/summary.py
"""
End-of-scenario summary: week totals, electric vs diesel comparison and
annual projections (school year / scenario days).
"""

from dataclasses import dataclass, field
from typing import List

import pandas as pd

from esb_planner.src.config.settings import Settings
from esb_planner.src.core.energy import diesel_cost
from esb_planner.src.scoring.engine import ScoreRecord, ScoreState
from esb_planner.src.simulation.state import WeekState


@dataclass(frozen=True)
class AnnualProjection:
    school_days: int
    distance_miles: float
    electric_cost: float
    v2g_earnings: float
    net_electric_cost: float
    diesel_cost: float
    savings: float
    co2_avoided_lbs: float


@dataclass
class WeekResult:
    outcome: str                    # "completed" or "stranded"
    final_score: int
    days_completed: int
    guess_distance_miles: float
    optimal_distance_miles: int
    total_distance_miles: float
    electric_cost: float
    diesel_cost: float
    v2g_earnings: float
    co2_avoided_lbs: float
    midday_charges: int
    annual: AnnualProjection
    bonuses: List[ScoreRecord] = field(default_factory=list)
    penalties: List[ScoreRecord] = field(default_factory=list)

    @property
    def stranded(self) -> bool:
        return self.outcome == "stranded"


def annual_projection(
    distance_miles: float,
    electric_cost: float,
    v2g_earnings: float,
    diesel: float,
    co2_avoided_lbs: float,
    scenario_days: int,
    settings: Settings
) -> AnnualProjection:
    school_days = settings.v2g.SCHOOL_DAYS_PER_YEAR
    multiplier = school_days / scenario_days

    annual_electric = electric_cost * multiplier
    annual_v2g = v2g_earnings * multiplier
    net_electric = max(0.0, annual_electric - annual_v2g)
    annual_diesel = diesel * multiplier

    return AnnualProjection(
        school_days=school_days,
        distance_miles=distance_miles * multiplier,
        electric_cost=annual_electric,
        v2g_earnings=annual_v2g,
        net_electric_cost=net_electric,
        diesel_cost=annual_diesel,
        savings=annual_diesel - net_electric,
        co2_avoided_lbs=co2_avoided_lbs * multiplier
    )


def build_week_result(
    week: WeekState,
    score: ScoreState,
    outcome: str,
    guess_distance_miles: float,
    optimal_distance_miles: int,
    bus_class: str,
    settings: Settings
) -> WeekResult:
    distance = week.total_distance_miles
    electric = sum(d.cost for d in week.day_results)
    diesel = diesel_cost(distance, bus_class, settings.energy, settings.costs)
    co2 = week.total_co2_avoided_lbs

    return WeekResult(
        outcome=outcome,
        final_score=0 if outcome == "stranded" else score.total,
        days_completed=len(week.day_results),
        guess_distance_miles=guess_distance_miles,
        optimal_distance_miles=optimal_distance_miles,
        total_distance_miles=distance,
        electric_cost=electric,
        diesel_cost=diesel,
        v2g_earnings=week.total_v2g_earnings,
        co2_avoided_lbs=co2,
        midday_charges=week.total_midday_charges,
        annual=annual_projection(
            distance, electric, week.total_v2g_earnings, diesel, co2, week.days_total, settings
        ),
        bonuses=list(score.bonuses),
        penalties=list(score.penalties)
    )


def week_frame(week: WeekState, score: ScoreState) -> pd.DataFrame:
    """One row per completed day, joined with that day's points and overnight decision."""
    points = {d.day: d.points for d in score.day_scores}
    rows = []
    for result in week.day_results:
        decision = week.decision_for_day(result.day)
        rows.append({
            "day": result.day,
            "weather": result.weather,
            "midday_charged": result.midday_charged,
            "distance_miles": round(result.distance_miles, 2),
            "energy_kwh": round(result.energy_consumed_kwh, 2),
            "cost": round(result.cost, 2),
            "co2_avoided_lbs": round(result.co2_avoided_lbs, 1),
            "pickups": result.pickups_completed,
            "overnight_target_percent": decision.target_percent if decision else None,
            "v2g_kwh": decision.v2g_kwh if decision else 0.0,
            "points": points.get(result.day, 0)
        })
    return pd.DataFrame(rows)


def print_week_summary(result: WeekResult, frame: pd.DataFrame):
    print(f"\n{'='*60}")
    print("CHALLENGE COMPLETE" if not result.stranded else "SCENARIO FAILED: BUS STRANDED")
    print(f"{'='*60}")
    print(f"Final score: {result.final_score:,}")
    print(f"Route guess: {result.guess_distance_miles:.0f} mi one-way (optimal {result.optimal_distance_miles} mi)")
    if not frame.empty:
        print("\nDaily results:")
        print(frame.to_string(index=False))
    for bonus in result.bonuses:
        print(f"  + {bonus.reason}: {bonus.points}")
    print(f"\nWeek electric cost: ${result.electric_cost:.2f}")
    print(f"Diesel would cost:  ${result.diesel_cost:.2f}")
    annual = result.annual
    print(f"\nAnnual projection ({annual.school_days} school days):")
    print(f"  Electric ${annual.electric_cost:,.0f} - V2G ${annual.v2g_earnings:,.0f} = ${annual.net_electric_cost:,.0f}")
    print(f"  Diesel   ${annual.diesel_cost:,.0f}")
    print(f"  Savings  ${annual.savings:,.0f}, {annual.co2_avoided_lbs:,.0f} lbs CO2 avoided")
