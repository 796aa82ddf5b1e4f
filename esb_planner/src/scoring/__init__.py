# src/scoring/__init__.py
from .engine import ScoreState, optimal_one_way_distance, score_day, score_week

__all__ = ["ScoreState", "optimal_one_way_distance", "score_day", "score_week"]
