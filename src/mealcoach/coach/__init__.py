"""Macro recommendation for weekly check-ins."""

from __future__ import annotations

from mealcoach.coach.recommender import (
    FormulaRecommender,
    RecommenderError,
    RetryingRecommender,
)

__all__ = ["FormulaRecommender", "RecommenderError", "RetryingRecommender"]
