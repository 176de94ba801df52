"""Collaborator interfaces consumed by the weekly check-in.

The check-in only reads logs and writes two profile fields, so each
collaborator is narrowed to the handful of calls it actually needs.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from mealcoach.tracking.models import (
    MacroRecommendation,
    Macros,
    PlannedMealEntry,
    ProfileUpdate,
    RecommendationRequest,
    UserGoalProfile,
    WeightLogEntry,
)


class LogStore(Protocol):
    """Read access to a user's daily logs."""

    def get_weight_logs(self, user_id: int) -> list[WeightLogEntry]: ...

    def get_manual_macros(self, user_id: int, day: date) -> Optional[Macros]: ...

    def get_planned_meals(self, user_id: int, day: date) -> list[PlannedMealEntry]: ...


class TrendSmoother(Protocol):
    """Turns chronological raw weights into entries with optional trend values."""

    def smooth(self, entries: list[WeightLogEntry]) -> list[WeightLogEntry]: ...


class RecipeCatalog(Protocol):
    """Per-serving macros for a recipe, or None if the recipe is unknown."""

    def get_macros_per_serving(self, recipe_id: int) -> Optional[Macros]: ...


class MacroRecommender(Protocol):
    """Proposes new macro targets; may raise on any failure."""

    def recommend(self, request: RecommendationRequest) -> MacroRecommendation: ...


class GoalProfileSource(Protocol):
    """Validated goal context for a user; raises ValueError if the stored profile is invalid."""

    def get_goal_profile(self, user_id: int) -> Optional[UserGoalProfile]: ...


class ProfileStore(Protocol):
    """The single write a check-in performs."""

    def update_profile(self, user_id: int, update: ProfileUpdate) -> bool: ...
