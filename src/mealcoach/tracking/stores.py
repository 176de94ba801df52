"""SQLite-backed collaborators for the weekly check-in.

Each call opens its own connection, so these are safe to use from the
check-in's worker threads.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from mealcoach.db.connection import DatabaseConnection
from mealcoach.tracking.models import (
    Macros,
    PlannedMealEntry,
    ProfileUpdate,
    UserGoalProfile,
    WeightLogEntry,
)
from mealcoach.tracking.queries import (
    MacroLogQueries,
    MealPlanQueries,
    RecipeQueries,
    UserQueries,
    WeightQueries,
)


class SqliteLogStore:
    """Read-only view of weight, manual macro and planned meal logs."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def get_weight_logs(self, user_id: int) -> list[WeightLogEntry]:
        with self.db.get_connection() as conn:
            return WeightQueries.get_weight_history(conn, user_id)

    def get_manual_macros(self, user_id: int, day: date) -> Optional[Macros]:
        with self.db.get_connection() as conn:
            return MacroLogQueries.get_macros(conn, user_id, day)

    def get_planned_meals(self, user_id: int, day: date) -> list[PlannedMealEntry]:
        with self.db.get_connection() as conn:
            return MealPlanQueries.get_meals(conn, user_id, day)


class SqliteRecipeCatalog:
    """Recipe macros from the recipes table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def get_macros_per_serving(self, recipe_id: int) -> Optional[Macros]:
        with self.db.get_connection() as conn:
            return RecipeQueries.get_macros_per_serving(conn, recipe_id)


class SqliteProfileStore:
    """Goal profile reads and the tdee/last_check_in_date write."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def get_goal_profile(self, user_id: int) -> Optional[UserGoalProfile]:
        with self.db.get_connection() as conn:
            profile = UserQueries.get_user(conn, user_id)
        return profile.goal_profile() if profile else None

    def update_profile(self, user_id: int, update: ProfileUpdate) -> bool:
        with self.db.get_connection() as conn:
            return UserQueries.record_check_in(conn, user_id, update)
