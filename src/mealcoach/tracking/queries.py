"""Database queries for profiles, logs, recipes and planned meals."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from mealcoach.tracking.models import (
    ManualMacrosLogEntry,
    Macros,
    MealStatus,
    PlannedMealEntry,
    ProfileUpdate,
    UserProfile,
    WeightLogEntry,
)

_PROFILE_COLUMNS = """
    user_id, name, primary_goal, target_weight_change_rate_kg, calorie_target,
    protein_target, carbs_target, fat_target, tdee, last_check_in_date
"""


def _row_to_profile(row: sqlite3.Row) -> UserProfile:
    return UserProfile(
        user_id=row["user_id"],
        name=row["name"],
        primary_goal=row["primary_goal"],
        target_weight_change_rate_kg=row["target_weight_change_rate_kg"],
        calorie_target=row["calorie_target"],
        protein_target=row["protein_target"],
        carbs_target=row["carbs_target"],
        fat_target=row["fat_target"],
        tdee=row["tdee"],
        last_check_in_date=(
            date.fromisoformat(row["last_check_in_date"])
            if row["last_check_in_date"]
            else None
        ),
    )


class UserQueries:
    """Database queries for user profiles."""

    @staticmethod
    def create_user(conn: sqlite3.Connection, profile: UserProfile) -> int:
        """Create a new user profile and return the user_id."""
        cursor = conn.execute(
            """
            INSERT INTO user_profiles (name, primary_goal, target_weight_change_rate_kg,
                                       calorie_target, protein_target, carbs_target,
                                       fat_target, tdee)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile.name,
                profile.primary_goal,
                profile.target_weight_change_rate_kg,
                profile.calorie_target,
                profile.protein_target,
                profile.carbs_target,
                profile.fat_target,
                profile.tdee,
            ),
        )
        conn.commit()
        return cursor.lastrowid or 0

    @staticmethod
    def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[UserProfile]:
        """Get user profile by ID."""
        row = conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        return _row_to_profile(row) if row else None

    @staticmethod
    def get_default_user(conn: sqlite3.Connection) -> Optional[UserProfile]:
        """Get the first (default) user profile."""
        row = conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM user_profiles ORDER BY user_id LIMIT 1"
        ).fetchone()
        return _row_to_profile(row) if row else None

    @staticmethod
    def set_macro_targets(conn: sqlite3.Connection, user_id: int, targets: Macros) -> None:
        """Replace the user's active daily macro targets."""
        conn.execute(
            """
            UPDATE user_profiles
            SET calorie_target = ?, protein_target = ?, carbs_target = ?, fat_target = ?
            WHERE user_id = ?
            """,
            (targets.calories, targets.protein, targets.carbs, targets.fat, user_id),
        )
        conn.commit()

    @staticmethod
    def set_goal(
        conn: sqlite3.Connection,
        user_id: int,
        primary_goal: str,
        target_weight_change_rate_kg: float,
    ) -> None:
        """Update the user's goal and desired weekly rate."""
        conn.execute(
            """
            UPDATE user_profiles
            SET primary_goal = ?, target_weight_change_rate_kg = ?
            WHERE user_id = ?
            """,
            (primary_goal, target_weight_change_rate_kg, user_id),
        )
        conn.commit()

    @staticmethod
    def record_check_in(
        conn: sqlite3.Connection, user_id: int, update: ProfileUpdate
    ) -> bool:
        """Write the check-in's TDEE and date. Returns False if the user doesn't exist."""
        cursor = conn.execute(
            """
            UPDATE user_profiles
            SET tdee = ?, last_check_in_date = ?
            WHERE user_id = ?
            """,
            (update.tdee, update.last_check_in_date.isoformat(), user_id),
        )
        conn.commit()
        return cursor.rowcount == 1


class WeightQueries:
    """Database queries for weight log entries."""

    @staticmethod
    def add_weight(
        conn: sqlite3.Connection,
        user_id: int,
        weight_kg: float,
        measured_at: date,
        notes: Optional[str] = None,
    ) -> WeightLogEntry:
        """Add a weight entry, replacing any existing entry for that date."""
        conn.execute(
            """
            INSERT OR REPLACE INTO weight_log (user_id, weight_kg, measured_at, notes)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, weight_kg, measured_at.isoformat(), notes),
        )
        conn.commit()
        return WeightLogEntry(date=measured_at, weight_kg=weight_kg)

    @staticmethod
    def get_weight_history(
        conn: sqlite3.Connection,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WeightLogEntry]:
        """Get weight history for a user in chronological order."""
        query = """
            SELECT weight_kg, measured_at
            FROM weight_log
            WHERE user_id = ?
        """
        params: list = [user_id]

        if start_date:
            query += " AND measured_at >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND measured_at <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY measured_at"

        rows = conn.execute(query, params).fetchall()
        return [
            WeightLogEntry(date=date.fromisoformat(row["measured_at"]), weight_kg=row["weight_kg"])
            for row in rows
        ]


class MacroLogQueries:
    """Database queries for manual macro logs."""

    @staticmethod
    def log_macros(
        conn: sqlite3.Connection, user_id: int, log_date: date, macros: Macros
    ) -> ManualMacrosLogEntry:
        """Log manual intake for a day (insert or replace)."""
        conn.execute(
            """
            INSERT OR REPLACE INTO manual_macros_log (user_id, date, calories, protein, carbs, fat)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                log_date.isoformat(),
                macros.calories,
                macros.protein,
                macros.carbs,
                macros.fat,
            ),
        )
        conn.commit()
        return ManualMacrosLogEntry(date=log_date, macros=macros)

    @staticmethod
    def get_macros(
        conn: sqlite3.Connection, user_id: int, log_date: date
    ) -> Optional[Macros]:
        """Get the manual macro log for a day, if any."""
        row = conn.execute(
            """
            SELECT calories, protein, carbs, fat FROM manual_macros_log
            WHERE user_id = ? AND date = ?
            """,
            (user_id, log_date.isoformat()),
        ).fetchone()

        if row is None:
            return None

        return Macros(
            calories=row["calories"],
            protein=row["protein"],
            carbs=row["carbs"],
            fat=row["fat"],
        )


class RecipeQueries:
    """Database queries for the recipe catalog."""

    @staticmethod
    def add_recipe(conn: sqlite3.Connection, name: str, per_serving: Macros) -> int:
        """Add a recipe and return its recipe_id."""
        cursor = conn.execute(
            """
            INSERT INTO recipes (name, calories, protein, carbs, fat)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, per_serving.calories, per_serving.protein, per_serving.carbs, per_serving.fat),
        )
        conn.commit()
        return cursor.lastrowid or 0

    @staticmethod
    def get_macros_per_serving(
        conn: sqlite3.Connection, recipe_id: int
    ) -> Optional[Macros]:
        """Get per-serving macros for a recipe."""
        row = conn.execute(
            "SELECT calories, protein, carbs, fat FROM recipes WHERE recipe_id = ?",
            (recipe_id,),
        ).fetchone()

        if row is None:
            return None

        return Macros(
            calories=row["calories"],
            protein=row["protein"],
            carbs=row["carbs"],
            fat=row["fat"],
        )

    @staticmethod
    def list_recipes(conn: sqlite3.Connection) -> list[tuple[int, str, Macros]]:
        """List all recipes as (recipe_id, name, macros per serving)."""
        rows = conn.execute(
            "SELECT recipe_id, name, calories, protein, carbs, fat FROM recipes ORDER BY name"
        ).fetchall()
        return [
            (
                row["recipe_id"],
                row["name"],
                Macros(
                    calories=row["calories"],
                    protein=row["protein"],
                    carbs=row["carbs"],
                    fat=row["fat"],
                ),
            )
            for row in rows
        ]


class MealPlanQueries:
    """Database queries for planned meals."""

    @staticmethod
    def add_meal(
        conn: sqlite3.Connection,
        user_id: int,
        meal: PlannedMealEntry,
    ) -> int:
        """Add a planned meal and return its meal_id."""
        cursor = conn.execute(
            """
            INSERT INTO planned_meals (user_id, date, recipe_id, servings, status)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, meal.date.isoformat(), meal.recipe_id, meal.servings, meal.status.value),
        )
        conn.commit()
        return cursor.lastrowid or 0

    @staticmethod
    def set_status(
        conn: sqlite3.Connection, user_id: int, meal_id: int, status: MealStatus
    ) -> bool:
        """Change a meal's status. Returns False if no such meal exists for the user."""
        cursor = conn.execute(
            "UPDATE planned_meals SET status = ? WHERE meal_id = ? AND user_id = ?",
            (status.value, meal_id, user_id),
        )
        conn.commit()
        return cursor.rowcount == 1

    @staticmethod
    def get_meals(
        conn: sqlite3.Connection, user_id: int, meal_date: date
    ) -> list[PlannedMealEntry]:
        """Get every planned meal for a day."""
        rows = conn.execute(
            """
            SELECT date, recipe_id, servings, status FROM planned_meals
            WHERE user_id = ? AND date = ?
            ORDER BY meal_id
            """,
            (user_id, meal_date.isoformat()),
        ).fetchall()

        return [
            PlannedMealEntry(
                date=date.fromisoformat(row["date"]),
                recipe_id=row["recipe_id"],
                servings=row["servings"],
                status=MealStatus(row["status"]),
            )
            for row in rows
        ]
