"""Tests for sqlite queries and the check-in store adapters."""

from __future__ import annotations

import sqlite3
from datetime import date, timedelta

import pytest

from mealcoach.tracking.models import (
    Macros,
    MealStatus,
    PlannedMealEntry,
    ProfileUpdate,
    UserProfile,
)
from mealcoach.tracking.queries import (
    MacroLogQueries,
    MealPlanQueries,
    RecipeQueries,
    UserQueries,
    WeightQueries,
)
from mealcoach.tracking.stores import (
    SqliteLogStore,
    SqliteProfileStore,
    SqliteRecipeCatalog,
)

DAY = date(2024, 3, 10)


class TestUserQueries:
    """Tests for user profile queries."""

    def test_create_and_get(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            profile = UserQueries.get_user(conn, sample_user)

        assert profile is not None
        assert profile.name == "Sam"
        assert profile.primary_goal == "fatLoss"
        assert profile.target_weight_change_rate_kg == -0.5
        assert profile.tdee == 2300
        assert profile.last_check_in_date is None

    def test_default_user_is_first(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            UserQueries.create_user(conn, UserProfile(user_id=None, name="Second"))
            profile = UserQueries.get_default_user(conn)
        assert profile.user_id == sample_user

    def test_missing_user(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            assert UserQueries.get_user(conn, 42) is None
            assert UserQueries.get_default_user(conn) is None

    def test_set_macro_targets(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            UserQueries.set_macro_targets(
                conn, sample_user, Macros(calories=2035, protein=150, carbs=224, fat=60)
            )
            profile = UserQueries.get_user(conn, sample_user)
        assert profile.calorie_target == 2035
        assert profile.carbs_target == 224

    def test_record_check_in_writes_only_tdee_and_date(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            before = UserQueries.get_user(conn, sample_user)
            saved = UserQueries.record_check_in(
                conn, sample_user, ProfileUpdate(tdee=2585, last_check_in_date=DAY)
            )
            after = UserQueries.get_user(conn, sample_user)

        assert saved
        assert after.tdee == 2585
        assert after.last_check_in_date == DAY
        assert after.calorie_target == before.calorie_target
        assert after.protein_target == before.protein_target
        assert after.carbs_target == before.carbs_target
        assert after.fat_target == before.fat_target
        assert after.primary_goal == before.primary_goal

    def test_record_check_in_unknown_user(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            saved = UserQueries.record_check_in(
                conn, 999, ProfileUpdate(tdee=2585, last_check_in_date=DAY)
            )
        assert not saved


class TestWeightQueries:
    """Tests for weight log queries."""

    def test_history_is_chronological(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            for offset, weight in [(2, 79.6), (0, 79.4), (1, 79.5)]:
                WeightQueries.add_weight(conn, sample_user, weight, DAY - timedelta(days=offset))
            history = WeightQueries.get_weight_history(conn, sample_user)

        assert [e.date for e in history] == [DAY - timedelta(days=2), DAY - timedelta(days=1), DAY]
        assert all(e.trend_weight_kg is None for e in history)

    def test_same_day_replaces(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            WeightQueries.add_weight(conn, sample_user, 80.0, DAY)
            WeightQueries.add_weight(conn, sample_user, 79.8, DAY)
            history = WeightQueries.get_weight_history(conn, sample_user)

        assert len(history) == 1
        assert history[0].weight_kg == 79.8

    def test_date_range(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            for offset in range(5):
                WeightQueries.add_weight(conn, sample_user, 80.0, DAY - timedelta(days=offset))
            history = WeightQueries.get_weight_history(
                conn, sample_user, start_date=DAY - timedelta(days=2), end_date=DAY - timedelta(days=1)
            )
        assert len(history) == 2


class TestMealPlanQueries:
    """Tests for recipes and planned meals."""

    def test_recipe_round_trip(self, temp_db) -> None:
        per_serving = Macros(calories=550, protein=45, carbs=60, fat=12)
        with temp_db.get_connection() as conn:
            recipe_id = RecipeQueries.add_recipe(conn, "Chicken bowl", per_serving)
            assert RecipeQueries.get_macros_per_serving(conn, recipe_id) == per_serving
            assert RecipeQueries.get_macros_per_serving(conn, recipe_id + 1) is None
            assert RecipeQueries.list_recipes(conn) == [(recipe_id, "Chicken bowl", per_serving)]

    def test_duplicate_recipe_name(self, temp_db) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            with temp_db.get_connection() as conn:
                RecipeQueries.add_recipe(conn, "Oats", Macros(calories=300))
                RecipeQueries.add_recipe(conn, "Oats", Macros(calories=350))

    def test_mark_eaten(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            recipe_id = RecipeQueries.add_recipe(conn, "Oats", Macros(calories=300))
            meal_id = MealPlanQueries.add_meal(
                conn, sample_user, PlannedMealEntry(date=DAY, recipe_id=recipe_id, servings=1.5)
            )
            assert MealPlanQueries.set_status(conn, sample_user, meal_id, MealStatus.EATEN)
            assert not MealPlanQueries.set_status(conn, sample_user, meal_id + 1, MealStatus.EATEN)
            meals = MealPlanQueries.get_meals(conn, sample_user, DAY)

        assert meals == [
            PlannedMealEntry(date=DAY, recipe_id=recipe_id, servings=1.5, status=MealStatus.EATEN)
        ]


class TestStores:
    """Tests for the sqlite adapters used by the check-in."""

    def test_log_store(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            WeightQueries.add_weight(conn, sample_user, 80.0, DAY)
            MacroLogQueries.log_macros(conn, sample_user, DAY, Macros(calories=2100, protein=140))
            recipe_id = RecipeQueries.add_recipe(conn, "Oats", Macros(calories=300))
            MealPlanQueries.add_meal(
                conn, sample_user, PlannedMealEntry(date=DAY, recipe_id=recipe_id, servings=1)
            )

        store = SqliteLogStore(temp_db)
        assert [e.weight_kg for e in store.get_weight_logs(sample_user)] == [80.0]
        assert store.get_manual_macros(sample_user, DAY) == Macros(calories=2100, protein=140)
        assert store.get_manual_macros(sample_user, DAY + timedelta(days=1)) is None
        assert len(store.get_planned_meals(sample_user, DAY)) == 1

        catalog = SqliteRecipeCatalog(temp_db)
        assert catalog.get_macros_per_serving(recipe_id) == Macros(calories=300)

    def test_profile_store(self, temp_db, sample_user) -> None:
        store = SqliteProfileStore(temp_db)

        goal = store.get_goal_profile(sample_user)
        assert goal.primary_goal == "fatLoss"
        assert goal.current_protein_target == 150
        assert goal.current_fat_target == 60
        assert goal.current_tdee == 2300

        assert store.update_profile(sample_user, ProfileUpdate(tdee=2500, last_check_in_date=DAY))
        assert store.get_goal_profile(sample_user).current_tdee == 2500
        assert store.get_goal_profile(999) is None

    def test_invalid_stored_profile_raises_value_error(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            conn.execute("UPDATE user_profiles SET tdee = -5 WHERE user_id = ?", (sample_user,))

        with pytest.raises(ValueError, match="current_tdee"):
            SqliteProfileStore(temp_db).get_goal_profile(sample_user)
