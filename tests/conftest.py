"""Pytest fixtures for mealcoach tests."""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import pytest

from mealcoach.db.connection import DatabaseConnection
from mealcoach.tracking.models import (
    MacroRecommendation,
    Macros,
    PlannedMealEntry,
    ProfileUpdate,
    RecommendationRequest,
    UserGoalProfile,
    UserProfile,
    WeightLogEntry,
)
from mealcoach.tracking.queries import UserQueries

# Fixed "today" for check-in tests
TODAY = date(2024, 3, 22)


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def sample_user(temp_db):
    """A fat-loss user with protein/fat targets and a starting TDEE."""
    with temp_db.get_connection() as conn:
        user_id = UserQueries.create_user(
            conn,
            UserProfile(
                user_id=None,
                name="Sam",
                primary_goal="fatLoss",
                target_weight_change_rate_kg=-0.5,
                calorie_target=2000,
                protein_target=150,
                carbs_target=200,
                fat_target=60,
                tdee=2300,
            ),
        )
    return user_id


# ============================================================================
# In-memory collaborators
# ============================================================================


class FakeLogStore:
    """Dict-backed log store that records every per-day read."""

    def __init__(self, weights=None, manual=None, meals=None):
        self.weights: list[WeightLogEntry] = list(weights or [])
        self.manual: dict[date, Macros] = dict(manual or {})
        self.meals: dict[date, list[PlannedMealEntry]] = dict(meals or {})
        self.macro_reads: list[date] = []

    def get_weight_logs(self, user_id: int) -> list[WeightLogEntry]:
        return list(self.weights)

    def get_manual_macros(self, user_id: int, day: date) -> Optional[Macros]:
        self.macro_reads.append(day)
        return self.manual.get(day)

    def get_planned_meals(self, user_id: int, day: date) -> list[PlannedMealEntry]:
        return list(self.meals.get(day, []))


class PassthroughSmoother:
    """Uses each raw weight as its trend, optionally leaving the first N without one."""

    def __init__(self, untrended: int = 0):
        self.untrended = untrended
        self.calls = 0

    def smooth(self, entries: list[WeightLogEntry]) -> list[WeightLogEntry]:
        self.calls += 1
        return [
            WeightLogEntry(
                date=e.date,
                weight_kg=e.weight_kg,
                trend_weight_kg=None if i < self.untrended else e.weight_kg,
            )
            for i, e in enumerate(entries)
        ]


class FakeRecipeCatalog:
    def __init__(self, recipes=None):
        self.recipes: dict[int, Macros] = dict(recipes or {})

    def get_macros_per_serving(self, recipe_id: int) -> Optional[Macros]:
        return self.recipes.get(recipe_id)


class RecordingRecommender:
    """Returns a fixed recommendation and keeps the requests it saw."""

    def __init__(self, result=None, error: Optional[Exception] = None):
        self.result = result or MacroRecommendation(
            new_macro_targets=Macros(calories=2200, protein=150, carbs=240, fat=60),
            coaching_summary="Nice steady week.",
        )
        self.error = error
        self.requests: list[RecommendationRequest] = []

    def recommend(self, request: RecommendationRequest) -> MacroRecommendation:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


class FakeProfileSource:
    """Returns a fixed goal profile, or raises the given error."""

    def __init__(self, profile: Optional[UserGoalProfile] = None, error: Optional[Exception] = None):
        self.profile = profile
        self.error = error
        self.reads = 0

    def get_goal_profile(self, user_id: int) -> Optional[UserGoalProfile]:
        self.reads += 1
        if self.error is not None:
            raise self.error
        return self.profile


class FakeProfileStore:
    """Records every update; optionally reports failure or raises."""

    def __init__(self, save_ok: bool = True, error: Optional[Exception] = None):
        self.save_ok = save_ok
        self.error = error
        self.updates: list[tuple[int, ProfileUpdate]] = []

    def update_profile(self, user_id: int, update: ProfileUpdate) -> bool:
        self.updates.append((user_id, update))
        if self.error is not None:
            raise self.error
        return self.save_ok


def daily_weights(
    start_kg: float,
    end_kg: float,
    days: int,
    end: date = TODAY,
) -> list[WeightLogEntry]:
    """Evenly spaced daily weights ending on `end`, oldest first."""
    step = (end_kg - start_kg) / (days - 1) if days > 1 else 0.0
    return [
        WeightLogEntry(date=end - timedelta(days=days - 1 - i), weight_kg=start_kg + step * i)
        for i in range(days)
    ]


def manual_calories(days: list[date], calories: float) -> dict[date, Macros]:
    """Manual macro logs with the same calories on each day."""
    return {d: Macros(calories=calories, protein=150, carbs=200, fat=60) for d in days}


@pytest.fixture
def goal_profile() -> UserGoalProfile:
    return UserGoalProfile(
        primary_goal="fatLoss",
        target_weight_change_rate_kg=-0.5,
        current_protein_target=150,
        current_fat_target=60,
        current_tdee=2300,
    )
