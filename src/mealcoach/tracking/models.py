"""Data models for weight logs, intake logs and weekly check-ins."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


# Valid goal values (camelCase keys are what the goal profile stores)
VALID_GOALS = ("fatLoss", "muscleGain", "maintenance", "notSpecified")


class MealStatus(Enum):
    """Lifecycle of a planned meal."""

    PLANNED = "planned"
    EATEN = "eaten"


class CheckInFailure(Enum):
    """Why a weekly check-in did not produce a recommendation."""

    DATA_INSUFFICIENCY = "data_insufficiency"
    COMPUTATION_INVALID = "computation_invalid"
    COLLABORATOR_FAILURE = "collaborator_failure"
    INVALID_PROFILE = "invalid_profile"


def _check_macro(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{name} must be finite and non-negative, got {value!r}")


@dataclass(frozen=True)
class Macros:
    """Calories (kcal) plus protein, carbs and fat (grams)."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def __post_init__(self) -> None:
        _check_macro("calories", self.calories)
        _check_macro("protein", self.protein)
        _check_macro("carbs", self.carbs)
        _check_macro("fat", self.fat)

    def __add__(self, other: Macros) -> Macros:
        return Macros(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )

    def scaled(self, factor: float) -> Macros:
        """Return these macros multiplied by a servings factor."""
        return Macros(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class WeightLogEntry:
    """A daily scale weight, optionally augmented with a trend value."""

    date: date
    weight_kg: float
    trend_weight_kg: Optional[float] = None  # None until the smoother has enough history


@dataclass(frozen=True)
class ManualMacrosLogEntry:
    """Manually entered intake for a day; overrides planned meals."""

    date: date
    macros: Macros


@dataclass(frozen=True)
class PlannedMealEntry:
    """A recipe scheduled (or eaten) on a given day."""

    date: date
    recipe_id: int
    servings: float
    status: MealStatus = MealStatus.PLANNED

    def __post_init__(self) -> None:
        if not math.isfinite(self.servings) or self.servings <= 0:
            raise ValueError(f"servings must be positive, got {self.servings!r}")


@dataclass(frozen=True)
class UserGoalProfile:
    """Goal context for a check-in, validated once on construction."""

    primary_goal: str
    target_weight_change_rate_kg: float  # per week, negative = loss
    current_protein_target: float
    current_fat_target: float
    current_tdee: Optional[float] = None

    def __post_init__(self) -> None:
        if self.primary_goal not in VALID_GOALS:
            raise ValueError(
                f"primary_goal must be one of {VALID_GOALS}, got '{self.primary_goal}'"
            )
        if not math.isfinite(self.target_weight_change_rate_kg):
            raise ValueError("target_weight_change_rate_kg must be finite")
        _check_macro("current_protein_target", self.current_protein_target)
        _check_macro("current_fat_target", self.current_fat_target)
        if self.current_tdee is not None and (
            not math.isfinite(self.current_tdee) or self.current_tdee <= 0
        ):
            raise ValueError(f"current_tdee must be positive, got {self.current_tdee!r}")


@dataclass
class UserProfile:
    """Stored user profile: goal, active macro targets and check-in state."""

    user_id: Optional[int]
    name: Optional[str] = None
    primary_goal: str = "notSpecified"
    target_weight_change_rate_kg: float = 0.0
    calorie_target: Optional[float] = None
    protein_target: float = 0.0
    carbs_target: Optional[float] = None
    fat_target: float = 0.0
    tdee: Optional[float] = None
    last_check_in_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.primary_goal not in VALID_GOALS:
            raise ValueError(
                f"primary_goal must be one of {VALID_GOALS}, got '{self.primary_goal}'"
            )

    def goal_profile(self) -> UserGoalProfile:
        """Validated goal context for a check-in."""
        return UserGoalProfile(
            primary_goal=self.primary_goal,
            target_weight_change_rate_kg=self.target_weight_change_rate_kg,
            current_protein_target=self.protein_target,
            current_fat_target=self.fat_target,
            current_tdee=self.tdee,
        )


@dataclass(frozen=True)
class ProfileUpdate:
    """The only profile fields a check-in is allowed to write."""

    tdee: int
    last_check_in_date: date


@dataclass(frozen=True)
class RecommendationRequest:
    """Everything the macro recommender is told about the user's week."""

    primary_goal: str
    target_weight_change_rate_kg: float
    dynamic_tdee: int
    actual_avg_calories: float
    actual_weekly_weight_change_kg: float
    current_protein_target: float
    current_fat_target: float


@dataclass(frozen=True)
class MacroRecommendation:
    """New macro targets plus a short coaching narrative."""

    new_macro_targets: Macros
    coaching_summary: str

    def __post_init__(self) -> None:
        if not isinstance(self.new_macro_targets, Macros):
            raise ValueError("new_macro_targets must be a Macros instance")
        if not self.coaching_summary or not self.coaching_summary.strip():
            raise ValueError("coaching_summary must not be empty")


@dataclass(frozen=True)
class EnergyBalanceEstimate:
    """Output of the energy-balance estimator with its intermediate values."""

    new_tdee: int
    average_daily_calories: float
    weight_change_kg: float
    duration_days: int
    actual_weekly_weight_change_kg: float
    average_daily_balance: float  # kcal/day, negative = deficit
    window_start: date
    window_end: date
    days_with_calorie_data: int


@dataclass
class CheckInResult:
    """Outcome of a weekly check-in."""

    success: bool
    message: str
    recommendation: Optional[MacroRecommendation] = None
    estimate: Optional[EnergyBalanceEstimate] = None
    failure: Optional[CheckInFailure] = None
    observed: Optional[int] = None
    required: Optional[int] = None
    previous_tdee: Optional[float] = None
    notes: list[str] = field(default_factory=list)

    @property
    def progress(self) -> Optional[str]:
        """Human-readable coverage, e.g. '9 of 14 days'."""
        if self.observed is None or self.required is None:
            return None
        return f"{self.observed} of {self.required} days"
