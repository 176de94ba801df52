"""Weight tracking and weekly TDEE recalibration.

Key components:
- Consumption aggregation (manual logs override eaten planned meals)
- Data-sufficiency gates and the 21-day analysis window
- Energy-balance TDEE estimate (7700 kcal per kg of trend change)
- EMA trend smoother and sqlite-backed collaborators
"""

from __future__ import annotations

from mealcoach.tracking.checkin import CheckInError, CheckInStage, WeeklyCheckIn
from mealcoach.tracking.consumption import ConsumptionAggregator
from mealcoach.tracking.ema import EMATrendSmoother, update_trend
from mealcoach.tracking.energy_balance import estimate_tdee
from mealcoach.tracking.models import (
    CheckInFailure,
    CheckInResult,
    EnergyBalanceEstimate,
    MacroRecommendation,
    Macros,
    MealStatus,
    PlannedMealEntry,
    UserGoalProfile,
    WeightLogEntry,
)

__all__ = [
    "CheckInError",
    "CheckInFailure",
    "CheckInResult",
    "CheckInStage",
    "ConsumptionAggregator",
    "EMATrendSmoother",
    "EnergyBalanceEstimate",
    "MacroRecommendation",
    "Macros",
    "MealStatus",
    "PlannedMealEntry",
    "UserGoalProfile",
    "WeeklyCheckIn",
    "WeightLogEntry",
    "estimate_tdee",
    "update_trend",
]
