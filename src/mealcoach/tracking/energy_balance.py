"""Energy-balance TDEE estimation from trend weight drift.

Over a window of trend-smoothed weights and logged intake:

    TDEE = average_intake - (Δtrend_kg × 7700) / days

where 7700 kcal is the approximate energy content of 1 kg of body mass.
If the trend fell by 1 kg over 14 days on 2000 kcal/day, the body burned
2000 + 7700/14 = 2550 kcal/day.

The estimate is refused rather than clamped when it is not a finite,
positive number: bad logs should be surfaced, not papered over.
"""

from __future__ import annotations

import math
from typing import Sequence

from mealcoach.tracking.models import EnergyBalanceEstimate, WeightLogEntry

# Energy content of 1 kg of body-mass change
KCAL_PER_KG = 7700


class InvalidEstimateError(ValueError):
    """Raised when the computed TDEE is not finite or not positive."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def window_duration_days(window: Sequence[WeightLogEntry]) -> int:
    """
    Calendar days between the newest and oldest entries of a window.

    A window whose boundary dates coincide has no elapsed time; it is
    treated as spanning one day so the per-day rates stay defined.

    Args:
        window: Entries in descending date order

    Returns:
        Duration in days, never less than 1
    """
    days = (window[0].date - window[-1].date).days
    if days == 0:
        return 1
    return days


def estimate_tdee(
    window: Sequence[WeightLogEntry],
    total_calories: float,
    days_with_calorie_data: int,
) -> EnergyBalanceEstimate:
    """
    Estimate steady-state TDEE from a trend window and observed intake.

    Args:
        window: Trend-smoothed entries, most recent first; every entry
                must carry a trend_weight_kg
        total_calories: Sum of calories over days with intake data
        days_with_calorie_data: Number of days contributing to total_calories

    Returns:
        EnergyBalanceEstimate with the rounded TDEE and intermediate values

    Raises:
        InvalidEstimateError: If the estimate is non-finite or <= 0

    Example:
        Trend 80.0 -> 79.0 kg over 14 days on 2000 kcal/day:
        weight_change = -1.0, balance = -7700/14 = -550, TDEE = 2550
    """
    average_daily_calories = total_calories / days_with_calorie_data

    latest = window[0]
    oldest = window[-1]
    weight_change_kg = latest.trend_weight_kg - oldest.trend_weight_kg  # type: ignore

    duration_days = window_duration_days(window)

    actual_weekly_change = (weight_change_kg / duration_days) * 7
    calories_from_weight_change = weight_change_kg * KCAL_PER_KG
    average_daily_balance = calories_from_weight_change / duration_days

    raw_tdee = average_daily_calories - average_daily_balance
    if not math.isfinite(raw_tdee):
        raise InvalidEstimateError(
            f"TDEE estimate is not a finite number ({raw_tdee})"
        )

    new_tdee = round_half_up(raw_tdee)
    if new_tdee <= 0:
        raise InvalidEstimateError(f"TDEE estimate must be positive, got {new_tdee}")

    return EnergyBalanceEstimate(
        new_tdee=new_tdee,
        average_daily_calories=average_daily_calories,
        weight_change_kg=weight_change_kg,
        duration_days=duration_days,
        actual_weekly_weight_change_kg=actual_weekly_change,
        average_daily_balance=average_daily_balance,
        window_start=oldest.date,
        window_end=latest.date,
        days_with_calorie_data=days_with_calorie_data,
    )
