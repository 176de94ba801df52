"""Realistic sample logs for trying out the weekly check-in."""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Optional

from mealcoach.tracking.models import (
    VALID_GOALS,
    ManualMacrosLogEntry,
    Macros,
    WeightLogEntry,
)

# Underlying drift (kg/day) and intake offset from TDEE (kcal/day) per goal
GOAL_DRIFT = {
    "fatLoss": (-0.05, -350),
    "muscleGain": (0.03, 250),
    "maintenance": (0.0, 0),
    "notSpecified": (0.0, 0),
}

WEIGHT_NOISE_KG = 0.5
CALORIE_NOISE_KCAL = 150


def generate_sample_logs(
    weight_kg: float,
    tdee: float,
    goal: str,
    days: int = 21,
    end: Optional[date] = None,
    seed: Optional[int] = None,
) -> tuple[list[WeightLogEntry], list[ManualMacrosLogEntry]]:
    """
    Generate noisy daily weight and intake logs consistent with a goal.

    Weight drifts by the goal's daily rate with ±0.5 kg daily noise;
    intake is TDEE plus the goal's offset with ±150 kcal noise, split
    30% protein / 40% carbs / 30% fat.

    Args:
        weight_kg: Starting weight
        tdee: True maintenance calories the data should imply
        goal: One of VALID_GOALS
        days: Number of consecutive days to generate
        end: Last day of the series (default: today)
        seed: Random seed for reproducible output

    Returns:
        (weight_logs, macro_logs), both in chronological order
    """
    if goal not in VALID_GOALS:
        raise ValueError(f"goal must be one of {VALID_GOALS}, got '{goal}'")
    if days < 1:
        raise ValueError("days must be at least 1")

    rng = random.Random(seed)
    end = end or date.today()
    drift, offset = GOAL_DRIFT[goal]
    calorie_target = tdee + offset

    weights: list[WeightLogEntry] = []
    macros: list[ManualMacrosLogEntry] = []
    current = weight_kg

    for i in range(days):
        day = end - timedelta(days=days - 1 - i)
        recorded = round(current + (rng.random() - 0.5) * 2 * WEIGHT_NOISE_KG, 2)
        weights.append(WeightLogEntry(date=day, weight_kg=recorded))

        calories = round(calorie_target + (rng.random() - 0.5) * 2 * CALORIE_NOISE_KCAL)
        calories = max(calories, 0)
        macros.append(
            ManualMacrosLogEntry(
                date=day,
                macros=Macros(
                    calories=calories,
                    protein=round(calories * 0.30 / 4),
                    carbs=round(calories * 0.40 / 4),
                    fat=round(calories * 0.30 / 9),
                ),
            )
        )
        current += drift

    return weights, macros
