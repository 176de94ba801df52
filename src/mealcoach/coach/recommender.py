"""Macro recommenders for the weekly check-in.

FormulaRecommender derives new targets arithmetically:

    calories = round(tdee + target_rate_kg × 7700 / 7)
    protein, fat = unchanged
    carbs = max(0, round((calories - protein×4 - fat×9) / 4))

RetryingRecommender wraps any recommender with a per-attempt timeout
and a bounded number of jittered retries. It never touches the profile,
so a check-in that ends in a recommender failure writes nothing no
matter how many attempts were made.
"""

from __future__ import annotations

import logging
import math
import queue
import random
import threading
import time
from typing import Callable, Optional

from mealcoach.tracking.energy_balance import KCAL_PER_KG, round_half_up
from mealcoach.tracking.interfaces import MacroRecommender
from mealcoach.tracking.models import MacroRecommendation, Macros, RecommendationRequest

logger = logging.getLogger(__name__)

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 1
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_JITTER_FACTOR = 0.1


class RecommenderError(RuntimeError):
    """Raised when no valid recommendation could be obtained."""


class FormulaRecommender:
    """Deterministic recommender: shift calories toward the target rate, refill carbs."""

    def recommend(self, request: RecommendationRequest) -> MacroRecommendation:
        if request.dynamic_tdee <= 0:
            raise RecommenderError("A positive TDEE is required for a recommendation")

        daily_adjustment = request.target_weight_change_rate_kg * KCAL_PER_KG / 7
        calories = max(0, round_half_up(request.dynamic_tdee + daily_adjustment))

        protein = request.current_protein_target
        fat = request.current_fat_target
        carb_calories = calories - protein * KCAL_PER_G_PROTEIN - fat * KCAL_PER_G_FAT
        carbs = max(0, round_half_up(carb_calories / KCAL_PER_G_CARBS))

        targets = Macros(calories=calories, protein=protein, carbs=carbs, fat=fat)
        return MacroRecommendation(
            new_macro_targets=targets,
            coaching_summary=coaching_summary(request, calories),
        )


def coaching_summary(request: RecommendationRequest, new_calories: int) -> str:
    """Short, adherence-neutral narrative for a check-in."""
    lines = [
        "Looking at your progress over the last couple of weeks, your weight trend "
        f"changed by about {request.actual_weekly_weight_change_kg:+.2f} kg/week on an "
        f"average intake of {request.actual_avg_calories:.0f} kcal/day.",
        f"Based on this, your updated TDEE is now estimated at {request.dynamic_tdee} kcal.",
    ]
    if request.primary_goal == "maintenance" or request.target_weight_change_rate_kg == 0:
        lines.append(f"To hold steady, your new daily target is {new_calories} kcal.")
    else:
        lines.append(
            f"To stay on track for {request.target_weight_change_rate_kg:+.2f} kg/week, "
            f"your new daily target is {new_calories} kcal."
        )
    lines.append("Keep up the consistent effort!")
    return " ".join(lines)


def validate_recommendation(recommendation: object) -> MacroRecommendation:
    """Check a recommender's output against the contract.

    Raises:
        RecommenderError: If the output is not a MacroRecommendation
    """
    if not isinstance(recommendation, MacroRecommendation):
        raise RecommenderError(
            f"Recommender returned {type(recommendation).__name__}, expected MacroRecommendation"
        )
    targets = recommendation.new_macro_targets
    for name, value in targets.to_dict().items():
        if not math.isfinite(value) or value < 0:
            raise RecommenderError(f"Recommended {name} is invalid: {value!r}")
    return recommendation


def backoff_delay(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    jitter_factor: float = DEFAULT_JITTER_FACTOR,
) -> float:
    """
    Delay before retry number `attempt` (0-indexed), with random jitter.

    Formula: base_delay × 2^attempt ± jitter_factor × that
    """
    delay = base_delay * (2 ** attempt)
    jitter = delay * jitter_factor * (2 * random.random() - 1)
    return max(0.0, delay + jitter)


class RetryingRecommender:
    """
    Adds a timeout and bounded retries to another recommender.

    Attributes:
        inner: The wrapped recommender
        timeout_seconds: Limit for each attempt
        max_retries: Extra attempts after the first failure
        base_delay_seconds: Backoff before the first retry
        jitter_factor: Random spread applied to each backoff
    """

    def __init__(
        self,
        inner: MacroRecommender,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        jitter_factor: float = DEFAULT_JITTER_FACTOR,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.inner = inner
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.jitter_factor = jitter_factor
        self._sleep = sleep

    def recommend(self, request: RecommendationRequest) -> MacroRecommendation:
        attempts = self.max_retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(attempts):
            try:
                return validate_recommendation(self._attempt(request))
            except Exception as e:
                last_error = e
                logger.warning(
                    "Recommendation attempt %s/%s failed: %s", attempt + 1, attempts, e
                )
                if attempt < attempts - 1:
                    self._sleep(
                        backoff_delay(attempt, self.base_delay_seconds, self.jitter_factor)
                    )

        raise RecommenderError(
            f"Recommendation failed after {attempts} attempt(s): {last_error}"
        ) from last_error

    def _attempt(self, request: RecommendationRequest) -> MacroRecommendation:
        # Daemon worker: a call that never returns cannot hold up interpreter exit
        outcome: queue.Queue = queue.Queue(maxsize=1)

        def call() -> None:
            try:
                outcome.put((True, self.inner.recommend(request)))
            except Exception as e:
                outcome.put((False, e))

        worker = threading.Thread(target=call, name="recommender-attempt", daemon=True)
        worker.start()
        try:
            ok, value = outcome.get(timeout=self.timeout_seconds)
        except queue.Empty:
            raise RecommenderError(
                f"Recommender timed out after {self.timeout_seconds:.1f}s"
            ) from None
        if not ok:
            raise value
        return value
