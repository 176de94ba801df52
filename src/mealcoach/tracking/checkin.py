"""Weekly check-in: recalibrate TDEE from the last three weeks of logs.

Stages run strictly in order and the first failing one ends the
check-in:

    HISTORY_CHECK  at least 14 weight logs overall
    TREND_CHECK    at least 7 logs with a trend value
    WINDOW_CHECK   at least 14 trend logs within 21 days of the latest one
    CALORIE_CHECK  at least 7 of those days with calories > 0
    ESTIMATE       energy-balance TDEE (must be finite and positive)
    RECOMMEND      macro recommendation for the new TDEE
    PERSIST        write tdee + last_check_in_date, nothing else

The window is anchored to the most recent trend date rather than today,
so a user who stopped weighing in gets a check-in over older data
instead of a failure.

Persistence is the last step. A failed recommendation leaves the
profile untouched.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Optional

from mealcoach.tracking.consumption import ConsumptionAggregator
from mealcoach.tracking.energy_balance import InvalidEstimateError, estimate_tdee
from mealcoach.tracking.interfaces import (
    GoalProfileSource,
    LogStore,
    MacroRecommender,
    ProfileStore,
    RecipeCatalog,
    TrendSmoother,
)
from mealcoach.tracking.models import (
    CheckInFailure,
    CheckInResult,
    EnergyBalanceEstimate,
    MacroRecommendation,
    Macros,
    ProfileUpdate,
    RecommendationRequest,
    UserGoalProfile,
    WeightLogEntry,
)

logger = logging.getLogger(__name__)

MIN_HISTORY_DAYS = 14
MIN_TREND_DAYS = 7
MIN_WINDOW_DAYS = 14
MIN_CALORIE_DAYS = 7
LOOKBACK_DAYS = 21

# A window ending this long before today gets a staleness note
STALE_AFTER_DAYS = 7


class CheckInStage(Enum):
    """Stages of a check-in, in execution order."""

    HISTORY_CHECK = "history_check"
    TREND_CHECK = "trend_check"
    WINDOW_CHECK = "window_check"
    CALORIE_CHECK = "calorie_check"
    ESTIMATE = "estimate"
    RECOMMEND = "recommend"
    PERSIST = "persist"


class CheckInError(Exception):
    """Ends a check-in early; converted to a failed CheckInResult."""

    def __init__(
        self,
        stage: CheckInStage,
        failure: CheckInFailure,
        message: str,
        observed: Optional[int] = None,
        required: Optional[int] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.failure = failure
        self.message = message
        self.observed = observed
        self.required = required


@dataclass
class CalorieTally:
    """Intake totals over the analysis window."""

    total_calories: float
    days_with_calorie_data: int


class WeeklyCheckIn:
    """
    Orchestrates a single weekly check-in for one user.

    Holds only collaborators; every call to run() is independent.

    Args:
        log_store: Weight, manual macro and planned meal logs
        trend_smoother: Adds trend_weight_kg to chronological weight logs
        recipe_catalog: Per-serving recipe macros
        recommender: Produces new macro targets for a TDEE
        profile_source: Supplies the validated goal profile
        profile_store: Writes the new tdee and check-in date
        max_workers: Thread pool size for per-day intake reads (1 = inline)
        today: Returns the current date (injectable for tests)
    """

    def __init__(
        self,
        log_store: LogStore,
        trend_smoother: TrendSmoother,
        recipe_catalog: RecipeCatalog,
        recommender: MacroRecommender,
        profile_source: GoalProfileSource,
        profile_store: ProfileStore,
        max_workers: int = 4,
        today: Callable[[], date] = date.today,
    ):
        self.log_store = log_store
        self.trend_smoother = trend_smoother
        self.recommender = recommender
        self.profile_source = profile_source
        self.profile_store = profile_store
        self.aggregator = ConsumptionAggregator(log_store, recipe_catalog)
        self.max_workers = max_workers
        self.today = today

    def run(self, user_id: int) -> CheckInResult:
        """Run the check-in and report the outcome; never raises for expected failures."""
        try:
            return self._run(user_id)
        except CheckInError as e:
            log = logger.warning if e.failure is CheckInFailure.COLLABORATOR_FAILURE else logger.info
            log("Check-in for user %s stopped at %s: %s", user_id, e.stage.value, e.message)
            return CheckInResult(
                success=False,
                message=e.message,
                failure=e.failure,
                observed=e.observed,
                required=e.required,
            )

    def _run(self, user_id: int) -> CheckInResult:
        window = self.select_window(user_id)
        tally = self.tally_calories(user_id, window)

        try:
            estimate = estimate_tdee(window, tally.total_calories, tally.days_with_calorie_data)
        except InvalidEstimateError as e:
            logger.debug("Rejected estimate: %s", e)
            raise CheckInError(
                CheckInStage.ESTIMATE,
                CheckInFailure.COMPUTATION_INVALID,
                "Calculation resulted in an invalid TDEE. "
                "Check your logged data for consistency.",
            ) from e

        profile = self._load_profile(user_id)
        recommendation = self._recommend(profile, estimate)
        check_in_date = self.today()
        self._persist(user_id, estimate.new_tdee, check_in_date)

        logger.info(
            "User %s TDEE updated: %s -> %s kcal/day over %s days",
            user_id,
            profile.current_tdee,
            estimate.new_tdee,
            estimate.duration_days,
        )

        notes = []
        staleness = (check_in_date - estimate.window_end).days
        if staleness > STALE_AFTER_DAYS:
            notes.append(
                f"Latest trend weight is from {estimate.window_end.isoformat()} "
                f"({staleness} days ago). Log your weight daily for an up-to-date check-in."
            )

        return CheckInResult(
            success=True,
            message=(
                f"Your TDEE has been updated to {estimate.new_tdee} kcal/day "
                "based on your recent progress."
            ),
            recommendation=recommendation,
            estimate=estimate,
            previous_tdee=profile.current_tdee,
            notes=notes,
        )

    # ------------------------------------------------------------------
    # Window selection and data-sufficiency gates
    # ------------------------------------------------------------------

    def select_window(self, user_id: int) -> list[WeightLogEntry]:
        """
        Apply the history, trend and window gates.

        Returns:
            Valid trend logs within LOOKBACK_DAYS of the latest one,
            most recent first

        Raises:
            CheckInError: On the first gate that fails
        """
        try:
            history = self.log_store.get_weight_logs(user_id)
        except Exception as e:
            raise CheckInError(
                CheckInStage.HISTORY_CHECK,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Could not load weight logs: {e}",
            ) from e

        if len(history) < MIN_HISTORY_DAYS:
            raise CheckInError(
                CheckInStage.HISTORY_CHECK,
                CheckInFailure.DATA_INSUFFICIENCY,
                f"Insufficient history: at least {MIN_HISTORY_DAYS} days of weight "
                f"logs are needed ({len(history)} of {MIN_HISTORY_DAYS} days logged).",
                observed=len(history),
                required=MIN_HISTORY_DAYS,
            )
        logger.debug("History check passed with %s entries", len(history))

        chronological = sorted(history, key=lambda e: e.date)
        try:
            smoothed = self.trend_smoother.smooth(chronological)
        except Exception as e:
            raise CheckInError(
                CheckInStage.TREND_CHECK,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Trend calculation failed: {e}",
            ) from e
        if len(smoothed) != len(chronological):
            raise CheckInError(
                CheckInStage.TREND_CHECK,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Trend calculation returned {len(smoothed)} entries "
                f"for {len(chronological)} weight logs.",
            )

        valid = sorted(
            (e for e in smoothed if e.trend_weight_kg is not None),
            key=lambda e: e.date,
            reverse=True,
        )
        if len(valid) < MIN_TREND_DAYS:
            raise CheckInError(
                CheckInStage.TREND_CHECK,
                CheckInFailure.DATA_INSUFFICIENCY,
                "Trend not established: not enough consistent data to establish a "
                f"weight trend ({len(valid)} of {MIN_TREND_DAYS} days). Keep logging daily!",
                observed=len(valid),
                required=MIN_TREND_DAYS,
            )
        logger.debug("Trend check passed with %s valid entries", len(valid))

        end_date = valid[0].date
        start_date = end_date - timedelta(days=LOOKBACK_DAYS)
        window = [e for e in valid if e.date >= start_date]

        if len(window) < MIN_WINDOW_DAYS:
            raise CheckInError(
                CheckInStage.WINDOW_CHECK,
                CheckInFailure.DATA_INSUFFICIENCY,
                f"Need at least {MIN_WINDOW_DAYS} days of trend data in the "
                f"{LOOKBACK_DAYS} days up to {end_date.isoformat()} "
                f"({len(window)} of {MIN_WINDOW_DAYS} days).",
                observed=len(window),
                required=MIN_WINDOW_DAYS,
            )
        logger.debug(
            "Window %s..%s holds %s entries", start_date, end_date, len(window)
        )
        return window

    def tally_calories(self, user_id: int, window: list[WeightLogEntry]) -> CalorieTally:
        """
        Sum intake over days in the window that have calorie data.

        Per-day reads may run concurrently; all of them complete before
        anything is summed.

        Raises:
            CheckInError: If intake cannot be read or too few days are covered
        """
        try:
            daily = self._consumed_for_days(user_id, [e.date for e in window])
        except Exception as e:
            raise CheckInError(
                CheckInStage.CALORIE_CHECK,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Could not load intake logs: {e}",
            ) from e

        total_calories = 0.0
        days_with_calorie_data = 0
        for macros in daily:
            if macros.calories > 0:
                total_calories += macros.calories
                days_with_calorie_data += 1

        if days_with_calorie_data < MIN_CALORIE_DAYS:
            raise CheckInError(
                CheckInStage.CALORIE_CHECK,
                CheckInFailure.DATA_INSUFFICIENCY,
                f"Need at least {MIN_CALORIE_DAYS} days of calorie logs in the last "
                f"{LOOKBACK_DAYS} days ({days_with_calorie_data} of {MIN_CALORIE_DAYS} days).",
                observed=days_with_calorie_data,
                required=MIN_CALORIE_DAYS,
            )
        logger.debug(
            "Calorie check passed: %s days, %.0f kcal total",
            days_with_calorie_data,
            total_calories,
        )
        return CalorieTally(total_calories, days_with_calorie_data)

    def _consumed_for_days(self, user_id: int, days: list[date]) -> list[Macros]:
        if self.max_workers <= 1:
            return [self.aggregator.consumed_macros(user_id, d) for d in days]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(lambda d: self.aggregator.consumed_macros(user_id, d), days))

    # ------------------------------------------------------------------
    # Recommendation and persistence
    # ------------------------------------------------------------------

    def _load_profile(self, user_id: int) -> UserGoalProfile:
        try:
            profile = self.profile_source.get_goal_profile(user_id)
        except ValueError as e:
            raise CheckInError(
                CheckInStage.RECOMMEND,
                CheckInFailure.INVALID_PROFILE,
                f"Goal profile is invalid: {e}",
            ) from e
        except Exception as e:
            raise CheckInError(
                CheckInStage.RECOMMEND,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Could not load goal profile: {e}",
            ) from e

        if profile is None:
            raise CheckInError(
                CheckInStage.RECOMMEND,
                CheckInFailure.INVALID_PROFILE,
                "No goal profile found. Set your goal and macro targets first.",
            )
        return profile

    def _recommend(
        self, profile: UserGoalProfile, estimate: EnergyBalanceEstimate
    ) -> MacroRecommendation:
        request = RecommendationRequest(
            primary_goal=profile.primary_goal,
            target_weight_change_rate_kg=profile.target_weight_change_rate_kg,
            dynamic_tdee=estimate.new_tdee,
            actual_avg_calories=estimate.average_daily_calories,
            actual_weekly_weight_change_kg=estimate.actual_weekly_weight_change_kg,
            current_protein_target=profile.current_protein_target,
            current_fat_target=profile.current_fat_target,
        )
        try:
            recommendation = self.recommender.recommend(request)
        except Exception as e:
            raise CheckInError(
                CheckInStage.RECOMMEND,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Could not generate a macro recommendation: {e}",
            ) from e

        if not isinstance(recommendation, MacroRecommendation):
            raise CheckInError(
                CheckInStage.RECOMMEND,
                CheckInFailure.COLLABORATOR_FAILURE,
                "Macro recommender returned an unexpected result.",
            )
        return recommendation

    def _persist(self, user_id: int, tdee: int, check_in_date: date) -> None:
        update = ProfileUpdate(tdee=tdee, last_check_in_date=check_in_date)
        try:
            saved = self.profile_store.update_profile(user_id, update)
        except Exception as e:
            raise CheckInError(
                CheckInStage.PERSIST,
                CheckInFailure.COLLABORATOR_FAILURE,
                f"Could not save the updated TDEE: {e}",
            ) from e
        if not saved:
            raise CheckInError(
                CheckInStage.PERSIST,
                CheckInFailure.COLLABORATOR_FAILURE,
                "Could not save the updated TDEE.",
            )
