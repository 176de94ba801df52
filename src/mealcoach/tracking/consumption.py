"""Daily consumed and planned macro totals."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from mealcoach.tracking.interfaces import LogStore, RecipeCatalog
from mealcoach.tracking.models import Macros, MealStatus, PlannedMealEntry

logger = logging.getLogger(__name__)


class ConsumptionAggregator:
    """Computes what a user ate (or planned to eat) on a given day.

    A manual macro log is authoritative for its date. Without one, eaten
    planned meals are resolved against the recipe catalog and scaled by
    servings.
    """

    def __init__(self, log_store: LogStore, recipe_catalog: RecipeCatalog):
        self.log_store = log_store
        self.recipe_catalog = recipe_catalog

    def consumed_macros(self, user_id: int, day: date) -> Macros:
        """Return actual intake for a day (zero macros if nothing was logged)."""
        manual = self.log_store.get_manual_macros(user_id, day)
        if manual is not None:
            return manual

        meals = self.log_store.get_planned_meals(user_id, day)
        return self._sum_meals(m for m in meals if m.status is MealStatus.EATEN)

    def planned_macros(self, user_id: int, day: date) -> Macros:
        """Return macros for every planned meal on a day, eaten or not."""
        return self._sum_meals(self.log_store.get_planned_meals(user_id, day))

    def _sum_meals(self, meals: Iterable[PlannedMealEntry]) -> Macros:
        total = Macros()
        for meal in meals:
            per_serving = self.recipe_catalog.get_macros_per_serving(meal.recipe_id)
            if per_serving is None:
                logger.warning(
                    "Recipe %s not found for meal on %s; skipping",
                    meal.recipe_id,
                    meal.date,
                )
                continue
            total = total + per_serving.scaled(meal.servings)
        return total
