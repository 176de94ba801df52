"""Exponentially smoothed trend weight.

Each day's trend moves a fraction of the way toward the scale reading:

    T_n = T_{n-1} + α × (W_n - T_{n-1})

With α = 0.1 this behaves like a low-pass filter with a ~10-day time
constant, removing day-to-day water and gut-content noise.

Irregular logging is handled by scaling α with the gap length:

    α_t = 1 - (1 - α)^t

so a reading after a 3-day gap pulls the trend as far as three daily
readings would have.

The trend is only reported once enough leading entries exist for it to
mean something; earlier entries come back with trend_weight_kg=None.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

from mealcoach.tracking.models import WeightLogEntry

DEFAULT_SMOOTHING = 0.1

# Entries needed before a trend value is emitted
DEFAULT_MIN_HISTORY = 4


def time_scaled_alpha(base_alpha: float, days_elapsed: int) -> float:
    """
    Adjust the smoothing factor for the days since the previous reading.

    Example:
        >>> time_scaled_alpha(0.1, 1)
        0.1
        >>> round(time_scaled_alpha(0.1, 3), 3)
        0.271
    """
    if days_elapsed <= 0:
        days_elapsed = 1
    return 1 - (1 - base_alpha) ** days_elapsed


def update_trend(
    prev_trend: float,
    weight_kg: float,
    smoothing: float = DEFAULT_SMOOTHING,
    days_elapsed: int = 1,
) -> float:
    """Return the next trend value given the previous trend and a new reading."""
    alpha = time_scaled_alpha(smoothing, days_elapsed)
    return prev_trend + alpha * (weight_kg - prev_trend)


class EMATrendSmoother:
    """
    Trend smoother backed by a gap-aware exponential moving average.

    Attributes:
        smoothing: Base smoothing factor (higher = more responsive, noisier)
        min_history: Number of leading entries before trends are emitted
    """

    def __init__(
        self,
        smoothing: float = DEFAULT_SMOOTHING,
        min_history: int = DEFAULT_MIN_HISTORY,
    ):
        if not 0 < smoothing <= 1:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        if min_history < 1:
            raise ValueError(f"min_history must be at least 1, got {min_history}")
        self.smoothing = smoothing
        self.min_history = min_history

    def smooth(self, entries: list[WeightLogEntry]) -> list[WeightLogEntry]:
        """
        Compute trend values for a weight history.

        Args:
            entries: Weight entries in chronological order

        Returns:
            New entries in the same order with trend_weight_kg set from the
            min_history-th entry onward (None before that)
        """
        result: list[WeightLogEntry] = []
        trend: Optional[float] = None
        prev_date: Optional[date] = None

        for index, entry in enumerate(entries):
            if trend is None or prev_date is None:
                trend = entry.weight_kg
            else:
                days_elapsed = (entry.date - prev_date).days
                trend = update_trend(trend, entry.weight_kg, self.smoothing, days_elapsed)
            prev_date = entry.date

            emitted = trend if index + 1 >= self.min_history else None
            result.append(replace(entry, trend_weight_kg=emitted))

        return result
