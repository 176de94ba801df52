"""Tests for EMA trend smoothing with missing day handling."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from mealcoach.tracking.ema import (
    DEFAULT_MIN_HISTORY,
    EMATrendSmoother,
    time_scaled_alpha,
    update_trend,
)
from mealcoach.tracking.models import WeightLogEntry


def entries(*pairs):
    return [WeightLogEntry(date=d, weight_kg=w) for d, w in pairs]


class TestTimeScaledAlpha:
    """Tests for time_scaled_alpha function."""

    def test_daily_unchanged(self) -> None:
        """Alpha should be unchanged for daily measurements."""
        assert time_scaled_alpha(0.1, 1) == pytest.approx(0.1)

    def test_three_day_gap(self) -> None:
        """After 3 days, alpha should be 1 - 0.9^3 ≈ 0.271."""
        expected = 1 - (1 - 0.1) ** 3
        assert time_scaled_alpha(0.1, 3) == pytest.approx(expected)

    def test_zero_days_treated_as_one(self) -> None:
        """Zero or negative days should be treated as 1."""
        assert time_scaled_alpha(0.1, 0) == pytest.approx(0.1)
        assert time_scaled_alpha(0.1, -1) == pytest.approx(0.1)

    def test_large_gap_approaches_one(self) -> None:
        """After 30 days: 1 - 0.9^30 ≈ 0.958."""
        assert time_scaled_alpha(0.1, 30) > 0.95


class TestUpdateTrend:
    """Tests for update_trend function."""

    def test_daily_update(self) -> None:
        result = update_trend(80.0, 79.0)
        assert result == pytest.approx(80.0 + 0.1 * (79.0 - 80.0))

    def test_multi_day_gap_gives_more_weight(self) -> None:
        """Longer gaps should move the trend further toward the reading."""
        daily = update_trend(80.0, 78.0, days_elapsed=1)
        three_day = update_trend(80.0, 78.0, days_elapsed=3)
        assert three_day < daily


class TestEMATrendSmoother:
    """Tests for the EMATrendSmoother collaborator."""

    def test_same_length_and_order(self) -> None:
        start = date(2024, 1, 1)
        raw = entries(*[(start + timedelta(days=i), 80.0 - i * 0.1) for i in range(10)])

        smoothed = EMATrendSmoother().smooth(raw)

        assert len(smoothed) == len(raw)
        assert [e.date for e in smoothed] == [e.date for e in raw]
        assert [e.weight_kg for e in smoothed] == [e.weight_kg for e in raw]

    def test_no_trend_before_min_history(self) -> None:
        """Only entries from the min_history-th onward carry a trend."""
        start = date(2024, 1, 1)
        raw = entries(*[(start + timedelta(days=i), 80.0) for i in range(6)])

        smoothed = EMATrendSmoother().smooth(raw)

        assert all(e.trend_weight_kg is None for e in smoothed[: DEFAULT_MIN_HISTORY - 1])
        assert all(e.trend_weight_kg == pytest.approx(80.0) for e in smoothed[DEFAULT_MIN_HISTORY - 1 :])

    def test_more_history_never_fewer_trends(self) -> None:
        """Adding entries only ever adds valid trend values."""
        start = date(2024, 1, 1)
        raw = entries(*[(start + timedelta(days=i), 80.0 + (i % 3) * 0.2) for i in range(12)])
        smoother = EMATrendSmoother()

        counts = [
            sum(e.trend_weight_kg is not None for e in smoother.smooth(raw[:n]))
            for n in range(len(raw) + 1)
        ]
        assert counts == sorted(counts)

    def test_gaps_use_time_scaled_alpha(self) -> None:
        raw = entries(
            (date(2025, 1, 1), 80.0),
            (date(2025, 1, 2), 79.5),  # 1-day gap
            (date(2025, 1, 5), 79.0),  # 3-day gap
        )
        smoothed = EMATrendSmoother(min_history=1).smooth(raw)

        assert smoothed[0].trend_weight_kg == 80.0
        second = 80.0 + 0.1 * (79.5 - 80.0)
        assert smoothed[1].trend_weight_kg == pytest.approx(second)
        third = second + time_scaled_alpha(0.1, 3) * (79.0 - second)
        assert smoothed[2].trend_weight_kg == pytest.approx(third)

    def test_input_not_mutated(self) -> None:
        raw = entries((date(2025, 1, 1), 80.0))
        EMATrendSmoother(min_history=1).smooth(raw)
        assert raw[0].trend_weight_kg is None

    def test_empty(self) -> None:
        assert EMATrendSmoother().smooth([]) == []

    @pytest.mark.parametrize("smoothing", [0, -0.1, 1.5])
    def test_invalid_smoothing(self, smoothing) -> None:
        with pytest.raises(ValueError, match="smoothing"):
            EMATrendSmoother(smoothing=smoothing)

    def test_invalid_min_history(self) -> None:
        with pytest.raises(ValueError, match="min_history"):
            EMATrendSmoother(min_history=0)
