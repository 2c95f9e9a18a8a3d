"""
Unit tests for calendar aggregation.
"""

from datetime import date

import pytest

from betledger.analytics.records import NO_DATA, BetRecord
from betledger.analytics.temporal import (
    calculate_temporal_metrics,
    consecutive_active_days,
    monthly_performance,
    weekday_performance,
)


@pytest.mark.unit
class TestTemporalMetrics:
    """Tests for weekday / month grouping on the sample history."""

    def test_best_day(self, sample_history):
        metrics = calculate_temporal_metrics(sample_history)

        assert metrics.best_day.name == "Wednesday"
        assert metrics.best_day.weekday == 3
        assert metrics.best_day.profit == 200.0

    def test_months(self, sample_history):
        months = calculate_temporal_metrics(sample_history).months

        assert [m.month for m in months] == ["2024-01", "2024-02"]
        assert months[0].profit == 200.0
        assert months[0].staked == 300.0
        assert months[0].roi == pytest.approx(200 / 3)
        assert months[1].roi == pytest.approx(-100 / 3)

    def test_best_month(self, sample_history):
        best = calculate_temporal_metrics(sample_history).best_month
        assert best.month == "2024-01"
        assert best.roi == pytest.approx(200 / 3)

    def test_best_hour_is_unavailable(self, sample_history):
        metrics = calculate_temporal_metrics(sample_history)

        assert metrics.best_hour is None
        assert "best_hour" in metrics.unavailable
        assert metrics.to_dict()["best_hour"] is None

    def test_heatmap(self, sample_history):
        heatmap = calculate_temporal_metrics(sample_history).monthly_heatmap

        assert heatmap[0] == {"year": 2024, "month": 1, "roi": pytest.approx(200 / 3), "profit": 200.0}
        assert heatmap[1]["month"] == 2

    def test_empty(self):
        metrics = calculate_temporal_metrics([])

        assert metrics.best_day.name == NO_DATA
        assert metrics.best_day.weekday is None
        assert metrics.best_month.month == NO_DATA
        assert metrics.consecutive_days == 0
        assert metrics.months == []

    def test_all_losing_days_report_no_best_day(self, settled):
        bets = [
            settled("Lost", bet_date=date(2024, 1, 1)),
            settled("Lost", staked=10, bet_date=date(2024, 1, 2)),
        ]
        best = calculate_temporal_metrics(bets).best_day

        assert best.name == NO_DATA
        assert best.weekday is None
        assert best.profit == 0.0


@pytest.mark.unit
class TestCalendarGroups:
    """Tests for the grouping helpers."""

    def test_malformed_dates_are_excluded(self, settled):
        bets = [settled("Won"), settled("Won", bet_date="not-a-date")]

        assert sum(w.bets for w in weekday_performance(bets)) == 1
        assert sum(m.bets for m in monthly_performance(bets)) == 1

    def test_months_without_stake_are_not_best(self, settled):
        bets = [
            settled("Won", staked=0.0, odds=2.0, bet_date=date(2024, 1, 5)),
            settled("Lost", bet_date=date(2024, 2, 5)),
        ]
        assert calculate_temporal_metrics(bets).best_month.month == "2024-02"


@pytest.mark.unit
class TestConsecutiveDays:
    """Tests for the active-day run."""

    def _bets(self, *days):
        return [BetRecord(id=i, bet_date=d) for i, d in enumerate(days)]

    def test_run_stops_at_first_gap(self):
        bets = self._bets(date(2024, 1, 5), date(2024, 1, 4), date(2024, 1, 2))
        assert consecutive_active_days(bets) == 2

    def test_duplicates_count_once(self):
        bets = self._bets(date(2024, 1, 5), date(2024, 1, 5), date(2024, 1, 4))
        assert consecutive_active_days(bets) == 2

    def test_sample_history(self, sample_history):
        assert consecutive_active_days(sample_history) == 6

    def test_single_day(self):
        assert consecutive_active_days(self._bets(date(2024, 1, 5))) == 1
