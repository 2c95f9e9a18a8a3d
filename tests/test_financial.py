"""
Unit tests for outcome classification, dashboard KPIs and streaks.
"""

from datetime import date, timedelta

import pytest

from betledger.analytics.classifier import chronological, classify, month_key
from betledger.analytics.financial import (
    calculate_dashboard_metrics,
    calculate_roi,
    comparison_windows,
    largest_win,
    roi_status,
    staked_variance,
    win_rate_status,
)
from betledger.analytics.records import BetRecord, BetStatus, FilterContext
from betledger.analytics.streaks import calculate_streaks


@pytest.mark.unit
class TestClassifier:
    """Tests for the outcome classifier."""

    def test_partitions(self, sample_history):
        classified = classify(sample_history)

        assert classified.total == 6
        assert len(classified.resolved) == 5
        assert len(classified.pending) == 1
        assert classified.win_count == 2
        assert classified.loss_count == 2
        assert len(classified.void) == 1
        assert len(classified.cashed_out) == 0

    def test_counts_add_up(self, sample_history):
        counts = classify(sample_history).counts()
        assert counts["won"] + counts["lost"] + counts["void"] + counts["cashed_out"] == counts["resolved"]
        assert counts["resolved"] + counts["pending"] == counts["total"]

    def test_empty(self):
        classified = classify([])
        assert classified.total == 0
        assert classified.resolved == []

    def test_chronological_is_stable_and_drops_undated(self):
        bets = [
            BetRecord(id=1, bet_date=date(2024, 1, 2)),
            BetRecord(id=2, bet_date=None),
            BetRecord(id=3, bet_date=date(2024, 1, 1)),
            BetRecord(id=4, bet_date=date(2024, 1, 2)),
        ]
        assert [b.id for b in chronological(bets)] == [3, 1, 4]

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"


@pytest.mark.unit
class TestFinancialAggregation:
    """Tests for totals, ROI and tiering."""

    def test_win_and_loss_break_even(self, settled):
        bets = [settled("Won"), settled("Lost")]

        metrics = calculate_dashboard_metrics(bets, reference_date=date(2024, 3, 31))

        assert metrics.total_staked == 200.0
        assert metrics.net_profit == 0.0
        assert metrics.roi == 0.0
        assert metrics.win_rate == 50.0
        assert metrics.win_rate_status == "Good"

    def test_all_cancelled(self, settled):
        bets = [settled("Cancelled") for _ in range(3)]

        metrics = calculate_dashboard_metrics(bets, reference_date=date(2024, 3, 31))

        assert metrics.net_profit == 0.0
        assert metrics.roi == 0.0
        assert metrics.win_rate == 0.0

    def test_empty_selection(self):
        metrics = calculate_dashboard_metrics([], reference_date=date(2024, 3, 31))

        assert metrics.total_staked == 0.0
        assert metrics.roi == 0.0
        assert metrics.win_rate == 0.0
        assert metrics.bets_per_day == 0.0
        assert metrics.largest_win_bet_id is None

    def test_pending_counts_in_stake_not_profit(self, sample_history):
        metrics = calculate_dashboard_metrics(sample_history, reference_date=date(2024, 3, 31))

        assert metrics.total_staked == 500.0
        assert metrics.net_profit == 150.0
        assert metrics.roi == pytest.approx(30.0)
        assert metrics.roi_status == "Excellent"
        assert metrics.win_rate == pytest.approx(40.0)
        assert metrics.win_rate_status == "Below"
        assert metrics.total_bets == 6
        assert metrics.resolved_bets == 5
        assert metrics.pending_bets == 1

    def test_activity_and_odds(self, sample_history):
        metrics = calculate_dashboard_metrics(sample_history, reference_date=date(2024, 3, 31))

        assert metrics.active_days == 6
        assert metrics.bets_per_day == 1.0
        assert metrics.average_odds == pytest.approx(12.5 / 6)
        assert metrics.highest_odds == 3.0
        assert metrics.lowest_odds == 1.5

    def test_largest_win(self, sample_history):
        value, bet_id = largest_win(classify(sample_history).resolved)
        assert value == 200.0
        assert bet_id == 3

    def test_largest_win_without_wins(self, settled):
        assert largest_win([settled("Lost")]) == (0.0, None)

    @pytest.mark.parametrize("roi,expected", [
        (5.0, "Excellent"), (4.99, "Positive"), (0.0, "Positive"), (-0.01, "Negative"),
    ])
    def test_roi_status(self, roi, expected):
        assert roi_status(roi) == expected

    @pytest.mark.parametrize("rate,expected", [
        (60.0, "Excellent"), (50.0, "Good"), (49.9, "Below"),
    ])
    def test_win_rate_status(self, rate, expected):
        assert win_rate_status(rate) == expected

    def test_roi_guard(self):
        assert calculate_roi(50.0, 200.0) == 25.0
        assert calculate_roi(10.0, 0.0) == 0.0


@pytest.mark.unit
class TestStakedVariance:
    """Tests for the period-over-period comparison."""

    def test_windows_from_filter(self):
        filters = FilterContext(start_date=date(2024, 2, 1), end_date=date(2024, 2, 10))

        current, previous = comparison_windows([], filters)

        assert current == (date(2024, 2, 1), date(2024, 2, 10))
        assert previous == (date(2024, 1, 22), date(2024, 1, 31))

    def test_windows_from_bet_span(self, make_bet):
        bets = [make_bet(bet_date=date(2024, 2, 1)), make_bet(bet_date=date(2024, 2, 3))]

        _, previous = comparison_windows(bets)

        assert previous == (date(2024, 1, 29), date(2024, 1, 31))

    def test_windows_default_when_empty(self):
        current, previous = comparison_windows([], reference_date=date(2024, 3, 30))

        assert current == (date(2024, 3, 1), date(2024, 3, 30))
        assert previous == (date(2024, 1, 31), date(2024, 2, 29))

    def test_variance_against_previous_window(self, make_bet):
        history = [
            make_bet(staked=500, bet_date=date(2024, 1, 15)),
            make_bet(staked=100, bet_date=date(2024, 1, 25)),
            make_bet(staked=150, bet_date=date(2024, 2, 5)),
        ]
        filters = FilterContext(start_date=date(2024, 2, 1), end_date=date(2024, 2, 10))
        selected = filters.apply(history)

        assert staked_variance(selected, history, filters) == pytest.approx(50.0)

    def test_variance_respects_non_date_filters(self, make_bet):
        history = [
            make_bet(staked=100, bet_date=date(2024, 1, 25), bookmaker="Betano"),
            make_bet(staked=200, bet_date=date(2024, 1, 26), bookmaker="Bet365"),
            make_bet(staked=300, bet_date=date(2024, 2, 5), bookmaker="Bet365"),
        ]
        filters = FilterContext(
            start_date=date(2024, 2, 1), end_date=date(2024, 2, 10), bookmaker="Bet365"
        )

        assert staked_variance(filters.apply(history), history, filters) == pytest.approx(50.0)

    def test_variance_zero_without_previous_stake(self, make_bet):
        bets = [make_bet(bet_date=date(2024, 2, 1))]
        assert staked_variance(bets) == 0.0

    def test_empty_current_window(self, make_bet):
        reference = date(2024, 3, 30)
        history = [make_bet(staked=100, bet_date=reference - timedelta(days=40))]

        variance = staked_variance([], history, reference_date=reference)

        assert variance == pytest.approx(-100.0)


@pytest.mark.unit
class TestStreaks:
    """Tests for the streak tracker."""

    def _bets(self, statuses):
        start = date(2024, 1, 1)
        return [
            BetRecord(id=i, status=BetStatus.parse(s), bet_date=start + timedelta(days=i))
            for i, s in enumerate(statuses)
        ]

    def test_cancelled_is_a_no_op(self):
        streaks = calculate_streaks(self._bets(["Won", "Cancelled", "Won"]))
        assert streaks.longest_win_streak == 2
        assert streaks.current_streak == 2

    def test_loss_streak(self):
        streaks = calculate_streaks(self._bets(["Won", "Lost", "Lost"]))
        assert streaks.longest_win_streak == 1
        assert streaks.longest_loss_streak == 2
        assert streaks.current_streak == -2

    def test_cashed_out_counts_as_win(self):
        streaks = calculate_streaks(self._bets(["Won", "CashedOut", "Lost", "Won"]))
        assert streaks.longest_win_streak == 2
        assert streaks.longest_loss_streak == 1
        assert streaks.current_streak == 1

    def test_same_day_keeps_input_order(self):
        day = date(2024, 1, 1)
        bets = [
            BetRecord(id=1, status=BetStatus.LOST, bet_date=day),
            BetRecord(id=2, status=BetStatus.WON, bet_date=day),
        ]
        assert calculate_streaks(bets).current_streak == 1

    def test_empty(self):
        streaks = calculate_streaks([])
        assert streaks.longest_win_streak == 0
        assert streaks.longest_loss_streak == 0
        assert streaks.current_streak == 0
