"""
Core financial aggregation for the dashboard.

Profitability:
    - total staked (pending + resolved), net profit (resolved only), ROI
    - staked variance against the preceding window of equal length
Win/Loss:
    - win rate with tiering, largest single win
Activity:
    - active days, bets per day, odds range
    - streaks (see ``streaks``)

All divisions are guarded; an empty collection yields zeros.
"""

from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .classifier import ClassifiedBets, classify
from .records import BetRecord, FilterContext
from .streaks import calculate_streaks

ROI_EXCELLENT = "Excellent"
ROI_POSITIVE = "Positive"
ROI_NEGATIVE = "Negative"

WIN_RATE_EXCELLENT = "Excellent"
WIN_RATE_GOOD = "Good"
WIN_RATE_BELOW = "Below"

DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True)
class DashboardMetrics:
    """
    Headline KPIs for a bet selection.

    Attributes:
        total_staked: Sum of stakes over every selected bet
        staked_variance: % change of total staked vs the previous window
        net_profit: Sum of settlements over resolved bets
        roi: net_profit / total_staked * 100
        roi_status: Excellent (>= 5), Positive (>= 0) or Negative
        win_rate: Won / resolved * 100
        win_rate_status: Excellent (>= 60), Good (>= 50) or Below
        largest_win: Largest positive settlement
        largest_win_bet_id: Id of that bet, None when there is none
        current_streak: Signed trailing win/loss streak
    """
    total_staked: float = 0.0
    staked_variance: float = 0.0
    net_profit: float = 0.0
    roi: float = 0.0
    roi_status: str = ROI_POSITIVE
    win_rate: float = 0.0
    win_rate_status: str = WIN_RATE_BELOW
    largest_win: float = 0.0
    largest_win_bet_id: Optional[int] = None
    total_bets: int = 0
    resolved_bets: int = 0
    pending_bets: int = 0
    active_days: int = 0
    bets_per_day: float = 0.0
    average_odds: float = 0.0
    highest_odds: float = 0.0
    lowest_odds: float = 0.0
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    current_streak: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)


def total_staked(bets: Iterable[BetRecord]) -> float:
    return float(sum(b.staked for b in bets))


def net_profit(resolved: Iterable[BetRecord]) -> float:
    return float(sum(b.settlement for b in resolved))


def calculate_roi(profit: float, staked: float) -> float:
    """
    ROI as a percentage.

    Example:
        >>> calculate_roi(50.0, 200.0)
        25.0
        >>> calculate_roi(10.0, 0.0)
        0.0
    """
    return profit / staked * 100 if staked > 0 else 0.0


def roi_status(roi: float) -> str:
    if roi >= 5:
        return ROI_EXCELLENT
    if roi >= 0:
        return ROI_POSITIVE
    return ROI_NEGATIVE


def calculate_win_rate(classified: ClassifiedBets) -> float:
    resolved = len(classified.resolved)
    return classified.win_count / resolved * 100 if resolved > 0 else 0.0


def win_rate_status(win_rate: float) -> str:
    if win_rate >= 60:
        return WIN_RATE_EXCELLENT
    if win_rate >= 50:
        return WIN_RATE_GOOD
    return WIN_RATE_BELOW


def comparison_windows(
    bets: Sequence[BetRecord],
    filters: Optional[FilterContext] = None,
    reference_date: Optional[date] = None,
    default_days: int = DEFAULT_WINDOW_DAYS
) -> Tuple[Tuple[date, date], Tuple[date, date]]:
    """
    Current and preceding date windows, both inclusive and equal length.

    The current window is the filter's date range where given, otherwise
    the span of the bets' dates. With no dates at all it is the
    ``default_days`` ending at ``reference_date``.
    """
    filters = filters or FilterContext()
    reference_date = reference_date or date.today()
    dates = [b.bet_date for b in bets if b.bet_date is not None]

    if dates:
        start = filters.start_date or min(dates)
        end = filters.end_date or max(dates)
    else:
        end = filters.end_date or reference_date
        start = filters.start_date or end - timedelta(days=default_days - 1)
    if start > end:
        start, end = end, start

    span = (end - start).days + 1
    previous_end = start - timedelta(days=1)
    previous_start = start - timedelta(days=span)
    return (start, end), (previous_start, previous_end)


def staked_variance(
    bets: Sequence[BetRecord],
    history: Optional[Sequence[BetRecord]] = None,
    filters: Optional[FilterContext] = None,
    reference_date: Optional[date] = None,
    default_days: int = DEFAULT_WINDOW_DAYS
) -> float:
    """
    Percentage change of total staked against the preceding window.

    ``history`` is the collection without the date filter; the previous
    window is looked up there after applying the remaining filters.
    Returns 0 when the previous window has nothing staked.
    """
    _, (previous_start, previous_end) = comparison_windows(
        bets, filters, reference_date, default_days
    )
    scope = (filters or FilterContext()).without_dates().apply(
        history if history is not None else bets
    )
    previous = total_staked(
        b for b in scope
        if b.bet_date is not None and previous_start <= b.bet_date <= previous_end
    )
    current = total_staked(bets)
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def largest_win(resolved: Iterable[BetRecord]) -> Tuple[float, Optional[int]]:
    """Largest positive settlement and its bet id (first one on ties)."""
    best_value, best_id = 0.0, None
    for bet in resolved:
        if bet.settlement > best_value:
            best_value, best_id = bet.settlement, bet.id
    return best_value, best_id


def calculate_dashboard_metrics(
    bets: Sequence[BetRecord],
    history: Optional[Sequence[BetRecord]] = None,
    filters: Optional[FilterContext] = None,
    reference_date: Optional[date] = None,
    default_days: int = DEFAULT_WINDOW_DAYS
) -> DashboardMetrics:
    """
    Calculate dashboard KPIs for an already-filtered bet selection.

    Args:
        bets: Selected bets (pending and resolved)
        history: Bets without the date filter, for the variance window
        filters: Filter context used to select ``bets``
        reference_date: "Today" for an empty selection's window
        default_days: Window length when the selection has no dates

    Returns:
        DashboardMetrics
    """
    bets = list(bets)
    classified = classify(bets)

    staked = total_staked(bets)
    profit = net_profit(classified.resolved)
    roi = calculate_roi(profit, staked)
    win_rate = calculate_win_rate(classified)
    win_value, win_bet_id = largest_win(classified.resolved)

    active_days = len({b.bet_date for b in bets if b.bet_date is not None})
    odds = np.array([b.odds for b in bets if b.odds > 0], dtype=float)
    streaks = calculate_streaks(classified.resolved)

    return DashboardMetrics(
        total_staked=staked,
        staked_variance=staked_variance(bets, history, filters, reference_date, default_days),
        net_profit=profit,
        roi=roi,
        roi_status=roi_status(roi),
        win_rate=win_rate,
        win_rate_status=win_rate_status(win_rate),
        largest_win=win_value,
        largest_win_bet_id=win_bet_id,
        total_bets=len(bets),
        resolved_bets=len(classified.resolved),
        pending_bets=len(classified.pending),
        active_days=active_days,
        bets_per_day=len(bets) / active_days if active_days > 0 else 0.0,
        average_odds=float(odds.mean()) if odds.size else 0.0,
        highest_odds=float(odds.max()) if odds.size else 0.0,
        lowest_odds=float(odds.min()) if odds.size else 0.0,
        longest_win_streak=streaks.longest_win_streak,
        longest_loss_streak=streaks.longest_loss_streak,
        current_streak=streaks.current_streak,
    )
