"""
Performance ratios.

Metrics Categories:
    1. Profitability - yield, monthly ROI, consistency
    2. Risk-Adjusted - Sharpe, Sortino, Calmar
    3. Hit quality - win/loss ratio, precision / naive recall / F1
    4. Volume - bets per month, ideal monthly volume

Per-bet returns and the maximum drawdown come from ``risk`` so both
modules agree on the same figures. Ratios are per bet, not annualized.

Note on recall:
    ``naive_recall`` is defined equal to precision. It is not a true
    classifier recall and is kept under that name on purpose.
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Optional, Sequence

import numpy as np

from .classifier import classify, month_key
from .financial import calculate_roi, net_profit, total_staked
from .odds import (
    DEFAULT_ODDS_RANGES, MIN_BUCKET_SAMPLES, SweetSpot, bucket_bets, select_sweet_spot
)
from .records import BetRecord, BetStatus, NO_DATA
from .risk import calculate_drawdown_profile, per_bet_returns, sharpe_from_returns
from .temporal import MonthPerformance, monthly_performance

HIGH_ODDS_THRESHOLD = 2.0


@dataclass(frozen=True)
class MonthRoi:
    month: str = NO_DATA
    roi: float = 0.0


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Attributes:
        yield_pct: Net profit / total staked * 100
        monthly_consistency: % of active months with positive profit
        sharpe_ratio: mean(returns) / stdev(returns)
        sortino_ratio: mean(returns) / downside deviation
        calmar_ratio: yield / max drawdown
        win_loss_ratio: wins / losses (wins when there are no losses)
        precision: wins / (wins + losses) * 100
        naive_recall: Equal to precision
        f1_score: Harmonic mean of precision and naive recall
    """
    yield_pct: float = 0.0
    monthly_consistency: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    win_loss_ratio: float = 0.0
    precision: float = 0.0
    naive_recall: float = 0.0
    f1_score: float = 0.0
    strike_rate_high_odds: float = 0.0
    bets_per_month: float = 0.0
    best_month: MonthRoi = field(default_factory=MonthRoi)
    worst_month: MonthRoi = field(default_factory=MonthRoi)
    current_month_roi: float = 0.0
    optimal_odds: SweetSpot = field(default_factory=SweetSpot)
    ideal_volume: float = 0.0
    projected_roi: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)


def calculate_sortino_ratio(returns: np.ndarray) -> float:
    """
    Per-bet Sortino ratio.

    The downside deviation is the root mean square distance of the
    negative returns from the overall mean. Returns 0 when no return is
    negative.
    """
    if returns.size == 0:
        return 0.0
    mean = float(returns.mean())
    negative = returns[returns < 0]
    if negative.size == 0:
        return 0.0
    downside = float(np.sqrt(np.mean((negative - mean) ** 2)))
    if downside == 0:
        return 0.0
    return mean / downside


def calculate_calmar_ratio(yield_pct: float, max_drawdown: float) -> float:
    return yield_pct / max_drawdown if max_drawdown > 0 else 0.0


def calculate_win_loss_ratio(wins: int, losses: int) -> float:
    return wins / losses if losses > 0 else float(wins)


def precision_recall_f1(wins: int, losses: int):
    """
    Simplified precision / recall / F1 over won and lost bets.

    Example:
        >>> precision_recall_f1(3, 1)
        (75.0, 75.0, 75.0)
    """
    precision = wins / (wins + losses) * 100 if (wins + losses) > 0 else 0.0
    recall = precision
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0
    return precision, recall, f1


def monthly_consistency(months: Sequence[MonthPerformance]) -> float:
    """Share of active months that closed with positive profit."""
    if not months:
        return 0.0
    return sum(1 for m in months if m.profit > 0) / len(months) * 100


def _extreme_month(months: Sequence[MonthPerformance], best: bool) -> MonthRoi:
    if not months:
        return MonthRoi()
    top = months[0]
    for month in months[1:]:
        if (month.roi > top.roi) if best else (month.roi < top.roi):
            top = month
    return MonthRoi(month=top.month, roi=top.roi)


def ideal_monthly_volume(months: Sequence[MonthPerformance], staked: float) -> float:
    """Mean stake of profitable months, else mean stake per active month."""
    profitable = [m for m in months if m.profit > 0]
    if profitable:
        return sum(m.staked for m in profitable) / len(profitable)
    return staked / (len(months) or 1)


def calculate_performance_metrics(
    bets: Sequence[BetRecord],
    reference_date: Optional[date] = None,
    odds_ranges=DEFAULT_ODDS_RANGES,
    min_samples: int = MIN_BUCKET_SAMPLES
) -> PerformanceMetrics:
    """
    Calculate performance ratios from a bet selection.

    Args:
        bets: Selected bets (pending bets count towards stake only)
        reference_date: Date whose month is the "current month"
        odds_ranges: Odds buckets for the optimal-odds lookup
        min_samples: Minimum bucket size for the optimal-odds lookup

    Returns:
        PerformanceMetrics
    """
    reference_date = reference_date or date.today()
    classified = classify(bets)
    resolved = classified.resolved

    staked = total_staked(classified.bets)
    yield_pct = calculate_roi(net_profit(resolved), staked)

    months = monthly_performance(resolved)
    current = next((m for m in months if m.month == month_key(reference_date)), None)

    returns = per_bet_returns(resolved)
    max_dd = calculate_drawdown_profile(resolved).max_drawdown

    wins, losses = classified.win_count, classified.loss_count
    precision, recall, f1 = precision_recall_f1(wins, losses)

    high_odds = [b for b in resolved if b.odds > HIGH_ODDS_THRESHOLD]
    high_odds_wins = sum(1 for b in high_odds if b.status is BetStatus.WON)

    optimal = select_sweet_spot(bucket_bets(resolved, odds_ranges, min_samples))

    return PerformanceMetrics(
        yield_pct=yield_pct,
        monthly_consistency=monthly_consistency(months),
        sharpe_ratio=sharpe_from_returns(returns),
        sortino_ratio=calculate_sortino_ratio(returns),
        calmar_ratio=calculate_calmar_ratio(yield_pct, max_dd),
        win_loss_ratio=calculate_win_loss_ratio(wins, losses),
        precision=precision,
        naive_recall=recall,
        f1_score=f1,
        strike_rate_high_odds=high_odds_wins / len(high_odds) * 100 if high_odds else 0.0,
        bets_per_month=classified.total / len(months) if months else 0.0,
        best_month=_extreme_month(months, best=True),
        worst_month=_extreme_month(months, best=False),
        current_month_roi=current.roi if current else 0.0,
        optimal_odds=optimal,
        ideal_volume=ideal_monthly_volume(months, staked),
        projected_roi=optimal.roi,
    )
