"""
Risk and drawdown analysis for a betting history.

This module provides:
    1. Peak-to-trough drawdown of cumulative profit (series + maximum)
    2. Recovery time of the longest drawdown episode, in days
    3. Volatility of per-bet returns (population standard deviation)
    4. Empirical Value-at-Risk and Expected Shortfall at 95%
    5. Kelly stake percentage from realised win rate and winning odds
    6. A composite risk score

Drawdown Definition
===================

Cumulative profit starts at 0 and the running peak is initialised at 0.
At each bet (ascending by date):

.. math::

    DD_t = \\frac{peak_t - cum_t}{peak_t} \\times 100 \\quad (peak_t > 0)

and 0 while no positive peak exists yet. The peak never decreases so
drawdown is never negative. The chart series stores ``-DD_t``.

Kelly Ceiling
=============

The realised Kelly percentage is clamped to [0, 25] (``KELLY_CAP_PCT``).
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .classifier import ClassifiedBets, chronological, classify
from .financial import calculate_win_rate
from .records import BetRecord

logger = logging.getLogger(__name__)

KELLY_CAP_PCT = 25.0
VAR_CONFIDENCE = 0.95


@dataclass(frozen=True)
class DrawdownPoint:
    """One point of the drawdown chart (drawdown as a negative percentage)."""
    date: date
    drawdown: float
    peak: float = 0.0


@dataclass(frozen=True)
class DrawdownProfile:
    max_drawdown: float = 0.0
    current_drawdown: float = 0.0
    peak: float = 0.0
    series: List[DrawdownPoint] = field(default_factory=list)


@dataclass(frozen=True)
class RiskMetrics:
    """
    Container for betting risk metrics.

    Attributes:
        max_drawdown: Largest drawdown seen, in percent
        current_drawdown: Drawdown after the latest bet, in percent
        volatility: Population stdev of per-bet returns (percent points)
        risk_score: 0.4*DD + 0.4*vol + 0.2*(100 - win rate), in [0, 100]
        kelly_pct: Kelly stake percentage, clamped to [0, 25]
        value_at_risk: Empirical 5th percentile per-bet return
        expected_shortfall: Mean of returns below the VaR index
        recovery_time: Longest drawdown-to-recovery span, in days
        risk_adjusted_return: Sharpe ratio * 100
        drawdown_series: Chart points, ascending by date
    """
    max_drawdown: float = 0.0
    current_drawdown: float = 0.0
    volatility: float = 0.0
    risk_score: float = 0.0
    kelly_pct: float = 0.0
    value_at_risk: float = 0.0
    expected_shortfall: float = 0.0
    recovery_time: int = 0
    risk_adjusted_return: float = 0.0
    drawdown_series: List[DrawdownPoint] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"Risk Metrics:\n"
            f"  Max Drawdown: {self.max_drawdown:.1f}%\n"
            f"  Volatility: {self.volatility:.1f}\n"
            f"  Risk Score: {self.risk_score:.1f}\n"
            f"  Kelly: {self.kelly_pct:.1f}%\n"
            f"  VaR (95%): {self.value_at_risk:.1f}%\n"
            f"  Recovery: {self.recovery_time} days"
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["drawdown_series"] = [
            {"date": p.date.isoformat(), "drawdown": p.drawdown, "peak": p.peak}
            for p in self.drawdown_series
        ]
        return data


def per_bet_returns(resolved: Iterable[BetRecord]) -> np.ndarray:
    """Settlement / stake * 100 per bet (0 when the stake is 0)."""
    return np.array([b.per_bet_return for b in resolved], dtype=float)


def calculate_volatility(returns: np.ndarray) -> float:
    """Population standard deviation of returns (0 for no returns)."""
    if returns.size == 0:
        return 0.0
    return float(np.std(returns))


def calculate_drawdown_profile(resolved: Iterable[BetRecord]) -> DrawdownProfile:
    """
    Running peak-to-trough drawdown of cumulative profit.

    Args:
        resolved: Resolved bets; undated bets are skipped

    Returns:
        DrawdownProfile with the maximum, the latest value and the series
    """
    peak = 0.0
    cumulative = 0.0
    max_dd = 0.0
    dd = 0.0
    series = []

    for bet in chronological(resolved):
        cumulative += bet.settlement
        if cumulative > peak:
            peak = cumulative
        dd = (peak - cumulative) / peak * 100 if peak > 0 else 0.0
        max_dd = max(max_dd, dd)
        series.append(DrawdownPoint(date=bet.bet_date, drawdown=-dd, peak=peak))

    return DrawdownProfile(max_drawdown=max_dd, current_drawdown=dd, peak=peak, series=series)


def calculate_recovery_time(resolved: Iterable[BetRecord]) -> int:
    """
    Longest span in days from the start of a drawdown to its recovery.

    An episode starts at the first bet leaving cumulative profit below
    the peak and ends at the bet bringing it back to or above the peak.
    Unrecovered episodes do not count.
    """
    peak = 0.0
    cumulative = 0.0
    episode_start: Optional[date] = None
    longest = 0

    for bet in chronological(resolved):
        cumulative += bet.settlement
        if cumulative < peak:
            if episode_start is None:
                episode_start = bet.bet_date
        else:
            if episode_start is not None:
                longest = max(longest, (bet.bet_date - episode_start).days)
                episode_start = None
            peak = cumulative

    return longest


def value_at_risk(returns: np.ndarray, confidence: float = VAR_CONFIDENCE) -> Tuple[float, float]:
    """
    Empirical Value-at-Risk and Expected Shortfall.

    With returns sorted ascending and ``i = floor(n * (1 - confidence))``,
    VaR is the return at ``i`` and ES is the mean of the returns before
    ``i`` (0 when there are none).

    Returns:
        Tuple of (value_at_risk, expected_shortfall)
    """
    if returns.size == 0:
        return 0.0, 0.0
    ordered = np.sort(returns)
    index = int(math.floor(ordered.size * round(1 - confidence, 10)))
    index = min(index, ordered.size - 1)
    var = float(ordered[index])
    es = float(ordered[:index].mean()) if index > 0 else 0.0
    return var, es


def kelly_percentage(classified: ClassifiedBets, cap: float = KELLY_CAP_PCT) -> float:
    """
    Kelly stake percentage from the realised history.

    .. math::

        K = \\frac{p b - (1 - p)}{b} \\times 100

    with p = wins / resolved and b = mean winning odds - 1, clamped to
    ``[0, cap]``. Returns 0 when b <= 0.

    Example:
        >>> round(kelly_from_inputs(0.55, 1.0), 2)
        10.0
    """
    resolved = len(classified.resolved)
    p = classified.win_count / resolved if resolved > 0 else 0.0
    winning_odds = [b.odds for b in classified.won if b.odds > 0]
    b = float(np.mean(winning_odds)) - 1 if winning_odds else 0.0
    return kelly_from_inputs(p, b, cap)


def kelly_from_inputs(p: float, b: float, cap: float = KELLY_CAP_PCT) -> float:
    """Clamped Kelly percentage for win probability ``p`` and net odds ``b``."""
    if b <= 0:
        return 0.0
    kelly = (p * b - (1 - p)) / b * 100
    return max(0.0, min(cap, kelly))


def calculate_risk_score(max_drawdown: float, volatility: float, win_rate: float) -> float:
    """Composite risk score in [0, 100]; lower is better."""
    score = 0.4 * max_drawdown + 0.4 * volatility + 0.2 * (100 - win_rate)
    return max(0.0, min(100.0, score))


def sharpe_from_returns(returns: np.ndarray) -> float:
    """Mean / population stdev of returns, 0 when the stdev is 0."""
    stdev = calculate_volatility(returns)
    if stdev == 0:
        return 0.0
    return float(returns.mean()) / stdev


def calculate_risk_metrics(
    bets: Sequence[BetRecord],
    kelly_cap: float = KELLY_CAP_PCT
) -> RiskMetrics:
    """
    Calculate risk metrics from a bet selection.

    Only resolved bets contribute. Never raises on empty input.
    """
    classified = classify(bets)
    resolved = classified.resolved

    profile = calculate_drawdown_profile(resolved)
    returns = per_bet_returns(resolved)
    volatility = calculate_volatility(returns)
    var, es = value_at_risk(returns)
    win_rate = calculate_win_rate(classified)

    metrics = RiskMetrics(
        max_drawdown=profile.max_drawdown,
        current_drawdown=profile.current_drawdown,
        volatility=volatility,
        risk_score=calculate_risk_score(profile.max_drawdown, volatility, win_rate),
        kelly_pct=kelly_percentage(classified, kelly_cap),
        value_at_risk=var,
        expected_shortfall=es,
        recovery_time=calculate_recovery_time(resolved),
        risk_adjusted_return=sharpe_from_returns(returns) * 100,
        drawdown_series=profile.series,
    )
    logger.debug(f"Risk metrics over {len(resolved)} resolved bets: score={metrics.risk_score:.1f}")
    return metrics
