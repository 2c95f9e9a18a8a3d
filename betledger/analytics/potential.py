"""
Potential return of open (Pending) bets.

For one bet:

    base   = staked * max(odds - 1, 0)
    bonus  = bonus  * max(odds - 1, 0)
    boost  = boost * (base + bonus)   if 0 < boost <= 1
           = boost                    if boost > 1
           = 0                        otherwise
    payout = staked + base + bonus + boost

Example:
    >>> bet = BetRecord(id=1, staked=50.0, odds=1.5)
    >>> potential_payout(bet)
    75.0
"""

from dataclasses import dataclass, asdict
from typing import Iterable, Sequence

from .classifier import classify
from .financial import calculate_roi
from .records import BetRecord


@dataclass(frozen=True)
class PotentialReturn:
    """
    Aggregate projection over pending bets.

    Attributes:
        pending_bets: Number of pending bets
        exposure: Sum of pending stakes
        payout: Sum of potential payouts
        profit: payout - exposure
        roi: profit / exposure * 100
    """
    pending_bets: int = 0
    exposure: float = 0.0
    payout: float = 0.0
    profit: float = 0.0
    roi: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def boost_profit(boost: float, base: float, bonus: float) -> float:
    """Boost value; fractions in (0, 1] scale profit, larger values are absolute."""
    if 0 < boost <= 1:
        return boost * (base + bonus)
    if boost > 1:
        return boost
    return 0.0


def potential_payout(bet: BetRecord) -> float:
    """Gross payout of ``bet`` if it wins."""
    net_odds = max(bet.odds - 1, 0.0)
    base = bet.staked * net_odds
    bonus = bet.bonus * net_odds
    return bet.staked + base + bonus + boost_profit(bet.boost, base, bonus)


def winning_settlement(bet: BetRecord) -> float:
    """Net settlement recorded when ``bet`` is settled as Won."""
    return potential_payout(bet) - bet.staked


def estimate_potential_return(pending: Iterable[BetRecord]) -> PotentialReturn:
    pending = list(pending)
    exposure = float(sum(b.staked for b in pending))
    payout = float(sum(potential_payout(b) for b in pending))
    profit = payout - exposure
    return PotentialReturn(
        pending_bets=len(pending),
        exposure=exposure,
        payout=payout,
        profit=profit,
        roi=calculate_roi(profit, exposure),
    )


def calculate_potential_return(bets: Sequence[BetRecord]) -> PotentialReturn:
    """Project the return of the pending bets in a selection."""
    return estimate_potential_return(classify(bets).pending)
