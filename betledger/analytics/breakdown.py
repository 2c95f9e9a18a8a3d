"""
Distributions and chart series.

Status distribution, profit grouped by bookmaker, bet type and category
tag, the daily profit series with its running total, and average odds
per day. Grouped profit is over resolved bets only.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, Iterable, List, Sequence

import pandas as pd

from .classifier import chronological, classify
from .records import BetRecord, BetStatus

UNKNOWN_GROUP = "Unknown"
UNTAGGED_GROUP = "Untagged"


@dataclass(frozen=True)
class GroupProfit:
    name: str
    bets: int
    profit: float


@dataclass(frozen=True)
class DailyProfit:
    date: str
    profit: float
    accumulated: float


@dataclass(frozen=True)
class DailyOdds:
    date: str
    average_odds: float


@dataclass(frozen=True)
class Breakdown:
    status_distribution: Dict[str, int] = field(default_factory=dict)
    by_bookmaker: List[GroupProfit] = field(default_factory=list)
    by_bet_type: List[GroupProfit] = field(default_factory=list)
    by_tag: List[GroupProfit] = field(default_factory=list)
    daily_profit: List[DailyProfit] = field(default_factory=list)
    odds_by_date: List[DailyOdds] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def status_distribution(bets: Iterable[BetRecord]) -> Dict[str, int]:
    """Count per status; every status is present, zero when unused."""
    counts = Counter(b.status for b in bets)
    return {status.value: counts.get(status, 0) for status in BetStatus}


def profit_by(
    resolved: Iterable[BetRecord],
    keys: Callable[[BetRecord], Iterable[str]]
) -> List[GroupProfit]:
    """
    Group profit by the names ``keys`` returns for each bet.

    A bet may fall into several groups (one per tag). Sorted by profit,
    highest first.
    """
    profit: Dict[str, float] = defaultdict(float)
    bets: Dict[str, int] = defaultdict(int)
    for bet in resolved:
        for name in keys(bet):
            profit[name] += bet.settlement
            bets[name] += 1
    groups = [GroupProfit(name=n, bets=bets[n], profit=p) for n, p in profit.items()]
    return sorted(groups, key=lambda g: g.profit, reverse=True)


def _bookmaker(bet: BetRecord) -> List[str]:
    return [bet.bookmaker or UNKNOWN_GROUP]


def _bet_type(bet: BetRecord) -> List[str]:
    if bet.bet_type is not None:
        return [bet.bet_type.value]
    return [bet.bet_type_label or UNKNOWN_GROUP]


def _tags(bet: BetRecord) -> List[str]:
    return sorted(bet.tags) or [UNTAGGED_GROUP]


def daily_profit_series(resolved: Iterable[BetRecord]) -> List[DailyProfit]:
    """Profit per date with the accumulated total, ascending by date."""
    ordered = chronological(resolved)
    if not ordered:
        return []
    frame = pd.DataFrame({
        "date": [b.bet_date for b in ordered],
        "profit": [b.settlement for b in ordered],
    })
    daily = frame.groupby("date", sort=True)["profit"].sum()
    accumulated = daily.cumsum()
    return [
        DailyProfit(date=day.isoformat(), profit=float(daily[day]), accumulated=float(accumulated[day]))
        for day in daily.index
    ]


def average_odds_by_date(bets: Iterable[BetRecord]) -> List[DailyOdds]:
    ordered = [b for b in chronological(bets) if b.odds > 0]
    if not ordered:
        return []
    frame = pd.DataFrame({
        "date": [b.bet_date for b in ordered],
        "odds": [b.odds for b in ordered],
    })
    means = frame.groupby("date", sort=True)["odds"].mean()
    return [DailyOdds(date=day.isoformat(), average_odds=float(odds)) for day, odds in means.items()]


def calculate_breakdown(bets: Sequence[BetRecord]) -> Breakdown:
    """Build every distribution and chart series for a bet selection."""
    classified = classify(bets)
    resolved = classified.resolved
    return Breakdown(
        status_distribution=status_distribution(classified.bets),
        by_bookmaker=profit_by(resolved, _bookmaker),
        by_bet_type=profit_by(resolved, _bet_type),
        by_tag=profit_by(resolved, _tags),
        daily_profit=daily_profit_series(resolved),
        odds_by_date=average_odds_by_date(classified.bets),
    )
