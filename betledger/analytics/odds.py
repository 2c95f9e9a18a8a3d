"""
Odds bucketing and odds-range KPIs.

Resolved bets are partitioned into fixed, left-closed odds ranges. Each
bucket reports its sample count, wins, ROI and win rate. The "sweet
spot" is the eligible bucket (count >= ``min_samples``) with the best
ROI; the first bucket reaching the maximum wins ties. When no bucket is
eligible a "no data" sentinel is returned.
"""

import math
from dataclasses import dataclass, field, asdict
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .classifier import classify
from .records import BetRecord, BetStatus, NO_DATA

DEFAULT_ODDS_RANGES: Tuple[Tuple[float, float], ...] = (
    (1.0, 1.5),
    (1.5, 2.0),
    (2.0, 3.0),
    (3.0, 5.0),
    (5.0, math.inf),
)
MIN_BUCKET_SAMPLES = 5

VALUE_BET_RETURN_PCT = 10.0
LOW_ODDS_MAX = 1.5
HIGH_ODDS_MIN = 3.0


@dataclass(frozen=True)
class OddsBucket:
    """Aggregates for one odds range ``[low, high)``."""
    label: str
    low: float
    high: float
    count: int = 0
    wins: int = 0
    staked: float = 0.0
    profit: float = 0.0
    roi: float = 0.0
    win_rate: float = 0.0
    eligible: bool = False


@dataclass(frozen=True)
class SweetSpot:
    """Best-ROI bucket. ``found`` is False for the no-data sentinel."""
    label: str = NO_DATA
    roi: float = 0.0
    win_rate: float = 0.0
    found: bool = False


@dataclass(frozen=True)
class OddsMetrics:
    """
    Attributes:
        value_bets_pct: Share of resolved bets that won with return > 10%
        low_odds_hit_rate: Win rate for odds in [1.0, 1.5]
        high_odds_hit_rate: Win rate for odds above 3.0
        average_winning_odds: Mean odds of Won bets
        buckets: Per-range aggregates
        sweet_spot: Best eligible bucket
    """
    value_bets_pct: float = 0.0
    low_odds_hit_rate: float = 0.0
    high_odds_hit_rate: float = 0.0
    average_winning_odds: float = 0.0
    buckets: List[OddsBucket] = field(default_factory=list)
    sweet_spot: SweetSpot = field(default_factory=SweetSpot)

    def to_dict(self) -> dict:
        data = asdict(self)
        for bucket in data["buckets"]:
            if math.isinf(bucket["high"]):
                bucket["high"] = None
        return data


def bucket_label(low: float, high: float) -> str:
    if math.isinf(high):
        return f"{low:.2f}+"
    return f"{low:.2f}-{high:.2f}"


def bucket_bets(
    resolved: Sequence[BetRecord],
    ranges: Sequence[Tuple[float, float]] = DEFAULT_ODDS_RANGES,
    min_samples: int = MIN_BUCKET_SAMPLES
) -> List[OddsBucket]:
    """
    Aggregate resolved bets per odds range.

    Ranges must not overlap. Bets whose odds fall outside every range
    are left out.
    """
    intervals = pd.IntervalIndex.from_tuples(list(ranges), closed="left")
    frame = pd.DataFrame({
        "odds": [b.odds for b in resolved],
        "staked": [b.staked for b in resolved],
        "settlement": [b.settlement for b in resolved],
        "won": [b.status is BetStatus.WON for b in resolved],
    }, dtype=float)
    positions = intervals.get_indexer(frame["odds"]) if len(frame) else np.array([], dtype=int)

    buckets = []
    for index, (low, high) in enumerate(ranges):
        rows = frame[positions == index]
        count = len(rows)
        staked = float(rows["staked"].sum())
        profit = float(rows["settlement"].sum())
        wins = int(rows["won"].sum())
        buckets.append(OddsBucket(
            label=bucket_label(low, high),
            low=low,
            high=high,
            count=count,
            wins=wins,
            staked=staked,
            profit=profit,
            roi=profit / staked * 100 if staked > 0 else 0.0,
            win_rate=wins / count * 100 if count > 0 else 0.0,
            eligible=count >= min_samples,
        ))
    return buckets


def select_sweet_spot(buckets: Iterable[OddsBucket]) -> SweetSpot:
    """Highest-ROI eligible bucket, first encountered on ties."""
    best: Optional[OddsBucket] = None
    for bucket in buckets:
        if not bucket.eligible:
            continue
        if best is None or bucket.roi > best.roi:
            best = bucket
    if best is None:
        return SweetSpot()
    return SweetSpot(label=best.label, roi=best.roi, win_rate=best.win_rate, found=True)


def _hit_rate(bets: List[BetRecord]) -> float:
    if not bets:
        return 0.0
    return sum(1 for b in bets if b.status is BetStatus.WON) / len(bets) * 100


def calculate_odds_metrics(
    bets: Sequence[BetRecord],
    ranges: Sequence[Tuple[float, float]] = DEFAULT_ODDS_RANGES,
    min_samples: int = MIN_BUCKET_SAMPLES
) -> OddsMetrics:
    """Calculate odds-range KPIs and the sweet spot from a bet selection."""
    classified = classify(bets)
    resolved = classified.resolved

    value_bets = sum(1 for b in classified.won if b.per_bet_return > VALUE_BET_RETURN_PCT)
    winning_odds = [b.odds for b in classified.won if b.odds > 0]
    buckets = bucket_bets(resolved, ranges, min_samples)

    return OddsMetrics(
        value_bets_pct=value_bets / len(resolved) * 100 if resolved else 0.0,
        low_odds_hit_rate=_hit_rate([b for b in resolved if 1.0 <= b.odds <= LOW_ODDS_MAX]),
        high_odds_hit_rate=_hit_rate([b for b in resolved if b.odds > HIGH_ODDS_MIN]),
        average_winning_odds=float(np.mean(winning_odds)) if winning_odds else 0.0,
        buckets=buckets,
        sweet_spot=select_sweet_spot(buckets),
    )
