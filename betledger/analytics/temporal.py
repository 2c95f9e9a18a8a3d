"""
Calendar aggregation of betting results.

Groups resolved bets by ISO weekday and by ``YYYY-MM`` month. Keys are
locale independent. Bets without a valid date are left out of every
calendar group.

The data model carries no time of day, so "best hour" cannot be
computed; it is reported as ``None`` and listed in ``unavailable``
rather than defaulted to a fake hour.
"""

from dataclasses import dataclass, field, asdict
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .classifier import chronological, classify, month_key
from .records import BetRecord, NO_DATA

WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
)
UNAVAILABLE_METRICS = ("best_hour",)


@dataclass(frozen=True)
class WeekdayPerformance:
    weekday: int  # ISO: 1 = Monday
    name: str
    bets: int
    profit: float
    staked: float


@dataclass(frozen=True)
class MonthPerformance:
    month: str  # YYYY-MM
    year: int
    month_number: int
    bets: int
    profit: float
    staked: float
    roi: float


@dataclass(frozen=True)
class BestDay:
    name: str = NO_DATA
    weekday: Optional[int] = None
    profit: float = 0.0


@dataclass(frozen=True)
class BestMonth:
    month: str = NO_DATA
    roi: float = 0.0


@dataclass(frozen=True)
class TemporalMetrics:
    """
    Attributes:
        best_day: Weekday with the highest total profit (NO_DATA when no weekday is profitable)
        best_month: Month with the highest ROI among months with stake
        best_hour: Always None (no time-of-day data)
        consecutive_days: Run of consecutive active days ending at the latest bet
        weekdays: Per-weekday aggregates
        months: Per-month aggregates, chronological
        unavailable: Metric names that cannot be computed
    """
    best_day: BestDay = field(default_factory=BestDay)
    best_month: BestMonth = field(default_factory=BestMonth)
    best_hour: None = None
    consecutive_days: int = 0
    weekdays: List[WeekdayPerformance] = field(default_factory=list)
    months: List[MonthPerformance] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=lambda: list(UNAVAILABLE_METRICS))

    @property
    def monthly_heatmap(self) -> List[dict]:
        return [
            {"year": m.year, "month": m.month_number, "roi": m.roi, "profit": m.profit}
            for m in self.months
        ]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["monthly_heatmap"] = self.monthly_heatmap
        return data


def _calendar_frame(resolved: Iterable[BetRecord]) -> pd.DataFrame:
    ordered = chronological(resolved)
    return pd.DataFrame({
        "weekday": [b.bet_date.isoweekday() for b in ordered],
        "month": [month_key(b.bet_date) for b in ordered],
        "profit": [b.settlement for b in ordered],
        "staked": [b.staked for b in ordered],
    })


def weekday_performance(resolved: Iterable[BetRecord]) -> List[WeekdayPerformance]:
    """Profit and stake per weekday, in order of first appearance."""
    frame = _calendar_frame(resolved)
    if frame.empty:
        return []
    grouped = frame.groupby("weekday", sort=False).agg(
        bets=("profit", "size"), profit=("profit", "sum"), staked=("staked", "sum")
    )
    return [
        WeekdayPerformance(
            weekday=int(weekday),
            name=WEEKDAY_NAMES[int(weekday) - 1],
            bets=int(row.bets),
            profit=float(row.profit),
            staked=float(row.staked),
        )
        for weekday, row in grouped.iterrows()
    ]


def monthly_performance(resolved: Iterable[BetRecord]) -> List[MonthPerformance]:
    """Profit, stake and ROI per ``YYYY-MM`` month, chronological."""
    frame = _calendar_frame(resolved)
    if frame.empty:
        return []
    grouped = frame.groupby("month", sort=False).agg(
        bets=("profit", "size"), profit=("profit", "sum"), staked=("staked", "sum")
    )
    months = []
    for month, row in grouped.iterrows():
        staked = float(row.staked)
        profit = float(row.profit)
        months.append(MonthPerformance(
            month=month,
            year=int(month[:4]),
            month_number=int(month[5:]),
            bets=int(row.bets),
            profit=profit,
            staked=staked,
            roi=profit / staked * 100 if staked > 0 else 0.0,
        ))
    return months


def best_day(weekdays: Sequence[WeekdayPerformance]) -> BestDay:
    """Most profitable weekday; NO_DATA unless some weekday made money."""
    best = BestDay()
    for day in weekdays:
        if day.profit > best.profit:
            best = BestDay(name=day.name, weekday=day.weekday, profit=day.profit)
    return best


def best_month(months: Sequence[MonthPerformance]) -> BestMonth:
    """Highest-ROI month among months with a positive stake."""
    top: Optional[MonthPerformance] = None
    for month in months:
        if month.staked <= 0:
            continue
        if top is None or month.roi > top.roi:
            top = month
    if top is None:
        return BestMonth()
    return BestMonth(month=top.month, roi=top.roi)


def consecutive_active_days(bets: Iterable[BetRecord]) -> int:
    """
    Length of the run of consecutive betting days ending at the latest date.

    Example:
        >>> from datetime import date
        >>> bets = [BetRecord(id=i, bet_date=d) for i, d in enumerate(
        ...     [date(2024, 1, 5), date(2024, 1, 4), date(2024, 1, 2)])]
        >>> consecutive_active_days(bets)
        2
    """
    days = sorted({b.bet_date for b in bets if b.bet_date is not None}, reverse=True)
    if not days:
        return 0
    run = 1
    for newer, older in zip(days, days[1:]):
        if newer - older != timedelta(days=1):
            break
        run += 1
    return run


def calculate_temporal_metrics(bets: Sequence[BetRecord]) -> TemporalMetrics:
    """Calculate calendar metrics from a bet selection."""
    classified = classify(bets)
    weekdays = weekday_performance(classified.resolved)
    months = monthly_performance(classified.resolved)
    return TemporalMetrics(
        best_day=best_day(weekdays),
        best_month=best_month(months),
        consecutive_days=consecutive_active_days(classified.bets),
        weekdays=weekdays,
        months=months,
    )
