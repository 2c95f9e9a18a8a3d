"""
One-call composition of every metric group.

``build_snapshot`` takes the full bet history, applies the filter
context once and runs each calculator on the same selection. The
calculators are independent; none reads another's output.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Sequence

from .breakdown import Breakdown, calculate_breakdown
from .financial import DEFAULT_WINDOW_DAYS, DashboardMetrics, calculate_dashboard_metrics
from .goals import GoalProgress, GoalTargets, goal_progress
from .odds import DEFAULT_ODDS_RANGES, MIN_BUCKET_SAMPLES, OddsMetrics, calculate_odds_metrics
from .potential import PotentialReturn, calculate_potential_return
from .ratios import PerformanceMetrics, calculate_performance_metrics
from .records import FilterContext, normalize_bets, to_amount
from .risk import KELLY_CAP_PCT, RiskMetrics, calculate_risk_metrics
from .temporal import TemporalMetrics, calculate_temporal_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsOptions:
    """Tunable knobs shared by the calculators."""
    min_bucket_samples: int = MIN_BUCKET_SAMPLES
    kelly_cap_pct: float = KELLY_CAP_PCT
    default_window_days: int = DEFAULT_WINDOW_DAYS
    odds_ranges: tuple = DEFAULT_ODDS_RANGES


@dataclass(frozen=True)
class MetricsSnapshot:
    """All metric groups for one filter selection."""
    filters: FilterContext
    reference_date: date
    dashboard: DashboardMetrics
    performance: PerformanceMetrics
    risk: RiskMetrics
    odds: OddsMetrics
    temporal: TemporalMetrics
    potential: PotentialReturn
    goals: GoalProgress
    breakdown: Breakdown
    bankroll: float = 0.0
    bookies: int = 0

    def to_dict(self) -> dict:
        return {
            "reference_date": self.reference_date.isoformat(),
            "dashboard": self.dashboard.to_dict(),
            "performance": self.performance.to_dict(),
            "risk": self.risk.to_dict(),
            "odds": self.odds.to_dict(),
            "temporal": self.temporal.to_dict(),
            "potential": self.potential.to_dict(),
            "goals": self.goals.to_dict(),
            "breakdown": self.breakdown.to_dict(),
            "bankroll": self.bankroll,
            "bookies": self.bookies,
        }


def _as_mapping(row: Any) -> Optional[Mapping[str, Any]]:
    return row.to_dict() if hasattr(row, "to_dict") else row


def total_bankroll(bookies: Iterable[Any]) -> float:
    """Sum of bookie balances (mappings or rows with ``to_dict``)."""
    total = 0.0
    for bookie in bookies:
        data = _as_mapping(bookie)
        total += to_amount(data.get("balance"), "balance")
    return total


def build_snapshot(
    history: Sequence[Any],
    filters: Optional[FilterContext] = None,
    goal: Optional[Mapping[str, Any]] = None,
    bookies: Sequence[Any] = (),
    reference_date: Optional[date] = None,
    options: Optional[AnalyticsOptions] = None
) -> MetricsSnapshot:
    """
    Compute every metric group from the unfiltered bet history.

    Args:
        history: All bets (records, mappings or ORM rows)
        filters: Selection to analyse; goal progress ignores it
        goal: Stored goal row, defaults apply when None
        bookies: Bookie rows for the bankroll total
        reference_date: "Today" for windows and goal progress
        options: Calculator knobs

    Returns:
        MetricsSnapshot
    """
    filters = filters or FilterContext()
    options = options or AnalyticsOptions()
    reference_date = reference_date or date.today()

    records = normalize_bets(history)
    selected = filters.apply(records)
    logger.debug(f"Building snapshot for {len(selected)}/{len(records)} bets")

    return MetricsSnapshot(
        filters=filters,
        reference_date=reference_date,
        dashboard=calculate_dashboard_metrics(
            selected, records, filters, reference_date, options.default_window_days
        ),
        performance=calculate_performance_metrics(
            selected, reference_date, options.odds_ranges, options.min_bucket_samples
        ),
        risk=calculate_risk_metrics(selected, options.kelly_cap_pct),
        odds=calculate_odds_metrics(selected, options.odds_ranges, options.min_bucket_samples),
        temporal=calculate_temporal_metrics(selected),
        potential=calculate_potential_return(selected),
        goals=goal_progress(records, GoalTargets.from_mapping(_as_mapping(goal)), reference_date),
        breakdown=calculate_breakdown(selected),
        bankroll=total_bankroll(bookies),
        bookies=len(bookies),
    )
