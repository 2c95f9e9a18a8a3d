"""
Metrics derivation for the betting ledger.

Pure calculators over normalized ``BetRecord`` collections. None of them
performs I/O; ``refresh`` is the only async piece and receives its
fetchers from the caller.

Components:
    - records: normalization, enums, filter context
    - classifier: resolved / pending partitions
    - financial: dashboard KPIs
    - streaks: win/loss streaks
    - odds: odds buckets and sweet spot
    - temporal: weekday and month aggregation
    - risk: drawdown, volatility, VaR, Kelly
    - ratios: Sharpe, Sortino, Calmar and performance KPIs
    - potential: projected return of pending bets
    - goals: goal progress
    - breakdown: distributions and chart series
    - snapshot: all groups in one call
"""

from .records import BetRecord, BetStatus, BetType, FilterContext, normalize_bets
from .classifier import ClassifiedBets, classify
from .financial import DashboardMetrics, calculate_dashboard_metrics
from .streaks import StreakMetrics, calculate_streaks
from .odds import OddsMetrics, calculate_odds_metrics
from .temporal import TemporalMetrics, calculate_temporal_metrics
from .risk import RiskMetrics, calculate_risk_metrics
from .ratios import PerformanceMetrics, calculate_performance_metrics
from .potential import PotentialReturn, calculate_potential_return
from .goals import GoalProgress, GoalTargets, goal_progress
from .breakdown import Breakdown, calculate_breakdown
from .snapshot import AnalyticsOptions, MetricsSnapshot, build_snapshot
from .refresh import MetricsRefresher

__all__ = [
    # Records
    "BetRecord",
    "BetStatus",
    "BetType",
    "FilterContext",
    "normalize_bets",
    # Calculators
    "ClassifiedBets",
    "classify",
    "DashboardMetrics",
    "calculate_dashboard_metrics",
    "StreakMetrics",
    "calculate_streaks",
    "OddsMetrics",
    "calculate_odds_metrics",
    "TemporalMetrics",
    "calculate_temporal_metrics",
    "RiskMetrics",
    "calculate_risk_metrics",
    "PerformanceMetrics",
    "calculate_performance_metrics",
    "PotentialReturn",
    "calculate_potential_return",
    "GoalProgress",
    "GoalTargets",
    "goal_progress",
    "Breakdown",
    "calculate_breakdown",
    # Composition
    "AnalyticsOptions",
    "MetricsSnapshot",
    "build_snapshot",
    "MetricsRefresher",
]
