"""
Progress against the user's profit goals and daily loss limit.
"""

from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from .classifier import classify, month_key
from .financial import net_profit
from .records import BetRecord, to_amount

DEFAULT_DAILY_GOAL = 100.0
DEFAULT_MONTHLY_GOAL = 2000.0
DEFAULT_LOSS_LIMIT = 200.0
LOSS_WARNING_PCT = 80.0


@dataclass(frozen=True)
class GoalTargets:
    daily_goal: float = DEFAULT_DAILY_GOAL
    monthly_goal: float = DEFAULT_MONTHLY_GOAL
    loss_limit: float = DEFAULT_LOSS_LIMIT

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GoalTargets":
        """Targets from a stored goal row; defaults when there is none."""
        if not data:
            return cls()
        return cls(
            daily_goal=to_amount(data.get("daily_goal"), "daily_goal"),
            monthly_goal=to_amount(data.get("monthly_goal"), "monthly_goal"),
            loss_limit=to_amount(data.get("loss_limit"), "loss_limit"),
        )


@dataclass(frozen=True)
class GoalProgress:
    """
    Attributes:
        daily_profit: Settlement of resolved bets on the reference date
        monthly_profit: Same for the reference month
        daily_progress: daily_profit / daily_goal * 100, in [0, 100]
        monthly_progress: monthly_profit / monthly_goal * 100, in [0, 100]
        loss_usage: Share of the daily loss limit used, in [0, 100]
        loss_limit_reached: Daily loss is at or beyond the limit
        loss_limit_warning: Daily loss is at 80% of the limit or more
    """
    daily_goal: float = DEFAULT_DAILY_GOAL
    monthly_goal: float = DEFAULT_MONTHLY_GOAL
    loss_limit: float = DEFAULT_LOSS_LIMIT
    daily_profit: float = 0.0
    monthly_profit: float = 0.0
    daily_progress: float = 0.0
    monthly_progress: float = 0.0
    loss_usage: float = 0.0
    loss_limit_reached: bool = False
    loss_limit_warning: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def _progress(value: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return max(0.0, min(100.0, value / target * 100))


def goal_progress(
    bets: Sequence[BetRecord],
    goal: Optional[GoalTargets] = None,
    reference_date: Optional[date] = None
) -> GoalProgress:
    """
    Daily and monthly goal progress for ``reference_date`` (default today).

    Example:
        >>> from betledger.analytics.records import BetStatus
        >>> bet = BetRecord(id=1, staked=100, status=BetStatus.LOST,
        ...                 settlement=-170, bet_date=date(2024, 5, 2))
        >>> p = goal_progress([bet], GoalTargets(loss_limit=200), date(2024, 5, 2))
        >>> p.loss_usage, p.loss_limit_warning, p.loss_limit_reached
        (85.0, True, False)
    """
    goal = goal or GoalTargets()
    reference_date = reference_date or date.today()
    resolved = classify(bets).resolved

    daily = net_profit(b for b in resolved if b.bet_date == reference_date)
    current_month = month_key(reference_date)
    monthly = net_profit(
        b for b in resolved
        if b.bet_date is not None and month_key(b.bet_date) == current_month
    )

    daily_loss = -daily if daily < 0 else 0.0
    loss_usage = _progress(daily_loss, goal.loss_limit)

    return GoalProgress(
        daily_goal=goal.daily_goal,
        monthly_goal=goal.monthly_goal,
        loss_limit=goal.loss_limit,
        daily_profit=daily,
        monthly_profit=monthly,
        daily_progress=_progress(daily, goal.daily_goal),
        monthly_progress=_progress(monthly, goal.monthly_goal),
        loss_usage=loss_usage,
        loss_limit_reached=goal.loss_limit > 0 and daily_loss >= goal.loss_limit,
        loss_limit_warning=loss_usage >= LOSS_WARNING_PCT,
    )
