"""
Win/loss streak tracking.

Won and CashedOut count as wins, Lost as a loss. Cancelled bets are a
no-op: they neither extend nor break a running streak.
"""

from dataclasses import dataclass
from typing import Iterable

from .classifier import chronological
from .records import BetRecord, BetStatus

WIN_STATUSES = frozenset({BetStatus.WON, BetStatus.CASHED_OUT})


@dataclass(frozen=True)
class StreakMetrics:
    """
    Attributes:
        longest_win_streak: Longest run of wins
        longest_loss_streak: Longest run of losses
        current_streak: Signed trailing streak (+wins / -losses)
    """
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    current_streak: int = 0


def calculate_streaks(resolved: Iterable[BetRecord]) -> StreakMetrics:
    """Walk resolved bets chronologically and track streak counters."""
    wins = 0
    losses = 0
    max_wins = 0
    max_losses = 0

    for bet in chronological(resolved):
        if bet.status in WIN_STATUSES:
            wins += 1
            losses = 0
            max_wins = max(max_wins, wins)
        elif bet.status is BetStatus.LOST:
            losses += 1
            wins = 0
            max_losses = max(max_losses, losses)

    return StreakMetrics(
        longest_win_streak=max_wins,
        longest_loss_streak=max_losses,
        current_streak=wins if wins > 0 else -losses,
    )
