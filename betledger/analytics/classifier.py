"""
Outcome classification.

Partitions a bet collection into resolved and pending bets, and resolved
bets by exact status. Missing statuses were already mapped to Pending
during normalization, so classification never fails.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from .records import BetRecord, BetStatus


@dataclass(frozen=True)
class ClassifiedBets:
    """
    Bets split by outcome.

    ``won + lost + void + cashed_out`` always equals ``resolved`` and
    ``resolved + pending`` equals ``bets``.
    """
    bets: List[BetRecord] = field(default_factory=list)
    resolved: List[BetRecord] = field(default_factory=list)
    pending: List[BetRecord] = field(default_factory=list)
    won: List[BetRecord] = field(default_factory=list)
    lost: List[BetRecord] = field(default_factory=list)
    void: List[BetRecord] = field(default_factory=list)
    cashed_out: List[BetRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.bets)

    @property
    def win_count(self) -> int:
        return len(self.won)

    @property
    def loss_count(self) -> int:
        return len(self.lost)

    def counts(self) -> dict:
        return {
            "total": self.total,
            "resolved": len(self.resolved),
            "pending": len(self.pending),
            "won": len(self.won),
            "lost": len(self.lost),
            "void": len(self.void),
            "cashed_out": len(self.cashed_out),
        }


def classify(bets: Iterable[BetRecord]) -> ClassifiedBets:
    """Split bets by outcome, preserving input order in every partition."""
    result = ClassifiedBets(bets=list(bets))
    buckets = {
        BetStatus.WON: result.won,
        BetStatus.LOST: result.lost,
        BetStatus.CANCELLED: result.void,
        BetStatus.CASHED_OUT: result.cashed_out,
    }
    for bet in result.bets:
        if bet.status.is_resolved:
            result.resolved.append(bet)
            buckets[bet.status].append(bet)
        else:
            result.pending.append(bet)
    return result


def chronological(bets: Iterable[BetRecord]) -> List[BetRecord]:
    """
    Dated bets in ascending date order.

    The sort is stable so same-day bets keep their input order. Bets
    without a valid date are dropped.
    """
    dated = [b for b in bets if b.bet_date is not None]
    return sorted(dated, key=lambda b: b.bet_date)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"
