"""
Normalized bet records.

Every analytics function consumes ``BetRecord`` values. Records are built
once at ingestion with ``BetRecord.from_mapping`` which applies the
zero-default coercion rule to all monetary and odds fields, parses the
resolution status (including the legacy Portuguese labels still found in
older rows) and splits the free-text category into tags.

Example:
    >>> rec = BetRecord.from_mapping({
    ...     'id': 1, 'staked': '50', 'odds': 1.5, 'status': 'Ganhou',
    ...     'settlement': 25, 'bet_date': '2024-03-01', 'category': 'Football; NBA',
    ... })
    >>> rec.status
    <BetStatus.WON: 'Won'>
    >>> sorted(rec.tags)
    ['Football', 'NBA']
"""

import logging
import math
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

NO_DATA = "—"


# ============================================================================
# Enums
# ============================================================================

class BetStatus(Enum):
    """Resolution status of a bet."""
    PENDING = "Pending"
    WON = "Won"
    LOST = "Lost"
    CANCELLED = "Cancelled"
    CASHED_OUT = "CashedOut"

    @property
    def is_resolved(self) -> bool:
        return self is not BetStatus.PENDING

    @classmethod
    def parse(cls, value: Any) -> "BetStatus":
        """Parse a status label. Missing or unknown labels are Pending."""
        if isinstance(value, cls):
            return value
        status = cls.lookup(value)
        if status is None:
            if value is not None and str(value).strip():
                logger.warning(f"Unknown bet status {value!r}, treating as Pending")
            return cls.PENDING
        return status

    @classmethod
    def lookup(cls, value: Any) -> Optional["BetStatus"]:
        """Strict variant of ``parse``: None for missing or unknown labels."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        return _STATUS_ALIASES.get(re.sub(r"[\s_\-]", "", str(value)).lower())


_STATUS_ALIASES = {
    "pending": BetStatus.PENDING,
    "pendente": BetStatus.PENDING,
    "won": BetStatus.WON,
    "win": BetStatus.WON,
    "ganhou": BetStatus.WON,
    "lost": BetStatus.LOST,
    "loss": BetStatus.LOST,
    "perdeu": BetStatus.LOST,
    "cancelled": BetStatus.CANCELLED,
    "canceled": BetStatus.CANCELLED,
    "void": BetStatus.CANCELLED,
    "cancelado": BetStatus.CANCELLED,
    "cashedout": BetStatus.CASHED_OUT,
    "cashout": BetStatus.CASHED_OUT,
}

RESOLVED_STATUSES = frozenset(s for s in BetStatus if s.is_resolved)


class BetType(Enum):
    """Single-selection or combined wager."""
    SIMPLE = "Simple"
    COMBO = "Combo"

    @classmethod
    def parse(cls, value: Any) -> Optional["BetType"]:
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        return _BET_TYPE_ALIASES.get(str(value).strip().lower())


_BET_TYPE_ALIASES = {
    "simple": BetType.SIMPLE,
    "simples": BetType.SIMPLE,
    "single": BetType.SIMPLE,
    "combo": BetType.COMBO,
    "dupla": BetType.COMBO,
    "multiple": BetType.COMBO,
}


# ============================================================================
# Coercion helpers
# ============================================================================

def to_amount(value: Any, field_name: str = "value") -> float:
    """
    Coerce a monetary/odds field to float.

    None, empty strings, non-finite and unparseable values become 0.0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Could not coerce {field_name}={value!r} to a number, using 0")
        return 0.0
    if not math.isfinite(number):
        logger.warning(f"Non-finite {field_name}={value!r}, using 0")
        return 0.0
    return number


def to_date(value: Any) -> Optional[date]:
    """Parse a bet date. Returns None when missing or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.warning(f"Malformed bet date {value!r}, excluding from calendar metrics")
        return None


def split_tags(category: Optional[str]) -> FrozenSet[str]:
    """Split a free-text category on commas and semicolons."""
    if not category:
        return frozenset()
    return frozenset(t.strip() for t in re.split(r"[,;]", str(category)) if t.strip())


# ============================================================================
# Bet record
# ============================================================================

@dataclass(frozen=True)
class BetRecord:
    """
    Normalized, immutable view of a bet.

    Attributes:
        id: Unique bet id
        staked: Amount wagered (0.0 when missing)
        odds: Decimal odds (0.0 when missing)
        bonus: Bonus stake component, additive to stake for payout
        boost: Fraction in (0, 1] or absolute currency amount (> 1)
        status: Resolution status
        settlement: Net profit/loss of a resolved bet (0.0 when missing)
        bet_date: Calendar date, None when malformed
        bookmaker: Bookie name
        bet_type: Parsed bet type, None when unrecognised
        bet_type_label: Bet type text as stored
        tags: Category tags
    """
    id: int
    staked: float = 0.0
    odds: float = 0.0
    bonus: float = 0.0
    boost: float = 0.0
    status: BetStatus = BetStatus.PENDING
    settlement: float = 0.0
    bet_date: Optional[date] = None
    bookmaker: Optional[str] = None
    bet_type: Optional[BetType] = None
    bet_type_label: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    match: Optional[str] = None
    tournament: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.status.is_resolved

    @property
    def per_bet_return(self) -> float:
        """Settlement as a percentage of stake (0 when stake is 0)."""
        return self.settlement / self.staked * 100 if self.staked > 0 else 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BetRecord":
        """
        Build a record from a persisted row.

        Accepts the current column names as well as the legacy
        Portuguese ones (``valor_apostado``, ``odd``, ``turbo``, ``resultado``,
        ``valor_final``, ``data``, ``casa_de_apostas``, ``tipo_aposta``,
        ``categoria``, ``partida``, ``torneio``).
        """
        def pick(*keys):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        raw_type = pick("bet_type", "tipo_aposta")
        return cls(
            id=int(to_amount(pick("id"), "id")),
            staked=to_amount(pick("staked", "stake", "valor_apostado"), "staked"),
            odds=to_amount(pick("odds", "odd"), "odds"),
            bonus=to_amount(pick("bonus"), "bonus"),
            boost=to_amount(pick("boost", "turbo"), "boost"),
            status=BetStatus.parse(pick("status", "resultado")),
            settlement=to_amount(pick("settlement", "valor_final"), "settlement"),
            bet_date=to_date(pick("bet_date", "date", "data")),
            bookmaker=pick("bookmaker", "casa_de_apostas"),
            bet_type=BetType.parse(raw_type),
            bet_type_label=str(raw_type) if raw_type is not None else None,
            tags=split_tags(pick("category", "categoria")),
            match=pick("match", "partida"),
            tournament=pick("tournament", "torneio"),
        )

    def with_status(self, status: BetStatus, settlement: float) -> "BetRecord":
        return replace(self, status=status, settlement=settlement)


def normalize_bets(rows: Iterable[Any]) -> List[BetRecord]:
    """Normalize mappings, ORM rows (with ``to_dict``) or records."""
    records = []
    for row in rows:
        if isinstance(row, BetRecord):
            records.append(row)
        elif hasattr(row, "to_dict"):
            records.append(BetRecord.from_mapping(row.to_dict()))
        else:
            records.append(BetRecord.from_mapping(row))
    return records


# ============================================================================
# Filter context
# ============================================================================

@dataclass(frozen=True)
class FilterContext:
    """
    Immutable filter selection threaded into metrics calls.

    Date bounds are inclusive. A bet without a valid date never matches
    a date-bounded filter.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    bookmaker: Optional[str] = None
    bet_type: Optional[BetType] = None
    status: Optional[BetStatus] = None

    @property
    def has_dates(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    def matches(self, bet: BetRecord) -> bool:
        if self.has_dates:
            if bet.bet_date is None:
                return False
            if self.start_date and bet.bet_date < self.start_date:
                return False
            if self.end_date and bet.bet_date > self.end_date:
                return False
        if self.bookmaker and bet.bookmaker != self.bookmaker:
            return False
        if self.bet_type and bet.bet_type is not self.bet_type:
            return False
        if self.status and bet.status is not self.status:
            return False
        return True

    def apply(self, bets: Iterable[BetRecord]) -> List[BetRecord]:
        return [b for b in bets if self.matches(b)]

    def without_dates(self) -> "FilterContext":
        return replace(self, start_date=None, end_date=None)
