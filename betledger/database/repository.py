"""
Persistence operations for bets, bookies, transactions and goals.

Every function takes an ``AsyncSession`` and flushes but does not
commit; the caller (``get_db`` for the API) owns the transaction.
Domain problems raise ``LedgerError`` subclasses.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from betledger.analytics.goals import DEFAULT_DAILY_GOAL, DEFAULT_LOSS_LIMIT, DEFAULT_MONTHLY_GOAL
from betledger.analytics.potential import winning_settlement
from betledger.analytics.records import BetRecord, BetStatus, BetType, FilterContext
from betledger.core.exceptions import (
    BetAlreadySettledError,
    BetNotFoundError,
    BookieExistsError,
    BookieNotFoundError,
    InsufficientBalanceError,
    InvalidSettlementError,
    InvalidTransactionError,
)
from betledger.database.models import Bet, Bookie, Goal, Transaction, TransactionType

logger = logging.getLogger(__name__)

BET_FIELDS = (
    "category", "bet_type", "bookmaker", "match", "tournament", "details",
    "staked", "odds", "bonus", "boost", "bet_date",
)
MONEY_FIELDS = ("staked", "odds", "bonus", "boost")


def _money(value: Any) -> Decimal:
    return Decimal(str(round(float(value), 4)))


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Bets
# ============================================================================

def _filtered(stmt, filters: Optional[FilterContext]):
    if filters is None:
        return stmt
    if filters.start_date:
        stmt = stmt.where(Bet.bet_date >= filters.start_date)
    if filters.end_date:
        stmt = stmt.where(Bet.bet_date <= filters.end_date)
    if filters.bookmaker:
        stmt = stmt.where(Bet.bookmaker == filters.bookmaker)
    if filters.bet_type:
        stmt = stmt.where(Bet.bet_type == filters.bet_type.value)
    if filters.status:
        stmt = stmt.where(Bet.status == filters.status.value)
    return stmt


async def list_bets(
    session: AsyncSession,
    filters: Optional[FilterContext] = None,
    limit: Optional[int] = None,
    offset: int = 0
) -> Tuple[List[Bet], int]:
    """
    Bets matching ``filters``, newest first, with the unpaged total.

    Returns:
        Tuple of (rows, total)
    """
    stmt = _filtered(select(Bet), filters)
    total = await session.scalar(select(func.count()).select_from(stmt.subquery()))

    stmt = stmt.order_by(Bet.bet_date.desc(), Bet.id.desc()).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = (await session.scalars(stmt)).all()
    return list(rows), int(total or 0)


async def list_all_bets(session: AsyncSession) -> List[Bet]:
    """Whole bet history, oldest first."""
    rows = (await session.scalars(select(Bet).order_by(Bet.bet_date, Bet.id))).all()
    return list(rows)


async def get_bet(session: AsyncSession, bet_id: int) -> Bet:
    bet = await session.get(Bet, bet_id)
    if bet is None:
        raise BetNotFoundError(f"Bet {bet_id} not found")
    return bet


def _bet_values(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {k: v for k, v in data.items() if k in BET_FIELDS}
    for key in MONEY_FIELDS:
        if values.get(key) is not None:
            values[key] = _money(values[key])
    if values.get("bet_type") is not None:
        parsed = BetType.parse(values["bet_type"])
        values["bet_type"] = parsed.value if parsed else str(values["bet_type"])
    return values


async def create_bet(session: AsyncSession, data: Dict[str, Any]) -> Bet:
    """Insert a new Pending bet. Missing optional fields are stored empty."""
    values = dict.fromkeys(BET_FIELDS)
    values.update(bonus=0, boost=0, bet_type=BetType.SIMPLE.value)
    values.update({k: v for k, v in data.items() if v is not None})
    bet = Bet(
        status=BetStatus.PENDING.value,
        settlement=None,
        settled_at=None,
        **_bet_values(values)
    )
    session.add(bet)
    await session.flush()
    logger.info(f"Created bet {bet.id}: {bet.staked} @ {bet.odds} ({bet.bookmaker})")
    return bet


async def update_bet(session: AsyncSession, bet_id: int, data: Dict[str, Any]) -> Bet:
    """Update descriptive and economic fields. Status changes go through ``set_bet_result``."""
    bet = await get_bet(session, bet_id)
    values = _bet_values(data)
    if BetStatus.parse(bet.status).is_resolved and any(k in values for k in MONEY_FIELDS):
        raise BetAlreadySettledError(f"Amounts of settled bet {bet_id} cannot change")
    for key, value in values.items():
        setattr(bet, key, value)
    await session.flush()
    logger.info(f"Updated bet {bet_id}")
    return bet


async def delete_bet(session: AsyncSession, bet_id: int) -> None:
    bet = await get_bet(session, bet_id)
    await session.delete(bet)
    await session.flush()
    logger.info(f"Deleted bet {bet_id}")


def settlement_value(
    record: BetRecord,
    status: BetStatus,
    cashout_value: Optional[float] = None
) -> float:
    """
    Net settlement for settling ``record`` with ``status``.

    Won pays the potential payout including bonus and boost; CashedOut
    uses the gross ``cashout_value`` returned by the bookmaker.
    """
    if status is BetStatus.WON:
        return winning_settlement(record)
    if status is BetStatus.LOST:
        return -record.staked
    if status is BetStatus.CANCELLED:
        return 0.0
    if status is BetStatus.CASHED_OUT:
        if cashout_value is None or cashout_value < 0:
            raise InvalidSettlementError("Cash out requires a non-negative cashout_value")
        return float(cashout_value) - record.staked
    raise InvalidSettlementError(f"Cannot settle a bet as {status.value}")


async def set_bet_result(
    session: AsyncSession,
    bet_id: int,
    status: Any,
    cashout_value: Optional[float] = None
) -> Bet:
    """
    Settle a Pending bet exactly once.

    Raises:
        BetNotFoundError: Unknown id
        BetAlreadySettledError: The bet is already resolved
        InvalidSettlementError: Non-final status or missing cash-out value
    """
    bet = await get_bet(session, bet_id)
    record = BetRecord.from_mapping(bet.to_dict())
    if record.is_resolved:
        raise BetAlreadySettledError(f"Bet {bet_id} is already {record.status.value}")

    final = BetStatus.parse(status)
    value = settlement_value(record, final, cashout_value)

    bet.status = final.value
    bet.settlement = Decimal(str(round(value, 2)))
    bet.settled_at = _now()
    await session.flush()
    logger.info(f"Settled bet {bet_id} as {final.value}: {value:+.2f}")
    return bet


# ============================================================================
# Bookies and transactions
# ============================================================================

async def list_bookies(session: AsyncSession) -> List[Bookie]:
    rows = (await session.scalars(select(Bookie).order_by(Bookie.name))).all()
    return list(rows)


async def get_bookie(session: AsyncSession, bookie_id: int) -> Bookie:
    bookie = await session.get(Bookie, bookie_id)
    if bookie is None:
        raise BookieNotFoundError(f"Bookie {bookie_id} not found")
    return bookie


async def create_bookie(session: AsyncSession, name: str, balance: float = 0.0) -> Bookie:
    """
    Register a bookie with an opening balance.

    Raises:
        BookieExistsError: If the name is already taken
    """
    existing = await session.scalar(select(Bookie).where(Bookie.name == name))
    if existing is not None:
        raise BookieExistsError(f"Bookie {name} already exists")

    bookie = Bookie(
        name=name,
        balance=_money(balance),
        last_update=_now(),
        last_deposit=None,
        last_withdraw=None,
    )
    session.add(bookie)
    await session.flush()
    logger.info(f"Created bookie {name} with balance {balance:.2f}")
    return bookie


async def update_bookie_balance(session: AsyncSession, bookie_id: int, new_balance: float) -> Bookie:
    bookie = await get_bookie(session, bookie_id)
    bookie.balance = _money(new_balance)
    bookie.last_update = _now()
    await session.flush()
    logger.info(f"Bookie {bookie.name} balance set to {new_balance:.2f}")
    return bookie


async def list_transactions(
    session: AsyncSession,
    bookie_id: Optional[int] = None
) -> List[Transaction]:
    """Transactions, newest first, optionally for one bookie."""
    stmt = select(Transaction)
    if bookie_id is not None:
        stmt = stmt.where(Transaction.bookie_id == bookie_id)
    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return list((await session.scalars(stmt)).all())


async def record_transaction(
    session: AsyncSession,
    bookie_id: int,
    amount: float,
    type: Any,
    description: Optional[str] = None
) -> Transaction:
    """
    Append a deposit or withdrawal and move the bookie balance.

    Raises:
        BookieNotFoundError: Unknown bookie
        InvalidTransactionError: Non-positive amount or unknown type
        InsufficientBalanceError: Withdrawal larger than the balance
    """
    try:
        kind = TransactionType(str(getattr(type, "value", type)).lower())
    except ValueError:
        raise InvalidTransactionError(f"Unknown transaction type {type!r}") from None
    if amount is None or amount <= 0:
        raise InvalidTransactionError("Transaction amount must be positive")

    bookie = await get_bookie(session, bookie_id)
    balance = float(bookie.balance or 0)
    now = _now()

    if kind is TransactionType.WITHDRAW:
        if amount > balance:
            raise InsufficientBalanceError(
                f"Cannot withdraw {amount:.2f} from {bookie.name} (balance {balance:.2f})"
            )
        balance -= amount
        bookie.last_withdraw = now
        default_description = f"Withdrawal at {bookie.name}"
    else:
        balance += amount
        bookie.last_deposit = now
        default_description = f"Deposit at {bookie.name}"

    bookie.balance = _money(balance)
    bookie.last_update = now

    transaction = Transaction(
        bookie_id=bookie.id,
        amount=_money(amount),
        type=kind.value,
        description=description or default_description,
        created_at=now,
    )
    session.add(transaction)
    await session.flush()
    logger.info(f"{kind.value.title()} of {amount:.2f} at {bookie.name}, balance {balance:.2f}")
    return transaction


# ============================================================================
# Goals
# ============================================================================

async def get_goal(session: AsyncSession) -> Optional[Goal]:
    return await session.scalar(select(Goal).order_by(Goal.id).limit(1))


async def upsert_goal(
    session: AsyncSession,
    daily_goal: Optional[float] = None,
    monthly_goal: Optional[float] = None,
    loss_limit: Optional[float] = None
) -> Goal:
    """Create or update the single goal row; omitted values keep their current or default value."""
    goal = await get_goal(session)
    if goal is None:
        goal = Goal(
            daily_goal=_money(DEFAULT_DAILY_GOAL),
            monthly_goal=_money(DEFAULT_MONTHLY_GOAL),
            loss_limit=_money(DEFAULT_LOSS_LIMIT),
        )
        session.add(goal)

    if daily_goal is not None:
        goal.daily_goal = _money(daily_goal)
    if monthly_goal is not None:
        goal.monthly_goal = _money(monthly_goal)
    if loss_limit is not None:
        goal.loss_limit = _money(loss_limit)

    await session.flush()
    logger.info(f"Goals set: daily={goal.daily_goal} monthly={goal.monthly_goal} loss_limit={goal.loss_limit}")
    return goal

