"""
SQLAlchemy ORM Models for the BetLedger Betting Ledger.

These models mirror the persisted schema and provide Python-native
access to the database with proper type hints. Monetary columns use
Numeric; analytics never read them directly but go through
``BetRecord.from_mapping`` which coerces them to floats.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional, List, Dict, Any

from sqlalchemy import (
    String, Integer, Text, Numeric, Date, DateTime,
    ForeignKey, CheckConstraint, Index, func
)
from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)

from betledger.analytics.records import BetStatus, BetType


# ============================================================================
# Enum Definitions
# ============================================================================

class TransactionType(PyEnum):
    """Bankroll movement direction."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


# ============================================================================
# Base Model
# ============================================================================

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ============================================================================
# Bookie Model
# ============================================================================

class Bookie(Base):
    """
    Bankroll account held at a bookmaker.

    The balance moves only through deposits, withdrawals and settlements.
    """
    __tablename__ = "bookies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    last_update: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_deposit: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_withdraw: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp()
    )

    transactions: Mapped[List["Transaction"]] = relationship(back_populates="bookie")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "balance": float(self.balance or 0),
            "last_update": self.last_update,
            "last_deposit": self.last_deposit,
            "last_withdraw": self.last_withdraw,
        }

    def __repr__(self) -> str:
        return f"<Bookie(name={self.name}, balance={self.balance})>"


# ============================================================================
# Transaction Model
# ============================================================================

class Transaction(Base):
    """
    Deposit or withdrawal against a bookie.

    Append-only: rows are never updated or deleted.
    """
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bookie_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bookies.id", ondelete="CASCADE"),
        nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp()
    )

    bookie: Mapped["Bookie"] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("amount > 0", name="positive_amount"),
        CheckConstraint("type IN ('deposit', 'withdraw')", name="valid_transaction_type"),
        Index("idx_transactions_bookie", "bookie_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "bookie_id": self.bookie_id,
            "amount": float(self.amount),
            "type": self.type,
            "description": self.description,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Transaction(bookie={self.bookie_id}, {self.type} {self.amount})>"


# ============================================================================
# Bet Model
# ============================================================================

class Bet(Base):
    """
    A recorded wager.

    Created as Pending and settled exactly once. ``settlement`` holds the
    net profit/loss contribution of the bet, not its gross return.
    """
    __tablename__ = "bets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Classification
    category: Mapped[Optional[str]] = mapped_column(String(200))
    bet_type: Mapped[str] = mapped_column(String(30), default=BetType.SIMPLE.value)
    bookmaker: Mapped[Optional[str]] = mapped_column(String(100))
    match: Mapped[Optional[str]] = mapped_column(String(200))
    tournament: Mapped[Optional[str]] = mapped_column(String(200))
    details: Mapped[Optional[str]] = mapped_column(Text)

    # Economics
    staked: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    odds: Mapped[Decimal] = mapped_column(Numeric(8, 3), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    boost: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=Decimal("0"))

    # Outcome
    status: Mapped[str] = mapped_column(String(20), default=BetStatus.PENDING.value)
    settlement: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2))
    settled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    bet_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    __table_args__ = (
        CheckConstraint("staked > 0", name="positive_stake"),
        CheckConstraint("odds >= 1.01", name="valid_odds"),
        CheckConstraint("bonus >= 0", name="non_negative_bonus"),
        Index("idx_bets_date", "bet_date"),
        Index("idx_bets_bookmaker", "bookmaker", "bet_date"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping consumed by ``BetRecord.from_mapping``."""
        return {
            "id": self.id,
            "category": self.category,
            "bet_type": self.bet_type,
            "bookmaker": self.bookmaker,
            "match": self.match,
            "tournament": self.tournament,
            "details": self.details,
            "staked": self.staked,
            "odds": self.odds,
            "bonus": self.bonus,
            "boost": self.boost,
            "status": self.status,
            "settlement": self.settlement,
            "settled_at": self.settled_at,
            "bet_date": self.bet_date,
        }

    def __repr__(self) -> str:
        return f"<Bet(id={self.id}, {self.status}, stake={self.staked} @ {self.odds})>"


# ============================================================================
# Goal Model
# ============================================================================

class Goal(Base):
    """Profit targets and daily loss limit. Single row, upserted."""
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    daily_goal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("100"))
    monthly_goal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("2000"))
    loss_limit: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("200"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "daily_goal": float(self.daily_goal or 0),
            "monthly_goal": float(self.monthly_goal or 0),
            "loss_limit": float(self.loss_limit or 0),
        }

    def __repr__(self) -> str:
        return f"<Goal(daily={self.daily_goal}, monthly={self.monthly_goal})>"
