"""
Bankroll API Endpoints

Bookie accounts, deposits and withdrawals, and profit goals.
"""

from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from betledger.api.dependencies import internal_error, ledger_http_error
from betledger.core.database.connection import get_db
from betledger.core.exceptions import LedgerError
from betledger.database import repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Bankroll"])


# ============================================================================
# Pydantic Models
# ============================================================================

class CreateBookieRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    balance: float = Field(0.0, ge=0)


class BookieResponse(BaseModel):
    id: int
    name: str
    balance: float
    last_update: Optional[datetime] = None
    last_deposit: Optional[datetime] = None
    last_withdraw: Optional[datetime] = None


class TransactionRequest(BaseModel):
    """Deposit or withdrawal against a bookie"""
    amount: float = Field(..., gt=0)
    type: str = Field(..., pattern="^(deposit|withdraw)$")
    description: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    bookie_id: int
    amount: float
    type: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class GoalRequest(BaseModel):
    """Omitted fields keep their current value"""
    daily_goal: Optional[float] = Field(None, ge=0)
    monthly_goal: Optional[float] = Field(None, ge=0)
    loss_limit: Optional[float] = Field(None, ge=0)


class GoalResponse(BaseModel):
    daily_goal: float
    monthly_goal: float
    loss_limit: float


# ============================================================================
# Bookies and transactions
# ============================================================================

@router.get("/bookies", response_model=List[BookieResponse])
async def list_bookies(db: AsyncSession = Depends(get_db)):
    try:
        rows = await repository.list_bookies(db)
        return [BookieResponse(**r.to_dict()) for r in rows]
    except Exception as e:
        raise await internal_error(db, "fetch bookies", e)


@router.post("/bookies", response_model=BookieResponse, status_code=201)
async def create_bookie(bookie: CreateBookieRequest, db: AsyncSession = Depends(get_db)):
    try:
        row = await repository.create_bookie(db, bookie.name, bookie.balance)
        return BookieResponse(**row.to_dict())
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "create bookie", e)


@router.post("/bookies/{bookie_id}/transactions", response_model=TransactionResponse, status_code=201)
async def record_transaction(
    bookie_id: int,
    transaction: TransactionRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Deposit into or withdraw from a bookie account.

    Withdrawals larger than the balance are rejected with 409.
    """
    try:
        row = await repository.record_transaction(
            db, bookie_id, transaction.amount, transaction.type, transaction.description
        )
        return TransactionResponse(**row.to_dict())
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "record transaction", e)


@router.get("/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    bookie_id: Optional[int] = Query(None, description="Only this bookie's transactions"),
    db: AsyncSession = Depends(get_db)
):
    try:
        rows = await repository.list_transactions(db, bookie_id)
        return [TransactionResponse(**r.to_dict()) for r in rows]
    except Exception as e:
        raise await internal_error(db, "fetch transactions", e)


# ============================================================================
# Goals
# ============================================================================

@router.get("/goals", response_model=Optional[GoalResponse])
async def get_goal(db: AsyncSession = Depends(get_db)):
    """Current goals, or null when none were ever set."""
    try:
        goal = await repository.get_goal(db)
        return GoalResponse(**goal.to_dict()) if goal else None
    except Exception as e:
        raise await internal_error(db, "fetch goals", e)


@router.put("/goals", response_model=GoalResponse)
async def upsert_goal(goal: GoalRequest, db: AsyncSession = Depends(get_db)):
    try:
        row = await repository.upsert_goal(db, goal.daily_goal, goal.monthly_goal, goal.loss_limit)
        return GoalResponse(**row.to_dict())
    except Exception as e:
        raise await internal_error(db, "save goals", e)
