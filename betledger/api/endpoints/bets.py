"""
Bet API Endpoints

Record, edit, delete and settle bets.
"""

from datetime import date, datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from betledger.analytics.records import BetStatus, BetType, FilterContext
from betledger.api.dependencies import filter_context, internal_error, ledger_http_error
from betledger.core.database.connection import get_db
from betledger.core.exceptions import LedgerError
from betledger.database import repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bets", tags=["Bets"])


# ============================================================================
# Pydantic Models
# ============================================================================

def _bet_type_label(value: str) -> str:
    bet_type = BetType.parse(value)
    if bet_type is None:
        raise ValueError("bet_type must be Simple or Combo")
    return bet_type.value


class CreateBetRequest(BaseModel):
    """Request to record a new bet"""
    bet_date: date
    staked: float = Field(..., gt=0)
    odds: float = Field(..., ge=1.01)
    bonus: float = Field(0.0, ge=0)
    boost: float = Field(0.0, ge=0, description="Fraction in (0, 1] or absolute amount")
    bet_type: str = "Simple"
    bookmaker: Optional[str] = None
    category: Optional[str] = Field(None, description="Tags separated by , or ;")
    match: Optional[str] = None
    tournament: Optional[str] = None
    details: Optional[str] = None

    @field_validator("bet_type")
    @classmethod
    def validate_bet_type(cls, v):
        return _bet_type_label(v)


class UpdateBetRequest(BaseModel):
    """Partial update; omitted fields are left unchanged"""
    bet_date: Optional[date] = None
    staked: Optional[float] = Field(None, gt=0)
    odds: Optional[float] = Field(None, ge=1.01)
    bonus: Optional[float] = Field(None, ge=0)
    boost: Optional[float] = Field(None, ge=0)
    bet_type: Optional[str] = None
    bookmaker: Optional[str] = None
    category: Optional[str] = None
    match: Optional[str] = None
    tournament: Optional[str] = None
    details: Optional[str] = None

    @field_validator("bet_type")
    @classmethod
    def validate_bet_type(cls, v):
        return None if v is None else _bet_type_label(v)


class BetResultRequest(BaseModel):
    """Request to settle a pending bet"""
    status: str = Field(..., description="Won, Lost, Cancelled or CashedOut")
    cashout_value: Optional[float] = Field(None, ge=0, description="Gross amount returned on cash out")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        status = BetStatus.lookup(v)
        if status is None or status is BetStatus.PENDING:
            raise ValueError("status must be Won, Lost, Cancelled or CashedOut")
        return status.value


class BetResponse(BaseModel):
    """Response model for a bet"""
    id: int
    bet_date: date
    staked: float
    odds: float
    bonus: float
    boost: float
    status: str
    settlement: Optional[float]
    settled_at: Optional[datetime]
    bet_type: Optional[str]
    bookmaker: Optional[str]
    category: Optional[str]
    match: Optional[str]
    tournament: Optional[str]
    details: Optional[str]


class BetListResponse(BaseModel):
    data: List[BetResponse]
    total: int


def _to_response(bet) -> BetResponse:
    data = bet.to_dict()
    for key in ("staked", "odds", "bonus", "boost", "settlement"):
        if data[key] is not None:
            data[key] = float(data[key])
    data["bonus"] = data["bonus"] or 0.0
    data["boost"] = data["boost"] or 0.0
    return BetResponse(**data)


# ============================================================================
# API Endpoints
# ============================================================================

@router.post("", response_model=BetResponse, status_code=201)
async def create_bet(bet: CreateBetRequest, db: AsyncSession = Depends(get_db)):
    """Record a new Pending bet."""
    try:
        row = await repository.create_bet(db, bet.model_dump())
        return _to_response(row)
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "create bet", e)


@router.get("", response_model=BetListResponse)
async def list_bets(
    filters: FilterContext = Depends(filter_context),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """
    List bets, newest first.

    Accepts the same filters as the analytics endpoints and returns the
    unpaged total alongside the page.
    """
    try:
        rows, total = await repository.list_bets(db, filters, limit=limit, offset=offset)
        return BetListResponse(data=[_to_response(r) for r in rows], total=total)
    except Exception as e:
        raise await internal_error(db, "fetch bets", e)


@router.get("/{bet_id}", response_model=BetResponse)
async def get_bet(bet_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return _to_response(await repository.get_bet(db, bet_id))
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "fetch bet", e)


@router.put("/{bet_id}", response_model=BetResponse)
async def update_bet(bet_id: int, bet: UpdateBetRequest, db: AsyncSession = Depends(get_db)):
    """Update a bet. Amounts of settled bets cannot change."""
    try:
        row = await repository.update_bet(db, bet_id, bet.model_dump(exclude_none=True))
        return _to_response(row)
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "update bet", e)


@router.delete("/{bet_id}", status_code=204)
async def delete_bet(bet_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await repository.delete_bet(db, bet_id)
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "delete bet", e)


@router.put("/{bet_id}/result", response_model=BetResponse)
async def set_bet_result(
    bet_id: int,
    result: BetResultRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Settle a pending bet.

    Won pays stake x odds plus bonus and boost; Lost costs the stake;
    Cancelled settles at 0; CashedOut needs the gross cash-out value.
    """
    try:
        row = await repository.set_bet_result(db, bet_id, result.status, result.cashout_value)
        return _to_response(row)
    except LedgerError as e:
        raise ledger_http_error(e)
    except Exception as e:
        raise await internal_error(db, "settle bet", e)
