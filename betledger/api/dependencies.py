"""
Shared API plumbing: rate limiter, filter query parameters and the
mapping from ledger errors to HTTP responses.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException, Query
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from betledger.analytics.records import BetStatus, BetType, FilterContext
from betledger.core.exceptions import (
    BetAlreadySettledError,
    BetNotFoundError,
    BookieExistsError,
    BookieNotFoundError,
    InsufficientBalanceError,
    InvalidSettlementError,
    InvalidTransactionError,
    LedgerError,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Rate Limiting Configuration
# ============================================================================

limiter = Limiter(key_func=get_remote_address)

ERROR_STATUS = {
    BetNotFoundError: 404,
    BookieNotFoundError: 404,
    BetAlreadySettledError: 409,
    BookieExistsError: 409,
    InsufficientBalanceError: 409,
    InvalidSettlementError: 422,
    InvalidTransactionError: 422,
}


def ledger_http_error(error: LedgerError) -> HTTPException:
    """Translate a domain error into an HTTPException."""
    status_code = ERROR_STATUS.get(type(error), 400)
    logger.info(f"Request rejected ({status_code}): {error}")
    return HTTPException(status_code=status_code, detail=str(error))


async def internal_error(db: Optional[AsyncSession], action: str, error: Exception) -> HTTPException:
    """Roll back and build a 500 for an unexpected failure."""
    if db is not None:
        await db.rollback()
    logger.error(f"Failed to {action}: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {str(error)}")


def parse_status(value: Optional[str]) -> Optional[BetStatus]:
    if value is None:
        return None
    status = BetStatus.lookup(value)
    if status is None:
        raise HTTPException(status_code=422, detail=f"Unknown status '{value}'")
    return status


def parse_bet_type(value: Optional[str]) -> Optional[BetType]:
    if value is None:
        return None
    bet_type = BetType.parse(value)
    if bet_type is None:
        raise HTTPException(status_code=422, detail=f"Unknown bet type '{value}'")
    return bet_type


def filter_context(
    start_date: Optional[date] = Query(None, description="Inclusive lower date bound"),
    end_date: Optional[date] = Query(None, description="Inclusive upper date bound"),
    bookmaker: Optional[str] = Query(None),
    bet_type: Optional[str] = Query(None, description="Simple or Combo"),
    status: Optional[str] = Query(None, description="Pending, Won, Lost, Cancelled or CashedOut")
) -> FilterContext:
    """Build the FilterContext from query parameters."""
    return FilterContext(
        start_date=start_date,
        end_date=end_date,
        bookmaker=bookmaker,
        bet_type=parse_bet_type(bet_type),
        status=parse_status(status),
    )
