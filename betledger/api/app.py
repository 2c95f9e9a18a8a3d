"""
FastAPI Application for BetLedger.

REST API for:
    - Bet recording and settlement
    - Bookie bankrolls, deposits and withdrawals
    - Profit goals
    - Betting analytics (dashboard, performance, risk, odds, temporal)

Features:
    - Rate limiting on analytics endpoints (slowapi)
    - Input validation with Pydantic
    - Request timing header
"""

from datetime import datetime
import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from betledger import __version__
from betledger.api.dependencies import limiter
from betledger.api.endpoints import analytics, bankroll, bets
from betledger.core.config import configure_logging, settings

# Load environment variables from .env file
load_dotenv()
configure_logging()

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


app = FastAPI(
    title="BetLedger API",
    description="Personal sports-betting ledger and analytics",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header for performance monitoring."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(round(process_time * 1000, 2)) + "ms"
    return response


app.include_router(bets.router)
app.include_router(bankroll.router)
app.include_router(analytics.router)


@app.get("/", tags=["Info"])
async def root():
    """API root - basic info."""
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "docs": "/docs",
        "status": "operational"
    }


@app.get("/health", response_model=HealthResponse, tags=["Info"])
async def health_check():
    """Liveness check. Does not touch the database."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        version=__version__,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
