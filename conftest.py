"""
Pytest configuration and shared fixtures for BetLedger testing.

This file provides:
- Environment configuration for tests (SQLite through aiosqlite)
- FastAPI test client
- Bet record factories
"""

import os
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient


# ============================================================================
# Environment Configuration
# ============================================================================

# Settings and the engine are created at import time, so the URL must be
# in place before any betledger module is imported by a test.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_betledger.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT", "1000/minute")


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Remove the test database file after the session."""
    yield

    test_db = Path("test_betledger.db")
    if test_db.exists():
        test_db.unlink()


# ============================================================================
# FastAPI Test Client
# ============================================================================

@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """
    FastAPI test client.

    Usage:
        def test_endpoint(api_client):
            response = api_client.get("/health")
            assert response.status_code == 200
    """
    from betledger.api.app import app

    with TestClient(app) as client:
        yield client


# ============================================================================
# Test Data Factories
# ============================================================================

@pytest.fixture
def make_bet():
    """
    Factory fixture building normalized bet records.

    Usage:
        def test_profit(make_bet):
            bet = make_bet(status="Won", settlement=50)
    """
    from betledger.analytics.records import BetRecord

    counter = {"id": 0}

    def _create(
        staked: float = 100.0,
        odds: float = 2.0,
        status: str = "Pending",
        settlement: float = 0.0,
        bet_date: date = date(2024, 3, 1),
        **overrides
    ):
        counter["id"] += 1
        data = {
            "id": counter["id"],
            "staked": staked,
            "odds": odds,
            "status": status,
            "settlement": settlement,
            "bet_date": bet_date,
            "bookmaker": "Bet365",
            "bet_type": "Simple",
        }
        data.update(overrides)
        return BetRecord.from_mapping(data)

    return _create


@pytest.fixture
def settled(make_bet):
    """
    Factory for resolved bets whose settlement follows from the status.

    Won settles at staked x (odds - 1), Lost at -staked, Cancelled at 0.
    """
    def _create(status: str, staked: float = 100.0, odds: float = 2.0, **overrides):
        settlement = {
            "Won": staked * (odds - 1),
            "Lost": -staked,
            "Cancelled": 0.0,
        }.get(status, overrides.pop("settlement", 0.0))
        return make_bet(staked=staked, odds=odds, status=status, settlement=settlement, **overrides)

    return _create


@pytest.fixture
def sample_history(settled, make_bet) -> List:
    """A small mixed history over two months with one pending bet."""
    start = date(2024, 1, 29)
    bets = [
        settled("Won", bet_date=start, category="Football"),
        settled("Lost", bet_date=start + timedelta(days=1), category="Football; NBA"),
        settled("Won", odds=3.0, bet_date=start + timedelta(days=2), bookmaker="Betano"),
        settled("Cancelled", bet_date=start + timedelta(days=3)),
        settled("Lost", staked=50.0, bet_date=start + timedelta(days=4), bet_type="Combo"),
        make_bet(staked=50.0, odds=1.5, bet_date=start + timedelta(days=5)),
    ]
    return bets


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def temp_db_url() -> Generator[str, None, None]:
    """Temporary SQLite file URL for repository tests."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield f"sqlite+aiosqlite:///{db_path}"

    if db_path.exists():
        db_path.unlink()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
