"""
Integration Tests for the BetLedger API.

Tests the full API layer including request/response handling,
error mapping and data validation. Repository calls are mocked and the
database session is replaced by a dependency override.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from betledger.api.app import app
from betledger.core.database.connection import get_db
from betledger.core.exceptions import (
    BetAlreadySettledError,
    BetNotFoundError,
    BookieExistsError,
    InsufficientBalanceError,
    InvalidSettlementError,
)
from betledger.database.models import Bet, Bookie, Goal, Transaction


pytestmark = pytest.mark.integration

REPOSITORY = "betledger.database.repository"


@pytest.fixture
def db_session():
    session = MagicMock()
    session.rollback = AsyncMock()

    async def override():
        yield session

    app.dependency_overrides[get_db] = override
    yield session
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client(db_session, api_client):
    return api_client


def make_row(bet_id=1, status="Pending", settlement=None, **overrides):
    values = dict(
        id=bet_id,
        category="Football",
        bet_type="Simple",
        bookmaker="Bet365",
        match=None,
        tournament=None,
        details=None,
        staked=Decimal("100.00"),
        odds=Decimal("2.000"),
        bonus=Decimal("0"),
        boost=Decimal("0"),
        status=status,
        settlement=settlement,
        settled_at=None,
        bet_date=date(2024, 3, 1),
    )
    values.update(overrides)
    return Bet(**values)


class TestInfoEndpoints:
    """Tests for / and /health."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "X-Process-Time" in response.headers

    def test_root(self, client):
        assert client.get("/").json()["name"] == "BetLedger"


class TestBetEndpoints:
    """Tests for /api/bets."""

    @patch(f"{REPOSITORY}.create_bet", new_callable=AsyncMock)
    def test_create(self, mock_create, client):
        mock_create.return_value = make_row()

        response = client.post("/api/bets", json={
            "bet_date": "2024-03-01", "staked": 100, "odds": 2.0, "bookmaker": "Bet365",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Pending"
        assert data["staked"] == 100.0
        assert data["settlement"] is None
        payload = mock_create.call_args.args[1]
        assert payload["bet_type"] == "Simple"

    @pytest.mark.parametrize("body", [
        {"bet_date": "2024-03-01", "staked": 0, "odds": 2.0},
        {"bet_date": "2024-03-01", "staked": 10, "odds": 1.0},
        {"bet_date": "2024-03-01", "staked": 10, "odds": 2.0, "bonus": -1},
        {"staked": 10, "odds": 2.0},
        {"bet_date": "2024-03-01", "staked": 10, "odds": 2.0, "bet_type": "Teaser"},
    ])
    def test_create_validation(self, client, body):
        assert client.post("/api/bets", json=body).status_code == 422

    @patch(f"{REPOSITORY}.create_bet", new_callable=AsyncMock)
    def test_create_normalizes_bet_type(self, mock_create, client):
        mock_create.return_value = make_row(bet_type="Combo")

        response = client.post("/api/bets", json={
            "bet_date": "2024-03-01", "staked": 100, "odds": 2.0, "bet_type": "Dupla",
        })

        assert response.status_code == 201
        assert mock_create.call_args.args[1]["bet_type"] == "Combo"

    def test_update_rejects_unknown_bet_type(self, client):
        assert client.put("/api/bets/1", json={"bet_type": "Teaser"}).status_code == 422

    @patch(f"{REPOSITORY}.list_bets", new_callable=AsyncMock)
    def test_list_returns_page_and_total(self, mock_list, client):
        mock_list.return_value = ([make_row(2), make_row(1)], 7)

        response = client.get("/api/bets?bookmaker=Bet365&status=won&limit=2")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 7
        assert [b["id"] for b in data["data"]] == [2, 1]
        filters = mock_list.call_args.args[1]
        assert filters.bookmaker == "Bet365"
        assert filters.status.value == "Won"
        assert mock_list.call_args.kwargs == {"limit": 2, "offset": 0}

    def test_list_rejects_unknown_status(self, client):
        response = client.get("/api/bets?status=half-won")

        assert response.status_code == 422
        assert "half-won" in response.json()["detail"]

    @patch(f"{REPOSITORY}.get_bet", new_callable=AsyncMock)
    def test_not_found(self, mock_get, client):
        mock_get.side_effect = BetNotFoundError("Bet 9 not found")

        response = client.get("/api/bets/9")

        assert response.status_code == 404
        assert response.json()["detail"] == "Bet 9 not found"

    @patch(f"{REPOSITORY}.set_bet_result", new_callable=AsyncMock)
    def test_settle(self, mock_settle, client):
        mock_settle.return_value = make_row(status="Won", settlement=Decimal("100.00"))

        response = client.put("/api/bets/1/result", json={"status": "ganhou"})

        assert response.status_code == 200
        assert response.json()["settlement"] == 100.0
        assert mock_settle.call_args.args[2] == "Won"

    @patch(f"{REPOSITORY}.set_bet_result", new_callable=AsyncMock)
    def test_settle_twice_conflicts(self, mock_settle, client):
        mock_settle.side_effect = BetAlreadySettledError("Bet 1 is already Won")
        assert client.put("/api/bets/1/result", json={"status": "Lost"}).status_code == 409

    @patch(f"{REPOSITORY}.set_bet_result", new_callable=AsyncMock)
    def test_cash_out_without_value(self, mock_settle, client):
        mock_settle.side_effect = InvalidSettlementError("Cash out requires a non-negative cashout_value")
        assert client.put("/api/bets/1/result", json={"status": "CashedOut"}).status_code == 422

    @pytest.mark.parametrize("status", ["Pending", "maybe"])
    def test_settle_rejects_non_final_status(self, client, status):
        assert client.put("/api/bets/1/result", json={"status": status}).status_code == 422

    @patch(f"{REPOSITORY}.delete_bet", new_callable=AsyncMock)
    def test_delete(self, mock_delete, client):
        assert client.delete("/api/bets/1").status_code == 204
        mock_delete.assert_awaited_once()

    @patch(f"{REPOSITORY}.update_bet", new_callable=AsyncMock)
    def test_unexpected_error_rolls_back(self, mock_update, client, db_session):
        mock_update.side_effect = RuntimeError("boom")

        response = client.put("/api/bets/1", json={"details": "x"})

        assert response.status_code == 500
        db_session.rollback.assert_awaited()


class TestBankrollEndpoints:
    """Tests for bookies, transactions and goals."""

    @patch(f"{REPOSITORY}.record_transaction", new_callable=AsyncMock)
    def test_deposit(self, mock_record, client):
        mock_record.return_value = Transaction(
            id=1, bookie_id=3, amount=Decimal("50.00"), type="deposit",
            description="Deposit at Bet365", created_at=None,
        )

        response = client.post("/api/bookies/3/transactions", json={"amount": 50, "type": "deposit"})

        assert response.status_code == 201
        assert response.json()["description"] == "Deposit at Bet365"

    @patch(f"{REPOSITORY}.record_transaction", new_callable=AsyncMock)
    def test_overdraw_conflicts(self, mock_record, client):
        mock_record.side_effect = InsufficientBalanceError("Cannot withdraw")
        response = client.post("/api/bookies/3/transactions", json={"amount": 500, "type": "withdraw"})
        assert response.status_code == 409

    @patch(f"{REPOSITORY}.create_bookie", new_callable=AsyncMock)
    def test_duplicate_bookie_conflicts(self, mock_create, client):
        mock_create.side_effect = BookieExistsError("Bookie Bet365 already exists")

        response = client.post("/api/bookies", json={"name": "Bet365"})

        assert response.status_code == 409
        assert response.json()["detail"] == "Bookie Bet365 already exists"

    def test_transaction_type_is_validated(self, client):
        response = client.post("/api/bookies/3/transactions", json={"amount": 5, "type": "bonus"})
        assert response.status_code == 422

    @patch(f"{REPOSITORY}.list_bookies", new_callable=AsyncMock)
    def test_list_bookies(self, mock_list, client):
        mock_list.return_value = [Bookie(id=1, name="Bet365", balance=Decimal("120.50"))]

        data = client.get("/api/bookies").json()

        assert data[0]["name"] == "Bet365"
        assert data[0]["balance"] == 120.5

    @patch(f"{REPOSITORY}.get_goal", new_callable=AsyncMock)
    def test_goals_unset(self, mock_goal, client):
        mock_goal.return_value = None
        response = client.get("/api/goals")
        assert response.status_code == 200
        assert response.json() is None

    @patch(f"{REPOSITORY}.upsert_goal", new_callable=AsyncMock)
    def test_upsert_goals(self, mock_upsert, client):
        mock_upsert.return_value = Goal(
            id=1, daily_goal=Decimal("50"), monthly_goal=Decimal("2000"), loss_limit=Decimal("200")
        )

        response = client.put("/api/goals", json={"daily_goal": 50})

        assert response.json() == {"daily_goal": 50.0, "monthly_goal": 2000.0, "loss_limit": 200.0}
        assert mock_upsert.call_args.args[1:] == (50.0, None, None)


class TestAnalyticsEndpoints:
    """Tests for /analytics/*."""

    @pytest.fixture
    def history(self):
        return [
            make_row(1, "Won", Decimal("100.00"), bet_date=date(2024, 3, 1)),
            make_row(2, "Lost", Decimal("-100.00"), bet_date=date(2024, 3, 2), bookmaker="Betano"),
            make_row(3, "Pending", None, bet_date=date(2024, 3, 3), staked=Decimal("50.00"),
                     odds=Decimal("1.500")),
        ]

    @pytest.fixture
    def mock_history(self, history):
        with patch(f"{REPOSITORY}.list_all_bets", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = history
            yield mock_list

    def test_dashboard(self, client, mock_history):
        response = client.get("/analytics/dashboard?reference_date=2024-03-31")

        assert response.status_code == 200
        data = response.json()
        assert data["total_staked"] == 250.0
        assert data["net_profit"] == 0.0
        assert data["win_rate"] == 50.0

    def test_dashboard_filtered(self, client, mock_history):
        data = client.get("/analytics/dashboard?bookmaker=Betano&reference_date=2024-03-31").json()

        assert data["total_bets"] == 1
        assert data["net_profit"] == -100.0

    def test_potential(self, client, mock_history):
        data = client.get("/analytics/potential").json()
        assert data == {"pending_bets": 1, "exposure": 50.0, "payout": 75.0, "profit": 25.0, "roi": 50.0}

    def test_temporal_reports_best_hour_unavailable(self, client, mock_history):
        data = client.get("/analytics/temporal").json()

        assert data["best_hour"] is None
        assert "best_hour" in data["unavailable"]

    @pytest.mark.parametrize("path", ["performance", "risk", "odds", "breakdown"])
    def test_metric_groups(self, client, mock_history, path):
        assert client.get(f"/analytics/{path}").status_code == 200

    def test_invalid_filter(self, client, mock_history):
        assert client.get("/analytics/risk?bet_type=Teaser").status_code == 422

    @patch(f"{REPOSITORY}.get_goal", new_callable=AsyncMock)
    def test_goal_progress_defaults(self, mock_goal, client, mock_history):
        mock_goal.return_value = None

        data = client.get("/analytics/goals?reference_date=2024-03-01").json()

        assert data["daily_goal"] == 100.0
        assert data["daily_progress"] == 100.0

    @patch(f"{REPOSITORY}.get_goal", new_callable=AsyncMock)
    @patch(f"{REPOSITORY}.list_bookies", new_callable=AsyncMock)
    def test_snapshot(self, mock_bookies, mock_goal, client, mock_history):
        mock_bookies.return_value = [Bookie(id=1, name="Bet365", balance=Decimal("300"))]
        mock_goal.return_value = None

        response = client.get("/analytics/snapshot?reference_date=2024-03-31")

        assert response.status_code == 200
        data = response.json()
        assert data["bankroll"] == 300.0
        assert data["dashboard"]["total_bets"] == 3
        assert set(data) >= {"performance", "risk", "odds", "temporal", "potential", "goals", "breakdown"}

    def test_database_failure_is_500(self, client, db_session):
        with patch(f"{REPOSITORY}.list_all_bets", new_callable=AsyncMock) as mock_list:
            mock_list.side_effect = RuntimeError("connection refused")
            response = client.get("/analytics/risk")

        assert response.status_code == 500
        db_session.rollback.assert_awaited()
