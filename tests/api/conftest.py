"""API test fixtures - the assembled app over in-memory stores."""

import base64
from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from app import build_services, create_app
from auth.session import SessionManager
from auth.types import Session
from clients.line_client import LineClient
from utils.timezone import now_utc


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def line_client():
    return Mock(spec=LineClient)


@pytest.fixture
def services(stores, audit, storage, config, line_client):
    return build_services(stores, audit, storage, config, line_client_factory=Mock(return_value=line_client))


@pytest.fixture
def png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(b"\x89PNGimage").decode("ascii")


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_session_manager(test_user_id):
    now = now_utc()
    mock = Mock(spec=SessionManager)
    mock.validate_session.return_value = Session(
        token="test-token",
        user_id=test_user_id,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services, mock_session_manager):
    return create_app(services, mock_session_manager)


@pytest.fixture
def client(app):
    """Client signed in as the primary owner."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Tenant-side client (no session cookie)."""
    return TestClient(app, raise_server_exceptions=False)


# =============================================================================
# SEED THROUGH THE API
# =============================================================================


@pytest.fixture
def invoice(client, unit, tenant, today) -> dict:
    """A ฿10,500.00 rent invoice issued over HTTP."""
    response = client.post("/api/invoices", json={
        "unit_id": str(unit.id),
        "type": "rent",
        "billing_month": f"{today:%Y-%m}",
        "due_date": str(today + timedelta(days=7)),
    })
    assert response.status_code == 200, response.text
    return response.json()["data"]
