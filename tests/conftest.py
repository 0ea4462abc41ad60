"""Shared test fixtures for the Leasehold test suite.

Service and API tests run against in-memory stores (tests/fakes.py).
Integration tests that need Postgres or Valkey use the ``db``/``valkey``
fixtures, which skip when Vault is not configured.
"""

import os
from datetime import date, timedelta
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.storage_client import StorageClient
from core.audit import AuditLogger
from core.config import BillingConfig
from core.event_bus import EventBus
from core.models import TenantStatus, TenantType, UnitStatus
from tests.fakes import in_memory_stores
from utils.timezone import today_local
from utils.user_context import user_context, clear_current_user_id


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

# Primary owner - use for single-owner tests
TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Secondary owner - use for ownership isolation tests
TEST_USER_B_ID = UUID("00000000-0000-0000-0000-000000000002")


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user_id()
    yield
    clear_current_user_id()


@pytest.fixture
def test_user_id() -> UUID:
    return TEST_USER_ID


@pytest.fixture
def test_user_b_id() -> UUID:
    return TEST_USER_B_ID


@pytest.fixture
def as_test_user(test_user_id):
    """Sets the primary owner as the request user."""
    with user_context(test_user_id):
        yield test_user_id


# =============================================================================
# IN-MEMORY COLLABORATORS
# =============================================================================


@pytest.fixture
def stores():
    return in_memory_stores()


@pytest.fixture
def audit():
    return Mock(spec=AuditLogger)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def storage():
    mock = Mock(spec=StorageClient)
    mock.put.side_effect = lambda key, data, content_type: key
    mock.presigned_url.side_effect = lambda key, expires_in=3600: f"https://storage.test/{key}?sig=1"
    return mock


@pytest.fixture
def config():
    return BillingConfig()


@pytest.fixture
def today() -> date:
    return today_local()


# =============================================================================
# SEED DATA
# =============================================================================


@pytest.fixture
def project(stores, test_user_id):
    return stores.projects.insert(test_user_id, {
        "name": "Sukhumvit Place",
        "name_th": "สุขุมวิท เพลส",
        "company_name": "Sukhumvit Estate Co., Ltd.",
        "company_name_th": "บริษัท สุขุมวิท เอสเตท จำกัด",
        "electricity_rate_satang": 800,
        "water_rate_satang": 1800,
        "line_access_token": "line-token",
        "line_channel_secret": "line-secret",
    })


@pytest.fixture
def unit(stores, project):
    return stores.units.insert({
        "project_id": project.id,
        "unit_number": "101",
        "floor": 1,
        "status": UnitStatus.OCCUPIED,
    })


@pytest.fixture
def tenant(stores, unit, today):
    return stores.tenants.insert({
        "unit_id": unit.id,
        "status": TenantStatus.ACTIVE,
        "name": "Somchai Jaidee",
        "name_th": "สมชาย ใจดี",
        "tenant_type": TenantType.INDIVIDUAL,
        "base_rent_satang": 1_000_000,
        "common_fee_satang": 50_000,
        "contract_start": today - timedelta(days=30),
        "contract_end": today + timedelta(days=335),
    })


@pytest.fixture
def other_project(stores, test_user_b_id):
    """A project belonging to the secondary owner."""
    return stores.projects.insert(test_user_b_id, {"name": "Other Tower"})


# =============================================================================
# INFRASTRUCTURE FIXTURES (skip without Vault)
# =============================================================================


def _require_vault():
    if not os.getenv("VAULT_ADDR"):
        pytest.skip("Vault not configured (VAULT_ADDR unset)")


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient."""
    _require_vault()
    from clients.postgres_client import PostgresClient
    from clients.vault_client import get_database_url

    client = PostgresClient(get_database_url())
    yield client
    client.close()


@pytest.fixture(scope="session")
def valkey():
    """Session-scoped ValkeyClient."""
    _require_vault()
    from clients.valkey_client import ValkeyClient
    from clients.vault_client import get_valkey_url

    client = ValkeyClient(get_valkey_url())
    yield client
    client.close()
