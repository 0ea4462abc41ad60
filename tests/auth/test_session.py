"""Tests for SessionManager - validating sessions written by the sign-in provider."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from auth.session import SessionManager
from auth.config import AuthConfig
from auth.exceptions import AuthError, SessionExpiredError
from clients.valkey_client import ValkeyClient
from utils.timezone import now_utc


def stored_session(user_id, expires_in: timedelta) -> dict:
    now = now_utc()
    return {
        "user_id": str(user_id),
        "created_at": (now - timedelta(days=1)).isoformat(),
        "expires_at": (now + expires_in).isoformat(),
        "last_activity_at": (now - timedelta(hours=1)).isoformat(),
    }


@pytest.fixture
def valkey():
    """Mock Valkey; the real client is covered in tests/clients."""
    return Mock(spec=ValkeyClient)


@pytest.fixture
def config():
    return AuthConfig(session_expiry_hours=48, session_extend_threshold_hours=24)


@pytest.fixture
def session_manager(valkey, config):
    return SessionManager(valkey, config)


class TestValidateSession:

    def test_valid_session(self, session_manager, valkey, test_user_id):
        valkey.get_json.return_value = stored_session(test_user_id, timedelta(hours=40))

        session = session_manager.validate_session("abc")

        assert session.user_id == test_user_id
        assert session.token == "abc"
        valkey.get_json.assert_called_once_with("session:abc")
        valkey.set_json.assert_not_called()

    def test_unknown_token(self, session_manager, valkey):
        valkey.get_json.return_value = None

        with pytest.raises(SessionExpiredError, match="not found"):
            session_manager.validate_session("nonexistent-token")

    def test_expired_session_deleted(self, session_manager, valkey, test_user_id):
        valkey.get_json.return_value = stored_session(test_user_id, -timedelta(minutes=1))

        with pytest.raises(SessionExpiredError, match="expired"):
            session_manager.validate_session("abc")

        valkey.delete.assert_called_once_with("session:abc")

    @pytest.mark.parametrize("data", [
        {"user_id": "not-a-uuid"},
        {"created_at": "2025-01-01T00:00:00+00:00"},
        {},
    ])
    def test_malformed_session(self, session_manager, valkey, data):
        valkey.get_json.return_value = data

        with pytest.raises(SessionExpiredError, match="Malformed"):
            session_manager.validate_session("abc")

    def test_session_expired_is_auth_error(self):
        assert issubclass(SessionExpiredError, AuthError)


class TestSlidingExpiry:

    def test_extends_near_expiry(self, session_manager, valkey, test_user_id):
        valkey.get_json.return_value = stored_session(test_user_id, timedelta(hours=2))
        before = now_utc()

        session = session_manager.validate_session("abc")

        assert session.expires_at >= before + timedelta(hours=48)
        key, data = valkey.set_json.call_args.args
        assert key == "session:abc"
        assert data["user_id"] == str(test_user_id)
        assert data["expires_at"] == session.expires_at.isoformat()
        assert valkey.set_json.call_args.kwargs["expire_seconds"] == 48 * 3600

    def test_extension_disabled(self, valkey, test_user_id):
        manager = SessionManager(valkey, AuthConfig(session_extend_on_activity=False))
        valkey.get_json.return_value = stored_session(test_user_id, timedelta(hours=2))

        manager.validate_session("abc")

        valkey.set_json.assert_not_called()
