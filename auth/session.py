"""Owner session validation.

The sign-in provider stores sessions in Valkey under ``session:{token}`` as
JSON with ``user_id``, ``created_at``, ``expires_at`` and
``last_activity_at``. This module reads them, enforces expiry, and slides the
expiry forward on activity.
"""

from datetime import timedelta
from uuid import UUID

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc, parse_iso


class SessionManager:
    """Reads and extends sessions stored in Valkey."""

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    def validate_session(self, token: str) -> Session:
        """Validate session token and return session.

        Raises SessionExpiredError if the token is unknown, malformed or
        expired.
        """
        data = self._valkey.get_json(self._key(token))

        if data is None:
            raise SessionExpiredError("Session not found or expired")

        try:
            session = Session(
                token=token,
                user_id=UUID(data["user_id"]),
                created_at=parse_iso(data["created_at"]),
                expires_at=parse_iso(data["expires_at"]),
                last_activity_at=parse_iso(data["last_activity_at"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SessionExpiredError("Malformed session") from e

        # Valkey TTL normally removes these first
        if now_utc() > session.expires_at:
            self._valkey.delete(self._key(token))
            raise SessionExpiredError("Session expired")

        if self._should_extend(session):
            session = self._extend_session(session)

        return session

    def _should_extend(self, session: Session) -> bool:
        if not self._config.session_extend_on_activity:
            return False
        remaining = session.expires_at - now_utc()
        return remaining < timedelta(hours=self._config.session_extend_threshold_hours)

    def _extend_session(self, session: Session) -> Session:
        now = now_utc()
        updated = session.model_copy(update={
            "expires_at": now + timedelta(hours=self._config.session_expiry_hours),
            "last_activity_at": now,
        })

        self._valkey.set_json(
            self._key(session.token),
            {
                "user_id": str(updated.user_id),
                "created_at": updated.created_at.isoformat(),
                "expires_at": updated.expires_at.isoformat(),
                "last_activity_at": updated.last_activity_at.isoformat(),
            },
            expire_seconds=self._config.session_expiry_hours * 3600,
        )

        return updated

