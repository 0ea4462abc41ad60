"""
Valkey (Redis-compatible) client for owner sessions.

Sessions are JSON documents written by the sign-in provider; this client
reads them, rewrites them when their expiry slides, and deletes expired ones.
Fail-fast: connection errors propagate, a missing key is None.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    JSON key/value access over redis-py.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("session:abc", {"user_id": "..."}, expire_seconds=3600)
        data = client.get_json("session:abc")  # None if missing
    """

    def __init__(self, url: str):
        """
        Raises:
            redis.ConnectionError: Valkey unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        self._client.ping()
        return True

    def get_json(self, key: str) -> dict | list | None:
        """
        Deserialized value, or None if the key is missing.

        Raises:
            ValueError: Stored value is not JSON
        """
        value = self._client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """Store value as JSON, with a TTL when expire_seconds is given."""
        payload = json.dumps(value)
        if expire_seconds is not None:
            self._client.setex(key, expire_seconds, payload)
        else:
            self._client.set(key, payload)

    def delete(self, key: str) -> bool:
        """True if the key existed."""
        return self._client.delete(key) > 0

    def ttl(self, key: str) -> int:
        """Remaining seconds, -1 without expiry, -2 if missing."""
        return self._client.ttl(key)

    def close(self) -> None:
        self._client.close()
        logger.info("ValkeyClient closed")
