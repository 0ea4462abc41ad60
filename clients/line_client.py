"""
LINE Messaging API client.

One client per project, built from the project's channel access token.
Covers what billing needs: push and reply messages, user profiles, message
content (slip images) and webhook signature verification.
"""

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass

import requests

from core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

API_BASE = "https://api.line.me/v2/bot"
DATA_API_BASE = "https://api-data.line.me/v2/bot"


def verify_signature(body: bytes, signature: str, channel_secret: str) -> bool:
    """Check X-Line-Signature: base64(HMAC-SHA256(channel_secret, body))."""
    if not signature or not channel_secret:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


@dataclass
class LineProfile:
    display_name: str
    picture_url: str | None = None
    status_message: str | None = None


@dataclass
class MessageContent:
    content_type: str
    data: bytes


def text_message(text: str) -> dict:
    return {"type": "text", "text": text}


class LineClient:
    """Call the Messaging API with a channel access token."""

    def __init__(self, access_token: str, timeout: int = 10):
        """
        Raises:
            ValueError: If access_token is empty
        """
        if not access_token:
            raise ValueError("access_token is required")
        self.access_token = access_token
        self.timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}

    def _post(self, path: str, payload: dict) -> None:
        try:
            response = requests.post(
                f"{API_BASE}{path}",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"LINE API connection failed: {e}")
            raise UpstreamError(f"LINE API connection failed: {e}")

        if response.status_code != 200:
            logger.error(f"LINE API error {response.status_code}: {response.text}")
            raise UpstreamError("Failed to send LINE message", status_code=502)

    def push(self, to: str, messages: list[dict]) -> None:
        """
        Push messages to a LINE user.

        Raises:
            UpstreamError: LINE rejected the request
        """
        self._post("/message/push", {"to": to, "messages": messages})

    def reply(self, reply_token: str, messages: list[dict]) -> None:
        """Reply to a webhook event."""
        self._post("/message/reply", {"replyToken": reply_token, "messages": messages})

    def get_profile(self, user_id: str) -> LineProfile | None:
        """Profile of a user who follows the account, or None if unavailable."""
        try:
            response = requests.get(
                f"{API_BASE}/profile/{user_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"LINE profile lookup failed for {user_id}: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"LINE profile lookup for {user_id} returned {response.status_code}")
            return None

        data = response.json()
        return LineProfile(
            display_name=data.get("displayName") or "Unknown User",
            picture_url=data.get("pictureUrl"),
            status_message=data.get("statusMessage"),
        )

    def get_content(self, message_id: str) -> MessageContent:
        """
        Download the binary content of an image message.

        Raises:
            UpstreamError: 404 when the content expired, 401 for a bad token,
                502 otherwise
        """
        try:
            response = requests.get(
                f"{DATA_API_BASE}/message/{message_id}/content",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"LINE content fetch failed: {e}")
            raise UpstreamError(f"LINE content fetch failed: {e}")

        if response.status_code == 404:
            raise UpstreamError(
                "Message content expired or not found. LINE messages can only be "
                "retrieved for a limited time.",
                status_code=404,
            )
        if response.status_code == 401:
            raise UpstreamError(
                "LINE access token invalid or expired. Please reconnect LINE OA.",
                status_code=401,
            )
        if response.status_code != 200:
            logger.error(f"LINE content API error {response.status_code}: {response.text}")
            raise UpstreamError(f"Failed to fetch image from LINE: {response.status_code}")

        return MessageContent(
            content_type=response.headers.get("Content-Type", "image/jpeg"),
            data=response.content,
        )
