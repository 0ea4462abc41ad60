"""Tests for api/base.py - Unified API response format."""

from datetime import timezone
from types import SimpleNamespace
from uuid import uuid4

from api.base import (
    success_response,
    error_response,
    ok,
    current_owner,
    ErrorCodes,
)


def fake_request(**state):
    return SimpleNamespace(state=SimpleNamespace(**state))


class TestSuccessResponse:

    def test_structure(self):
        resp = success_response({"foo": "bar"})
        assert resp.success is True
        assert resp.data == {"foo": "bar"}
        assert resp.error is None

    def test_request_id_generated(self):
        assert success_response({}).meta.request_id

    def test_timestamp_is_utc(self):
        assert success_response({}).meta.timestamp.tzinfo == timezone.utc


class TestErrorResponse:

    def test_structure(self):
        resp = error_response("INVALID_REQUEST", "Something went wrong", "req-1")
        assert resp.success is False
        assert resp.data is None
        assert resp.error.code == "INVALID_REQUEST"
        assert resp.error.message == "Something went wrong"
        assert resp.meta.request_id == "req-1"


class TestOk:

    def test_envelope_carries_request_id(self):
        body = ok(fake_request(request_id="req-42"), {"deleted": True})

        assert body["success"] is True
        assert body["data"] == {"deleted": True}
        assert body["meta"]["request_id"] == "req-42"

    def test_serializes_uuids(self):
        entity_id = uuid4()

        body = ok(fake_request(request_id="r"), {"id": entity_id})

        assert body["data"]["id"] == str(entity_id)

    def test_without_middleware(self):
        assert ok(fake_request(), []).get("meta")["request_id"]


class TestCurrentOwner:

    def test_reads_request_state(self, test_user_id):
        assert current_owner(fake_request(user_id=test_user_id)) == test_user_id


class TestErrorCodes:

    def test_codes_match_names(self):
        for name in (
            "NOT_AUTHENTICATED", "SESSION_EXPIRED", "AUTHORIZATION_DENIED", "NOT_FOUND",
            "CONFLICT", "VALIDATION_ERROR", "INVALID_REQUEST", "INVALID_SIGNATURE",
            "LINK_EXPIRED", "UPSTREAM_ERROR", "INTERNAL_ERROR",
        ):
            assert getattr(ErrorCodes, name) == name
