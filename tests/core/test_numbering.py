"""Tests for document numbering."""

import re
from datetime import datetime, timezone

import pytest

from core.exceptions import DuplicateNumberError
from core.numbering import (
    contract_number,
    invoice_number,
    receipt_number,
    signing_token,
    signing_token_expiry,
    with_unique_number,
)


class TestDocumentNumbers:

    def test_invoice_number_format(self):
        # 2025-01-31 20:00 UTC is already February in Bangkok
        when = datetime(2025, 1, 31, 20, 0, tzinfo=timezone.utc)

        number = invoice_number("SUK", when)

        assert re.fullmatch(r"INV-SUK-202502-\d{4}", number)

    def test_receipt_number_format(self):
        when = datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc)

        assert re.fullmatch(r"RCP-ABC-202503-\d{4}", receipt_number("ABC", when))

    def test_contract_number_is_sequential(self):
        assert contract_number(2025, 0) == "LC202500001"
        assert contract_number(2025, 41) == "LC202500042"


class TestSigningToken:

    def test_tokens_are_unique_and_urlsafe(self):
        tokens = {signing_token() for _ in range(20)}

        assert len(tokens) == 20
        assert all(re.fullmatch(r"[A-Za-z0-9_-]+", t) for t in tokens)

    def test_expiry_adds_days(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert signing_token_expiry(7, now) == datetime(2025, 1, 8, tzinfo=timezone.utc)


class TestWithUniqueNumber:

    def test_returns_first_free_number(self):
        candidates = iter(["A", "B", "C"])
        taken = {"A"}

        def insert(number):
            if number in taken:
                raise DuplicateNumberError(number)
            return number

        assert with_unique_number(lambda: next(candidates), insert, attempts=3) == "B"

    def test_gives_up_after_attempts(self):
        calls = []

        def insert(number):
            calls.append(number)
            raise DuplicateNumberError(number)

        with pytest.raises(DuplicateNumberError):
            with_unique_number(lambda: "X", insert, attempts=4)

        assert len(calls) == 4

    def test_other_errors_propagate(self):
        def insert(number):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            with_unique_number(lambda: "X", insert, attempts=3)
