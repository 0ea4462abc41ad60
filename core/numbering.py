"""Document number and signing token generation."""

import secrets
from datetime import datetime, timedelta
from typing import Callable, TypeVar

from core.exceptions import DuplicateNumberError
from utils.timezone import BILLING_TZ, now_utc, to_local

INVOICE_PREFIX = "INV"
RECEIPT_PREFIX = "RCP"
CONTRACT_PREFIX = "LC"

T = TypeVar("T")


def document_number(prefix: str, project_code: str, when: datetime | None = None,
                    tz_name: str = BILLING_TZ) -> str:
    """
    Build '{prefix}-{projectCode}-{yyyyMM}-{4 random digits}'.

    The month is the local calendar month at `when` (default now).
    """
    local = to_local(when or now_utc(), tz_name)
    suffix = f"{secrets.randbelow(10000):04d}"
    return f"{prefix}-{project_code}-{local:%Y%m}-{suffix}"


def invoice_number(project_code: str, when: datetime | None = None) -> str:
    return document_number(INVOICE_PREFIX, project_code, when)


def receipt_number(project_code: str, when: datetime | None = None) -> str:
    return document_number(RECEIPT_PREFIX, project_code, when)


def contract_number(year: int, existing_count: int) -> str:
    """Sequential per year: LC2025 + 5-digit sequence."""
    return f"{CONTRACT_PREFIX}{year}{existing_count + 1:05d}"


def signing_token() -> str:
    return secrets.token_urlsafe(32)


def signing_token_expiry(days: int, now: datetime | None = None) -> datetime:
    return (now or now_utc()) + timedelta(days=days)


def with_unique_number(
    generate: Callable[[], str],
    insert: Callable[[str], T],
    attempts: int,
) -> T:
    """
    Insert with a freshly generated number, retrying on collision.

    Args:
        generate: Produces a candidate number
        insert: Stores the record under the number; raises DuplicateNumberError
            when the number is taken
        attempts: Maximum candidates to try

    Returns:
        Whatever insert returns

    Raises:
        DuplicateNumberError: Every candidate collided
    """
    last_error = None
    for _ in range(attempts):
        try:
            return insert(generate())
        except DuplicateNumberError as e:
            last_error = e
    raise DuplicateNumberError(f"No free document number after {attempts} attempts") from last_error
