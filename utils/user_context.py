"""Propagate the authenticated owner's identity through the call stack.

Services take the owner id as an explicit argument. This contextvar exists for
the infrastructure underneath them: the Postgres client publishes it as
``app.current_user_id`` and the audit logger falls back to it.
"""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_user_id: ContextVar[UUID | None] = ContextVar("current_user_id", default=None)


def get_current_user_id() -> UUID:
    """
    Get current user ID from context.

    Raises RuntimeError if no user context is set. Public endpoints (LINE
    webhook, LIFF, contract signing) run without one, so code on those paths
    must pass identities explicitly.
    """
    user_id = _current_user_id.get()
    if user_id is None:
        raise RuntimeError(
            "No user context set. This usually means you're calling "
            "owner-scoped code outside of an authenticated request."
        )
    return user_id


def peek_current_user_id() -> UUID | None:
    """Current user ID, or None on public and background paths."""
    return _current_user_id.get()


def set_current_user_id(user_id: UUID) -> None:
    """Set current user ID in context. Called by auth middleware."""
    _current_user_id.set(user_id)


def clear_current_user_id() -> None:
    """
    Clear user context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_user_id.set(None)


@contextmanager
def user_context(user_id: UUID):
    """
    Temporarily act as a given owner. The previous identity is restored on exit.
    """
    previous = _current_user_id.get()
    set_current_user_id(user_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_user_id()
        else:
            set_current_user_id(previous)
