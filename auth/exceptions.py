"""Typed exceptions for session failures."""


class AuthError(Exception):
    """Base class for authentication errors."""


class SessionExpiredError(AuthError):
    """Session is missing or expired and the owner must sign in again."""
