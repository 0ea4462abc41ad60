"""Typed exceptions for domain failures.

Client-facing failures subclass ValueError so anything that slips past the
specific handlers still maps to a 4xx instead of a 500.
"""


class DomainError(ValueError):
    """Base class for domain errors surfaced to API clients."""

    code = "INVALID_REQUEST"


class NotFoundError(DomainError):
    """Entity is missing or belongs to another owner."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id=None, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        if message is not None:
            super().__init__(message)
        elif entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} {entity_id} not found")


class ForbiddenError(DomainError):
    """Entity exists but the caller does not own it."""

    code = "AUTHORIZATION_DENIED"


class BusinessRuleError(DomainError):
    """Request is well-formed but violates a lifecycle or business rule."""

    def __init__(self, message: str, code: str = "INVALID_REQUEST"):
        self.code = code
        super().__init__(message)


class LinkExpiredError(DomainError):
    """Time-limited link (contract signing token) has expired."""

    code = "LINK_EXPIRED"


class ConcurrentUpdateError(DomainError):
    """A compare-and-set write lost the race too many times."""

    code = "CONFLICT"


class DuplicateNumberError(Exception):
    """Generated document number collided with an existing one.

    Raised by stores on a unique-constraint violation so callers can retry with
    a fresh number. Never reaches API clients.
    """


class UpstreamError(Exception):
    """An external collaborator (LINE, object storage) failed.

    Carries the HTTP status the API should answer with.
    """

    def __init__(self, message: str, status_code: int = 502):
        self.status_code = status_code
        super().__init__(message)
