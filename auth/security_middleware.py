"""Owner session gate for the dashboard API."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.exceptions import SessionExpiredError
from api.base import error_response, ErrorCodes
from utils.user_context import set_current_user_id, clear_current_user_id

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"

# Exact matches
PUBLIC_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/api/line/webhook"})

# Tenant-facing pages. They identify the caller by signing token or LINE user id.
PUBLIC_PREFIXES = ("/api/sign/", "/api/liff/")


def is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Resolve the owner behind the session cookie.

    On success the owner id is placed on request.state and in the user
    context for the duration of the request. Everything outside the public
    paths answers 401 without a live session.
    """

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self._session_manager = session_manager

    def _reject(self, request: Request, code: str, message: str) -> JSONResponse:
        logger.info(f"Rejected {request.method} {request.url.path}: {code}")
        body = error_response(code, message, getattr(request.state, "request_id", None))
        return JSONResponse(status_code=401, content=body.model_dump(mode="json"))

    async def dispatch(self, request: Request, call_next):
        if is_public(request.url.path):
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE)
        if not token:
            return self._reject(request, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            session = self._session_manager.validate_session(token)
        except SessionExpiredError:
            return self._reject(request, ErrorCodes.SESSION_EXPIRED, "Session has expired")

        request.state.user_id = session.user_id
        request.state.session = session
        set_current_user_id(session.user_id)
        try:
            return await call_next(request)
        finally:
            clear_current_user_id()
