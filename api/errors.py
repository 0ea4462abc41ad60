"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    BusinessRuleError,
    ConcurrentUpdateError,
    DomainError,
    ForbiddenError,
    LinkExpiredError,
    NotFoundError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

DOMAIN_STATUS = {
    ForbiddenError: 403,
    NotFoundError: 404,
    BusinessRuleError: 400,
    LinkExpiredError: 410,
    ConcurrentUpdateError: 409,
}


def _json(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, request_id).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = 400
        for error_type, status in DOMAIN_STATUS.items():
            if isinstance(exc, error_type):
                status_code = status
                break
        return _json(request, status_code, exc.code, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        logger.warning(f"Upstream failure on {request.url.path}: {exc}")
        code = ErrorCodes.NOT_FOUND if exc.status_code == 404 else ErrorCodes.UPSTREAM_ERROR
        return _json(request, exc.status_code, code, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _json(request, 404, ErrorCodes.NOT_FOUND, message)
        return _json(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
