"""
Error Handlers

Centralized exception handlers for the FastAPI application.
"""

import json
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...domain.errors import DomainError, AuthenticationError, StoreError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)

# Seconds a client should wait before retrying after a store outage
STORE_RETRY_AFTER_SECONDS = 5

SECRET_FIELDS = ("password", "access_token")


def _response_headers() -> Dict[str, str]:
    return {"X-Correlation-Id": get_correlation_id() or ""}


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: "***" if k in SECRET_FIELDS else _redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _loggable_body(body: bytes) -> str:
    """Request body for the log, with credentials masked"""
    if not body:
        return "empty"
    try:
        return json.dumps(_redact(json.loads(body)))[:500]
    except ValueError:
        return "unparseable body"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    These are expected errors that occur during normal operation,
    such as validation failures, lifecycle conflicts and store outages.
    Store outages are logged at ERROR, everything else at WARNING.

    A store outage tells the client when to retry and keeps the store
    details (file paths, hosts) in the log only.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code, "details": exc.details}
    )

    content = exc.to_dict()
    headers = _response_headers()
    if isinstance(exc, StoreError):
        content["error"]["details"] = {}
        headers["Retry-After"] = str(STORE_RETRY_AFTER_SECONDS)
    elif isinstance(exc, AuthenticationError):
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(status_code=exc.http_status, content=content, headers=headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Logs the path and the request body with passwords and tokens masked.
    """
    logger.warning(
        f"Validation error: {exc.errors()}, "
        f"path={request.url.path}, "
        f"method={request.method}, "
        f"body={_loggable_body(await request.body())}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": _redact(exc.errors())}
            }
        },
        headers=_response_headers()
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Logs full stack trace for debugging.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": {"hint": "Check server logs for details"}
            }
        },
        headers=_response_headers()
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
