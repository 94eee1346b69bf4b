"""
Error Handlers

Centralized exception handlers for the FastAPI application. Every error
response has the shape ``{"error": {"code", "message", "details"}}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from pymongo.errors import PyMongoError

from ...domain.errors import DomainError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "error": {"code": code, "message": message, "details": details or {}}
        }),
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    These are expected errors such as invalid actions, permission denied,
    missing cases or concurrent updates.
    """
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"Domain error: {exc.error_code} - {exc.message} ({request.method} {request.url.path})",
        extra={"error_code": exc.error_code}
    )
    return _error_response(exc.http_status, exc.error_code, exc.message, exc.details)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request bodies or parameters that don't match the expected schema."""
    logger.warning(
        f"Validation error: {exc.errors()}, path={request.url.path}, method={request.method}"
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": exc.errors()}
    )


async def persistence_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """
    Handle store failures.

    Nothing was committed for the failed write, so the request can be retried.
    """
    logger.error(f"Persistence error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "PERSISTENCE_ERROR",
        "The data store is unavailable. Please retry.",
        {"retryable": True}
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors; logs the full stack trace."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        {"hint": "Check server logs for details"}
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PyMongoError, persistence_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
