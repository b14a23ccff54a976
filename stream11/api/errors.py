"""
HTTP rendering of service errors.

Services raise ``ServiceError`` subclasses tagged with an ``ErrorKind``;
this module is the only place that knows which status code each kind
maps to. Every error body has the shape ``{"detail": ..., "kind": ...}``.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure

from stream11.services.errors import ErrorKind, ServiceError, UnauthenticatedError

logger = structlog.get_logger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.EXPIRED_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PREDICTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PREDICTION_NOT_ACTIVE: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_VOTE: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_RESOLVED: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_OUTCOME: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_DURATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.OAUTH_EXCHANGE_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.OAUTH_PROFILE_FETCH_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(kind: ErrorKind, detail: str) -> JSONResponse:
    """Render an error body with the status code of its kind."""
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"detail": detail, "kind": kind.value},
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, UnauthenticatedError):
        # Expired and forged tokens look the same to the client
        logger.info("Rejected session", path=request.url.path, reason=exc.kind.value)
        return error_response(ErrorKind.UNAUTHENTICATED, "Not authenticated")

    if STATUS_BY_KIND.get(exc.kind, 500) >= 500:
        logger.error("Request failed", path=request.url.path, kind=exc.kind.value, error=exc.message)
    return error_response(exc.kind, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{location}: {message}" if location else message
    return error_response(ErrorKind.INVALID_REQUEST, detail)


async def connection_failure_handler(request: Request, exc: ConnectionFailure) -> JSONResponse:
    logger.error("Database unavailable", path=request.url.path, error=str(exc))
    return error_response(ErrorKind.UNAVAILABLE, "Database unavailable")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return error_response(ErrorKind.INTERNAL, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Install the error handlers on ``app``."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ConnectionFailure, connection_failure_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
