"""Central exception handlers: every error leaves the API as JSON."""

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.core import exceptions as domain_exceptions

logger = structlog.get_logger(__name__)

# Most specific first; the first matching class wins when registering.
_DOMAIN_STATUS: tuple[tuple[type[domain_exceptions.DomainError], int, str], ...] = (
    (domain_exceptions.NotFoundError, 404, "Not Found"),
    (domain_exceptions.ValidationError, 400, "Bad Request"),
    (domain_exceptions.ConflictError, 409, "Conflict"),
    (domain_exceptions.AuthError, 401, "Unauthorized"),
    (domain_exceptions.InfrastructureError, 503, "Service Unavailable"),
)


def _detail(status_code: int, detail) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def rate_limited_response(info: dict) -> JSONResponse:
    """429 body shared by the middleware and the slowapi exception handler."""
    return JSONResponse(
        status_code=429,
        content={"error": {"code": "rate_limited", "message": "Too Many Requests", "detail": info}},
    )


def _on_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    return _detail(exc.status_code, exc.detail)


def _on_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    # The field list goes to the log only; clients get a fixed message.
    logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return _detail(422, "Unprocessable Entity")


def _on_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    info = getattr(request.state, "rate_limit_info", None)
    if not isinstance(info, dict):
        info = {
            "method": request.method,
            "ip": (request.client.host if request.client else None) or "-",
            "limit": str(getattr(exc, "detail", "-")),
        }
    return rate_limited_response(info)


def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
    return _detail(500, "Internal Server Error")


def _domain_handler(status_code: int, fallback: str):
    def _handler(_: Request, exc: domain_exceptions.DomainError) -> JSONResponse:
        return _detail(status_code, str(exc) or fallback)

    return _handler


def install(app) -> None:
    app.add_exception_handler(HTTPException, _on_http_exception)
    app.add_exception_handler(RequestValidationError, _on_request_validation)
    app.add_exception_handler(RateLimitExceeded, _on_rate_limited)
    for exc_type, status_code, fallback in _DOMAIN_STATUS:
        app.add_exception_handler(exc_type, _domain_handler(status_code, fallback))
    app.add_exception_handler(Exception, _on_unhandled)
