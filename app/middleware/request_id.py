from __future__ import annotations

import time
import uuid
from collections.abc import Callable

import sentry_sdk
import structlog
from fastapi import Request, Response

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INBOUND_ID_LENGTH = 128

logger = structlog.get_logger(__name__)


def _request_id(request: Request) -> str:
    inbound = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if inbound and len(inbound) <= _MAX_INBOUND_ID_LENGTH:
        return inbound
    return str(uuid.uuid4())


def _tag_sentry_scope(rid: str, request: Request) -> None:
    try:
        scope = sentry_sdk.get_isolation_scope()
        scope.set_tag("request_id", rid)
        scope.set_tag("path", request.url.path)
        scope.set_tag("method", request.method)
    except Exception:  # noqa: BLE001 - tagging must never fail a request
        logger.debug("sentry_tagging_failed", request_id=rid)


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """Propagate X-Request-ID and write one ``http_request`` access log line.

    The inbound header is reused when present (and of sane length), otherwise a
    UUID4 is generated. The id is bound to structlog contextvars so that
    service logs emitted while handling the request carry it too.
    """
    rid = _request_id(request)
    structlog.contextvars.bind_contextvars(
        request_id=rid, path=request.url.path, method=request.method
    )
    _tag_sentry_scope(rid, request)

    started = time.perf_counter()
    fields = {"client_ip": (request.client.host if request.client else None) or "-"}
    try:
        response = await call_next(request)
    except Exception:
        logger.error("http_request", status=500, exc_info=True, **fields, **_elapsed(started))
        raise
    else:
        emit = logger.error if response.status_code >= 500 else logger.info
        emit("http_request", status=response.status_code, **fields, **_elapsed(started))
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    finally:
        structlog.contextvars.clear_contextvars()


def _elapsed(started: float) -> dict[str, float]:
    return {"duration_ms": round((time.perf_counter() - started) * 1000.0, 3)}
