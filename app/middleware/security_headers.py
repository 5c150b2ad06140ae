from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response

_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # Clients send their own location as query parameters; the API never
    # needs browser geolocation beyond its own origin.
    "Permissions-Policy": "geolocation=(self)",
    "Cache-Control": "no-store",
}


async def security_headers_middleware(request: Request, call_next: Callable) -> Response:
    """Attach basic security headers to every response (existing values win)."""
    response = await call_next(request)
    for name, value in _HEADERS.items():
        response.headers.setdefault(name, value)
    return response
