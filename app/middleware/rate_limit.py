"""Per-IP moving-window rate limits, chosen by method and path.

Auth POSTs (sign-in/sign-up) get their own tighter bucket so password
guessing cannot borrow from the search budget.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypedDict

from fastapi import Request, Response
from limits import parse as parse_limit
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter

from app.api.errors import rate_limited_response


class RateLimitInfo(TypedDict, total=False):
    method: str
    ip: str
    limit: str


@dataclass(frozen=True)
class LimitRule:
    methods: frozenset[str]
    limit: str
    bucket: str
    path_prefix: str = ""

    def matches(self, method: str, path: str) -> bool:
        return method in self.methods and path.startswith(self.path_prefix)


_RULES: tuple[LimitRule, ...] = (
    LimitRule(frozenset({"POST"}), "10/minute", "auth", path_prefix="/auth/"),
    LimitRule(frozenset({"GET", "HEAD"}), "60/minute", "read"),
    LimitRule(frozenset({"POST", "PATCH", "DELETE"}), "30/minute", "write"),
)

# Exposed as app.state.limiter; route decorators can use it for extra limits.
limiter = Limiter(key_func=lambda request: _client_ip(request))

# Per-process storage.
_storage = MemoryStorage()
_rate = MovingWindowRateLimiter(_storage)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "local"


def _enabled() -> bool:
    # RATE_LIMIT_ENABLED=1 wins over TESTING.
    if os.getenv("RATE_LIMIT_ENABLED") in {"1", "true", "TRUE"}:
        return True
    return not os.getenv("TESTING")


def _rule_for(method: str, path: str) -> LimitRule | None:
    m = method.upper()
    return next((rule for rule in _RULES if rule.matches(m, path)), None)


def _limit_for(method: str, path: str) -> str | None:
    rule = _rule_for(method, path)
    return rule.limit if rule else None


async def rate_limit_middleware(request: Request, call_next: Callable) -> Response:
    # OPTIONS (CORS preflight) has no rule and passes through.
    rule = _rule_for(request.method, request.url.path) if _enabled() else None
    if rule is None:
        return await call_next(request)

    ip = _client_ip(request)
    if not _rate.hit(parse_limit(rule.limit), f"{rule.bucket}|{request.method.upper()}|{ip}"):
        info: RateLimitInfo = {"method": request.method.upper(), "ip": ip, "limit": rule.limit}
        request.state.rate_limit_info = info
        return rate_limited_response(dict(info))

    response = await call_next(request)
    response.headers.setdefault("X-RateLimit-Limit", rule.limit)
    return response
