import os

import sentry_sdk
import structlog
from fastapi import FastAPI
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.cors import CORSMiddleware

from app.api import errors
from app.api.routers import auth, healthz, points, readyz, waste_types
from app.logging import setup_logging
from app.middleware.rate_limit import limiter, rate_limit_middleware
from app.middleware.request_id import request_id_middleware
from app.middleware.security_headers import security_headers_middleware

_ROUTERS = (points.router, waste_types.router, auth.router, healthz.router, readyz.router)

# Sentry performance sampling is capped to keep quota usage predictable.
_MAX_TRACES_RATE = 0.2


def _traces_rate() -> float:
    try:
        requested = float(os.getenv("SENTRY_TRACES_RATE", "0"))
    except ValueError:
        return 0.0
    return max(0.0, min(_MAX_TRACES_RATE, requested))


def _init_sentry(env: str) -> None:
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        environment=env,
        release=os.getenv("RELEASE"),
        integrations=[StarletteIntegration()],
        traces_sample_rate=_traces_rate(),
        send_default_pii=False,
    )


def _allowed_origins() -> list[str]:
    return [o.strip() for o in os.getenv("ALLOW_ORIGINS", "").split(",") if o.strip()]


def create_app() -> FastAPI:
    setup_logging()
    env = os.getenv("APP_ENV", "dev")
    _init_sentry(env)

    app = FastAPI(title="Recycling Point Finder")
    app.state.limiter = limiter
    errors.install(app)

    # Last registered runs first: rate limit, then security headers, then request id.
    for middleware in (
        request_id_middleware,
        security_headers_middleware,
        rate_limit_middleware,
    ):
        app.middleware("http")(middleware)

    origins = _allowed_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        )

    for router in _ROUTERS:
        app.include_router(router)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "env": env}

    if env != "prod":

        @app.get("/debug/error", include_in_schema=False)
        def debug_error():
            raise RuntimeError("intentional error for Sentry debug")

    structlog.get_logger(__name__).info(
        "app_startup", env=env, cors_origins=len(origins), sentry=bool(os.getenv("SENTRY_DSN"))
    )
    return app


app = create_app()
