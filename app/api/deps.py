"""API dependency helpers and service providers."""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog
from fastapi import Depends, Header

from app.clients.backend import BackendClient
from app.core.config import Settings, get_settings
from app.core.exceptions import AuthError, DomainError
from app.repositories.backend import (
    BackendCatalogRepository,
    BackendPointReadRepository,
    BackendQueryLogRepository,
)
from app.services.auth import AuthService
from app.services.catalog import CatalogService
from app.services.health import HealthService
from app.services.nearby_points import NearbyPointService
from app.services.query_log import QueryLogService

__all__ = [
    "get_access_token",
    "get_auth_service",
    "get_backend_client",
    "get_catalog_service",
    "get_health_service",
    "get_nearby_point_service",
    "get_optional_user_id",
    "get_required_access_token",
    "get_settings",
]

logger = structlog.get_logger(__name__)


async def get_backend_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[BackendClient]:
    async with BackendClient.from_settings(settings) as client:
        yield client


def get_access_token(authorization: str | None = Header(default=None)) -> str | None:
    """Bearer token from the Authorization header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_required_access_token(token: str | None = Depends(get_access_token)) -> str:
    if not token:
        raise AuthError("missing bearer token")
    return token


# --- Service providers for DI ---


def get_catalog_service(client: BackendClient = Depends(get_backend_client)) -> CatalogService:
    return CatalogService(BackendCatalogRepository(client))


def get_auth_service(client: BackendClient = Depends(get_backend_client)) -> AuthService:
    return AuthService(client)


def get_health_service(client: BackendClient = Depends(get_backend_client)) -> HealthService:
    return HealthService(client)


def get_nearby_point_service(
    client: BackendClient = Depends(get_backend_client),
    catalog: CatalogService = Depends(get_catalog_service),
    settings: Settings = Depends(get_settings),
) -> NearbyPointService:
    return NearbyPointService(
        BackendPointReadRepository(client, rpc_function=settings.nearby_rpc_function),
        catalog,
        QueryLogService(BackendQueryLogRepository(client)),
        settings,
    )


async def get_optional_user_id(
    token: str | None = Depends(get_access_token),
    auth: AuthService = Depends(get_auth_service),
    catalog: CatalogService = Depends(get_catalog_service),
) -> int | None:
    """Resolve ``id_usuario`` for a signed-in caller; anonymous searches get None."""
    if not token:
        return None
    try:
        user = await auth.current_user(token)
        return await catalog.get_user_id(user.id)
    except DomainError as exc:
        logger.warning("user_resolution_failed", error=str(exc))
        return None
