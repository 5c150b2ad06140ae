from __future__ import annotations

import structlog

from app.clients.backend import BackendError
from app.core.exceptions import InfrastructureError, NotFoundError
from app.repositories.interfaces import CatalogRepository
from app.schemas.waste_type import WasteTypeIdResponse, WasteTypeItem, WasteTypeListResponse
from app.services.waste_types import CATALOG_ORDER

logger = structlog.get_logger(__name__)


def catalog_listing() -> WasteTypeListResponse:
    """Display catalogue; static, so it needs no backend."""
    return WasteTypeListResponse(items=[WasteTypeItem(name=w.value) for w in CATALOG_ORDER])


class CatalogService:
    def __init__(self, repo: CatalogRepository) -> None:
        self._repo = repo
        # Per-instance memo; services are built per request.
        self._waste_type_ids: dict[str, int | None] = {}

    def list_waste_types(self) -> WasteTypeListResponse:
        return catalog_listing()

    async def find_waste_type_id(self, name: str) -> int | None:
        if name in self._waste_type_ids:
            return self._waste_type_ids[name]
        try:
            waste_type_id = await self._repo.get_waste_type_id(name)
        except BackendError as exc:
            logger.error("waste_type_lookup_failed", name=name, error=exc.message)
            raise InfrastructureError("could not read waste types") from exc
        self._waste_type_ids[name] = waste_type_id
        return waste_type_id

    async def get_waste_type_id(self, name: str) -> WasteTypeIdResponse:
        waste_type_id = await self.find_waste_type_id(name)
        if waste_type_id is None:
            raise NotFoundError(f"waste type '{name}' not found")
        return WasteTypeIdResponse(id=waste_type_id, name=name)

    async def get_user_id(self, auth_uuid: str) -> int:
        try:
            user_id = await self._repo.get_user_id(auth_uuid)
        except BackendError as exc:
            logger.error("user_lookup_failed", error=exc.message)
            raise InfrastructureError("could not read users") from exc
        if user_id is None:
            # The user row is created by a sync trigger on sign-up.
            raise NotFoundError("user not found; the user sync trigger may have failed")
        return user_id
