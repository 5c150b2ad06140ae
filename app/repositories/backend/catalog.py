"""Backend implementation of the catalogue repository."""

from __future__ import annotations

from app.clients.backend import BackendClient
from app.repositories.interfaces import CatalogRepository, WasteTypeRow

from .tables import USER_TABLE, WASTE_TYPE_TABLE


class BackendCatalogRepository(CatalogRepository):
    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def list_waste_types(self) -> list[WasteTypeRow]:
        data = await self._client.select(WASTE_TYPE_TABLE, columns="id_residuo, nombre_residuo")
        return [
            WasteTypeRow(id=int(row["id_residuo"]), name=str(row["nombre_residuo"]))
            for row in data or []
            if row.get("id_residuo") is not None and row.get("nombre_residuo")
        ]

    async def get_waste_type_id(self, name: str) -> int | None:
        row = await self._client.select(
            WASTE_TYPE_TABLE,
            columns="id_residuo",
            filters={"nombre_residuo": name},
            maybe_single=True,
        )
        if not row or row.get("id_residuo") is None:
            return None
        return int(row["id_residuo"])

    async def get_user_id(self, auth_uuid: str) -> int | None:
        row = await self._client.select(
            USER_TABLE,
            columns="id_usuario",
            filters={"auth_uuid": auth_uuid},
            maybe_single=True,
        )
        if not row or row.get("id_usuario") is None:
            return None
        return int(row["id_usuario"])
