from __future__ import annotations

from collections.abc import Sequence

from app.clients.backend import BackendClient, BackendError
from app.repositories.interfaces import NewPointRow, PointImportRepository

from .tables import POINT_TABLE, POINT_WASTE_TABLE


class BackendPointImportRepository(PointImportRepository):
    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def insert_points(self, points: Sequence[NewPointRow]) -> list[int]:
        """Insert points and return their new ids in input order."""
        inserted = await self._client.insert(
            POINT_TABLE,
            [
                {
                    "nombre": p.name,
                    "direccion": p.address,
                    "latitud": p.latitude,
                    "longitud": p.longitude,
                }
                for p in points
            ],
            returning="id_punto",
        )
        if len(inserted) != len(points):
            raise BackendError(
                f"expected {len(points)} ids, got {len(inserted)}", code="id_mismatch"
            )
        return [int(row["id_punto"]) for row in inserted]

    async def insert_relations(self, pairs: Sequence[tuple[int, int]]) -> None:
        if not pairs:
            return
        await self._client.insert(
            POINT_WASTE_TABLE,
            [
                {"id_punto": point_id, "id_residuo": waste_type_id}
                for point_id, waste_type_id in pairs
            ],
        )
