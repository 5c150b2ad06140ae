from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from app.clients.backend import BackendClient, BackendError
from app.repositories.interfaces import QueryLogRepository, QueryResultRow

from .tables import QUERY_RESULT_TABLE, QUERY_TABLE


class BackendQueryLogRepository(QueryLogRepository):
    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def insert_query(
        self,
        *,
        latitude: float,
        longitude: float,
        waste_type_id: int,
        user_id: int | None,
    ) -> int:
        row: dict[str, Any] = {
            "latitud_consulta": latitude,
            "longitud_consulta": longitude,
            "id_residuo": int(waste_type_id),
        }
        if user_id is not None:
            row["id_usuario"] = int(user_id)
        inserted = await self._client.insert(QUERY_TABLE, [row], returning="id_consulta")
        if not inserted or inserted[0].get("id_consulta") is None:
            raise BackendError("query insert returned no id", code="missing_id")
        return int(inserted[0]["id_consulta"])

    async def insert_results(self, query_id: int, results: Sequence[QueryResultRow]) -> None:
        if not results:
            return
        await self._client.insert(
            QUERY_RESULT_TABLE,
            [
                {
                    "id_consulta": int(query_id),
                    "id_punto": r.point_id,
                    "distancia": r.distance_km,
                    "orden_resultado": r.rank,
                }
                for r in results
            ],
        )
