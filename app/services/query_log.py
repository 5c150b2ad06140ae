from __future__ import annotations

from collections.abc import Sequence

import structlog

from app.clients.backend import BackendError
from app.repositories.interfaces import QueryLogRepository, QueryResultRow
from app.schemas.points import NearbyPointItem

logger = structlog.get_logger(__name__)


class QueryLogService:
    """Records each search and its ranked results for later analysis."""

    def __init__(self, repo: QueryLogRepository) -> None:
        self._repo = repo

    async def register(
        self,
        *,
        latitude: float,
        longitude: float,
        waste_type_id: int,
        points: Sequence[NearbyPointItem],
        user_id: int | None = None,
    ) -> int | None:
        """Insert the query row, then one row per result.

        Failures are logged and never propagate: a search must not fail
        because its log entry could not be written. Returns the query id, or
        ``None`` when the query row itself could not be written.
        """

        try:
            query_id = await self._repo.insert_query(
                latitude=latitude,
                longitude=longitude,
                waste_type_id=waste_type_id,
                user_id=user_id,
            )
        except BackendError as exc:
            logger.error("query_log_failed", stage="query", error=exc.message, code=exc.code)
            return None

        results = [
            QueryResultRow(point_id=p.id, distance_km=p.distance_km, rank=index)
            for index, p in enumerate(points, start=1)
        ]
        try:
            await self._repo.insert_results(query_id, results)
        except BackendError as exc:
            logger.error(
                "query_log_failed",
                stage="results",
                query_id=query_id,
                error=exc.message,
                code=exc.code,
            )
        return query_id
