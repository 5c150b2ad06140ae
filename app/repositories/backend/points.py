"""Backend implementation of the recycling point read repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from app.clients.backend import BackendClient, BackendError
from app.repositories.interfaces import PointReadRepository, PointRow

from .tables import POINT_COLUMNS, POINT_TABLE, POINT_WASTE_TABLE

logger = structlog.get_logger(__name__)

# Hosted PostgREST caps responses at 1000 rows (max-rows).
DEFAULT_PAGE_SIZE = 1000


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _point_id(*candidates: Any) -> int | None:
    """First non-null id; ``None`` when absent, ``invalid_format`` when not an integer."""

    value = next((c for c in candidates if c is not None and c != ""), None)
    if value is None:
        return None
    if isinstance(value, bool):
        raise BackendError(f"invalid point id: {value!r}", code="invalid_format")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(f"invalid point id: {value!r}", code="invalid_format") from exc


def _unwrap_rpc_rows(data: Any, function: str) -> list[Mapping[str, Any]]:
    """Accept a bare list or ``{function: [...]}``; ``None`` means no rows."""

    if data is None:
        return []
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        rows = data.get(function) or []
    else:
        raise BackendError("unexpected RPC payload", code="invalid_format")
    if not isinstance(rows, list) or not all(isinstance(row, Mapping) for row in rows):
        raise BackendError("unexpected RPC payload", code="invalid_format")
    return rows


def _row_from_rpc(row: Mapping[str, Any]) -> PointRow | None:
    point_id = _point_id(row.get("punto_id"), row.get("id_punto"))
    if point_id is None:
        logger.warning("point_without_id_skipped", source="rpc", name=row.get("nombre"))
        return None
    return PointRow(
        id=point_id,
        name=row.get("nombre"),
        address=row.get("direccion"),
        latitude=row.get("latitud"),
        longitude=row.get("longitud"),
        status=row.get("estado_contenedor"),
        opening_hours=row.get("horario"),
        phone=row.get("telefono"),
        distance_km=_optional_float(row.get("distancia_km")),
    )


def _row_from_join(row: Mapping[str, Any]) -> PointRow | None:
    point = row.get(POINT_TABLE) or {}
    point_id = _point_id(row.get("id_punto"), point.get("id_punto"))
    if point_id is None:
        logger.warning("point_without_id_skipped", source="table", name=point.get("nombre"))
        return None
    return PointRow(
        id=point_id,
        name=point.get("nombre"),
        address=point.get("direccion"),
        latitude=point.get("latitud"),
        longitude=point.get("longitud"),
        status=row.get("estado_contenedor"),
        opening_hours=point.get("horario"),
        phone=point.get("telefono"),
    )


class BackendPointReadRepository(PointReadRepository):
    def __init__(
        self,
        client: BackendClient,
        *,
        rpc_function: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._client = client
        self._rpc_function = rpc_function
        self._page_size = page_size

    async def nearest_points(
        self, *, latitude: float, longitude: float, waste_type: str
    ) -> list[PointRow]:
        data = await self._client.rpc(
            self._rpc_function,
            {
                "p_latitud_usuario": latitude,
                "p_longitud_usuario": longitude,
                "p_nombre_residuo": waste_type,
            },
        )
        rows = (_row_from_rpc(row) for row in _unwrap_rpc_rows(data, self._rpc_function))
        return [row for row in rows if row is not None]

    async def active_points_for_waste_type(self, waste_type_id: int) -> list[PointRow]:
        """All active points for the type, read page by page until a short page."""

        points: list[PointRow] = []
        offset = 0
        while True:
            page = await self._client.select(
                POINT_WASTE_TABLE,
                columns=f"id_punto, estado_contenedor, {POINT_TABLE}!inner({POINT_COLUMNS})",
                filters={"id_residuo": int(waste_type_id), f"{POINT_TABLE}.activa": True},
                order="id_punto.asc",
                limit=self._page_size,
                offset=offset,
            )
            page = page or []
            if not isinstance(page, list):
                raise BackendError("unexpected point table payload", code="invalid_format")
            points.extend(p for p in map(_row_from_join, page) if p is not None)
            if len(page) < self._page_size:
                return points
            offset += len(page)
