"""Nearby recycling point search.

Two strategies are available:

* ``remote``: the backend's nearest-points procedure ranks the points and
  computes distances; results keep the server order.
* ``local``: active points for the waste type are read from the tables and
  ranked here with the Haversine formula.

Both paths run stored coordinates through the same repair/validation step so
every returned point can be placed on a map.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from app.clients.backend import BackendError
from app.core.config import SearchMode, Settings
from app.core.exceptions import InfrastructureError, NotFoundError, ValidationError
from app.repositories.interfaces import PointReadRepository, PointRow
from app.schemas.points import NearbyPointItem, NearbyPointsResponse, SearchOrigin
from app.services.catalog import CatalogService
from app.services.container_status import classify_status
from app.services.query_log import QueryLogService
from app.services.waste_types import WasteType, resolve_waste_type
from app.utils.coordinates import normalize_point_coordinates
from app.utils.geo import directions_url, format_distance_km, haversine_distance_km

logger = structlog.get_logger(__name__)

NOT_SPECIFIED = "No especificado"
SUSPICIOUS_DISTANCE_KM = 50.0


def resolve_search_waste_type(raw: str) -> WasteType:
    """Accept a category name or a loose label; reject anything else."""

    text = (raw or "").strip()
    if not text:
        raise ValidationError("waste_type is required")
    resolved = resolve_waste_type(text)
    # Unmatched labels fall back to OTROS; only an explicit "Otros" may search it.
    if resolved is WasteType.OTROS and text.lower() != WasteType.OTROS.value.lower():
        raise NotFoundError(f"waste type '{text}' not found")
    return resolved


def _build_item(
    row: PointRow,
    *,
    waste_type: WasteType,
    latitude: float,
    longitude: float,
    distance_km: float,
) -> NearbyPointItem:
    return NearbyPointItem(
        id=row.id,
        name=row.name,
        address=row.address.strip() if isinstance(row.address, str) else row.address,
        latitude=latitude,
        longitude=longitude,
        distance_km=distance_km,
        distance_text=format_distance_km(distance_km),
        waste_type=waste_type.value,
        status=row.status,
        status_level=classify_status(row.status),
        opening_hours=row.opening_hours or NOT_SPECIFIED,
        phone=row.phone or NOT_SPECIFIED,
        directions_url=directions_url(latitude, longitude),
    )


def _apply_limits(
    items: list[NearbyPointItem], *, radius_km: float | None, limit: int | None
) -> list[NearbyPointItem]:
    if radius_km is not None:
        items = [it for it in items if it.distance_km <= radius_km]
    if limit is not None and limit > 0:
        items = items[:limit]
    return items


class NearbyPointService:
    def __init__(
        self,
        points: PointReadRepository,
        catalog: CatalogService,
        query_log: QueryLogService,
        settings: Settings,
    ) -> None:
        self._points = points
        self._catalog = catalog
        self._query_log = query_log
        self._settings = settings

    def _points_from_rows(
        self, rows: Iterable[PointRow], *, origin: tuple[float, float], waste_type: WasteType
    ) -> list[NearbyPointItem]:
        items: list[NearbyPointItem] = []
        for row in rows:
            coords = normalize_point_coordinates(
                row.latitude,
                row.longitude,
                correct_shift=self._settings.decimal_shift_correction,
            )
            if coords is None:
                logger.warning(
                    "point_skipped_invalid_coordinates",
                    point_id=row.id,
                    latitude=row.latitude,
                    longitude=row.longitude,
                )
                continue

            lat, lng = coords
            distance = row.distance_km
            if distance is None:
                distance = haversine_distance_km(origin, coords)
            if distance > SUSPICIOUS_DISTANCE_KM:
                logger.debug(
                    "point_far_from_origin",
                    point_id=row.id,
                    origin=origin,
                    point=coords,
                    distance_km=round(distance, 1),
                )
            items.append(
                _build_item(
                    row,
                    waste_type=waste_type,
                    latitude=lat,
                    longitude=lng,
                    distance_km=distance,
                )
            )
        return items

    async def search_remote(
        self, *, latitude: float, longitude: float, waste_type: WasteType
    ) -> list[NearbyPointItem]:
        try:
            rows = await self._points.nearest_points(
                latitude=latitude, longitude=longitude, waste_type=waste_type.value
            )
        except BackendError as exc:
            logger.error(
                "nearest_points_rpc_failed",
                function=self._settings.nearby_rpc_function,
                error=exc.message,
                code=exc.code,
            )
            if exc.code == "invalid_format":
                raise InfrastructureError("invalid data format from server") from exc
            raise InfrastructureError("could not complete the point search") from exc

        return self._points_from_rows(
            rows, origin=(latitude, longitude), waste_type=waste_type
        )

    async def search_local(
        self, *, latitude: float, longitude: float, waste_type: WasteType
    ) -> list[NearbyPointItem]:
        waste_type_id = await self._catalog.find_waste_type_id(waste_type.value)
        if waste_type_id is None:
            logger.info("waste_type_not_in_backend", waste_type=waste_type.value)
            return []

        try:
            rows = await self._points.active_points_for_waste_type(waste_type_id)
        except BackendError as exc:
            logger.error("point_table_read_failed", error=exc.message, code=exc.code)
            if exc.code == "invalid_format":
                raise InfrastructureError("invalid data format from server") from exc
            raise InfrastructureError("could not load recycling points") from exc

        items = self._points_from_rows(
            rows, origin=(latitude, longitude), waste_type=waste_type
        )
        items.sort(key=lambda it: (it.distance_km, it.id))
        return items

    async def search(
        self,
        *,
        waste_type: str,
        latitude: float | None = None,
        longitude: float | None = None,
        mode: SearchMode | None = None,
        radius_km: float | None = None,
        limit: int | None = None,
        log_query: bool = True,
        user_id: int | None = None,
    ) -> NearbyPointsResponse:
        resolved = resolve_search_waste_type(waste_type)

        if (latitude is None) != (longitude is None):
            raise ValidationError("lat and lng must be provided together")
        used_default = latitude is None
        if latitude is None or longitude is None:
            latitude = self._settings.default_latitude
            longitude = self._settings.default_longitude

        search_mode: SearchMode = mode or self._settings.search_mode
        if search_mode == "local":
            items = await self.search_local(
                latitude=latitude, longitude=longitude, waste_type=resolved
            )
        else:
            items = await self.search_remote(
                latitude=latitude, longitude=longitude, waste_type=resolved
            )
        items = _apply_limits(items, radius_km=radius_km, limit=limit)

        logger.info(
            "points_nearby",
            waste_type=resolved.value,
            mode=search_mode,
            lat=float(latitude),
            lng=float(longitude),
            used_default_location=used_default,
            returned=len(items),
        )

        if log_query and self._settings.query_log_enabled:
            await self._log_query(
                latitude=latitude,
                longitude=longitude,
                waste_type=resolved,
                items=items,
                user_id=user_id,
            )

        return NearbyPointsResponse(
            items=items,
            total=len(items),
            waste_type=resolved.value,
            mode=search_mode,
            origin=SearchOrigin(latitude=latitude, longitude=longitude),
            used_default_location=used_default,
        )

    async def _log_query(
        self,
        *,
        latitude: float,
        longitude: float,
        waste_type: WasteType,
        items: list[NearbyPointItem],
        user_id: int | None,
    ) -> None:
        try:
            waste_type_id = await self._catalog.find_waste_type_id(waste_type.value)
        except InfrastructureError:
            logger.warning("query_log_skipped", reason="waste_type_lookup_failed")
            return
        if waste_type_id is None:
            logger.warning("query_log_skipped", reason="unknown_waste_type")
            return
        await self._query_log.register(
            latitude=latitude,
            longitude=longitude,
            waste_type_id=waste_type_id,
            points=items,
            user_id=user_id,
        )
