"""/points routers that delegate to services via DI."""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_nearby_point_service, get_optional_user_id
from app.schemas.common import ErrorResponse
from app.schemas.points import NearbyPointsResponse
from app.services.nearby_points import NearbyPointService

router = APIRouter(prefix="/points", tags=["points"])


@router.get(
    "/nearby",
    response_model=NearbyPointsResponse,
    summary="Nearby recycling points for a waste type",
    description=(
        "Returns recycling points that accept `waste_type`, closest first.\n"
        "- mode=remote: the backend nearest-points procedure ranks the points\n"
        "- mode=local: active points are read and ranked by Haversine distance here\n"
        "Without `lat`/`lng` the configured default location is used."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "lat/lng sent without its pair"},
        404: {"model": ErrorResponse, "description": "unknown waste type"},
        422: {"model": ErrorResponse, "description": "validation error"},
        503: {"model": ErrorResponse, "description": "backend unavailable"},
    },
)
async def points_nearby(
    waste_type: str = Query(..., min_length=1, max_length=100, description="e.g. Envases"),
    lat: float | None = Query(None, ge=-90.0, le=90.0, description="Latitude (-90..90)"),
    lng: float | None = Query(None, ge=-180.0, le=180.0, description="Longitude (-180..180)"),
    mode: Literal["remote", "local"] | None = Query(None, description="Search strategy"),
    radius_km: float | None = Query(None, gt=0.0, le=500.0, description="Max distance (km)"),
    limit: int | None = Query(None, ge=1, le=500, description="Max number of points"),
    log: bool = Query(True, description="Record this query in the query log"),
    user_id: int | None = Depends(get_optional_user_id),
    svc: NearbyPointService = Depends(get_nearby_point_service),
):
    return await svc.search(
        waste_type=waste_type,
        latitude=lat,
        longitude=lng,
        mode=mode,
        radius_km=radius_km,
        limit=limit,
        log_query=log,
        user_id=user_id,
    )
