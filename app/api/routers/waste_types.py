from fastapi import APIRouter, Depends, Path

from app.api.deps import get_catalog_service
from app.schemas.common import ErrorResponse
from app.schemas.waste_type import WasteTypeIdResponse, WasteTypeListResponse
from app.services.catalog import CatalogService, catalog_listing

router = APIRouter(prefix="/waste-types", tags=["waste-types"])


@router.get(
    "",
    response_model=WasteTypeListResponse,
    summary="Waste categories in display order",
)
async def list_waste_types():
    return catalog_listing()


@router.get(
    "/{name:path}",
    response_model=WasteTypeIdResponse,
    summary="Resolve a waste category name to its id",
    responses={
        404: {"model": ErrorResponse, "description": "unknown waste type"},
        503: {"model": ErrorResponse, "description": "backend unavailable"},
    },
)
async def get_waste_type(
    name: str = Path(..., min_length=1, max_length=100),
    svc: CatalogService = Depends(get_catalog_service),
):
    return await svc.get_waste_type_id(name)
