from __future__ import annotations

from pydantic import BaseModel, Field

from app.core.config import SearchMode
from app.services.container_status import ContainerStatus


class NearbyPointItem(BaseModel):
    id: int = Field(description="Recycling point id (id_punto)")
    name: str | None = Field(default=None, description="Point name")
    address: str | None = Field(default=None, description="Street address")
    latitude: float = Field(description="Latitude after coordinate repair")
    longitude: float = Field(description="Longitude after coordinate repair")
    distance_km: float = Field(description="Distance from the origin (km)")
    distance_text: str = Field(description='Rounded distance label, e.g. "1.2 km"')
    waste_type: str = Field(description="Waste category the point accepts")
    status: str | None = Field(default=None, description="Container status as stored")
    status_level: ContainerStatus = Field(
        default=ContainerStatus.UNKNOWN, description="Container status bucket"
    )
    opening_hours: str = Field(default="No especificado", description="Opening hours")
    phone: str = Field(default="No especificado", description="Contact phone")
    directions_url: str = Field(description="Driving directions link")


class SearchOrigin(BaseModel):
    latitude: float
    longitude: float


class NearbyPointsResponse(BaseModel):
    items: list[NearbyPointItem] = Field(description="Points ordered by distance")
    total: int = Field(default=0, description="Number of returned points")
    waste_type: str = Field(description="Resolved waste category")
    mode: SearchMode = Field(description="remote = backend RPC, local = client-side ranking")
    origin: SearchOrigin = Field(description="Coordinates the distances are measured from")
    used_default_location: bool = Field(
        default=False, description="True when no location was sent and the default was used"
    )
