from __future__ import annotations

from pydantic import BaseModel, Field


class WasteTypeItem(BaseModel):
    name: str = Field(description="Category name")


class WasteTypeListResponse(BaseModel):
    items: list[WasteTypeItem] = Field(description="Categories in display order")


class WasteTypeIdResponse(BaseModel):
    id: int = Field(description="id_residuo")
    name: str = Field(description="Category name")
