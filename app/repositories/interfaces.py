"""Repository abstractions for the service layer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class WasteTypeRow:
    id: int
    name: str


@dataclass
class PointRow:
    """A recycling point as stored; coordinates are still unvalidated."""

    id: int
    name: str | None
    address: str | None
    latitude: Any
    longitude: Any
    status: str | None = None
    opening_hours: str | None = None
    phone: str | None = None
    distance_km: float | None = None


@dataclass
class QueryResultRow:
    point_id: int
    distance_km: float
    rank: int


@dataclass
class NewPointRow:
    name: str
    address: str | None
    latitude: float
    longitude: float
    waste_type_id: int


class PointReadRepository(Protocol):
    """Read boundary for recycling points."""

    async def nearest_points(
        self, *, latitude: float, longitude: float, waste_type: str
    ) -> list[PointRow]: ...

    async def active_points_for_waste_type(self, waste_type_id: int) -> list[PointRow]: ...


class CatalogRepository(Protocol):
    """Lookups against the waste-type and user tables."""

    async def list_waste_types(self) -> list[WasteTypeRow]: ...

    async def get_waste_type_id(self, name: str) -> int | None: ...

    async def get_user_id(self, auth_uuid: str) -> int | None: ...


class QueryLogRepository(Protocol):
    async def insert_query(
        self,
        *,
        latitude: float,
        longitude: float,
        waste_type_id: int,
        user_id: int | None,
    ) -> int: ...

    async def insert_results(self, query_id: int, results: Sequence[QueryResultRow]) -> None: ...


class PointImportRepository(Protocol):
    async def insert_points(self, points: Sequence[NewPointRow]) -> list[int]: ...

    async def insert_relations(self, pairs: Sequence[tuple[int, int]]) -> None: ...
