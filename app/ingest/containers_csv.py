"""Import municipal container CSV exports into the point tables.

Each CSV row becomes one ``puntoreciclaje`` row plus one ``punto_residuo``
relation. Rows are validated up front; the writes happen in batches so one
rejected batch does not stop the rest of the file.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from app.clients.backend import BackendError
from app.core.exceptions import InfrastructureError
from app.repositories.interfaces import (
    CatalogRepository,
    NewPointRow,
    PointImportRepository,
)
from app.services.waste_types import REQUIRED_IMPORT_TYPES, WasteType, normalize_waste_type
from app.utils.coordinates import Axis, clean_coordinate

logger = structlog.get_logger(__name__)

COLUMN_WASTE_TYPE = "Tipo Contenedor"
COLUMN_LATITUDE = "Latitud"
COLUMN_LONGITUDE = "Longitud"
COLUMN_ADDRESS = "Dirección"

SKIP_INVALID_COORDINATES = "invalid_coordinates"
SKIP_UNKNOWN_WASTE_TYPE = "unknown_waste_type"


@dataclass
class ImportStats:
    rows_read: int = 0
    valid: int = 0
    inserted: int = 0
    failed_batches: int = 0
    skipped: dict[str, int] = field(default_factory=dict)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def as_dict(self) -> dict[str, int | dict[str, int]]:
        return {
            "rows_read": self.rows_read,
            "valid": self.valid,
            "inserted": self.inserted,
            "skipped": dict(sorted(self.skipped.items())),
            "failed_batches": self.failed_batches,
        }


def read_container_rows(
    path: str | Path, *, delimiter: str = ";", encoding: str = "utf-8-sig"
) -> Iterator[dict[str, str]]:
    """Yield CSV rows keyed by their (stripped) header names."""

    with open(path, newline="", encoding=encoding) as fh:
        reader = csv.DictReader(fh, delimiter=delimiter)
        for row in reader:
            yield {
                (key or "").strip(): (value or "")
                for key, value in row.items()
                if key is not None
            }


async def load_waste_type_cache(catalog: CatalogRepository) -> dict[str, int]:
    """Map ``nombre_residuo`` to ``id_residuo``; warn about missing required types."""

    try:
        rows = await catalog.list_waste_types()
    except BackendError as exc:
        logger.error("waste_type_cache_failed", error=exc.message, code=exc.code)
        raise InfrastructureError("could not load waste types for import") from exc

    cache = {row.name: row.id for row in rows}
    for waste_type in REQUIRED_IMPORT_TYPES:
        if waste_type.value not in cache:
            logger.warning("waste_type_missing", waste_type=waste_type.value)
    logger.info("waste_type_cache_loaded", count=len(cache))
    return cache


def build_point(
    row: Mapping[str, str],
    waste_type_ids: Mapping[str, int],
    *,
    lat_integer_digits: int | None = None,
    lng_integer_digits: int | None = None,
) -> tuple[NewPointRow | None, str | None]:
    """Turn one CSV row into an insertable point, or return the skip reason."""

    latitude = clean_coordinate(
        row.get(COLUMN_LATITUDE), axis=Axis.LATITUDE, integer_digits=lat_integer_digits
    )
    longitude = clean_coordinate(
        row.get(COLUMN_LONGITUDE), axis=Axis.LONGITUDE, integer_digits=lng_integer_digits
    )
    if latitude is None or longitude is None:
        return None, SKIP_INVALID_COORDINATES

    waste_type = normalize_waste_type(row.get(COLUMN_WASTE_TYPE))
    waste_type_id = waste_type_ids.get(waste_type.value)
    if waste_type_id is None:
        waste_type_id = waste_type_ids.get(WasteType.OTROS.value)
    if waste_type_id is None:
        return None, SKIP_UNKNOWN_WASTE_TYPE

    address = (row.get(COLUMN_ADDRESS) or "").strip() or None
    return (
        NewPointRow(
            name=f"Punto de Reciclaje ({waste_type.value})",
            address=address,
            latitude=latitude,
            longitude=longitude,
            waste_type_id=waste_type_id,
        ),
        None,
    )


def _batches(items: list[NewPointRow], size: int) -> Iterator[tuple[int, list[NewPointRow]]]:
    for start in range(0, len(items), size):
        yield start // size + 1, items[start : start + size]


async def import_containers(
    rows: Iterable[Mapping[str, str]],
    *,
    catalog: CatalogRepository,
    writer: PointImportRepository,
    batch_size: int = 100,
    dry_run: bool = False,
    lat_integer_digits: int | None = None,
    lng_integer_digits: int | None = None,
) -> dict[str, int | dict[str, int]]:
    """Validate ``rows`` and insert the valid ones in batches.

    The returned dictionary always has ``rows_read``, ``valid``, ``inserted``,
    ``skipped`` (per reason) and ``failed_batches``. A batch is only counted as
    inserted once both its points and their relations were written.
    """

    if batch_size < 1:
        msg = f"batch_size must be positive, got {batch_size}"
        raise ValueError(msg)

    waste_type_ids = await load_waste_type_cache(catalog)
    stats = ImportStats()
    points: list[NewPointRow] = []

    for row in rows:
        stats.rows_read += 1
        point, reason = build_point(
            row,
            waste_type_ids,
            lat_integer_digits=lat_integer_digits,
            lng_integer_digits=lng_integer_digits,
        )
        if point is None:
            stats.skip(reason or "unknown")
            continue
        points.append(point)

    stats.valid = len(points)
    logger.info("csv_parsed", rows_read=stats.rows_read, valid=stats.valid, dry_run=dry_run)

    if dry_run or not points:
        return stats.as_dict()

    for number, batch in _batches(points, batch_size):
        try:
            point_ids = await writer.insert_points(batch)
            await writer.insert_relations(
                [(point_id, p.waste_type_id) for point_id, p in zip(point_ids, batch)]
            )
        except BackendError as exc:
            stats.failed_batches += 1
            logger.error(
                "import_batch_failed",
                batch=number,
                size=len(batch),
                error=exc.message,
                code=exc.code,
            )
            continue
        stats.inserted += len(point_ids)
        logger.info("import_batch_done", batch=number, inserted=len(point_ids))

    summary = stats.as_dict()
    logger.info("import_finished", **summary)
    return summary


__all__ = [
    "COLUMN_ADDRESS",
    "COLUMN_LATITUDE",
    "COLUMN_LONGITUDE",
    "COLUMN_WASTE_TYPE",
    "SKIP_INVALID_COORDINATES",
    "SKIP_UNKNOWN_WASTE_TYPE",
    "ImportStats",
    "build_point",
    "import_containers",
    "load_waste_type_cache",
    "read_container_rows",
]
