"""Waste categories and normalisation of free-text container labels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


class WasteType(str, Enum):
    """Category names exactly as stored in ``tiporesiduo.nombre_residuo``."""

    ENVASES = "Envases"
    PAPEL_CARTON = "Papel y Cartón"
    VIDRIO = "Vidrio"
    ORGANICO = "Orgánico"
    PILAS_BATERIAS = "Pilas y Baterías"
    ACEITE_USADO = "Aceite usado"
    VOLUMINOSOS = "Residuos voluminosos y/o Tecnológicos"
    OTROS = "Otros"


CATALOG_ORDER: Final[tuple[WasteType, ...]] = (
    WasteType.ENVASES,
    WasteType.VIDRIO,
    WasteType.PAPEL_CARTON,
    WasteType.ORGANICO,
    WasteType.ACEITE_USADO,
    WasteType.PILAS_BATERIAS,
    WasteType.VOLUMINOSOS,
)

# The importer expects these rows to exist before it runs.
REQUIRED_IMPORT_TYPES: Final[tuple[WasteType, ...]] = (
    WasteType.ENVASES,
    WasteType.PAPEL_CARTON,
    WasteType.VIDRIO,
    WasteType.ORGANICO,
    WasteType.OTROS,
)


@dataclass(frozen=True)
class WastePattern:
    waste_type: WasteType
    keywords: tuple[str, ...]


# Order matters: the first pattern with a matching keyword wins.
WASTE_PATTERNS: Final[tuple[WastePattern, ...]] = (
    WastePattern(WasteType.ENVASES, ("envase",)),
    WastePattern(WasteType.PAPEL_CARTON, ("papel", "cartón", "carton")),
    WastePattern(WasteType.VIDRIO, ("vidrio",)),
    WastePattern(WasteType.ORGANICO, ("orgánico", "organico", "orgánica", "organica")),
    WastePattern(WasteType.PILAS_BATERIAS, ("pilas", "baterías", "baterias")),
    WastePattern(WasteType.ACEITE_USADO, ("aceite",)),
)

_BY_VALUE: Final[dict[str, WasteType]] = {member.value.lower(): member for member in WasteType}


def normalize_waste_type(raw: str | None) -> WasteType:
    """Map a container label such as ``"ENVASES LIGEROS"`` to its category."""

    if not raw:
        return WasteType.OTROS
    lowered = raw.lower().strip()
    if not lowered:
        return WasteType.OTROS
    for pattern in WASTE_PATTERNS:
        if any(keyword in lowered for keyword in pattern.keywords):
            return pattern.waste_type
    return WasteType.OTROS


def resolve_waste_type(name: str | None) -> WasteType:
    """Exact category name first, then the free-text rules."""

    if name:
        exact = _BY_VALUE.get(name.strip().lower())
        if exact is not None:
            return exact
    return normalize_waste_type(name)


__all__ = [
    "CATALOG_ORDER",
    "REQUIRED_IMPORT_TYPES",
    "WASTE_PATTERNS",
    "WastePattern",
    "WasteType",
    "normalize_waste_type",
    "resolve_waste_type",
]
