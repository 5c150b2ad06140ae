from __future__ import annotations

from enum import Enum


class ContainerStatus(str, Enum):
    OPERATIONAL = "operational"
    FULL = "full"
    OUT_OF_SERVICE = "out_of_service"
    UNKNOWN = "unknown"


_RULES: tuple[tuple[ContainerStatus, tuple[str, ...]], ...] = (
    (ContainerStatus.OPERATIONAL, ("operativo", "disponible", "vacío")),
    (ContainerStatus.FULL, ("lleno",)),
    (ContainerStatus.OUT_OF_SERVICE, ("averiado", "mantenimiento")),
)


def classify_status(text: str | None) -> ContainerStatus:
    """Bucket the free-text ``estado_contenedor`` into a status level."""
    lowered = (text or "").lower()
    if not lowered:
        return ContainerStatus.UNKNOWN
    for status, keywords in _RULES:
        if any(keyword in lowered for keyword in keywords):
            return status
    return ContainerStatus.UNKNOWN
