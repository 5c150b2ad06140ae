"""Router modules exposed for convenient imports."""

from . import auth, healthz, points, readyz, waste_types

__all__ = [
    "auth",
    "healthz",
    "points",
    "readyz",
    "waste_types",
]
