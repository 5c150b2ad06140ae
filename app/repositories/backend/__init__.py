"""Backend (REST/RPC) implementations of repository interfaces."""

from .catalog import BackendCatalogRepository
from .point_import import BackendPointImportRepository
from .points import BackendPointReadRepository
from .query_log import BackendQueryLogRepository

__all__ = [
    "BackendCatalogRepository",
    "BackendPointImportRepository",
    "BackendPointReadRepository",
    "BackendQueryLogRepository",
]
