"""Parts catalog query and caching layer.

Normalizes product, assembly, application and benchmark rows into
in-memory snapshots and serves filtered, paginated views over them.
"""

from parts_catalog.catalog.cache import CacheStore
from parts_catalog.catalog.entities import (
    Application,
    AssemblyRelation,
    Benchmark,
    Manufacturer,
    Product,
)
from parts_catalog.catalog.filters import CatalogFilter, PaginatedResult, PaginationParams
from parts_catalog.catalog.repository import CatalogRepository, ProductPage
from parts_catalog.catalog.service import CatalogService, get_catalog_service
from parts_catalog.catalog.snapshot import Snapshot

__all__ = [
    # Entities
    "Application",
    "AssemblyRelation",
    "Benchmark",
    "Manufacturer",
    "Product",
    # Cache
    "CacheStore",
    "Snapshot",
    # Repository
    "CatalogRepository",
    "ProductPage",
    # Service
    "CatalogFilter",
    "CatalogService",
    "PaginatedResult",
    "PaginationParams",
    "get_catalog_service",
]
