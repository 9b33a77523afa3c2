"""API layer module.

Contains FastAPI routers and response schemas.
"""

from parts_catalog.api.catalog import router as catalog_router
from parts_catalog.api.health import router as health_router

__all__ = [
    "catalog_router",
    "health_router",
]
