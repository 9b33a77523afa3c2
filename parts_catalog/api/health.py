"""Health and readiness endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from parts_catalog.catalog.service import PRODUCTS_KEY, CatalogService, get_catalog_service
from parts_catalog.infrastructure.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness response schema.

    Attributes:
        status: Always "ready" once the process serves requests.
        catalog: "warm" when the product snapshot is cached, else "cold".
    """

    status: str
    catalog: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness with service name and version."""
    return HealthResponse(
        status="healthy",
        service="parts-catalog",
        version=settings.api_version,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
) -> ReadinessResponse:
    """Report readiness without touching the store.

    A cold catalog still serves requests; the first one loads it.
    """
    warm = service.cache.get(PRODUCTS_KEY) is not None
    return ReadinessResponse(status="ready", catalog="warm" if warm else "cold")
