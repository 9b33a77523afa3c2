"""Catalog API endpoints.

Thin HTTP layer over CatalogService: parses query parameters, maps a
missing product to 404 and returns the service's plain data.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from parts_catalog.api.schemas import (
    CatalogStatsResponse,
    ConjuntoPageResponse,
    DetailResponse,
    ErrorResponse,
    ProductPageResponse,
    ProductSchema,
)
from parts_catalog.catalog.filters import CatalogFilter
from parts_catalog.catalog.service import CatalogService, get_catalog_service

router = APIRouter(prefix="/api", tags=["Catalog"])

Service = Annotated[CatalogService, Depends(get_catalog_service)]


# ============================================================================
# Dependencies
# ============================================================================


def get_filters(
    search: str | None = None,
    grupo: str | None = None,
    fabricante: str | None = None,
    tipo_veiculo: Annotated[str | None, Query(alias="tipoVeiculo")] = None,
    linha: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
) -> CatalogFilter:
    """Build catalog filters from query parameters."""
    return CatalogFilter(
        search=search,
        grupo=grupo,
        fabricante=fabricante,
        tipo_veiculo=tipo_veiculo,
        linha=linha,
        sort_by=sort_by or "codigo",
    )


Filters = Annotated[CatalogFilter, Depends(get_filters)]

# Raw strings: malformed values are clamped by the service, never rejected
PageParam = Annotated[str | None, Query()]
LimitParam = Annotated[str | None, Query()]


def _not_found(error_code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error_code": error_code, "message": message},
    )


# ============================================================================
# Filters & Status
# ============================================================================


@router.get("/filters", summary="Available filter options")
async def list_filters(service: Service) -> dict[str, Any]:
    """Get groups, original numbers, manufacturers and type/line options."""
    return await service.get_available_filters()


@router.post(
    "/filters/seed-fabricantes",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sync manufacturers from applications",
)
async def seed_fabricantes(service: Service) -> Response:
    """Insert manufacturer names found in applications that are missing."""
    await service.ensure_manufacturers_populated()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/status", response_model=CatalogStatsResponse, summary="Catalog statistics")
async def catalog_status(service: Service) -> dict[str, Any]:
    """Get catalog totals and cache status."""
    return await service.get_catalog_stats()


@router.post(
    "/status/refresh",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reload the catalog cache",
)
async def refresh_status(service: Service) -> Response:
    """Invalidate and repopulate every catalog snapshot."""
    await service.reload_catalog()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Products
# ============================================================================


@router.get("/products", response_model=list[ProductSchema], summary="Quick product search")
async def list_products(service: Service, search: str | None = None) -> list[dict[str, Any]]:
    """Search products by code or description (first 100 matches)."""
    return await service.search_products(search)


@router.get(
    "/products/paginated",
    response_model=ProductPageResponse,
    summary="Paginated product search",
)
async def list_products_paginated(
    service: Service,
    filters: Filters,
    page: PageParam = None,
    limit: LimitParam = None,
) -> dict[str, Any]:
    """Search products with filters and pagination."""
    return await service.get_products_paginated(page, limit, filters)


@router.get(
    "/products/{code}",
    response_model=DetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Product details",
)
async def get_product_details(code: str, service: Service) -> dict[str, Any]:
    """Get a product with its children, memberships, applications and benchmarks.

    Raises:
        HTTPException: If product not found.
    """
    result = await service.get_product_with_conjuntos(code)
    if result is None:
        raise _not_found("PRODUCT_NOT_FOUND", f"Product not found: {code}")
    return {"data": result}


# ============================================================================
# Catalog snapshot
# ============================================================================


@router.get("/catalog", response_model=DetailResponse, summary="Full catalog snapshot")
async def get_catalog(service: Service) -> dict[str, Any]:
    """Get every entity list for client-side preload."""
    return {"data": await service.get_catalog_snapshot()}


@router.post(
    "/catalog/refresh",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reload the catalog snapshot",
)
async def refresh_catalog(service: Service) -> Response:
    """Invalidate and repopulate every catalog snapshot."""
    await service.reload_catalog()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Conjuntos
# ============================================================================


@router.get(
    "/conjuntos/paginated",
    response_model=ConjuntoPageResponse,
    summary="Paginated assemblies with children",
)
async def list_conjuntos_paginated(
    service: Service,
    filters: Filters,
    page: PageParam = None,
    limit: LimitParam = None,
) -> dict[str, Any]:
    """List assemblies with filters and pagination."""
    return await service.get_conjuntos_paginated(page, limit, filters)


@router.get(
    "/conjuntos/{code}",
    response_model=DetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Assembly details",
)
async def get_conjunto_details(code: str, service: Service) -> dict[str, Any]:
    """Get an assembly with its direct children and applications.

    Raises:
        HTTPException: If assembly not found.
    """
    result = await service.get_conjunto_with_products(code)
    if result is None:
        raise _not_found("CONJUNTO_NOT_FOUND", f"Conjunto not found: {code}")
    return {"data": result}
