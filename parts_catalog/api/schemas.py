"""API schemas for the catalog API.

Pydantic models for response validation and documentation.
"""

from typing import Any

from pydantic import BaseModel, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class PaginationSchema(BaseModel):
    """Pagination block of a listing."""

    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


# ============================================================================
# Catalog Schemas
# ============================================================================


class ProductSchema(BaseModel):
    """Product as listed."""

    codigo: str
    codigo_abr: str
    descricao: str | None = None
    grupo: str | None = None


class ProductPageResponse(BaseModel):
    """Paginated product listing."""

    data: list[ProductSchema]
    pagination: PaginationSchema


class ConjuntoChildSchema(BaseModel):
    """Child entry of an assembly."""

    filho: str
    filho_des: str | None = None
    qtd_explosao: int | float


class ConjuntoSchema(BaseModel):
    """Assembly with its children."""

    codigo: str
    descricao: str | None = None
    grupo: str | None = None
    children: list[ConjuntoChildSchema]


class ConjuntoPageResponse(BaseModel):
    """Paginated assembly listing."""

    data: list[ConjuntoSchema]
    pagination: PaginationSchema


class DetailResponse(BaseModel):
    """Envelope of a detail view."""

    data: dict[str, Any]


class CacheEntryStatus(BaseModel):
    """Cache status of one entity snapshot."""

    isCached: bool
    ageSeconds: float | None = None


class CatalogStatsResponse(BaseModel):
    """Catalog totals and cache status."""

    totalProducts: int
    totalConjuntos: int
    lastUpdate: str
    cacheStatus: dict[str, CacheEntryStatus]
