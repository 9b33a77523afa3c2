"""Filter and pagination parameters shared by repository and service."""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SORT_KEYS = ("codigo", "descricao", "grupo")
DEFAULT_SORT = "codigo"


def _to_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = float(str(raw).strip())
    except ValueError:
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return int(value)


def _clean(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


@dataclass
class CatalogFilter:
    """Filter parameters for catalog listings.

    Attributes:
        search: Substring matched against codes and descriptions.
        grupo: Exact product group (case-insensitive).
        fabricante: Substring of an application's manufacturer.
        tipo_veiculo: Vehicle type (sigla, class or legacy label).
        linha: Duty line (sigla, line or legacy label).
        sort_by: One of SORT_KEYS; anything else sorts by code.
    """

    search: str | None = None
    grupo: str | None = None
    fabricante: str | None = None
    tipo_veiculo: str | None = None
    linha: str | None = None
    sort_by: str = DEFAULT_SORT

    def __post_init__(self) -> None:
        self.search = _clean(self.search)
        self.grupo = _clean(self.grupo)
        self.fabricante = _clean(self.fabricante)
        self.tipo_veiculo = _clean(self.tipo_veiculo)
        self.linha = _clean(self.linha)
        sort_by = (_clean(self.sort_by) or DEFAULT_SORT).lower()
        self.sort_by = sort_by if sort_by in SORT_KEYS else DEFAULT_SORT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CatalogFilter":
        """Build from request-style keys (tipoVeiculo, sortBy)."""
        data = data or {}
        return cls(
            search=data.get("search"),
            grupo=data.get("grupo"),
            fabricante=data.get("fabricante"),
            tipo_veiculo=data.get("tipoVeiculo", data.get("tipo_veiculo")),
            linha=data.get("linha"),
            sort_by=data.get("sortBy", data.get("sort_by")) or DEFAULT_SORT,
        )

    @property
    def needs_applications(self) -> bool:
        """Whether any filter is answered from application records."""
        return bool(self.fabricante or self.tipo_veiculo or self.linha)


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        limit: Items per page.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def clamped(cls, page: Any = None, limit: Any = None) -> "PaginationParams":
        """Coerce raw input into a valid page request.

        Missing or non-numeric values take the defaults, page is floored to
        1 and limit is clamped to [1, MAX_LIMIT].
        """
        page_value = max(1, _to_int(page, DEFAULT_PAGE))
        limit_value = min(MAX_LIMIT, max(1, _to_int(limit, DEFAULT_LIMIT)))
        return cls(page=page_value, limit=limit_value)

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.limit


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Count of matching items before pagination.
        page: Current page.
        limit: Items per page.
    """

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages (at least 1)."""
        return max(1, math.ceil(self.total / self.limit))

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1

    def pagination(self) -> dict[str, Any]:
        """Pagination block of a listing response."""
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }
