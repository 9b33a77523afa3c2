"""Catalog service for product and assembly operations.

High-level service that combines the repository, the cache store and the
normalization utilities. Each entity type is held as one immutable
snapshot in the cache; listings and detail views are computed in memory
over those snapshots.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog

from parts_catalog.catalog.cache import CacheStore
from parts_catalog.catalog.entities import (
    Application,
    AssemblyRelation,
    Benchmark,
    Manufacturer,
    Product,
)
from parts_catalog.catalog.filters import CatalogFilter, PaginatedResult, PaginationParams
from parts_catalog.catalog.normalization import (
    collation_key,
    contains_text,
    matches_line,
    matches_vehicle_type,
    normalize_code,
)
from parts_catalog.catalog.repository import CatalogRepository
from parts_catalog.catalog.snapshot import Snapshot
from parts_catalog.infrastructure.config import settings
from parts_catalog.infrastructure.database import get_query_executor

logger = structlog.get_logger()

PRODUCTS_KEY = "products:all"
ASSEMBLIES_KEY = "conjuntos:all"
APPLICATIONS_KEY = "aplicacoes:all"
BENCHMARKS_KEY = "benchmarks:all"
MANUFACTURERS_KEY = "fabricantes:all"

# Entity name as reported in cacheStatus -> cache key
CACHE_KEYS = {
    "produtos": PRODUCTS_KEY,
    "conjuntos": ASSEMBLIES_KEY,
    "aplicacoes": APPLICATIONS_KEY,
    "benchmarks": BENCHMARKS_KEY,
    "fabricantes": MANUFACTURERS_KEY,
}

SEARCH_LIMIT = 100
MAX_ORIGINAL_NUMBERS = 50

VEHICLE_TYPES = [
    {"value": "MOTOR", "label": "Motor"},
    {"value": "VEICULO", "label": "Veículo"},
]

LINES = [
    {"value": "LEVE", "label": "Linha Leve"},
    {"value": "PESADA", "label": "Linha Pesada"},
]

FilterInput = CatalogFilter | Mapping[str, Any] | None


def _as_filter(filters: FilterInput) -> CatalogFilter:
    if isinstance(filters, CatalogFilter):
        return filters
    return CatalogFilter.from_mapping(filters)


def _application_matches(application: Application, filters: CatalogFilter) -> bool:
    if filters.fabricante and not contains_text(application.manufacturer, filters.fabricante):
        return False
    return matches_vehicle_type(application, filters.tipo_veiculo) and matches_line(
        application, filters.linha
    )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogService:
    """Service for catalog operations.

    Snapshots are loaded on first use and kept in the cache store until
    their TTL runs out or reload_catalog() is called. Accessors hand out
    copies, so callers can never alter what other requests see.

    Example usage:
        service = CatalogService(CatalogRepository(executor), CacheStore())

        page = await service.get_conjuntos_paginated(
            page=1,
            limit=20,
            filters={"fabricante": "VOLVO", "sortBy": "descricao"},
        )
        detail = await service.get_product_with_conjuntos("ab 123")
    """

    def __init__(
        self,
        repository: CatalogRepository,
        cache: CacheStore,
        ttl_seconds: float | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Source of raw rows.
            cache: Store holding the entity snapshots.
            ttl_seconds: Snapshot lifetime; the cache default when None.
        """
        self.repository = repository
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._loaders: dict[str, Callable[[], Awaitable[Snapshot[Any]]]] = {
            PRODUCTS_KEY: self._load_products,
            ASSEMBLIES_KEY: self._load_assemblies,
            APPLICATIONS_KEY: self._load_applications,
            BENCHMARKS_KEY: self._load_benchmarks,
            MANUFACTURERS_KEY: self._load_manufacturers,
        }

    # ========================================================================
    # Snapshot population
    # ========================================================================

    async def _snapshot(self, key: str) -> Snapshot[Any]:
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        start = time.perf_counter()
        snapshot = await self._loaders[key]()
        self.cache.set(key, snapshot, self.ttl_seconds)

        logger.info(
            "Catalog snapshot loaded",
            cache_key=key,
            rows=len(snapshot),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return snapshot

    async def _load_products(self) -> Snapshot[Product]:
        rows = await self.repository.fetch_all_products_raw()
        return Snapshot.build(
            (Product.from_row(row) for row in rows or []),
            code=lambda p: p.code,
        )

    async def _load_assemblies(self) -> Snapshot[AssemblyRelation]:
        rows = await self.repository.fetch_all_assemblies_raw()
        return Snapshot.build(
            (AssemblyRelation.from_row(row) for row in rows or []),
            parent=lambda r: r.parent_code,
            child=lambda r: r.child_code,
        )

    async def _load_applications(self) -> Snapshot[Application]:
        rows = await self.repository.fetch_all_applications_raw()
        return Snapshot.build(
            (Application.from_row(row) for row in rows or []),
            assembly=lambda a: a.assembly_code,
        )

    async def _load_benchmarks(self) -> Snapshot[Benchmark]:
        rows = await self.repository.fetch_all_benchmarks_raw()
        return Snapshot.build(
            (Benchmark.from_row(row) for row in rows or []),
            code=lambda b: b.code,
        )

    async def _load_manufacturers(self) -> Snapshot[Manufacturer]:
        rows = await self.repository.fetch_all_manufacturers_raw()
        return Snapshot.build(Manufacturer.from_row(row) for row in rows or [])

    # ========================================================================
    # Cached accessors
    # ========================================================================

    async def get_all_products_cached(self) -> list[Product]:
        """Get all products (copy of the cached snapshot)."""
        return list((await self._snapshot(PRODUCTS_KEY)).rows)

    async def get_all_assemblies_cached(self) -> list[AssemblyRelation]:
        """Get all assembly relations (copy of the cached snapshot)."""
        return list((await self._snapshot(ASSEMBLIES_KEY)).rows)

    async def get_all_applications_cached(self) -> list[Application]:
        """Get all applications (copy of the cached snapshot)."""
        return list((await self._snapshot(APPLICATIONS_KEY)).rows)

    async def get_all_benchmarks_cached(self) -> list[Benchmark]:
        """Get all benchmarks (copy of the cached snapshot)."""
        return list((await self._snapshot(BENCHMARKS_KEY)).rows)

    async def get_manufacturers_cached(self) -> list[Manufacturer]:
        """Get all manufacturers with counts (copy of the cached snapshot)."""
        return list((await self._snapshot(MANUFACTURERS_KEY)).rows)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def preload_catalog(self) -> None:
        """Populate every snapshot that is not cached yet."""
        await asyncio.gather(*(self._snapshot(key) for key in self._loaders))

    def invalidate_all(self) -> None:
        """Drop every catalog snapshot from the cache."""
        for key in self._loaders:
            self.cache.delete(key)

    async def reload_catalog(self) -> None:
        """Invalidate and eagerly repopulate all snapshots.

        The five loads run concurrently. If any of them fails the error
        propagates; snapshots that did load stay cached.
        """
        start = time.perf_counter()
        self.invalidate_all()
        await self.preload_catalog()
        logger.info(
            "Catalog reloaded",
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    async def ensure_manufacturers_populated(self) -> None:
        """Sync the manufacturer table from applications.

        The cached manufacturer list is dropped so the next read sees the
        new rows.
        """
        await self.repository.ensure_manufacturers_populated()
        self.cache.delete(MANUFACTURERS_KEY)

    # ========================================================================
    # Listings
    # ========================================================================

    async def get_products_paginated(
        self,
        page: Any = 1,
        limit: Any = 20,
        filters: FilterInput = None,
    ) -> dict[str, Any]:
        """Search products in the store with filters and pagination.

        Args:
            page: Page number; floored to 1.
            limit: Page size; clamped to [1, 100].
            filters: CatalogFilter or request-style mapping.

        Returns:
            {"data": [...], "pagination": {...}}.
        """
        result_page = await self.repository.fetch_products_paginated(
            page, limit, _as_filter(filters)
        )
        result = PaginatedResult(
            items=[Product.from_row(row).to_dict() for row in result_page.rows],
            total=result_page.total,
            page=result_page.page,
            limit=result_page.limit,
        )
        return {"data": result.items, "pagination": result.pagination()}

    async def get_conjuntos_paginated(
        self,
        page: Any = 1,
        limit: Any = 20,
        filters: FilterInput = None,
    ) -> dict[str, Any]:
        """List assemblies with their children.

        Filtering runs over the cached snapshots: application filters
        first (applications are only loaded when one is set), then free
        text over the parent and its children, then group. Results are
        sorted stably and paginated last.

        Args:
            page: Page number; floored to 1.
            limit: Page size; clamped to [1, 100].
            filters: CatalogFilter or request-style mapping.

        Returns:
            {"data": [{codigo, descricao, grupo, children}], "pagination": {...}}.
        """
        filters = _as_filter(filters)
        params = PaginationParams.clamped(page, limit)

        if filters.needs_applications:
            assemblies, products, applications = await asyncio.gather(
                self._snapshot(ASSEMBLIES_KEY),
                self._snapshot(PRODUCTS_KEY),
                self._snapshot(APPLICATIONS_KEY),
            )
        else:
            assemblies, products = await asyncio.gather(
                self._snapshot(ASSEMBLIES_KEY),
                self._snapshot(PRODUCTS_KEY),
            )
            applications = None

        parents = []
        for parent_code in assemblies.keys("parent"):
            product = products.first("code", parent_code)
            parents.append({
                "codigo": parent_code,
                "descricao": (product.description if product else None) or parent_code,
                "grupo": product.group if product else None,
                "children": [
                    relation.to_child_dict()
                    for relation in assemblies.lookup("parent", parent_code)
                ],
            })

        if applications is not None:
            fitted = {
                application.assembly_code
                for application in applications.rows
                if _application_matches(application, filters)
            }
            parents = [parent for parent in parents if parent["codigo"] in fitted]

        if filters.search:
            term = filters.search
            parents = [
                parent
                for parent in parents
                if contains_text(parent["codigo"], term)
                or contains_text(parent["descricao"], term)
                or any(
                    contains_text(child["filho"], term) or contains_text(child["filho_des"], term)
                    for child in parent["children"]
                )
            ]

        if filters.grupo:
            group = filters.grupo.casefold()
            parents = [
                parent
                for parent in parents
                if parent["grupo"] and parent["grupo"].casefold() == group
            ]

        # sort_by is one of codigo/descricao/grupo, the same keys as the view
        parents.sort(key=lambda parent: collation_key(parent[filters.sort_by]))

        result = PaginatedResult(
            items=parents[params.offset:params.offset + params.limit],
            total=len(parents),
            page=params.page,
            limit=params.limit,
        )
        return {"data": result.items, "pagination": result.pagination()}

    async def search_products(self, term: str | None = "") -> list[dict[str, Any]]:
        """Quick product search.

        An empty term returns the first products of the cached snapshot;
        otherwise the store is searched by code or description.
        """
        if not term or not str(term).strip():
            products = await self._snapshot(PRODUCTS_KEY)
            return [product.to_dict() for product in products.rows[:SEARCH_LIMIT]]

        page = await self.get_products_paginated(1, SEARCH_LIMIT, CatalogFilter(search=term))
        return page["data"]

    # ========================================================================
    # Detail views
    # ========================================================================

    async def get_product_with_conjuntos(self, code: str | None) -> dict[str, Any] | None:
        """Get a product with its full one-level graph.

        Children are the relations where the product is the parent;
        memberships are the relations where it is a child. Applications
        come straight from the product when it has children, otherwise
        they are inherited from every assembly it belongs to.

        Args:
            code: Product code in any case/spacing.

        Returns:
            Detail dict, or None if the product does not exist.
        """
        key = normalize_code(code)
        if not key:
            return None

        products, assemblies, benchmarks, applications = await asyncio.gather(
            self._snapshot(PRODUCTS_KEY),
            self._snapshot(ASSEMBLIES_KEY),
            self._snapshot(BENCHMARKS_KEY),
            self._snapshot(APPLICATIONS_KEY),
        )

        product = products.first("code", key)
        if product is None:
            return None

        children = assemblies.lookup("parent", key)
        memberships = assemblies.lookup("child", key)

        if children:
            product_applications = applications.lookup("assembly", key)
        else:
            product_applications = []
            for parent_code in dict.fromkeys(m.parent_code for m in memberships):
                product_applications.extend(applications.lookup("assembly", parent_code))

        return {
            "product": product.to_dict(),
            "conjuntos": [relation.to_dict() for relation in children],
            "conjuntosCount": len(children),
            "aplicacoes": [application.to_dict() for application in product_applications],
            "benchmarks": [b.to_dict() for b in benchmarks.lookup("code", key)],
            "memberships": [relation.to_membership_dict() for relation in memberships],
        }

    async def get_conjunto_with_products(self, code: str | None) -> dict[str, Any] | None:
        """Get an assembly with its direct children and applications.

        Returns:
            Detail dict, or None if the product does not exist.
        """
        key = normalize_code(code)
        if not key:
            return None

        products, assemblies, applications = await asyncio.gather(
            self._snapshot(PRODUCTS_KEY),
            self._snapshot(ASSEMBLIES_KEY),
            self._snapshot(APPLICATIONS_KEY),
        )

        parent = products.first("code", key)
        if parent is None:
            return None

        children = assemblies.lookup("parent", key)
        return {
            "parentProduct": parent.to_dict(),
            "conjuntos": [relation.to_dict() for relation in children],
            "childrenCount": len(children),
            "aplicacoes": [a.to_dict() for a in applications.lookup("assembly", key)],
        }

    # ========================================================================
    # Aggregates
    # ========================================================================

    async def get_available_filters(self) -> dict[str, Any]:
        """Get the options the catalog can be filtered by."""
        products, benchmarks, manufacturers, assemblies = await asyncio.gather(
            self._snapshot(PRODUCTS_KEY),
            self._snapshot(BENCHMARKS_KEY),
            self._snapshot(MANUFACTURERS_KEY),
            self._snapshot(ASSEMBLIES_KEY),
        )

        groups = sorted({p.group for p in products.rows if p.group}, key=collation_key)
        original_numbers = list(
            dict.fromkeys(b.original_number for b in benchmarks.rows if b.original_number)
        )[:MAX_ORIGINAL_NUMBERS]

        return {
            "grupos": groups,
            "numeros_original": original_numbers,
            "fabricantes": [m.to_dict() for m in manufacturers.rows],
            "vehicle_types": [dict(option) for option in VEHICLE_TYPES],
            "linhas": [dict(option) for option in LINES],
            "metadata": {
                "totalProdutos": len(products),
                "totalConjuntos": len(assemblies.keys("parent")),
                "ultimaAtualizacao": _now_iso(),
            },
        }

    async def get_catalog_snapshot(self) -> dict[str, Any]:
        """Get every entity list for bulk client-side preload."""
        products, assemblies, benchmarks, applications, manufacturers = await asyncio.gather(
            self._snapshot(PRODUCTS_KEY),
            self._snapshot(ASSEMBLIES_KEY),
            self._snapshot(BENCHMARKS_KEY),
            self._snapshot(APPLICATIONS_KEY),
            self._snapshot(MANUFACTURERS_KEY),
        )
        return {
            "products": [p.to_dict() for p in products.rows],
            "conjuntos": [r.to_dict() for r in assemblies.rows],
            "benchmarks": [b.to_dict() for b in benchmarks.rows],
            "aplicacoes": [a.to_dict() for a in applications.rows],
            "fabricantes": [m.to_dict() for m in manufacturers.rows],
            "cachedAtMs": int(time.time() * 1000),
        }

    async def get_catalog_stats(self) -> dict[str, Any]:
        """Get catalog totals and per-entity cache status."""
        products, assemblies = await asyncio.gather(
            self._snapshot(PRODUCTS_KEY),
            self._snapshot(ASSEMBLIES_KEY),
        )

        cache_status = {}
        for name, key in CACHE_KEYS.items():
            age = self.cache.age(key)
            cache_status[name] = {
                "isCached": age is not None,
                "ageSeconds": round(age, 1) if age is not None else None,
            }

        return {
            "totalProducts": len(products),
            "totalConjuntos": len(assemblies.keys("parent")),
            "lastUpdate": products.loaded_at.isoformat(),
            "cacheStatus": cache_status,
        }


_catalog_service: CatalogService | None = None


def get_catalog_service() -> CatalogService:
    """Get catalog service singleton."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(
            repository=CatalogRepository(get_query_executor()),
            cache=CacheStore(default_ttl=settings.catalog_cache_ttl_seconds),
        )
    return _catalog_service
