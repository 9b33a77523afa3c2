"""Shared fixtures for catalog tests."""

import copy
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from parts_catalog.catalog import models  # noqa: F401  (registers the tables)
from parts_catalog.catalog.cache import CacheStore
from parts_catalog.catalog.repository import CatalogRepository
from parts_catalog.catalog.service import CatalogService
from parts_catalog.infrastructure.database import Base, QueryExecutor

PRODUCT_ROWS: list[dict[str, Any]] = [
    {"codigo_abr": "A1", "descricao": "Disco de embreagem", "grupo": "Embreagem"},
    {"codigo_abr": "A2", "descricao": "Platô", "grupo": "Embreagem"},
    {"codigo_abr": "B1", "descricao": "Pastilha", "grupo": "Freio"},
    {"codigo_abr": "KIT1", "descricao": "Kit embreagem", "grupo": "Embreagem"},
    {"codigo_abr": "kit2 ", "descricao": "Conjunto freio", "grupo": "Freio"},
    {"codigo_abr": "LOOSE", "descricao": "Parafuso avulso", "grupo": None},
]

ASSEMBLY_ROWS: list[dict[str, Any]] = [
    {"pai": "KIT1", "filho": "A1", "quantidade": 2, "filho_des": "Disco de embreagem"},
    {"pai": "KIT1", "filho": "A2", "quantidade": 1, "filho_des": "Platô"},
    {"pai": "KIT2", "filho": "A1", "quantidade": "3", "filho_des": "Disco de embreagem"},
    {"pai": "KIT2", "filho": "B1", "quantidade": None, "filho_des": "Pastilha"},
]

APPLICATION_ROWS: list[dict[str, Any]] = [
    {
        "id": 1,
        "codigo_conjunto": "KIT1",
        "veiculo": "FH 540",
        "fabricante": "VOLVO",
        "tipo": "Veículo Linha Pesada",
        "sigla_tipo": "VLP",
    },
    {
        "id": 2,
        "codigo_conjunto": "kit2",
        "veiculo": "Gol",
        "fabricante": "Volkswagen",
        "tipo": "Veículo Linha Leve",
        "sigla_tipo": "vll",
    },
    {
        "id": 3,
        "codigo_conjunto": "KIT2",
        "veiculo": "OM 366",
        "fabricante": "Mercedes-Benz",
        "tipo": "Motor Linha Pesada",
        "sigla_tipo": "",
    },
]

BENCHMARK_ROWS: list[dict[str, Any]] = [
    {"id": 1, "codigo_produto": "a1", "origem": "Sachs", "numero_original": "SA-100"},
    {"id": 2, "codigo_produto": "A1", "origem": "Luk", "numero_original": "LK-200"},
    {"id": 3, "codigo_produto": "B1", "origem": "Bosch", "numero_original": "SA-100"},
]

MANUFACTURER_ROWS: list[dict[str, Any]] = [
    {"name": "Mercedes-Benz", "count": 1},
    {"name": "VOLVO", "count": 1},
    {"name": "Volkswagen", "count": "1"},
]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheStore:
    """Create an empty cache driven by the fake clock."""
    return CacheStore(default_ttl=3600, clock=clock)


@pytest.fixture
def repository() -> MagicMock:
    """Create a mock repository serving the sample catalog."""
    repo = MagicMock(spec=CatalogRepository)
    repo.fetch_all_products_raw = AsyncMock(return_value=copy.deepcopy(PRODUCT_ROWS))
    repo.fetch_all_assemblies_raw = AsyncMock(return_value=copy.deepcopy(ASSEMBLY_ROWS))
    repo.fetch_all_applications_raw = AsyncMock(return_value=copy.deepcopy(APPLICATION_ROWS))
    repo.fetch_all_benchmarks_raw = AsyncMock(return_value=copy.deepcopy(BENCHMARK_ROWS))
    repo.fetch_all_manufacturers_raw = AsyncMock(return_value=copy.deepcopy(MANUFACTURER_ROWS))
    repo.fetch_products_paginated = AsyncMock()
    repo.ensure_manufacturers_populated = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def service(repository: MagicMock, cache: CacheStore) -> CatalogService:
    """Create a catalog service over the mock repository."""
    return CatalogService(repository=repository, cache=cache, ttl_seconds=60)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with the catalog tables."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def executor(engine: AsyncEngine) -> QueryExecutor:
    """Create an executor without retry delays."""
    return QueryExecutor(engine, retry_attempts=0, backoff_seconds=0, timeout_seconds=None)
