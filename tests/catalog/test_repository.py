"""Tests for the catalog repository against an in-memory SQLite store."""

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from parts_catalog.catalog.filters import CatalogFilter
from parts_catalog.catalog.models import (
    AplicacaoModel,
    BenchmarkModel,
    EstruturaConjuntoModel,
    FabricanteModel,
    ProdutoModel,
)
from parts_catalog.catalog.repository import CatalogRepository
from parts_catalog.infrastructure.database import Base, QueryExecutor

PRODUCTS = [
    {"codigo_abr": "KIT1", "descricao": "Kit embreagem", "grupo": "Embreagem"},
    {"codigo_abr": "KIT2", "descricao": "Conjunto freio", "grupo": "Freio"},
    {"codigo_abr": "A1", "descricao": "Disco de embreagem", "grupo": "Embreagem"},
    {"codigo_abr": "A2", "descricao": "Platô", "grupo": "Embreagem"},
    {"codigo_abr": "B1", "descricao": "Pastilha", "grupo": "Freio"},
    {"codigo_abr": "LOOSE", "descricao": "Parafuso 50%", "grupo": None},
]

STRUCTURE = [
    {"codigo_conjunto": "KIT1", "codigo_componente": "A1", "quantidade": 2},
    {"codigo_conjunto": "KIT1", "codigo_componente": "A2", "quantidade": 1},
    {"codigo_conjunto": "KIT2", "codigo_componente": "B1", "quantidade": None},
    {"codigo_conjunto": "KIT2", "codigo_componente": "A1", "quantidade": 3},
    {"codigo_conjunto": "KIT2", "codigo_componente": "  ", "quantidade": 1},
    {"codigo_conjunto": None, "codigo_componente": "A1", "quantidade": 1},
]

APPLICATIONS = [
    {"codigo_conjunto": "KIT1", "veiculo": "FH 540", "fabricante": "VOLVO",
     "tipo": "Veículo Linha Pesada", "sigla_tipo": "VLP"},
    {"codigo_conjunto": "KIT2", "veiculo": "Gol", "fabricante": "Volkswagen",
     "tipo": "Veículo Linha Leve", "sigla_tipo": "VLL"},
    {"codigo_conjunto": "KIT2", "veiculo": "OM 366", "fabricante": " Mercedes-Benz ",
     "tipo": "Motor Linha Pesada", "sigla_tipo": "mlp"},
    {"codigo_conjunto": " ", "veiculo": "Ka", "fabricante": "Ford",
     "tipo": "Veículo Linha Leve", "sigla_tipo": "VLL"},
    {"codigo_conjunto": "KIT1", "veiculo": "Sem marca", "fabricante": "",
     "tipo": None, "sigla_tipo": "VLP"},
]

BENCHMARKS = [
    {"codigo_produto": "A1", "origem": "Sachs", "numero_original": "SA-100"},
    {"codigo_produto": "B1", "origem": "Bosch", "numero_original": "SA-100"},
    {"codigo_produto": "", "origem": "X", "numero_original": "Y"},
]


async def _seed(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.execute(insert(ProdutoModel), PRODUCTS)
        await conn.execute(insert(EstruturaConjuntoModel), STRUCTURE)
        await conn.execute(insert(AplicacaoModel), APPLICATIONS)
        await conn.execute(insert(BenchmarkModel), BENCHMARKS)


def _codes(page) -> list[str]:
    return [row["codigo_abr"] for row in page.rows]


@pytest_asyncio.fixture
async def repo(engine: AsyncEngine, executor: QueryExecutor) -> CatalogRepository:
    """Create a repository over the seeded store."""
    await _seed(engine)
    return CatalogRepository(executor)


class TestFullExtractions:
    """Tests for the fetch_all_* queries."""

    @pytest.mark.asyncio
    async def test_products_ordered_by_code(self, repo: CatalogRepository) -> None:
        """Every product is returned, ordered by code."""
        rows = await repo.fetch_all_products_raw()
        assert [row["codigo_abr"] for row in rows] == ["A1", "A2", "B1", "KIT1", "KIT2", "LOOSE"]

    @pytest.mark.asyncio
    async def test_assemblies_skip_blank_codes(self, repo: CatalogRepository) -> None:
        """Relations with a blank parent or child are left out."""
        rows = await repo.fetch_all_assemblies_raw()

        assert [(row["pai"], row["filho"]) for row in rows] == [
            ("KIT1", "A1"),
            ("KIT1", "A2"),
            ("KIT2", "A1"),
            ("KIT2", "B1"),
        ]
        assert rows[0]["filho_des"] == "Disco de embreagem"
        assert rows[3]["quantidade"] is None

    @pytest.mark.asyncio
    async def test_applications_skip_blank_assembly(self, repo: CatalogRepository) -> None:
        """Applications without an assembly code are left out."""
        rows = await repo.fetch_all_applications_raw()

        assert len(rows) == 4
        assert [row["codigo_conjunto"] for row in rows] == ["KIT1", "KIT1", "KIT2", "KIT2"]
        assert set(rows[0]) == {
            "id", "codigo_conjunto", "veiculo", "fabricante", "tipo", "sigla_tipo"
        }

    @pytest.mark.asyncio
    async def test_benchmarks_skip_blank_product(self, repo: CatalogRepository) -> None:
        """Benchmarks without a product code are left out."""
        rows = await repo.fetch_all_benchmarks_raw()
        assert [row["codigo_produto"] for row in rows] == ["A1", "B1"]


class TestPaginatedSearch:
    """Tests for fetch_products_paginated."""

    @pytest.mark.asyncio
    async def test_default_page(self, repo: CatalogRepository) -> None:
        """No filters lists every product by code."""
        page = await repo.fetch_products_paginated()

        assert page.total == 6
        assert (page.page, page.limit) == (1, 20)
        assert _codes(page) == ["A1", "A2", "B1", "KIT1", "KIT2", "LOOSE"]

    @pytest.mark.asyncio
    async def test_search_code_or_description(self, repo: CatalogRepository) -> None:
        """Search matches code or description case-insensitively."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(search="kit"))
        assert _codes(page) == ["KIT1", "KIT2"]

        page = await repo.fetch_products_paginated(filters=CatalogFilter(search="DISCO"))
        assert _codes(page) == ["A1"]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, repo: CatalogRepository) -> None:
        """LIKE wildcards in the term are matched literally."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(search="50%"))
        assert _codes(page) == ["LOOSE"]

        page = await repo.fetch_products_paginated(filters=CatalogFilter(search="_"))
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_filter_by_group(self, repo: CatalogRepository) -> None:
        """Group filter is an exact, case-insensitive match."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(grupo="freio"))
        assert _codes(page) == ["B1", "KIT2"]

    @pytest.mark.asyncio
    async def test_filter_by_manufacturer(self, repo: CatalogRepository) -> None:
        """Manufacturer filter keeps fitted assemblies and their components."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(fabricante="volvo"))
        assert _codes(page) == ["A1", "A2", "KIT1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "filters",
        [
            CatalogFilter(tipo_veiculo="MOTOR"),
            CatalogFilter(tipo_veiculo="mlp"),
            CatalogFilter(linha="LEVE"),
        ],
    )
    async def test_filter_by_type_and_line(
        self, repo: CatalogRepository, filters: CatalogFilter
    ) -> None:
        """Type and line filters compare the stored sigla."""
        page = await repo.fetch_products_paginated(filters=filters)
        assert _codes(page) == ["A1", "B1", "KIT2"]

    @pytest.mark.asyncio
    async def test_sort_by_description(self, repo: CatalogRepository) -> None:
        """Whitelisted sort keys order the page."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(sort_by="descricao"))
        assert _codes(page) == ["KIT2", "A1", "KIT1", "LOOSE", "B1", "A2"]

    @pytest.mark.asyncio
    async def test_sort_ties_broken_by_code(self, repo: CatalogRepository) -> None:
        """Rows with the same group come out by code."""
        page = await repo.fetch_products_paginated(
            filters=CatalogFilter(grupo="Embreagem", sort_by="grupo")
        )
        assert _codes(page) == ["A1", "A2", "KIT1"]

    @pytest.mark.asyncio
    async def test_unknown_sort_uses_code(self, repo: CatalogRepository) -> None:
        """Unknown sort keys fall back to code order."""
        page = await repo.fetch_products_paginated(filters=CatalogFilter(sort_by="preco"))
        assert _codes(page) == ["A1", "A2", "B1", "KIT1", "KIT2", "LOOSE"]


class TestPaginationClamping:
    """Tests for page/limit clamping at the store."""

    @pytest_asyncio.fixture
    async def big_repo(self, engine: AsyncEngine, executor: QueryExecutor) -> CatalogRepository:
        """Create a repository with 150 products."""
        async with engine.begin() as conn:
            await conn.execute(
                insert(ProdutoModel),
                [
                    {"codigo_abr": f"P{i:03d}", "descricao": f"Item {i}", "grupo": "G"}
                    for i in range(1, 151)
                ],
            )
        return CatalogRepository(executor)

    @pytest.mark.asyncio
    async def test_oversized_limit_is_capped(self, big_repo: CatalogRepository) -> None:
        """page=0 and limit=9999 serve the first 100 rows."""
        page = await big_repo.fetch_products_paginated(page=0, limit=9999)

        assert page.total == 150
        assert (page.page, page.limit) == (1, 100)
        assert len(page.rows) == 100
        assert page.rows[0]["codigo_abr"] == "P001"

    @pytest.mark.asyncio
    async def test_negative_page_and_zero_limit(self, big_repo: CatalogRepository) -> None:
        """page=-5 and limit=0 serve one row."""
        page = await big_repo.fetch_products_paginated(page=-5, limit=0)

        assert (page.page, page.limit) == (1, 1)
        assert _codes(page) == ["P001"]

    @pytest.mark.asyncio
    async def test_offset(self, big_repo: CatalogRepository) -> None:
        """Later pages skip earlier rows."""
        page = await big_repo.fetch_products_paginated(page="2", limit="10")
        assert _codes(page)[0] == "P011"
        assert len(page.rows) == 10


class TestManufacturers:
    """Tests for the manufacturer table sync."""

    @pytest_asyncio.fixture
    async def bare_engine(self):
        """Create a store without the manufacturer table."""
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        tables = [
            table
            for table in Base.metadata.sorted_tables
            if table is not FabricanteModel.__table__
        ]
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, tables=tables)
        await _seed(engine)
        yield engine
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_creates_table_and_inserts_names(self, bare_engine: AsyncEngine) -> None:
        """Missing table is created and filled from applications."""
        repo = CatalogRepository(QueryExecutor(bare_engine, retry_attempts=0, timeout_seconds=None))

        await repo.ensure_manufacturers_populated()
        rows = await repo.fetch_all_manufacturers_raw()

        assert rows == [
            {"name": "Ford", "count": 1},
            {"name": "Mercedes-Benz", "count": 1},
            {"name": "VOLVO", "count": 1},
            {"name": "Volkswagen", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_is_idempotent(self, repo: CatalogRepository, engine: AsyncEngine) -> None:
        """Existing names are kept and nothing is duplicated."""
        async with engine.begin() as conn:
            await conn.execute(insert(FabricanteModel), [{"nome": "VOLVO"}, {"nome": "Scania"}])

        await repo.ensure_manufacturers_populated()
        await repo.ensure_manufacturers_populated()
        rows = await repo.fetch_all_manufacturers_raw()

        assert [row["name"] for row in rows] == [
            "Ford",
            "Mercedes-Benz",
            "Scania",
            "VOLVO",
            "Volkswagen",
        ]
        assert {row["name"]: row["count"] for row in rows}["Scania"] == 0
