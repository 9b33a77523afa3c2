"""Catalog repository for database operations.

Builds parameterized statements for paginated product search and for the
full-table extractions the catalog cache is populated from. Rows are
returned raw; normalization happens in the service layer.
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import String, and_, func, insert, or_, select
from sqlalchemy.sql.elements import ColumnElement

from parts_catalog.catalog.filters import CatalogFilter, PaginationParams
from parts_catalog.catalog.models import (
    AplicacaoModel,
    BenchmarkModel,
    EstruturaConjuntoModel,
    FabricanteModel,
    ProdutoModel,
)
from parts_catalog.catalog.normalization import SiglaMatch, resolve_line, resolve_vehicle_type
from parts_catalog.infrastructure.database import QueryExecutor

Row = dict[str, Any]


@dataclass
class ProductPage:
    """One page of raw product rows.

    Attributes:
        total: Rows matching the filters before pagination.
        rows: Rows of the requested page.
        page: Page actually served after clamping.
        limit: Page size actually served after clamping.
    """

    total: int
    rows: list[Row] = field(default_factory=list)
    page: int = 1
    limit: int = 20


def _not_blank(column: Any) -> ColumnElement[bool]:
    return and_(column.is_not(None), func.trim(column) != "")


def _sigla_condition(column: Any, match: SiglaMatch) -> ColumnElement[bool]:
    """Translate a sigla match into SQL on a canonicalized sigla column."""
    sigla = func.upper(func.trim(column), type_=String)
    if match.mode == "exact":
        return sigla == match.token
    if match.mode == "prefix":
        return sigla.startswith(match.token, autoescape=True)
    if match.mode == "suffix":
        return sigla.endswith(match.token, autoescape=True)
    return sigla.contains(match.token, autoescape=True)


class CatalogRepository:
    """Repository for catalog database operations.

    Example usage:
        repo = CatalogRepository(get_query_executor())
        page = await repo.fetch_products_paginated(
            page=1,
            limit=20,
            filters=CatalogFilter(search="filtro", tipo_veiculo="MOTOR"),
        )
    """

    def __init__(self, executor: QueryExecutor) -> None:
        """Initialize repository with a query executor.

        Args:
            executor: Runs statements against the store.
        """
        self.executor = executor

    async def fetch_products_paginated(
        self,
        page: Any = 1,
        limit: Any = 20,
        filters: CatalogFilter | None = None,
    ) -> ProductPage:
        """Find products with filtering, sorting, and pagination.

        Args:
            page: Page number; floored to 1.
            limit: Page size; clamped to [1, 100].
            filters: Search, group and application filters.

        Returns:
            Total matching count and the rows of the page.
        """
        filters = filters or CatalogFilter()
        params = PaginationParams.clamped(page, limit)
        conditions = self._product_conditions(filters)

        count_query = select(func.count().label("total")).select_from(ProdutoModel)
        if conditions:
            count_query = count_query.where(and_(*conditions))

        data_query = select(
            func.trim(ProdutoModel.codigo_abr).label("codigo_abr"),
            func.trim(ProdutoModel.descricao).label("descricao"),
            func.trim(ProdutoModel.grupo).label("grupo"),
        )
        if conditions:
            data_query = data_query.where(and_(*conditions))
        data_query = (
            data_query.order_by(*self._get_sort_columns(filters.sort_by))
            .limit(params.limit)
            .offset(params.offset)
        )

        count_rows = await self.executor.execute(count_query)
        total = int(count_rows[0]["total"] or 0) if count_rows else 0
        rows = await self.executor.execute(data_query)

        return ProductPage(total=total, rows=rows, page=params.page, limit=params.limit)

    async def fetch_all_products_raw(self) -> list[Row]:
        """Get every product with a non-empty code, ordered by code."""
        query = (
            select(
                func.trim(ProdutoModel.codigo_abr).label("codigo_abr"),
                func.trim(ProdutoModel.descricao).label("descricao"),
                func.trim(ProdutoModel.grupo).label("grupo"),
            )
            .where(_not_blank(ProdutoModel.codigo_abr))
            .order_by(ProdutoModel.codigo_abr)
        )
        return await self.executor.execute(query)

    async def fetch_all_assemblies_raw(self) -> list[Row]:
        """Get every assembly relation with its child description.

        Returns:
            Rows with pai, filho, quantidade and filho_des, ordered by
            parent then child.
        """
        structure = EstruturaConjuntoModel
        query = (
            select(
                func.trim(structure.codigo_conjunto).label("pai"),
                func.trim(structure.codigo_componente).label("filho"),
                structure.quantidade.label("quantidade"),
                ProdutoModel.descricao.label("filho_des"),
            )
            .select_from(structure)
            .outerjoin(
                ProdutoModel,
                func.trim(ProdutoModel.codigo_abr) == func.trim(structure.codigo_componente),
            )
            .where(
                _not_blank(structure.codigo_conjunto),
                _not_blank(structure.codigo_componente),
            )
            .order_by(structure.codigo_conjunto, structure.codigo_componente, structure.id)
        )
        return await self.executor.execute(query)

    async def fetch_all_applications_raw(self) -> list[Row]:
        """Get every application attached to an assembly, ordered by assembly."""
        query = (
            select(
                AplicacaoModel.id,
                AplicacaoModel.codigo_conjunto,
                AplicacaoModel.veiculo,
                AplicacaoModel.fabricante,
                AplicacaoModel.tipo,
                AplicacaoModel.sigla_tipo,
            )
            .where(_not_blank(AplicacaoModel.codigo_conjunto))
            .order_by(AplicacaoModel.codigo_conjunto, AplicacaoModel.id)
        )
        return await self.executor.execute(query)

    async def fetch_all_benchmarks_raw(self) -> list[Row]:
        """Get every benchmark attached to a product, ordered by product."""
        query = (
            select(
                BenchmarkModel.id,
                BenchmarkModel.codigo_produto,
                BenchmarkModel.origem,
                BenchmarkModel.numero_original,
            )
            .where(_not_blank(BenchmarkModel.codigo_produto))
            .order_by(BenchmarkModel.codigo_produto, BenchmarkModel.id)
        )
        return await self.executor.execute(query)

    async def fetch_all_manufacturers_raw(self) -> list[Row]:
        """Get manufacturers with the number of applications naming them."""
        query = (
            select(
                FabricanteModel.nome.label("name"),
                func.count(AplicacaoModel.id).label("count"),
            )
            .select_from(FabricanteModel)
            .outerjoin(AplicacaoModel, func.trim(AplicacaoModel.fabricante) == FabricanteModel.nome)
            .group_by(FabricanteModel.nome)
            .order_by(FabricanteModel.nome)
        )
        return await self.executor.execute(query)

    async def ensure_manufacturers_populated(self) -> None:
        """Create the manufacturer table if needed and add missing names.

        Insert-if-absent: names already present are left alone, so calling
        this repeatedly is safe.
        """
        await self.executor.run_sync(FabricanteModel.__table__.create, checkfirst=True)

        name = func.trim(AplicacaoModel.fabricante)
        known_names = select(FabricanteModel.nome).correlate(None)
        distinct_names = (
            select(name.label("nome"))
            .where(
                _not_blank(AplicacaoModel.fabricante),
                name.not_in(known_names),
            )
            .distinct()
        )
        await self.executor.execute(
            insert(FabricanteModel).from_select(["nome"], distinct_names)
        )

    def _product_conditions(self, filters: CatalogFilter) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []

        if filters.grupo:
            conditions.append(
                func.lower(func.trim(ProdutoModel.grupo)) == filters.grupo.lower()
            )

        if filters.search:
            conditions.append(
                or_(
                    ProdutoModel.codigo_abr.icontains(filters.search, autoescape=True),
                    ProdutoModel.descricao.icontains(filters.search, autoescape=True),
                )
            )

        application_conditions = self._application_conditions(filters)
        if application_conditions:
            fitted_assemblies = select(func.trim(AplicacaoModel.codigo_conjunto)).where(
                _not_blank(AplicacaoModel.codigo_conjunto),
                *application_conditions,
            )
            fitted_components = (
                select(func.trim(EstruturaConjuntoModel.codigo_componente))
                .join(
                    AplicacaoModel,
                    func.trim(EstruturaConjuntoModel.codigo_conjunto)
                    == func.trim(AplicacaoModel.codigo_conjunto),
                )
                .where(*application_conditions)
            )
            code = func.trim(ProdutoModel.codigo_abr)
            conditions.append(
                or_(code.in_(fitted_assemblies), code.in_(fitted_components))
            )

        return conditions

    def _application_conditions(self, filters: CatalogFilter) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []

        if filters.fabricante:
            conditions.append(
                AplicacaoModel.fabricante.icontains(filters.fabricante, autoescape=True)
            )

        vehicle_type = resolve_vehicle_type(filters.tipo_veiculo)
        if vehicle_type is not None:
            conditions.append(_sigla_condition(AplicacaoModel.sigla_tipo, vehicle_type))

        line = resolve_line(filters.linha)
        if line is not None:
            conditions.append(_sigla_condition(AplicacaoModel.sigla_tipo, line))

        return conditions

    def _get_sort_columns(self, sort_by: str) -> list[Any]:
        """Get SQLAlchemy columns for sorting.

        Args:
            sort_by: Sort field name.

        Returns:
            Primary sort column followed by the code as tie-breaker.
        """
        columns = {
            "codigo": ProdutoModel.codigo_abr,
            "descricao": ProdutoModel.descricao,
            "grupo": ProdutoModel.grupo,
        }
        primary = columns.get(sort_by, ProdutoModel.codigo_abr)
        if primary is ProdutoModel.codigo_abr:
            return [primary.asc()]
        return [primary.asc(), ProdutoModel.codigo_abr.asc()]
