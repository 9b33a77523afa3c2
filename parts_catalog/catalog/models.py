"""SQLAlchemy models for the catalog tables.

Maps the existing catalog schema read by the repository. Table and column
names follow the store as it is; the canonical Python shapes live in
parts_catalog.catalog.entities.
"""

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from parts_catalog.infrastructure.database import Base


class ProdutoModel(Base):
    """Product row.

    Attributes:
        codigo_abr: Product code as typed by the catalog team.
        descricao: Product description.
        grupo: Product group.
    """

    __tablename__ = "produtoss"

    codigo_abr: Mapped[str] = mapped_column(String(50), primary_key=True)
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    grupo: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProdutoModel(codigo_abr={self.codigo_abr})>"


class EstruturaConjuntoModel(Base):
    """Bill-of-materials row: assembly -> component with quantity."""

    __tablename__ = "estrutura_conjunto"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo_conjunto: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    codigo_componente: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    quantidade: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<EstruturaConjuntoModel(codigo_conjunto={self.codigo_conjunto}, "
            f"codigo_componente={self.codigo_componente})>"
        )


class AplicacaoModel(Base):
    """Application row: assembly fitted to a vehicle or engine."""

    __tablename__ = "aplicacoes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo_conjunto: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    veiculo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fabricante: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tipo: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sigla_tipo: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<AplicacaoModel(id={self.id}, codigo_conjunto={self.codigo_conjunto})>"


class BenchmarkModel(Base):
    """Benchmark row: product -> competitor/OEM part number."""

    __tablename__ = "benchmarks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo_produto: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    origem: Mapped[str | None] = mapped_column(String(100), nullable=True)
    numero_original: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<BenchmarkModel(id={self.id}, codigo_produto={self.codigo_produto})>"


class FabricanteModel(Base):
    """Manufacturer lookup row, derived from applications."""

    __tablename__ = "fabricantes"
    __table_args__ = (UniqueConstraint("nome", name="unq_fabricante_nome"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<FabricanteModel(nome={self.nome})>"
