"""Canonical catalog records.

Every row read from the store goes through one of the from_row()
constructors below, so downstream code sees a single shape per entity
regardless of how the column happened to be filled.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from parts_catalog.catalog.normalization import (
    classify_sigla,
    normalize_code,
    normalize_text,
)


def _optional_text(raw: Any) -> str | None:
    return normalize_text(raw) or None


def _explosion_qty(raw: Any) -> int | float:
    """Parse an explosion quantity, defaulting to 1."""
    if raw is None or isinstance(raw, bool):
        return 1
    try:
        qty = Decimal(str(raw).strip())
    except InvalidOperation:
        return 1
    if not qty.is_finite() or qty <= 0:
        return 1
    if qty == qty.to_integral_value():
        return int(qty)
    return float(qty)


def _count(raw: Any) -> int:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or value < 0:
        return 0
    return int(value)


@dataclass(frozen=True)
class Product:
    """A catalog product.

    Attributes:
        code: Canonical code (join key).
        raw_code: Code as stored, trimmed.
        description: Product description.
        group: Product group.
    """

    code: str
    raw_code: str
    description: str | None = None
    group: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        """Build from a produtoss row."""
        return cls(
            code=normalize_code(row.get("codigo_abr")),
            raw_code=normalize_text(row.get("codigo_abr")),
            description=_optional_text(row.get("descricao")),
            group=_optional_text(row.get("grupo")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "codigo": self.code,
            "codigo_abr": self.raw_code,
            "descricao": self.description,
            "grupo": self.group,
        }


@dataclass(frozen=True)
class AssemblyRelation:
    """Parent assembly composed of a child product.

    Attributes:
        parent_code: Canonical code of the assembly.
        child_code: Canonical code of the component.
        child_description: Component description.
        explosion_qty: Units of child per unit of parent.
    """

    parent_code: str
    child_code: str
    child_description: str | None = None
    explosion_qty: int | float = 1

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AssemblyRelation":
        """Build from an estrutura_conjunto row joined with its child."""
        return cls(
            parent_code=normalize_code(row.get("pai")),
            child_code=normalize_code(row.get("filho")),
            child_description=_optional_text(row.get("filho_des")),
            explosion_qty=_explosion_qty(row.get("quantidade")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pai": self.parent_code,
            "filho": self.child_code,
            "filho_des": self.child_description,
            "qtd_explosao": self.explosion_qty,
        }

    def to_child_dict(self) -> dict[str, Any]:
        """Child entry as listed under its parent."""
        return {
            "filho": self.child_code,
            "filho_des": self.child_description,
            "qtd_explosao": self.explosion_qty,
        }

    def to_membership_dict(self) -> dict[str, Any]:
        """Membership entry as listed under the child."""
        return {
            "codigo_conjunto": self.parent_code,
            "quantidade": self.explosion_qty,
        }


@dataclass(frozen=True)
class Application:
    """Vehicle/equipment fitment of an assembly.

    Attributes:
        id: Row identifier.
        assembly_code: Canonical code of the fitted assembly.
        assembly_code_raw: Assembly code as stored, trimmed.
        vehicle: Vehicle or equipment name.
        manufacturer: Vehicle manufacturer.
        type: Textual type as stored.
        type_sigla: Canonical sigla (VLL, VLP, MLL, MLP) when known.
    """

    id: Any
    assembly_code: str
    assembly_code_raw: str
    vehicle: str | None = None
    manufacturer: str | None = None
    type: str | None = None
    type_sigla: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Application":
        """Build from an aplicacoes row."""
        return cls(
            id=row.get("id"),
            assembly_code=normalize_code(row.get("codigo_conjunto")),
            assembly_code_raw=normalize_text(row.get("codigo_conjunto")),
            vehicle=_optional_text(row.get("veiculo")),
            manufacturer=_optional_text(row.get("fabricante")),
            type=_optional_text(row.get("tipo")),
            type_sigla=classify_sigla(row.get("sigla_tipo"), row.get("tipo")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "codigo_conjunto": self.assembly_code,
            "codigo_conjunto_raw": self.assembly_code_raw,
            "veiculo": self.vehicle,
            "fabricante": self.manufacturer,
            "tipo": self.type,
            "sigla_tipo": self.type_sigla,
        }


@dataclass(frozen=True)
class Benchmark:
    """Cross-reference from a product to an external part number."""

    id: Any
    code: str
    code_raw: str
    origin: str | None = None
    original_number: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Benchmark":
        """Build from a benchmarks row."""
        return cls(
            id=row.get("id"),
            code=normalize_code(row.get("codigo_produto")),
            code_raw=normalize_text(row.get("codigo_produto")),
            origin=_optional_text(row.get("origem")),
            original_number=_optional_text(row.get("numero_original")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "codigo": self.code,
            "codigo_produto": self.code_raw,
            "origem": self.origin,
            "numero_original": self.original_number,
        }


@dataclass(frozen=True)
class Manufacturer:
    """Manufacturer with the number of applications naming it."""

    name: str
    count: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Manufacturer":
        """Build from an aggregated fabricantes row."""
        return cls(name=normalize_text(row.get("name")), count=_count(row.get("count")))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "count": self.count}
