"""Normalization utilities for catalog records.

Canonicalizes product codes and free text, and classifies vehicle
applications against the type/line taxonomy:

    V = vehicle, M = motor      (first letter)
    L = light line, P = heavy   (last letter)

giving the four canonical siglas VLL, VLP, MLL and MLP.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Protocol

CANONICAL_SIGLAS = ("VLL", "VLP", "MLL", "MLP")

MOTOR_PREFIX = "M"
VEHICLE_PREFIX = "V"
LIGHT_SUFFIX = "L"
HEAVY_SUFFIX = "P"

# Filter values that select a whole class (first letter of the sigla)
VEHICLE_CLASS_ALIASES: dict[str, frozenset[str]] = {
    MOTOR_PREFIX: frozenset({"M", "MOTOR", "MOTORES"}),
    VEHICLE_PREFIX: frozenset({"V", "VEICULO", "VEICULOS"}),
}

# Filter values that select a duty line (last letter of the sigla)
LINE_ALIASES: dict[str, frozenset[str]] = {
    LIGHT_SUFFIX: frozenset({"L", "LEVE", "LEVES", "LINHA LEVE"}),
    HEAVY_SUFFIX: frozenset({"P", "PESADO", "PESADA", "PESADOS", "LINHA PESADA"}),
}

# Legacy labels still found in application records and old clients
SIGLA_LABELS: dict[str, frozenset[str]] = {
    "MLL": frozenset({"MOTOR LEVE", "MOTOR LINHA LEVE", "MOTOR - LINHA LEVE"}),
    "MLP": frozenset({"MOTOR PESADO", "MOTOR LINHA PESADA", "MOTOR - LINHA PESADA"}),
    "VLL": frozenset({
        "VEICULO LEVE",
        "VEICULO LINHA LEVE",
        "VEICULO - LINHA LEVE",
    }),
    "VLP": frozenset({
        "VEICULO PESADO",
        "VEICULO LINHA PESADA",
        "VEICULO - LINHA PESADA",
    }),
}

_WHITESPACE = re.compile(r"\s+")


class HasSigla(Protocol):
    """Anything carrying a canonical type sigla."""

    type_sigla: str | None


@dataclass(frozen=True)
class SiglaMatch:
    """How a filter value is compared against a sigla.

    Attributes:
        mode: One of "exact", "prefix", "suffix" or "contains".
        token: Uppercase value to compare with.
    """

    mode: str
    token: str

    def matches(self, sigla: str) -> bool:
        """Check a canonical sigla against this match."""
        if not sigla:
            return False
        if self.mode == "exact":
            return sigla == self.token
        if self.mode == "prefix":
            return sigla.startswith(self.token)
        if self.mode == "suffix":
            return sigla.endswith(self.token)
        return self.token in sigla


def normalize_code(raw: Any) -> str:
    """Canonicalize a product code (uppercase, no whitespace).

    Args:
        raw: Code as read from the store or the request.

    Returns:
        Canonical code, or "" for None.
    """
    if raw is None:
        return ""
    return _WHITESPACE.sub("", str(raw).upper()).strip()


def normalize_text(raw: Any) -> str:
    """Trim free text, keeping case and inner spacing."""
    if raw is None:
        return ""
    return str(raw).strip()


def fold_label(raw: Any) -> str:
    """Uppercase, strip accents and collapse spacing of a label."""
    text = normalize_text(raw)
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped.upper())


def sigla_from_label(raw: Any) -> str | None:
    """Resolve a canonical sigla or one of its legacy labels.

    Args:
        raw: Sigla ("vlp") or label ("Veículo Linha Pesada").

    Returns:
        Canonical sigla, or None when the value names no single sigla.
    """
    label = fold_label(raw)
    if not label:
        return None
    compact = label.replace(" ", "")
    if compact in CANONICAL_SIGLAS:
        return compact
    for sigla, labels in SIGLA_LABELS.items():
        if label in labels:
            return sigla
    return None


def classify_sigla(sigla: Any, type_label: Any = None) -> str | None:
    """Derive the canonical sigla of an application record.

    The stored sigla wins when present. Records with an empty sigla fall
    back to their textual type, which only classifies when it names both
    the class and the line ("Motor Linha Pesada").

    Args:
        sigla: Stored sigla column.
        type_label: Stored textual type column.

    Returns:
        Canonical sigla, the normalized stored sigla when it is not one of
        the four canonical values, or None.
    """
    code = normalize_code(sigla)
    if code:
        return code

    label = fold_label(type_label)
    if not label:
        return None

    resolved = sigla_from_label(label)
    if resolved:
        return resolved

    words = label.replace("-", " ").split()
    if "MOTOR" in words:
        prefix = MOTOR_PREFIX
    elif any(word.startswith("VEICULO") for word in words):
        prefix = VEHICLE_PREFIX
    else:
        return None

    if any(word.startswith("PESAD") for word in words):
        return f"{prefix}L{HEAVY_SUFFIX}"
    if "LEVE" in words:
        return f"{prefix}L{LIGHT_SUFFIX}"
    return None


def resolve_vehicle_type(value: Any) -> SiglaMatch | None:
    """Translate a vehicle type filter value into a sigla match.

    Returns:
        SiglaMatch, or None for an empty filter (no-op).
    """
    label = fold_label(value)
    if not label:
        return None

    canonical = sigla_from_label(label)
    if canonical:
        return SiglaMatch("exact", canonical)

    for prefix, aliases in VEHICLE_CLASS_ALIASES.items():
        if label in aliases:
            return SiglaMatch("prefix", prefix)

    return SiglaMatch("contains", label)


def resolve_line(value: Any) -> SiglaMatch | None:
    """Translate a duty line filter value into a sigla match.

    Returns:
        SiglaMatch, or None for an empty filter (no-op).
    """
    label = fold_label(value)
    if not label:
        return None

    canonical = sigla_from_label(label)
    if canonical:
        return SiglaMatch("exact", canonical)

    for suffix, aliases in LINE_ALIASES.items():
        if label in aliases:
            return SiglaMatch("suffix", suffix)

    return SiglaMatch("contains", label)


def matches_vehicle_type(application: HasSigla, value: Any) -> bool:
    """Check an application against a vehicle type filter.

    An empty filter always passes. An application without a sigla never
    matches a non-empty filter.
    """
    match = resolve_vehicle_type(value)
    if match is None:
        return True
    return match.matches(application.type_sigla or "")


def matches_line(application: HasSigla, value: Any) -> bool:
    """Check an application against a duty line filter."""
    match = resolve_line(value)
    if match is None:
        return True
    return match.matches(application.type_sigla or "")


def contains_text(text: Any, term: str) -> bool:
    """Case-insensitive substring test; empty text never matches."""
    if not text:
        return False
    return term.casefold() in str(text).casefold()


def collation_key(value: Any) -> str:
    """Sort key approximating locale-aware string comparison."""
    text = normalize_text(value)
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
