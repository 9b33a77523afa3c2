"""Immutable entity snapshots with lookup indexes.

A snapshot is built completely before it is cached, so concurrent readers
only ever see a fully formed one.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """All rows of one entity type at a point in time.

    Attributes:
        rows: Records in read order.
        indexes: Index name -> key -> records with that key, in read order.
        loaded_at: When the rows were read from the store.
    """

    rows: tuple[T, ...]
    indexes: dict[str, dict[str, tuple[T, ...]]] = field(default_factory=dict)
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(
        cls,
        records: Iterable[T],
        **key_funcs: Callable[[T], str],
    ) -> "Snapshot[T]":
        """Freeze records and index them.

        Args:
            records: Normalized records.
            **key_funcs: Index name -> function extracting the key.

        Returns:
            New snapshot.
        """
        rows = tuple(records)
        indexes: dict[str, dict[str, tuple[T, ...]]] = {}
        for name, key_func in key_funcs.items():
            grouped: dict[str, list[T]] = {}
            for row in rows:
                grouped.setdefault(key_func(row), []).append(row)
            indexes[name] = {key: tuple(items) for key, items in grouped.items()}
        return cls(rows=rows, indexes=indexes)

    def lookup(self, index: str, key: str) -> list[T]:
        """Records whose index key equals key, as a new list."""
        return list(self.indexes[index].get(key, ()))

    def first(self, index: str, key: str) -> T | None:
        """First record with the given key, if any."""
        matches = self.indexes[index].get(key, ())
        return matches[0] if matches else None

    def keys(self, index: str) -> list[str]:
        """Distinct keys of an index in first-seen order."""
        return list(self.indexes[index])

    def __len__(self) -> int:
        return len(self.rows)
