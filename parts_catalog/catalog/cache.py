"""In-process key/value cache with per-entry time-to-live.

Holds the "all rows" snapshots of each catalog entity type. Expiry is
checked lazily on read; there is no background sweep.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_TTL_SECONDS = 3600.0


@dataclass(frozen=True)
class CacheEntry:
    """A stored value with its bookkeeping timestamps."""

    value: Any
    stored_at: float
    expires_at: float


class CacheStore:
    """Thread-safe TTL cache.

    Entries are replaced whole under a lock, so a reader sees either the
    previous entry or the new one, never a mix. The store knows nothing
    about what it holds.

    Example usage:
        store = CacheStore(default_ttl=60)
        store.set("products:all", snapshot)
        snapshot = store.get("products:all")  # None once expired
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty store.

        Args:
            default_ttl: TTL in seconds used when set() gets none.
            clock: Monotonic time source, injectable for tests.
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, replacing any previous entry."""
        now = self._clock()
        lifetime = self.default_ttl if ttl is None else ttl
        entry = CacheEntry(value=value, stored_at=now, expires_at=now + lifetime)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> Any | None:
        """Get a live value.

        Returns:
            The stored value, or None if missing or expired. Expired
            entries are evicted.
        """
        entry = self._live_entry(key)
        return entry.value if entry else None

    def age(self, key: str) -> float | None:
        """Seconds since the live entry under key was stored."""
        entry = self._live_entry(key)
        if entry is None:
            return None
        return self._clock() - entry.stored_at

    def delete(self, key: str) -> None:
        """Remove an entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry
