"""
Time-bounded keyed cache for acquired records.

Freshness rule: an entry is fresh iff ``clock() - entry.fetched_at < ttl``.
Stale entries are never evicted; they are simply ignored by ``get`` and
overwritten by the next ``put``.

Thread-safety: entries are frozen ``CacheEntry`` dataclasses and every write is
a single dict item assignment, which is atomic under CPython. Readers of
distinct keys never block each other and concurrent writers to one key
resolve last-write-wins. No lock is ever held while a provider is called.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterator, Optional, TypeVar

from market_pulse.utils.time_utils import Clock, monotonic

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """One cached value and the monotonic instant it was stored."""

    key: str
    value: T
    fetched_at: float


class TTLCache(Generic[T]):
    """Keyed cache whose entries expire ``ttl_seconds`` after being stored.

    Args:
        ttl_seconds: Entry lifetime in seconds (> 0).
        clock: Monotonic clock; injectable for tests.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}.")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _is_fresh(self, entry: CacheEntry[T]) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    def get(self, key: str) -> tuple[Optional[T], bool]:
        """Return ``(value, True)`` for a fresh entry, else ``(None, False)``."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None, False
        return entry.value, True

    def put(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        self._entries[key] = CacheEntry(key, value, self._clock())

    def peek(self, key: str) -> Optional[CacheEntry[T]]:
        """Return the raw entry for ``key`` regardless of freshness."""
        return self._entries.get(key)

    def keys(self) -> list[str]:
        """Return every key with an entry, fresh or stale."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and self._is_fresh(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
