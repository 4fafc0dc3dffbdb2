# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Keyed record arena with per-key write serialization.

Holds the in-process exercise metrics and review schedules. Records are
created on first use, replaced on every mutation and never deleted; they
live exactly as long as the owning engine. Iteration follows insertion
order, which is also the "storage" order of due-for-review scans.

Writes to one key are serialized by an asyncio.Lock for that key so that
read-modify-write updates (EMA averages, interval doubling) are never
lost. Different keys never contend and there is no global lock.
"""

import asyncio
from typing import Callable, Generic, Hashable, Iterator, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class KeyedArena(Generic[K, V]):
    """Key to record map with load-or-create and locked mutation.

    Example:
        arena: KeyedArena[str, PerformanceMetrics] = KeyedArena(PerformanceMetrics)
        metrics = await arena.mutate("ex-1", lambda m: m.model_copy(update={...}))
    """

    def __init__(self, factory: Callable[[], V]) -> None:
        """Initialize an empty arena.

        Args:
            factory: Builds the default record for a key seen for the first time.
        """
        self._factory = factory
        self._records: dict[K, V] = {}
        self._locks: dict[K, asyncio.Lock] = {}

    def _lock_for(self, key: K) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def get(self, key: K) -> V | None:
        """Return the record for a key without creating it."""
        return self._records.get(key)

    def get_or_create(self, key: K) -> V:
        """Return the record for a key, creating the default if absent."""
        record = self._records.get(key)
        if record is None:
            record = self._factory()
            self._records[key] = record
        return record

    async def mutate(self, key: K, fn: Callable[[V], V]) -> V:
        """Replace a record with fn(current) while holding the key's lock.

        The current record is loaded or created inside the lock, so two
        concurrent mutations of the same key always observe each other.

        Args:
            key: Record key.
            fn: Pure function from the current record to the new one.

        Returns:
            The stored new record.
        """
        async with self._lock_for(key):
            updated = fn(self.get_or_create(key))
            self._records[key] = updated
            return updated

    async def put(self, key: K, record: V) -> V:
        """Store a record for a key while holding the key's lock."""
        async with self._lock_for(key):
            self._records[key] = record
            return record

    def items(self) -> Iterator[tuple[K, V]]:
        """Iterate over (key, record) pairs in insertion order."""
        return iter(list(self._records.items()))

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
