"""Per-key locking for index mutations."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager


class KeyedLock:
    """Serializes work on overlapping keys while disjoint keys run in parallel.

    Locks are created on demand and dropped when no holder or waiter
    references them. Keys are always acquired in sorted order, so two callers
    locking overlapping key sets cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [lock, refcount]

    def _checkout(self, keys: list[str]) -> list[threading.Lock]:
        with self._guard:
            locks = []
            for key in keys:
                entry = self._locks.setdefault(key, [threading.Lock(), 0])
                entry[1] += 1
                locks.append(entry[0])
            return locks

    def _checkin(self, keys: list[str]) -> None:
        with self._guard:
            for key in keys:
                entry = self._locks[key]
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    @contextmanager
    def acquire(self, keys: Iterable[str]) -> Iterator[None]:
        """Hold the locks for every key in ``keys`` for the ``with`` body."""
        ordered = sorted(set(keys))
        locks = self._checkout(ordered)
        acquired: list[threading.Lock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            self._checkin(ordered)

    def active_keys(self) -> int:
        """Number of keys currently held or awaited."""
        with self._guard:
            return len(self._locks)
