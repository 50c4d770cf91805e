# backend/app/services/price_cache.py
"""
Thread-safe key/value store for last-known prices.

The cache is a pure store: it has no TTL and never evicts on its own.
Freshness is decided by the caller (see PriceResolver), so the same
implementation can serve callers with different staleness needs.

Concurrency:
    A reader/writer lock lets any number of readers proceed together
    while writers get exclusive access. Readers never block each other,
    which matters because every valuation request starts with a batch read.

Usage:
    from app.services.price_cache import PriceCache

    cache: PriceCache[Price] = PriceCache()
    cache.set("0xa0b8...:usd", price)
    value, found = cache.get("0xa0b8...:usd")
    hits = cache.get_batch(["0xa0b8...:usd", "0xdac1...:usd"])
"""

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class ReadWriteLock:
    """
    Minimal reader/writer lock built on threading.Condition.

    Writers wait until no readers are active; new readers wait while a
    writer is waiting so writers are not starved.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer_active or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()


class PriceCache(Generic[K, V]):
    """
    Generic concurrent key/value store.

    Values are stored as given; callers are expected to store immutable
    objects (Price is a frozen dataclass).
    """

    def __init__(self) -> None:
        self._data: dict[K, V] = {}
        self._lock = ReadWriteLock()

    def get(self, key: K) -> tuple[V | None, bool]:
        """Return (value, found)."""
        with self._lock.read():
            if key in self._data:
                return self._data[key], True
            return None, False

    def set(self, key: K, value: V) -> None:
        with self._lock.write():
            self._data[key] = value

    def get_batch(self, keys: Iterable[K]) -> dict[K, V]:
        """Return only the keys that are present."""
        with self._lock.read():
            return {key: self._data[key] for key in keys if key in self._data}

    def set_batch(self, items: Mapping[K, V]) -> None:
        if not items:
            return
        with self._lock.write():
            self._data.update(items)
        logger.debug(f"PriceCache stored {len(items)} entries")

    def delete(self, key: K) -> bool:
        """Remove a key. Returns True if it was present."""
        with self._lock.write():
            if key not in self._data:
                return False
            del self._data[key]
            return True

    def clear(self) -> None:
        with self._lock.write():
            self._data.clear()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock.read():
            return key in self._data
