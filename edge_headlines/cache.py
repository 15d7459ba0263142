from __future__ import annotations

from abc import ABC, abstractmethod
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 256


class CacheError(RuntimeError):
    """The cache store could not be read."""


@dataclass(frozen=True, slots=True)
class CacheEntry:
    body: bytes
    stored_at: float


class CacheStore(ABC):
    """Key-value store for serialized responses."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry stored under ``key`` if any."""

    @abstractmethod
    def put(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry``; the last writer for a key wins."""

    @abstractmethod
    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when ``key`` is ``None``."""


class MemoryCacheStore(CacheStore):
    """Process-local store bounded to ``max_entries`` keys."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._max_entries = max(1, max_entries)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EdgeCache:
    """Serve a cached response or compute and store a new one.

    Hits inside ``ttl`` return the stored bytes untouched. On a miss the
    response is computed in the caller's thread and written back on a
    background worker, so the caller never waits for the store. When the
    computation fails, an expired entry younger than ``stale_ttl`` is served
    instead.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        stale_ttl: float = 600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store if store is not None else MemoryCacheStore()
        self.stale_ttl = stale_ttl
        self._clock = clock
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="edge-cache-write")

    def get_or_compute(self, key: str, ttl: float, compute: Callable[[], bytes]) -> bytes:
        entry = self._read(key)
        now = self._clock()
        if entry is not None and now - entry.stored_at < ttl:
            logger.debug("Cache hit for %s", key)
            return entry.body
        try:
            body = compute()
        except Exception:
            if entry is not None and now - entry.stored_at < max(ttl, self.stale_ttl):
                logger.warning("Recompute failed for %s; serving stale response", key, exc_info=True)
                return entry.body
            raise
        self.schedule_write(key, CacheEntry(body=body, stored_at=now))
        return body

    def schedule_write(self, key: str, entry: CacheEntry) -> Future:
        future = self._writer.submit(self.store.put, key, entry)
        future.add_done_callback(lambda done: _log_write_failure(key, done))
        return future

    def invalidate(self, key: Optional[str] = None) -> None:
        self.flush()
        self.store.invalidate(key)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write scheduled so far has been applied."""
        self._writer.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        self._writer.shutdown(wait=True)

    def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            return self.store.get(key)
        except Exception as exc:
            raise CacheError(f"Cache read failed for {key}: {exc}") from exc


def _log_write_failure(key: str, future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Cache write failed for %s: %s", key, exc)
