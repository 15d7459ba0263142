import threading

import pytest

from edge_headlines.cache import CacheEntry, CacheError, CacheStore, EdgeCache, MemoryCacheStore


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingStore(MemoryCacheStore):
    def __init__(self):
        super().__init__()
        self.writer_threads = []

    def put(self, key, entry):
        self.writer_threads.append(threading.current_thread().name)
        super().put(key, entry)


class BrokenStore(CacheStore):
    def get(self, key):
        raise ConnectionError("store offline")

    def put(self, key, entry):
        raise ConnectionError("store offline")

    def invalidate(self, key=None):
        pass


def test_hit_within_ttl_returns_stored_bytes():
    clock = Clock()
    cache = EdgeCache(clock=clock)
    calls = []

    def compute():
        calls.append(1)
        return f"body-{len(calls)}".encode()

    assert cache.get_or_compute("k", 60, compute) == b"body-1"
    cache.flush()
    clock.now += 30
    assert cache.get_or_compute("k", 60, compute) == b"body-1"
    assert len(calls) == 1

    clock.now += 31
    assert cache.get_or_compute("k", 60, compute) == b"body-2"
    assert len(calls) == 2


def test_write_happens_on_background_worker():
    store = RecordingStore()
    cache = EdgeCache(store=store, clock=Clock())
    cache.get_or_compute("k", 60, lambda: b"x")
    cache.flush()
    assert store.get("k").body == b"x"
    assert store.writer_threads and store.writer_threads[0] != threading.current_thread().name


def test_keys_do_not_collide():
    cache = EdgeCache(clock=Clock())
    cache.get_or_compute("a", 60, lambda: b"a")
    cache.get_or_compute("b", 60, lambda: b"b")
    cache.flush()
    assert cache.get_or_compute("a", 60, lambda: b"new") == b"a"
    assert cache.get_or_compute("b", 60, lambda: b"new") == b"b"


def test_stale_entry_served_when_recompute_fails():
    clock = Clock()
    cache = EdgeCache(stale_ttl=600, clock=clock)
    cache.get_or_compute("k", 60, lambda: b"old")
    cache.flush()
    clock.now += 120

    def failing():
        raise RuntimeError("upstream down")

    assert cache.get_or_compute("k", 60, failing) == b"old"

    clock.now += 1000
    with pytest.raises(RuntimeError):
        cache.get_or_compute("k", 60, failing)


def test_invalidate_forces_recompute():
    cache = EdgeCache(clock=Clock())
    cache.get_or_compute("k", 60, lambda: b"one")
    cache.invalidate("k")
    assert cache.get_or_compute("k", 60, lambda: b"two") == b"two"


def test_store_read_failure_raises_cache_error():
    cache = EdgeCache(store=BrokenStore(), clock=Clock())
    with pytest.raises(CacheError):
        cache.get_or_compute("k", 60, lambda: b"x")


def test_memory_store_is_bounded():
    store = MemoryCacheStore(max_entries=2)
    for key in ("a", "b", "c"):
        store.put(key, CacheEntry(body=key.encode(), stored_at=0))
    assert len(store) == 2
    assert store.get("a") is None
    store.invalidate()
    assert len(store) == 0
