"""TTLCache with an injected clock."""

import asyncio

from predictmax.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


def test_get_set_expiry():
    clock = FakeClock()
    cache = TTLCache(clock)
    cache.set("trending", [1, 2], ttl_sec=60)
    assert cache.get("trending") == [1, 2]
    clock.t += 60
    assert cache.get("trending") == [1, 2]
    clock.t += 1
    assert cache.get("trending") is None
    assert cache.get("missing") is None


def test_wrap_calls_factory_once_per_ttl():
    clock = FakeClock()
    cache = TTLCache(clock)
    calls = []

    async def factory():
        calls.append(clock.t)
        return len(calls)

    assert asyncio.run(cache.wrap("k", 10, factory)) == 1
    assert asyncio.run(cache.wrap("k", 10, factory)) == 1
    clock.t += 11
    assert asyncio.run(cache.wrap("k", 10, factory)) == 2
    assert len(calls) == 2


def test_cleanup_and_stats():
    clock = FakeClock()
    cache = TTLCache(clock)
    cache.set("short", "a", 5)
    cache.set("long", "b", 500)
    clock.t += 10
    assert cache.stats() == {"total": 2, "valid": 1, "expired": 1}
    assert cache.cleanup() == 1
    assert cache.stats() == {"total": 1, "valid": 1, "expired": 0}
    cache.delete("long")
    cache.delete("never-set")
    assert cache.stats()["total"] == 0


def test_clear():
    cache = TTLCache(FakeClock())
    cache.set("a", 1, 10)
    cache.clear()
    assert cache.get("a") is None
