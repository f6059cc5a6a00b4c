import pytest

from bridge.cache import TTLCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_get_returns_value_within_ttl():
    clock = FakeClock()
    cache = TTLCache(default_ttl=30, clock=clock)

    cache.set("system:overview", {"hostname": "edge-01"})
    clock.advance(29.9)

    assert cache.get("system:overview") == {"hostname": "edge-01"}
    assert cache.stats["hits"] == 1


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(default_ttl=30, clock=clock)

    cache.set("system:cpu", 42)
    clock.advance(30)

    assert cache.get("system:cpu") is None
    assert len(cache) == 0
    assert cache.stats["expired"] == 1


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    cache = TTLCache(default_ttl=30, clock=clock)

    cache.set("short", "a", ttl=1)
    cache.set("long", "b")
    clock.advance(5)

    assert cache.get("short") is None
    assert cache.get("long") == "b"


def test_set_overwrites_and_restarts_lifetime():
    clock = FakeClock()
    cache = TTLCache(default_ttl=10, clock=clock)

    cache.set("key", "old")
    clock.advance(8)
    cache.set("key", "new")
    clock.advance(8)

    assert cache.get("key") == "new"


def test_missing_key_reads_as_absent():
    cache = TTLCache()

    assert cache.get("nothing") is None
    assert cache.stats["misses"] == 1


def test_delete_and_clear():
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False

    cache.clear()
    assert len(cache) == 0


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = TTLCache(default_ttl=30, clock=clock)
    cache.set("stale", 1, ttl=5)
    cache.set("fresh", 2)
    clock.advance(10)

    assert cache.sweep() == 1
    assert len(cache) == 1
    assert cache.get("fresh") == 2


@pytest.mark.parametrize("ttl", [0, -1])
def test_non_positive_ttl_is_rejected(ttl):
    cache = TTLCache()
    with pytest.raises(ValueError):
        cache.set("key", "value", ttl=ttl)
    with pytest.raises(ValueError):
        TTLCache(default_ttl=ttl)
