"""Tests for the TTL result cache."""

from payrouter.routing.cache import ResultCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestResultCache:
    def test_get_missing_key_returns_none(self):
        cache: ResultCache[str] = ResultCache()
        assert cache.get("nope") is None

    def test_value_returned_before_expiry(self):
        clock = FakeClock()
        cache: ResultCache[str] = ResultCache(default_ttl=30, clock=clock)
        cache.set("k", "v")

        clock.advance(29.9)
        assert cache.get("k") == "v"

    def test_value_expires_after_ttl(self):
        """An entry read at exactly its expiry time is already gone."""
        clock = FakeClock()
        cache: ResultCache[str] = ResultCache(default_ttl=30, clock=clock)
        cache.set("k", "v")

        clock.advance(30)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl_overrides_default(self):
        clock = FakeClock()
        cache: ResultCache[str] = ResultCache(default_ttl=30, clock=clock)
        cache.set("short", "a", ttl=1)
        cache.set("long", "b")

        clock.advance(5)
        assert cache.get("short") is None
        assert cache.get("long") == "b"

    def test_non_positive_ttl_stores_nothing(self):
        cache: ResultCache[str] = ResultCache(default_ttl=30)
        cache.set("zero", "a", ttl=0)
        cache.set("negative", "b", ttl=-5)

        assert cache.get("zero") is None
        assert cache.get("negative") is None
        assert len(cache) == 0

    def test_set_overwrites_and_refreshes_expiry(self):
        clock = FakeClock()
        cache: ResultCache[str] = ResultCache(default_ttl=10, clock=clock)
        cache.set("k", "old")
        clock.advance(8)
        cache.set("k", "new")
        clock.advance(8)

        assert cache.get("k") == "new"

    def test_clear(self):
        cache: ResultCache[int] = ResultCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()

        assert len(cache) == 0
        assert cache.get("a") is None
