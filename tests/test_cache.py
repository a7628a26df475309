"""Tests for the result cache."""

from pilot_engine.cache.store import ResultCache, make_cache_key


class _FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestCacheKey:
    def test_key_is_deterministic_across_dict_order(self):
        a = make_cache_key("sentiment", {"text": "hi", "lang": "en"}, {"blockchain": None}, {})
        b = make_cache_key("sentiment", {"lang": "en", "text": "hi"}, {"blockchain": None}, {})
        assert a == b

    def test_key_depends_on_input(self):
        a = make_cache_key("sentiment", {"text": "hi"}, {}, {})
        b = make_cache_key("sentiment", {"text": "bye"}, {}, {})
        assert a != b

    def test_key_depends_on_context(self):
        a = make_cache_key("proposal", {"text": "x"}, {"blockchain": "ethereum"}, {})
        b = make_cache_key("proposal", {"text": "x"}, {"blockchain": "solana"}, {})
        assert a != b

    def test_key_ignores_priority_and_timeout(self):
        a = make_cache_key("text", {"text": "x"}, {}, {"priority": "low", "timeout": 1})
        b = make_cache_key("text", {"text": "x"}, {}, {"priority": "high", "timeout": 9})
        assert a == b

    def test_provider_order_does_not_matter(self):
        a = make_cache_key("text", {"text": "x"}, {}, {"providers": ["a", "b"]})
        b = make_cache_key("text", {"text": "x"}, {}, {"providers": ["b", "a"]})
        assert a == b

    def test_key_prefix(self):
        assert make_cache_key("market", {}, {}, {}).startswith("analysis:market:")


class TestResultCache:
    def setup_method(self):
        self.clock = _FakeClock()
        self.cache = ResultCache(max_size=2, default_ttl=None, clock=self.clock)

    def test_set_and_get(self):
        self.cache.set("a", 1)
        assert self.cache.get("a") == 1
        assert self.cache.stats() == {"keys": 1, "hits": 1, "misses": 0}

    def test_miss_is_counted(self):
        assert self.cache.get("missing") is None
        assert self.cache.stats()["misses"] == 1

    def test_expired_entry_is_a_miss_and_removed(self):
        self.cache.set("a", 1, ttl=10)
        self.clock.advance(9)
        assert self.cache.get("a") == 1
        self.clock.advance(1)
        assert self.cache.get("a") is None
        assert self.cache.stats() == {"keys": 0, "hits": 1, "misses": 1}

    def test_insertion_order_eviction(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        # Reading does not refresh position
        self.cache.get("a")
        self.cache.set("c", 3)
        assert "a" not in self.cache
        assert "b" in self.cache
        assert "c" in self.cache
        assert len(self.cache) == 2

    def test_reinsert_moves_to_end(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.cache.set("a", 10)
        self.cache.set("c", 3)
        assert "b" not in self.cache
        assert self.cache.get("a") == 10

    def test_zero_capacity_stores_nothing(self):
        cache = ResultCache(max_size=0, clock=self.clock)
        cache.set("a", 1)
        assert len(cache) == 0
        assert cache.get("a") is None

    def test_default_ttl_applies(self):
        cache = ResultCache(max_size=5, default_ttl=30, clock=self.clock)
        cache.set("a", 1)
        self.clock.advance(30)
        assert cache.get("a") is None

    def test_peek_leaves_counters_alone(self):
        self.cache.set("a", 1)
        assert self.cache.peek("a") == 1
        assert self.cache.peek("b") is None
        assert self.cache.stats() == {"keys": 1, "hits": 0, "misses": 0}

    def test_delete(self):
        self.cache.set("a", 1)
        assert self.cache.delete("a") is True
        assert self.cache.delete("a") is False

    def test_clear_keeps_counters_by_default(self):
        self.cache.set("a", 1)
        self.cache.get("a")
        self.cache.clear()
        assert self.cache.stats() == {"keys": 0, "hits": 1, "misses": 0}
        self.cache.clear(reset_stats=True)
        assert self.cache.stats() == {"keys": 0, "hits": 0, "misses": 0}
