"""
Tests for market_pulse/acquisition/cache.py.

What we test
------------
TTLCache:
  - A miss returns (None, False).
  - A put is served while fresh and is the same object.
  - Entries go stale at exactly ``ttl`` seconds (strict ``<``).
  - A new put refreshes a stale entry.
  - Stale entries stay visible to ``peek`` and ``keys``.
  - ``in`` reports fresh entries only.
  - Non-positive TTL is rejected.
  - Concurrent writers on distinct keys never lose an entry.
"""

from __future__ import annotations

import threading

import pytest

from market_pulse.acquisition.cache import TTLCache


class TestTTLCache:
    def test_miss(self, fake_clock):
        cache: TTLCache[str] = TTLCache(60, clock=fake_clock)
        assert cache.get("RELIANCE") == (None, False)

    def test_hit_within_ttl_returns_same_object(self, fake_clock):
        cache: TTLCache[object] = TTLCache(60, clock=fake_clock)
        value = object()
        cache.put("RELIANCE", value)
        fake_clock.advance(59.9)
        cached, found = cache.get("RELIANCE")
        assert found is True
        assert cached is value

    def test_entry_stale_at_exact_ttl(self, fake_clock):
        cache: TTLCache[int] = TTLCache(60, clock=fake_clock)
        cache.put("TCS", 1)
        fake_clock.advance(60)
        assert cache.get("TCS") == (None, False)

    def test_put_refreshes_stale_entry(self, fake_clock):
        cache: TTLCache[int] = TTLCache(10, clock=fake_clock)
        cache.put("TCS", 1)
        fake_clock.advance(11)
        cache.put("TCS", 2)
        assert cache.get("TCS") == (2, True)

    def test_stale_entry_kept_for_peek(self, fake_clock):
        cache: TTLCache[int] = TTLCache(1, clock=fake_clock)
        cache.put("INFY", 7)
        fake_clock.advance(5)
        entry = cache.peek("INFY")
        assert entry is not None
        assert entry.value == 7
        assert entry.fetched_at == 1000.0
        assert cache.keys() == ["INFY"]
        assert len(cache) == 1

    def test_contains_fresh_only(self, fake_clock):
        cache: TTLCache[int] = TTLCache(1, clock=fake_clock)
        cache.put("INFY", 7)
        assert "INFY" in cache
        fake_clock.advance(1)
        assert "INFY" not in cache
        assert "WIPRO" not in cache

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_nonpositive_ttl_raises(self, ttl):
        with pytest.raises(ValueError, match="ttl_seconds"):
            TTLCache(ttl)

    def test_ttl_property(self):
        assert TTLCache(2.5).ttl_seconds == 2.5

    def test_concurrent_distinct_keys(self):
        cache: TTLCache[int] = TTLCache(60)

        def _writer(offset: int) -> None:
            for i in range(200):
                cache.put(f"K{offset}-{i}", i)

        threads = [threading.Thread(target=_writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 8 * 200
        assert cache.get("K3-150") == (150, True)
