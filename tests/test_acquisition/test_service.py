"""
Tests for market_pulse/acquisition/service.py.

What we test
------------
get_quote():
  - Never raises for provider failures; always carries a source.
  - All providers failing yields ``synthetic=True``.
  - Two calls within the TTL return the identical object, one fetch.
  - A call after TTL expiry triggers exactly one new resolution.
  - Symbols are normalised before lookup and caching.
  - Blank symbols are rejected.

get_quotes():
  - Input order kept, duplicates collapsed.

get_news():
  - Batches are curated (deduplicated, most recent first, limited).
  - Synthetic news when every provider fails.
  - Cached for the news TTL.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from market_pulse.acquisition.fallback import FallbackChain
from market_pulse.acquisition.service import AcquisitionService
from market_pulse.acquisition.synthetic import SyntheticQuoteFactory, synthetic_news
from market_pulse.config import SyntheticConfig
from market_pulse.models.news import NewsBatch, NewsItem
from market_pulse.providers.base import ProviderError

_T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _service(quote_providers, news_providers, fake_clock, news_limit=7) -> AcquisitionService:
    return AcquisitionService(
        quote_chain=FallbackChain(
            quote_providers,
            synthesizer=SyntheticQuoteFactory(SyntheticConfig()),
            clock=fake_clock,
            label="quote",
        ),
        news_chain=FallbackChain(
            news_providers,
            synthesizer=synthetic_news,
            clock=fake_clock,
            label="news",
        ),
        quote_ttl_seconds=60,
        news_ttl_seconds=1,
        news_limit=news_limit,
        max_workers=4,
        clock=fake_clock,
    )


def _item(i: int, headline: str, minutes: int, url: str | None = None) -> NewsItem:
    return NewsItem(
        id=f"stub-{i}",
        headline=headline,
        source="stub",
        url=url or f"https://example.com/{i}",
        published_at=_T0 + timedelta(minutes=minutes),
    )


class TestGetQuote:
    def test_live_quote(self, fake_clock, make_provider, make_quote):
        provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        quote = _service([provider], [], fake_clock).get_quote("RELIANCE")
        assert quote.symbol == "RELIANCE"
        assert quote.source == "yahoo"
        assert quote.synthetic is False

    def test_all_failing_is_synthetic(self, fake_clock, make_provider):
        providers = [make_provider(n, error=ProviderError("down")) for n in ("a", "b", "c")]
        quote = _service(providers, [], fake_clock).get_quote("HDFCBANK")
        assert quote.synthetic is True
        assert quote.source == "fallback"
        assert quote.current_price == pytest.approx(1685.40)

    def test_cached_within_ttl(self, fake_clock, make_provider, make_quote):
        provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        service = _service([provider], [], fake_clock)

        first = service.get_quote("TCS")
        fake_clock.advance(30)
        second = service.get_quote("TCS")

        assert second is first
        assert len(provider.calls) == 1

    def test_refetch_after_ttl(self, fake_clock, make_provider, make_quote):
        provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        service = _service([provider], [], fake_clock)

        service.get_quote("TCS")
        fake_clock.advance(60)
        service.get_quote("TCS")
        service.get_quote("TCS")

        assert len(provider.calls) == 2

    def test_synthetic_result_is_cached(self, fake_clock, make_provider):
        provider = make_provider("yahoo", error=ProviderError("down"))
        service = _service([provider], [], fake_clock)
        service.get_quote("INFY")
        service.get_quote("INFY")
        assert len(provider.calls) == 1

    def test_symbol_normalised(self, fake_clock, make_provider, make_quote):
        provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        service = _service([provider], [], fake_clock)

        service.get_quote("  reliance ")
        service.get_quote("RELIANCE")

        assert provider.calls[0][0] == "RELIANCE"
        assert len(provider.calls) == 1
        assert "RELIANCE" in service.quote_cache

    @pytest.mark.parametrize("symbol", ["", "   "])
    def test_blank_symbol_raises(self, fake_clock, symbol):
        with pytest.raises(ValueError, match="non-empty"):
            _service([], [], fake_clock).get_quote(symbol)


class TestGetQuotes:
    def test_order_and_dedup(self, fake_clock, make_provider, make_quote):
        provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        quotes = _service([provider], [], fake_clock).get_quotes(["tcs", "RELIANCE", "TCS"])

        assert list(quotes) == ["TCS", "RELIANCE"]
        assert all(q.symbol == key for key, q in quotes.items())
        assert len(provider.calls) == 2

    def test_empty_input(self, fake_clock):
        assert _service([], [], fake_clock).get_quotes([]) == {}

    def test_mixed_live_and_synthetic(self, fake_clock, make_provider, make_quote):
        def _only_tcs(symbol):
            if symbol != "TCS":
                raise ProviderError("unknown symbol")
            return make_quote(symbol=symbol)

        provider = make_provider("yahoo", result=_only_tcs)
        quotes = _service([provider], [], fake_clock).get_quotes(["TCS", "INFY"])
        assert quotes["TCS"].synthetic is False
        assert quotes["INFY"].synthetic is True


class TestGetNews:
    def test_curated_batch(self, fake_clock, make_provider):
        items = (
            _item(1, "Sensex ends higher on banking stocks", minutes=0),
            _item(2, "SENSEX ends   higher on banking stocks", minutes=5),
            _item(3, "Nifty hits record as IT shares rally", minutes=10),
        )
        provider = make_provider("rss", result=NewsBatch(items=items, source="stub"))
        batch = _service([], [provider], fake_clock).get_news()

        assert batch.source == "rss"
        assert [i.id for i in batch] == ["stub-3", "stub-1"]

    def test_limit_applied(self, fake_clock, make_provider):
        items = tuple(_item(i, f"Market headline number {i} for today", minutes=i) for i in range(10))
        provider = make_provider("rss", result=NewsBatch(items=items, source="stub"))
        batch = _service([], [provider], fake_clock, news_limit=3).get_news()

        assert len(batch) == 3
        assert [i.id for i in batch] == ["stub-9", "stub-8", "stub-7"]

    def test_synthetic_when_all_fail(self, fake_clock, make_provider):
        provider = make_provider("rss", error=ProviderError("feeds down"))
        batch = _service([], [provider], fake_clock).get_news("market")

        assert batch.synthetic is True
        assert batch.source == "fallback"
        assert len(batch) == 5
        assert all(item.synthetic for item in batch)

    def test_news_cached_for_ttl(self, fake_clock, make_provider):
        items = (_item(1, "Sensex ends higher on banking stocks", minutes=0),)
        provider = make_provider("rss", result=NewsBatch(items=items, source="stub"))
        service = _service([], [provider], fake_clock)

        service.get_news()
        fake_clock.advance(0.5)
        service.get_news()
        assert len(provider.calls) == 1

        fake_clock.advance(0.5)
        service.get_news()
        assert len(provider.calls) == 2


class TestStats:
    def test_stats_by_capability(self, fake_clock, make_provider, make_quote):
        quote_provider = make_provider("yahoo", result=lambda s: make_quote(symbol=s))
        service = _service([quote_provider], [], fake_clock)
        service.get_quote("TCS")

        stats = service.stats()
        assert stats["quote"]["yahoo"]["success"] == 1
        assert set(stats) == {"quote", "news"}
