"""
Tests for market_pulse/providers/factory.py and
``AcquisitionService.from_config`` wiring.

What we test
------------
  - Providers are built in configured order with configured timeouts.
  - Unknown names are rejected.
  - Keyed providers without an API key are left out of the chain.
  - Quotes with an inverted day range are served, not rejected.
  - Malformed upstream payloads degrade to synthetic records, never raise.
  - A fully wired service falls back to synthetic records when every
    upstream is unreachable, and serves live data when Yahoo answers.
"""

from __future__ import annotations

import httpx
import pytest

from market_pulse.acquisition.service import AcquisitionService
from market_pulse.config import AcquisitionConfig, AppConfig, ProvidersConfig
from market_pulse.providers.alpha_vantage import AlphaVantageQuoteProvider
from market_pulse.providers.factory import (
    build_news_chain,
    build_news_provider,
    build_quote_chain,
    build_quote_provider,
)
from market_pulse.providers.newsapi import NewsApiProvider
from market_pulse.providers.rss_news import RssNewsProvider
from market_pulse.providers.yahoo import YahooQuoteProvider


def _unreachable_client() -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network unreachable", request=request)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _yahoo_only_client(**meta_overrides) -> httpx.Client:
    meta = {
        "regularMarketPrice": 1500.0,
        "previousClose": 1485.0,
        "regularMarketDayHigh": 1510.0,
        "regularMarketDayLow": 1480.0,
        "regularMarketVolume": 1_000_000,
    }
    meta.update(meta_overrides)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "query1.finance.yahoo.com":
            return httpx.Response(200, json={
                "chart": {
                    "result": [{"meta": meta}],
                    "error": None,
                }
            })
        return httpx.Response(503)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _payload_client(payload) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload)))


class TestBuildProviders:
    def test_quote_provider_types(self):
        config = AppConfig()
        assert isinstance(build_quote_provider("yahoo", config), YahooQuoteProvider)
        assert isinstance(build_quote_provider("alpha_vantage", config), AlphaVantageQuoteProvider)

    def test_news_provider_types(self):
        config = AppConfig()
        assert isinstance(build_news_provider("rss", config), RssNewsProvider)
        assert isinstance(build_news_provider("newsapi", config), NewsApiProvider)

    def test_unknown_names_rejected(self):
        with pytest.raises(ValueError, match="Unsupported quote provider"):
            build_quote_provider("bloomberg", AppConfig())
        with pytest.raises(ValueError, match="Unsupported news provider"):
            build_news_provider("twitter", AppConfig())

    def test_configured_timeout(self):
        config = AppConfig(providers=ProvidersConfig(timeouts={"yahoo": 2.5}))
        assert build_quote_provider("yahoo", config).timeout_s == 2.5
        assert build_quote_provider("twelve_data", config).timeout_s == 5.0

    def test_rss_feeds_from_config(self):
        provider = build_news_provider("rss", AppConfig())
        assert [name for name, _ in provider.feeds] == [
            "moneycontrol", "economic_times", "business_standard",
        ]


_ALL_KEYS = ProvidersConfig(
    alpha_vantage_api_key="av-key",
    twelve_data_api_key="td-key",
    newsapi_api_key="na-key",
)


class TestBuildChains:
    def test_default_order(self):
        config = AppConfig(providers=_ALL_KEYS)
        assert build_quote_chain(config).provider_names == ["yahoo", "alpha_vantage", "twelve_data"]
        assert build_news_chain(config).provider_names == ["rss", "newsapi"]

    def test_custom_order(self):
        config = AppConfig(
            acquisition=AcquisitionConfig(quote_providers=["twelve_data", "yahoo"]),
            providers=_ALL_KEYS,
        )
        assert build_quote_chain(config).provider_names == ["twelve_data", "yahoo"]

    def test_unkeyed_providers_skipped(self, caplog):
        config = AppConfig(providers=ProvidersConfig(alpha_vantage_api_key="av-key"))
        with caplog.at_level("WARNING", logger="market_pulse.providers.factory"):
            quote_chain = build_quote_chain(config)
            news_chain = build_news_chain(config)
        assert quote_chain.provider_names == ["yahoo", "alpha_vantage"]
        assert news_chain.provider_names == ["rss"]
        assert "twelve_data" in caplog.text
        assert "newsapi" in caplog.text

    def test_all_unkeyed_chain_still_synthesizes(self):
        config = AppConfig(acquisition=AcquisitionConfig(quote_providers=["twelve_data"]))
        chain = build_quote_chain(config)
        assert chain.provider_names == []
        quote = chain.resolve("TCS")
        assert quote.synthetic is True
        assert quote.source == "fallback"


class TestWiredService:
    def test_unreachable_upstreams_yield_synthetic(self):
        service = AcquisitionService.from_config(AppConfig(), client=_unreachable_client())

        quote = service.get_quote("RELIANCE")
        assert quote.synthetic is True
        assert quote.source == "fallback"

        news = service.get_news()
        assert news.synthetic is True
        assert len(news) == 5

    def test_live_yahoo_quote(self):
        service = AcquisitionService.from_config(AppConfig(), client=_yahoo_only_client())
        quote = service.get_quote("TCS")
        assert quote.synthetic is False
        assert quote.source == "yahoo"
        assert quote.current_price == pytest.approx(1500.0)
        assert service.stats()["quote"]["yahoo"]["success"] == 1

    def test_inverted_day_range_served_live(self):
        client = _yahoo_only_client(regularMarketDayHigh=1480.0, regularMarketDayLow=1510.0)
        service = AcquisitionService.from_config(AppConfig(), client=client)
        quote = service.get_quote("TCS")
        assert quote.synthetic is False
        assert quote.source == "yahoo"
        assert quote.within_day_range is False

    @pytest.mark.parametrize(
        "payload",
        [
            {"chart": {"result": [None]}},
            {"chart": "oops"},
            {"chart": {"result": [{"meta": "x"}]}},
            {"Global Quote": "x"},
        ],
    )
    def test_malformed_quote_payload_served_synthetic(self, payload):
        config = AppConfig(providers=_ALL_KEYS)
        service = AcquisitionService.from_config(config, client=_payload_client(payload))
        quote = service.get_quote("RELIANCE")
        assert quote.synthetic is True
        assert quote.source == "fallback"
        assert service.stats()["quote"]["yahoo"]["failure"] == 1

    def test_malformed_news_payload_served_synthetic(self):
        config = AppConfig(
            acquisition=AcquisitionConfig(news_providers=["newsapi"]),
            providers=_ALL_KEYS,
        )
        service = AcquisitionService.from_config(config, client=_payload_client({"articles": [None]}))
        news = service.get_news()
        assert news.synthetic is True
        assert service.stats()["news"]["newsapi"]["failure"] == 1
