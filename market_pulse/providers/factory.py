"""
Provider wiring — turn ``AppConfig`` provider names into adapter instances
and fallback chains.

Provider order is configuration (``[acquisition] quote_providers`` /
``news_providers``); unknown names are rejected by ``AcquisitionConfig``
before they reach this module. Keyed providers without an API key are left
out of the chain (logged at WARNING) rather than failing on every miss.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from market_pulse.acquisition.fallback import FallbackChain
from market_pulse.acquisition.synthetic import SyntheticQuoteFactory, synthetic_news
from market_pulse.models.news import NewsBatch
from market_pulse.models.quote import Quote
from market_pulse.providers.alpha_vantage import AlphaVantageQuoteProvider
from market_pulse.providers.base import NewsProvider, QuoteProvider
from market_pulse.providers.news_filters import NewsFilter
from market_pulse.providers.newsapi import NewsApiProvider
from market_pulse.providers.rss_news import RssNewsProvider
from market_pulse.providers.twelve_data import TwelveDataQuoteProvider
from market_pulse.providers.yahoo import YahooQuoteProvider
from market_pulse.utils.time_utils import Clock, monotonic

if TYPE_CHECKING:
    import httpx

    from market_pulse.config import AppConfig

logger = logging.getLogger(__name__)


def build_quote_provider(
    name: str,
    config: "AppConfig",
    client: Optional["httpx.Client"] = None,
) -> QuoteProvider:
    p = config.providers
    timeout = p.timeout_for(name)
    if name == "yahoo":
        return YahooQuoteProvider(
            timeout_s=timeout,
            client=client,
            market_suffix=p.market_suffix,
            base_url=p.yahoo_base_url,
            user_agent=p.user_agent,
        )
    if name == "alpha_vantage":
        return AlphaVantageQuoteProvider(
            api_key=p.alpha_vantage_api_key,
            timeout_s=timeout,
            client=client,
            market_suffix=p.market_suffix,
            base_url=p.alpha_vantage_base_url,
        )
    if name == "twelve_data":
        return TwelveDataQuoteProvider(
            api_key=p.twelve_data_api_key,
            timeout_s=timeout,
            client=client,
            market_suffix=p.market_suffix,
            base_url=p.twelve_data_base_url,
        )
    raise ValueError(f"Unsupported quote provider: {name}")


def build_news_provider(
    name: str,
    config: "AppConfig",
    client: Optional["httpx.Client"] = None,
) -> NewsProvider:
    p = config.providers
    news_filter = NewsFilter.from_config(config.news)
    timeout = p.timeout_for(name)
    if name == "rss":
        return RssNewsProvider(
            feeds=[(feed.name, feed.url) for feed in p.rss_feeds],
            news_filter=news_filter,
            entries_per_feed=p.rss_entries_per_feed,
            timeout_s=timeout,
            client=client,
            user_agent=p.user_agent,
        )
    if name == "newsapi":
        return NewsApiProvider(
            api_key=p.newsapi_api_key,
            news_filter=news_filter,
            timeout_s=timeout,
            client=client,
            base_url=p.newsapi_base_url,
            country=p.newsapi_country,
            category=p.newsapi_category,
        )
    raise ValueError(f"Unsupported news provider: {name}")


def _configured_names(names: list[str], config: "AppConfig") -> list[str]:
    usable = []
    for name in names:
        if config.providers.is_configured(name):
            usable.append(name)
        else:
            logger.warning("Skipping provider %s: no API key configured", name)
    return usable


def _batch_is_nonempty(batch: NewsBatch) -> bool:
    return len(batch) > 0


def build_quote_chain(
    config: "AppConfig",
    client: Optional["httpx.Client"] = None,
    clock: Clock = monotonic,
) -> FallbackChain[Quote]:
    providers = [
        build_quote_provider(name, config, client)
        for name in _configured_names(config.acquisition.quote_providers, config)
    ]
    return FallbackChain(
        providers,
        synthesizer=SyntheticQuoteFactory(config.synthetic),
        clock=clock,
        label="quote",
    )


def build_news_chain(
    config: "AppConfig",
    client: Optional["httpx.Client"] = None,
    clock: Clock = monotonic,
) -> FallbackChain[NewsBatch]:
    providers = [
        build_news_provider(name, config, client)
        for name in _configured_names(config.acquisition.news_providers, config)
    ]
    return FallbackChain(
        providers,
        synthesizer=synthetic_news,
        validator=_batch_is_nonempty,
        clock=clock,
        label="news",
    )
