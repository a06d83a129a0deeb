"""
Acquisition service — cached, fallback-backed access to quotes and news.

Flow for ``get_quote(symbol)`` / ``get_news(topic)``:
  1. Normalise the key (strip + uppercase).
  2. Fresh cache hit  → return the cached value unchanged (same object).
  3. Miss or stale    → resolve through the capability's ``FallbackChain``,
                        curate news batches, store the result (synthetic
                        results included) and return it.

Provider failures never escape: the chain absorbs them and falls back to a
synthetic record. The service holds no lock while a provider is called, so
concurrent lookups of different symbols proceed in parallel; concurrent
misses on the same symbol may both resolve, and the later write wins.

Usage::

    config  = load_config()
    service = AcquisitionService.from_config(config)
    quote   = service.get_quote("reliance")
    news    = service.get_news()
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable, Optional

from market_pulse.acquisition.cache import TTLCache
from market_pulse.acquisition.fallback import FallbackChain
from market_pulse.models.news import MARKET_TOPIC, NewsBatch
from market_pulse.models.quote import Quote
from market_pulse.providers.news_filters import curate
from market_pulse.utils.time_utils import Clock, monotonic

if TYPE_CHECKING:
    import httpx

    from market_pulse.config import AppConfig

logger = logging.getLogger(__name__)


def _normalize_key(key: str) -> str:
    key = key.strip().upper()
    if not key:
        raise ValueError("Symbol/topic must be a non-empty string.")
    return key


class AcquisitionService:
    """Owns the quote and news caches and their fallback chains.

    Args:
        quote_chain: Fallback chain for quotes.
        news_chain: Fallback chain for news batches.
        quote_ttl_seconds: Quote cache lifetime.
        news_ttl_seconds: News cache lifetime.
        news_limit: Maximum headlines kept per batch after curation.
        max_workers: Thread-pool size for ``get_quotes``.
        clock: Monotonic clock shared by both caches.
    """

    def __init__(
        self,
        quote_chain: FallbackChain[Quote],
        news_chain: FallbackChain[NewsBatch],
        quote_ttl_seconds: float = 60.0,
        news_ttl_seconds: float = 1.0,
        news_limit: int = 7,
        max_workers: int = 8,
        clock: Clock = monotonic,
    ) -> None:
        self.quote_chain = quote_chain
        self.news_chain = news_chain
        self.news_limit = news_limit
        self.max_workers = max_workers
        self._quote_cache: TTLCache[Quote] = TTLCache(quote_ttl_seconds, clock=clock)
        self._news_cache: TTLCache[NewsBatch] = TTLCache(news_ttl_seconds, clock=clock)

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        client: Optional["httpx.Client"] = None,
        clock: Clock = monotonic,
    ) -> "AcquisitionService":
        """Wire providers, chains and caches from an ``AppConfig``."""
        from market_pulse.providers.factory import build_news_chain, build_quote_chain

        acq = config.acquisition
        return cls(
            quote_chain=build_quote_chain(config, client=client, clock=clock),
            news_chain=build_news_chain(config, client=client, clock=clock),
            quote_ttl_seconds=acq.quote_ttl_seconds,
            news_ttl_seconds=acq.news_ttl_seconds,
            news_limit=acq.news_limit,
            max_workers=acq.max_workers,
            clock=clock,
        )

    @property
    def quote_cache(self) -> TTLCache[Quote]:
        return self._quote_cache

    @property
    def news_cache(self) -> TTLCache[NewsBatch]:
        return self._news_cache

    # ── Quotes ─────────────────────────────────────────────────────────────────

    def get_quote(self, symbol: str, deadline: Optional[float] = None) -> Quote:
        """Return a quote for ``symbol``; never raises for provider failures.

        Args:
            symbol: Ticker in any case, e.g. ``"reliance"``.
            deadline: Absolute monotonic deadline shared across providers.

        Returns:
            Cached, live or synthetic ``Quote`` (check ``quote.synthetic``).

        Raises:
            ValueError: If ``symbol`` is blank.
        """
        key = _normalize_key(symbol)
        cached, found = self._quote_cache.get(key)
        if found:
            logger.debug("Quote cache hit for %s", key)
            return cached

        quote = self.quote_chain.resolve(key, deadline=deadline)
        self._quote_cache.put(key, quote)
        if quote.synthetic:
            logger.warning("Serving synthetic quote for %s", key)
        return quote

    def get_quotes(
        self,
        symbols: Iterable[str],
        deadline: Optional[float] = None,
    ) -> dict[str, Quote]:
        """Resolve several symbols concurrently; result keeps input order."""
        keys = list(dict.fromkeys(_normalize_key(s) for s in symbols))
        if not keys:
            return {}
        workers = min(self.max_workers, len(keys))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quote") as pool:
            quotes = list(pool.map(lambda k: self.get_quote(k, deadline=deadline), keys))
        return dict(zip(keys, quotes))

    # ── News ───────────────────────────────────────────────────────────────────

    def get_news(
        self,
        topic: str = MARKET_TOPIC,
        deadline: Optional[float] = None,
    ) -> NewsBatch:
        """Return a curated headline batch for ``topic``; never raises for
        provider failures."""
        key = _normalize_key(topic)
        cached, found = self._news_cache.get(key)
        if found:
            logger.debug("News cache hit for %s", key)
            return cached

        batch = self.news_chain.resolve(key, deadline=deadline)
        batch = batch.with_items(curate(batch.items, self.news_limit))
        self._news_cache.put(key, batch)
        if batch.synthetic:
            logger.warning("Serving synthetic news for %s", key)
        return batch

    def stats(self) -> dict[str, dict[str, dict[str, int]]]:
        """Per-capability provider counters from both chains."""
        return {"quote": self.quote_chain.stats(), "news": self.news_chain.stats()}
