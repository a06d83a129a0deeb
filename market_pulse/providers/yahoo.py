"""
Yahoo Finance chart API quote adapter.

Endpoint::

    GET https://query1.finance.yahoo.com/v8/finance/chart/{SYMBOL}.NS
        ?interval=1d&range=1d

No API key required, but Yahoo rejects requests without a browser-like
``User-Agent``. The quote lives under ``chart.result[0].meta``. The prior
close arrives as ``previousClose`` or, on some symbols, only as
``chartPreviousClose``; a payload with neither is rejected.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Optional

import httpx

from market_pulse.models.quote import Quote
from market_pulse.providers.base import (
    ProviderError,
    ProviderResponseError,
    QuoteProvider,
    require,
    require_object,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)


class YahooQuoteProvider(QuoteProvider):
    """Primary quote source.

    Usage::

        provider = YahooQuoteProvider(timeout_s=5.0)
        quote = provider.fetch("RELIANCE", timeout=5.0)
    """

    name: ClassVar[str] = "yahoo"
    BASE_URL: ClassVar[str] = "https://query1.finance.yahoo.com/v8/finance/chart"

    def __init__(
        self,
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
        market_suffix: str = ".NS",
        base_url: Optional[str] = None,
        user_agent: str = "Mozilla/5.0",
    ) -> None:
        super().__init__(timeout_s=timeout_s, client=client, market_suffix=market_suffix)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.user_agent = user_agent

    def fetch(self, request: str, timeout: float) -> Quote:
        symbol = request.strip().upper()
        data = self._get_json(
            f"{self.base_url}/{self.upstream_symbol(symbol)}",
            params={"interval": "1d", "range": "1d"},
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            timeout=timeout,
        )
        return self._parse(data, symbol)

    def _parse(self, data: dict[str, Any], symbol: str) -> Quote:
        chart = require_object(data, "chart", self.name)
        if chart.get("error"):
            raise ProviderError(f"{self.name}: upstream error {chart['error']!r}")
        results = chart.get("result")
        if not isinstance(results, list) or not results:
            raise ProviderResponseError(f"{self.name}: empty chart result for {symbol}.")
        meta = require_object(results[0], "meta", self.name)

        price = to_float(require(meta, "regularMarketPrice", self.name), "regularMarketPrice", self.name)
        raw_close = meta.get("previousClose") or meta.get("chartPreviousClose")
        if raw_close is None:
            raise ProviderResponseError(
                f"{self.name}: required field 'previousClose' missing for {symbol}."
            )
        previous_close = to_float(raw_close, "previousClose", self.name)
        day_high = to_float(require(meta, "regularMarketDayHigh", self.name), "regularMarketDayHigh", self.name)
        day_low = to_float(require(meta, "regularMarketDayLow", self.name), "regularMarketDayLow", self.name)
        volume = to_int(require(meta, "regularMarketVolume", self.name), "regularMarketVolume", self.name)

        if previous_close <= 0:
            raise ProviderResponseError(f"{self.name}: non-positive previous close for {symbol}.")
        change_percent = (price - previous_close) / previous_close * 100.0

        logger.debug("Yahoo quote %s: %.2f (%.2f%%)", symbol, price, change_percent)
        return Quote(
            symbol=symbol,
            current_price=round(price, 2),
            day_high=round(day_high, 2),
            day_low=round(day_low, 2),
            previous_close=round(previous_close, 2),
            volume=volume,
            change_percent=round(change_percent, 2),
            source=self.name,
        )
