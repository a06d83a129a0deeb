"""
Twelve Data ``/quote`` adapter.

Endpoint::

    GET https://api.twelvedata.com/quote?symbol={SYMBOL}.NS&apikey={KEY}

Requires ``TWELVE_DATA_API_KEY`` in ``.env``. Errors come back as HTTP 200
with ``{"status": "error", "code": ..., "message": ...}``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional

import httpx

from market_pulse.models.quote import Quote
from market_pulse.providers.base import (
    ProviderError,
    QuoteProvider,
    require,
    to_float,
    to_int,
)


class TwelveDataQuoteProvider(QuoteProvider):
    """Tertiary quote source (API key required)."""

    name: ClassVar[str] = "twelve_data"
    BASE_URL: ClassVar[str] = "https://api.twelvedata.com"

    def __init__(
        self,
        api_key: Optional[str],
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
        market_suffix: str = ".NS",
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(timeout_s=timeout_s, client=client, market_suffix=market_suffix)
        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def fetch(self, request: str, timeout: float) -> Quote:
        if not self.api_key:
            raise ProviderError("TWELVE_DATA_API_KEY must be set in .env.")
        symbol = request.strip().upper()
        data = self._get_json(
            f"{self.base_url}/quote",
            params={"symbol": self.upstream_symbol(symbol), "apikey": self.api_key},
            timeout=timeout,
        )
        return self._parse(data, symbol)

    def _parse(self, data: dict[str, Any], symbol: str) -> Quote:
        if data.get("status") == "error":
            raise ProviderError(
                f"{self.name}: {data.get('code', '?')} {data.get('message', 'unknown error')}"
            )
        n = self.name
        return Quote(
            symbol=symbol,
            current_price=to_float(require(data, "close", n), "close", n),
            day_high=to_float(require(data, "high", n), "high", n),
            day_low=to_float(require(data, "low", n), "low", n),
            previous_close=to_float(require(data, "previous_close", n), "previous_close", n),
            volume=to_int(require(data, "volume", n), "volume", n),
            change_percent=to_float(require(data, "percent_change", n), "percent_change", n),
            source=n,
        )
