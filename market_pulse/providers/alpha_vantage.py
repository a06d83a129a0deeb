"""
Alpha Vantage GLOBAL_QUOTE adapter.

Endpoint::

    GET https://www.alphavantage.co/query
        ?function=GLOBAL_QUOTE&symbol={SYMBOL}.NS&apikey={KEY}

Requires ``ALPHA_VANTAGE_API_KEY`` in ``.env``. Every value in the
``"Global Quote"`` object arrives as a string with a numbered key prefix.
Rate-limited responses come back as HTTP 200 with a ``"Note"`` or
``"Information"`` message instead of a quote.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, Optional

import httpx

from market_pulse.models.quote import Quote
from market_pulse.providers.base import (
    ProviderError,
    ProviderResponseError,
    QuoteProvider,
    require,
    to_float,
    to_int,
)

# Quote field → Alpha Vantage key
_FIELDS: dict[str, str] = {
    "current_price": "05. price",
    "change_percent": "10. change percent",
    "day_high": "03. high",
    "day_low": "04. low",
    "previous_close": "08. previous close",
    "volume": "06. volume",
}


class AlphaVantageQuoteProvider(QuoteProvider):
    """Secondary quote source (API key required)."""

    name: ClassVar[str] = "alpha_vantage"
    BASE_URL: ClassVar[str] = "https://www.alphavantage.co/query"

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
        self.base_url = base_url or self.BASE_URL

    def fetch(self, request: str, timeout: float) -> Quote:
        if not self.api_key:
            raise ProviderError("ALPHA_VANTAGE_API_KEY must be set in .env.")
        symbol = request.strip().upper()
        data = self._get_json(
            self.base_url,
            params={
                "function": "GLOBAL_QUOTE",
                "symbol": self.upstream_symbol(symbol),
                "apikey": self.api_key,
            },
            timeout=timeout,
        )
        return self._parse(data, symbol)

    def _parse(self, data: dict[str, Any], symbol: str) -> Quote:
        for notice in ("Note", "Information", "Error Message"):
            if notice in data:
                raise ProviderError(f"{self.name}: {data[notice]}")
        quote = data.get("Global Quote")
        if not isinstance(quote, Mapping) or not quote:
            raise ProviderResponseError(f"{self.name}: no 'Global Quote' for {symbol}.")

        values = {
            field: require(quote, key, self.name) for field, key in _FIELDS.items()
        }
        return Quote(
            symbol=symbol,
            current_price=to_float(values["current_price"], "05. price", self.name),
            day_high=to_float(values["day_high"], "03. high", self.name),
            day_low=to_float(values["day_low"], "04. low", self.name),
            previous_close=to_float(values["previous_close"], "08. previous close", self.name),
            volume=to_int(values["volume"], "06. volume", self.name),
            change_percent=to_float(values["change_percent"], "10. change percent", self.name),
            source=self.name,
        )
