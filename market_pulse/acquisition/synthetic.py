"""
Deterministic placeholder records served when every provider fails.

Synthetic quotes are derived from a per-ticker reference price
(``[synthetic] reference_prices``) with a fixed shape:

    day_high       = price × 1.02
    day_low        = price × 0.98
    previous_close = price × 0.995
    change_percent = (price − previous_close) / previous_close × 100

Synthetic news is a fixed set of five broad-market headlines. For a ticker
topic only the headlines tagged with that ticker are served, or a single
generic line when none is.

The same request always yields the same values (timestamps aside); there is
no randomness. Provenance tagging (``source="fallback"``, ``synthetic=True``)
is applied by ``FallbackChain``, not here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from market_pulse.models.news import MARKET_TOPIC, NewsBatch, NewsItem
from market_pulse.models.quote import Quote

if TYPE_CHECKING:
    from market_pulse.config import SyntheticConfig

DAY_HIGH_FACTOR = 1.02
DAY_LOW_FACTOR = 0.98
PREVIOUS_CLOSE_FACTOR = 0.995

# (symbol, headline, sentiment, publisher, url)
FALLBACK_HEADLINES: tuple[tuple[str, str, str, str, str], ...] = (
    (
        "NIFTY50",
        "Nifty 50 shows resilience, banking and IT stocks in focus",
        "positive",
        "MoneyControl",
        "https://www.moneycontrol.com/news/business/markets/",
    ),
    (
        "RELIANCE",
        "Reliance Industries maintains strong fundamentals",
        "positive",
        "Economic Times",
        "https://economictimes.indiatimes.com/markets/stocks/news",
    ),
    (
        "TCS",
        "IT sector outlook remains positive amid global digitization trends",
        "positive",
        "Business Standard",
        "https://www.business-standard.com/markets/news",
    ),
    (
        "HDFCBANK",
        "Banking sector consolidation creates opportunities for market leaders",
        "neutral",
        "LiveMint",
        "https://www.livemint.com/market/stock-market-news",
    ),
    (
        MARKET_TOPIC,
        "FII inflows support Indian equity markets, volatility remains manageable",
        "positive",
        "Financial Express",
        "https://www.financialexpress.com/market/",
    ),
)


class SyntheticQuoteFactory:
    """Build a deterministic placeholder ``Quote`` for a ticker."""

    def __init__(self, config: "SyntheticConfig") -> None:
        self._config = config

    def reference_price(self, symbol: str) -> float:
        return self._config.reference_prices.get(symbol, self._config.default_price)

    def __call__(self, symbol: str) -> Quote:
        symbol = symbol.strip().upper()
        price = self.reference_price(symbol)
        previous_close = price * PREVIOUS_CLOSE_FACTOR
        return Quote(
            symbol=symbol,
            current_price=round(price, 2),
            day_high=round(price * DAY_HIGH_FACTOR, 2),
            day_low=round(price * DAY_LOW_FACTOR, 2),
            previous_close=round(previous_close, 2),
            volume=self._config.reference_volumes.get(symbol, self._config.default_volume),
            change_percent=round((price - previous_close) / previous_close * 100.0, 2),
            source="synthetic",
            synthetic=True,
        )


def synthetic_news(topic: str) -> NewsBatch:
    """Build the placeholder headline batch for ``topic``."""
    topic = topic.strip().upper() or MARKET_TOPIC
    items = [
        NewsItem(
            id=f"fallback-{i}",
            symbol=symbol,
            headline=headline,
            sentiment=sentiment,
            source=publisher,
            url=url,
            synthetic=True,
        )
        for i, (symbol, headline, sentiment, publisher, url) in enumerate(
            FALLBACK_HEADLINES, start=1
        )
    ]
    if topic != MARKET_TOPIC:
        items = [item for item in items if item.symbol == topic] or [
            NewsItem(
                id="fallback-1",
                symbol=topic,
                headline=f"{topic} trades in line with the broader market",
                sentiment="neutral",
                source="Market Pulse",
                url=f"https://www.nseindia.com/get-quotes/equity?symbol={topic}",
                synthetic=True,
            )
        ]
    return NewsBatch(topic=topic, items=tuple(items), source="synthetic", synthetic=True)
