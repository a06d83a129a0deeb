"""
NewsAPI top-headlines adapter.

Endpoint::

    GET https://newsapi.org/v2/top-headlines?country=in&category=business
        &pageSize=10
    Header: X-Api-Key: {KEY}

Requires ``NEWSAPI_API_KEY`` in ``.env``. Errors come back with
``{"status": "error", "code": ..., "message": ...}``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, ClassVar, Mapping, Optional

import httpx

from market_pulse.models.news import MARKET_TOPIC, NewsBatch, NewsItem
from market_pulse.providers.base import (
    NewsProvider,
    ProviderError,
    ProviderResponseError,
)
from market_pulse.providers.news_filters import NewsFilter, clean_text, truncate
from market_pulse.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def _text(article: Mapping[str, Any], key: str) -> str:
    value = article.get(key)
    return value if isinstance(value, str) else ""


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return utcnow()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return utcnow()


class NewsApiProvider(NewsProvider):
    """Secondary news source (API key required)."""

    name: ClassVar[str] = "newsapi"
    BASE_URL: ClassVar[str] = "https://newsapi.org/v2"

    def __init__(
        self,
        api_key: Optional[str],
        news_filter: NewsFilter,
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        country: str = "in",
        category: str = "business",
        page_size: int = 10,
    ) -> None:
        super().__init__(timeout_s=timeout_s, client=client)
        self.api_key = api_key
        self.news_filter = news_filter
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.country = country
        self.category = category
        self.page_size = page_size

    def fetch(self, request: str, timeout: float) -> NewsBatch:
        if not self.api_key:
            raise ProviderError("NEWSAPI_API_KEY must be set in .env.")
        topic = request.strip().upper() or MARKET_TOPIC
        data = self._get_json(
            f"{self.base_url}/top-headlines",
            params={
                "country": self.country,
                "category": self.category,
                "pageSize": self.page_size,
            },
            headers={"X-Api-Key": self.api_key},
            timeout=timeout,
        )
        items = self._parse(data)
        if topic != MARKET_TOPIC:
            items = [item for item in items if item.symbol == topic]
        if not items:
            raise ProviderError(f"{self.name}: no relevant headlines for {topic}.")
        return NewsBatch(topic=topic, items=tuple(items), source=self.name)

    def _parse(self, data: dict[str, Any]) -> list[NewsItem]:
        if data.get("status") == "error":
            raise ProviderError(
                f"{self.name}: {data.get('code', '?')} {data.get('message', 'unknown error')}"
            )
        articles = data.get("articles")
        if not isinstance(articles, list):
            raise ProviderResponseError(f"{self.name}: 'articles' missing from response.")

        items: list[NewsItem] = []
        for i, article in enumerate(articles):
            if not isinstance(article, Mapping):
                continue
            headline = clean_text(_text(article, "title"))
            url = _text(article, "url").strip()
            if not headline or not url or not self.news_filter.accepts(headline):
                continue
            description = clean_text(_text(article, "description"))
            source = article.get("source")
            publisher = (_text(source, "name") if isinstance(source, Mapping) else "") or self.name
            items.append(
                NewsItem(
                    id=f"{self.name}-{i}",
                    symbol=self.news_filter.extract_symbol(headline),
                    headline=headline,
                    sentiment=self.news_filter.sentiment(f"{headline} {description}"),
                    source=publisher,
                    url=url,
                    summary=truncate(description, self.news_filter.summary_max_chars),
                    published_at=_parse_timestamp(_text(article, "publishedAt")),
                )
            )
        logger.debug("NewsAPI accepted %d of %d articles", len(items), len(articles))
        return items
