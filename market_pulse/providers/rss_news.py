"""
RSS headline adapter aggregating several market feeds into one provider.

Default feeds (see ``[providers] rss_feeds`` in config/default.toml):
  - MoneyControl      https://www.moneycontrol.com/rss/marketreports.xml
  - Economic Times    https://economictimes.indiatimes.com/markets/rssfeeds/1977021501.cms
  - Business Standard https://www.business-standard.com/rss/markets-106.rss

Feeds are downloaded with httpx (so the whole adapter shares one timeout
budget and can be tested with ``httpx.MockTransport``) and parsed with
feedparser. A single failing feed is logged and skipped; the provider only
raises when no feed yields an accepted headline.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Sequence

import feedparser
import httpx

from market_pulse.models.news import MARKET_TOPIC, NewsBatch, NewsItem
from market_pulse.providers.base import NewsProvider, ProviderError
from market_pulse.providers.news_filters import NewsFilter, clean_text, truncate
from market_pulse.utils.time_utils import monotonic, utcnow

logger = logging.getLogger(__name__)


def _entry_published_at(entry: Any) -> datetime:
    """Publication time of a feedparser entry, UTC; now if absent."""
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return utcnow()


class RssNewsProvider(NewsProvider):
    """Primary news source: public RSS feeds, no API key.

    Args:
        feeds: ``(name, url)`` pairs, fetched in order.
        news_filter: Relevance/symbol/sentiment rules.
        entries_per_feed: Maximum accepted entries taken from one feed.
        timeout_s: Budget for the whole aggregation, not per feed.
        client: Optional ``httpx.Client`` (injected in tests).
    """

    name: ClassVar[str] = "rss"

    def __init__(
        self,
        feeds: Sequence[tuple[str, str]],
        news_filter: NewsFilter,
        entries_per_feed: int = 5,
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
        user_agent: str = "Mozilla/5.0",
    ) -> None:
        super().__init__(timeout_s=timeout_s, client=client)
        if not feeds:
            raise ValueError("RssNewsProvider needs at least one feed.")
        self.feeds = list(feeds)
        self.news_filter = news_filter
        self.entries_per_feed = entries_per_feed
        self.user_agent = user_agent

    def fetch(self, request: str, timeout: float) -> NewsBatch:
        topic = request.strip().upper() or MARKET_TOPIC
        budget_end = monotonic() + timeout
        items: list[NewsItem] = []
        failures: list[str] = []

        for feed_name, url in self.feeds:
            remaining = budget_end - monotonic()
            if remaining <= 0:
                failures.append(f"{feed_name}: timeout budget exhausted")
                break
            try:
                resp = self._get(
                    url,
                    headers={"User-Agent": self.user_agent},
                    timeout=remaining,
                )
            except httpx.HTTPError as exc:
                logger.warning("RSS feed %s failed: %s", feed_name, exc,
                               extra={"provider": self.name, "feed": feed_name})
                failures.append(f"{feed_name}: {exc}")
                continue
            items.extend(self._parse_feed(resp.content, feed_name))

        if topic != MARKET_TOPIC:
            items = [item for item in items if item.symbol == topic]
        if not items:
            detail = "; ".join(failures) or "no relevant headlines"
            raise ProviderError(f"{self.name}: no headlines for {topic} ({detail}).")

        logger.debug("RSS aggregated %d headlines for %s", len(items), topic)
        return NewsBatch(topic=topic, items=tuple(items), source=self.name)

    def _parse_feed(self, content: bytes, feed_name: str) -> list[NewsItem]:
        parsed = feedparser.parse(content)
        if parsed.get("bozo") and not parsed.entries:
            logger.warning("RSS feed %s is malformed: %s", feed_name,
                           parsed.get("bozo_exception"))
            return []

        accepted: list[NewsItem] = []
        for entry in parsed.entries:
            if len(accepted) >= self.entries_per_feed:
                break
            headline = clean_text(entry.get("title", ""))
            link = entry.get("link", "").strip()
            if not headline or not link or not self.news_filter.accepts(headline):
                continue
            summary = clean_text(entry.get("summary", ""))
            accepted.append(
                NewsItem(
                    id=f"{feed_name}-{len(accepted)}",
                    symbol=self.news_filter.extract_symbol(headline),
                    headline=headline,
                    sentiment=self.news_filter.sentiment(f"{headline} {summary}"),
                    source=feed_name,
                    url=link,
                    summary=truncate(summary, self.news_filter.summary_max_chars),
                    published_at=_entry_published_at(entry),
                )
            )
        return accepted
