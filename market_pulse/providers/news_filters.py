"""
Headline filtering, tagging and curation shared by every news provider.

Pipeline per raw entry (inside a provider):
  1. ``NewsFilter.accepts(headline)``   — relevance keyword/symbol match and
                                          quality screen (length, spam phrases).
  2. ``NewsFilter.extract_symbol``      — tracked ticker, else NIFTY50/SENSEX,
                                          else ``"MARKET"``.
  3. ``NewsFilter.sentiment``           — lexicon word counts; ties are neutral.

Pipeline per batch (inside the acquisition service):
  ``curate(items, limit)`` — drop duplicates by normalised headline and by
  url (first occurrence wins), sort most recent first, truncate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from market_pulse.models.news import MARKET_TOPIC, NewsItem, Sentiment

if TYPE_CHECKING:
    from market_pulse.config import NewsConfig

_WORD_RE = re.compile(r"[a-z0-9']+")
_WHITESPACE_RE = re.compile(r"\s+")

# Index keywords checked after tracked tickers, in priority order.
INDEX_SYMBOLS: tuple[tuple[str, str], ...] = (
    ("NIFTY", "NIFTY50"),
    ("SENSEX", "SENSEX"),
)


def normalize_headline(headline: str) -> str:
    """Case-fold and collapse whitespace; the dedup key for headlines."""
    return _WHITESPACE_RE.sub(" ", headline.casefold()).strip()


def clean_text(text: str) -> str:
    """Strip markup remnants and collapse whitespace."""
    text = re.sub(r"<[^>]+>", " ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."


def deduplicate(items: Iterable[NewsItem]) -> list[NewsItem]:
    """Drop items whose normalised headline or url was already seen."""
    seen_headlines: set[str] = set()
    seen_urls: set[str] = set()
    out: list[NewsItem] = []
    for item in items:
        key = normalize_headline(item.headline)
        if key in seen_headlines or (item.url and item.url in seen_urls):
            continue
        seen_headlines.add(key)
        if item.url:
            seen_urls.add(item.url)
        out.append(item)
    return out


def curate(items: Iterable[NewsItem], limit: int) -> list[NewsItem]:
    """Deduplicate, sort most recent first and keep at most ``limit`` items."""
    unique = deduplicate(items)
    unique.sort(key=lambda item: item.published_at, reverse=True)
    return unique[:limit]


@dataclass(frozen=True)
class NewsFilter:
    """Relevance, symbol and sentiment rules for raw headlines.

    Build from configuration with ``NewsFilter.from_config(config.news)``.
    """

    relevance_keywords: tuple[str, ...]
    tracked_symbols: tuple[str, ...]
    positive_words: frozenset[str]
    negative_words: frozenset[str]
    min_headline_length: int = 20
    excluded_phrases: tuple[str, ...] = ()
    summary_max_chars: int = 150

    @classmethod
    def from_config(cls, config: "NewsConfig") -> "NewsFilter":
        return cls(
            relevance_keywords=tuple(k.lower() for k in config.relevance_keywords),
            tracked_symbols=tuple(config.tracked_symbols),
            positive_words=frozenset(w.lower() for w in config.positive_words),
            negative_words=frozenset(w.lower() for w in config.negative_words),
            min_headline_length=config.min_headline_length,
            excluded_phrases=tuple(p.lower() for p in config.excluded_phrases),
            summary_max_chars=config.summary_max_chars,
        )

    def is_relevant(self, headline: str) -> bool:
        """``True`` if the headline mentions a market keyword or tracked ticker."""
        lower = headline.lower()
        if any(keyword in lower for keyword in self.relevance_keywords):
            return True
        upper = headline.upper()
        return any(symbol in upper for symbol in self.tracked_symbols)

    def is_quality(self, headline: str) -> bool:
        if len(headline) < self.min_headline_length:
            return False
        lower = headline.lower()
        return not any(phrase in lower for phrase in self.excluded_phrases)

    def accepts(self, headline: str) -> bool:
        return self.is_quality(headline) and self.is_relevant(headline)

    def extract_symbol(self, headline: str) -> str:
        upper = headline.upper()
        for symbol in self.tracked_symbols:
            if symbol in upper:
                return symbol
        for keyword, symbol in INDEX_SYMBOLS:
            if keyword in upper:
                return symbol
        return MARKET_TOPIC

    def sentiment(self, text: str) -> Sentiment:
        words = _WORD_RE.findall(text.lower())
        positive = sum(1 for w in words if w in self.positive_words)
        negative = sum(1 for w in words if w in self.negative_words)
        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"
