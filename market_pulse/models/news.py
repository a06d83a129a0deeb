"""
News models — individual headlines and the batch returned by one acquisition.

``NewsItem`` is a single headline tagged with the ticker it concerns (or
``"MARKET"`` for broad-market stories) and a lexicon sentiment.

``NewsBatch`` is the unit the acquisition layer caches: one resolved batch for
one topic, with batch-level provenance copied onto every item so consumers can
tell live headlines from synthetic placeholders item by item.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterator, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from market_pulse.utils.time_utils import utcnow

Sentiment = Literal["positive", "negative", "neutral"]

MARKET_TOPIC = "MARKET"


class NewsItem(BaseModel):
    """One market headline.

    Attributes:
        id: Identifier unique within a batch, e.g. ``"economic-times-3"``.
        symbol: Ticker the headline concerns, or ``"MARKET"``.
        headline: Headline text as published.
        sentiment: ``"positive"``, ``"negative"`` or ``"neutral"``.
        source: Publisher or provider name.
        url: Link to the article.
        summary: Article description, truncated.
        published_at: Publication timestamp (UTC).
        synthetic: ``True`` for placeholder headlines.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str = MARKET_TOPIC
    headline: str
    sentiment: Sentiment = "neutral"
    source: str
    url: str
    summary: str = ""
    published_at: datetime = Field(default_factory=utcnow)
    synthetic: bool = False

    @field_validator("headline")
    @classmethod
    def validate_headline(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("headline must not be empty.")
        return v

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper() or MARKET_TOPIC


class NewsBatch(BaseModel):
    """A resolved set of headlines for one topic.

    Attributes:
        topic: ``"MARKET"`` or a ticker.
        items: Curated headlines, most recent first.
        source: Provider that produced the batch, or ``"fallback"``.
        synthetic: ``True`` when every news provider failed.
        fetched_at: UTC timestamp when the batch was resolved.
    """

    model_config = ConfigDict(frozen=True)

    topic: str = MARKET_TOPIC
    items: tuple[NewsItem, ...] = ()
    source: str
    synthetic: bool = False
    fetched_at: datetime = Field(default_factory=utcnow)

    def __iter__(self) -> Iterator[NewsItem]:  # type: ignore[override]
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def tagged(self, source: str, synthetic: bool) -> "NewsBatch":
        """Return a copy with provenance applied to the batch and every item."""
        items = tuple(
            item.model_copy(update={"synthetic": synthetic}) for item in self.items
        )
        return self.model_copy(
            update={"source": source, "synthetic": synthetic, "items": items}
        )

    def with_items(self, items: list[NewsItem]) -> "NewsBatch":
        return self.model_copy(update={"items": tuple(items)})
