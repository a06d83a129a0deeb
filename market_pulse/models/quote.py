"""
Quote model — a single point-in-time price snapshot for one equity.

Every ``Quote`` carries provenance:
  - ``source``    — name of the provider that produced it (``"yahoo"``,
                    ``"alpha_vantage"``, ...) or ``"fallback"``.
  - ``synthetic`` — ``True`` only for placeholder quotes generated after every
                    configured provider failed.

Day-range consistency (``day_low <= current_price <= day_high``) is NOT
validated here: upstream providers do not guarantee it, so the value is
exposed through ``within_day_range`` and left to consumers.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from market_pulse.utils.time_utils import utcnow


class Quote(BaseModel):
    """Live (or synthetic) market quote for one ticker.

    Attributes:
        symbol: Canonical uppercase ticker, e.g. ``"RELIANCE"``.
        current_price: Last traded price (> 0).
        day_high: Session high reported by the provider.
        day_low: Session low reported by the provider.
        previous_close: Prior session close (> 0).
        volume: Shares traded this session (>= 0).
        change_percent: Signed percent change vs. ``previous_close``.
        source: Provenance tag — provider name or ``"fallback"``.
        synthetic: ``True`` when no live provider could be reached.
        fetched_at: UTC timestamp when the quote was obtained.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: float
    day_high: float
    day_low: float
    previous_close: float
    volume: int
    change_percent: float
    source: str
    synthetic: bool = False
    fetched_at: datetime = Field(default_factory=utcnow)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("symbol must be a non-empty ticker.")
        return v

    @field_validator("current_price", "previous_close")
    @classmethod
    def validate_positive_price(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Prices must be positive, got {v}.")
        return v

    @field_validator("day_high", "day_low")
    @classmethod
    def validate_range_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Day range values must be non-negative, got {v}.")
        return v

    @field_validator("volume")
    @classmethod
    def validate_volume(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"volume must be non-negative, got {v}.")
        return v

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("source (provenance tag) is required.")
        return v

    @property
    def within_day_range(self) -> bool:
        """``True`` if the reported day range brackets the current price."""
        return self.day_low <= self.current_price <= self.day_high

    def tagged(self, source: str, synthetic: bool) -> "Quote":
        """Return a copy carrying the given provenance."""
        return self.model_copy(update={"source": source, "synthetic": synthetic})
