"""
Scoring and recommendation output models.

``ScoreFactors`` is the raw output of one scoring pass: accumulated bullish and
bearish points plus the ordered reasons behind them.

``Recommendation`` is the trade decision built from a ``ScoreFactors`` by the
decision projector. It is created fresh per request, never persisted, and
frozen once returned.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from market_pulse.utils.time_utils import utcnow


class Action(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class Confidence(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PercentRange(BaseModel):
    """Closed percentage range, e.g. expected return 12–18%."""

    model_config = ConfigDict(frozen=True)

    low: float
    high: float

    @model_validator(mode="after")
    def validate_order(self) -> "PercentRange":
        if self.low > self.high:
            raise ValueError(f"Range low ({self.low}) must not exceed high ({self.high}).")
        return self

    def __str__(self) -> str:
        if self.low < 0 <= self.high:
            return f"{self.low:g} to +{self.high:g}%"
        if self.low < 0:
            return f"{self.low:g} to {self.high:g}%"
        return f"{self.low:g}-{self.high:g}%"


class ScoreFactors(BaseModel):
    """Result of one scoring pass.

    Attributes:
        bullish_score: Sum of weights of every matched bullish rule.
        bearish_score: Sum of weights of every matched bearish rule.
        decision_factors: Reasons for bullish contributions, in rule order.
        risk_factors: Reasons for bearish and risk-only matches, in rule order.
        matched_rules: Names of every rule that matched, in rule order.
    """

    model_config = ConfigDict(frozen=True)

    bullish_score: int = 0
    bearish_score: int = 0
    decision_factors: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    matched_rules: tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_non_negative(self) -> "ScoreFactors":
        if self.bullish_score < 0 or self.bearish_score < 0:
            raise ValueError("Bullish and bearish scores must be non-negative.")
        return self

    @property
    def net_score(self) -> int:
        return self.bullish_score - self.bearish_score


class Recommendation(BaseModel):
    """A structured trade decision for one symbol.

    Attributes:
        symbol: Ticker the decision applies to.
        action: BUY, SELL or HOLD.
        confidence: LOW (synthetic quote), MEDIUM or HIGH.
        current_price: Quote price the offsets were computed from.
        target: Target price.
        stop_loss: Stop-loss price.
        timeframe: Qualitative holding window.
        expected_return: Expected return band for the action tier.
        probability_of_success: Historical hit-rate band for the action tier.
        risk_level: Risk classification independent of the action.
        decision_factors: Bullish reasons, in rule order.
        risk_factors: Bearish and risk reasons, in rule order.
        catalysts: Upcoming events that could move the price.
        reason: One-line human-readable summary.
        net_score: Bullish minus bearish score.
        bullish_score: Accumulated bullish points.
        bearish_score: Accumulated bearish points.
        quote_source: Provenance of the quote used.
        quote_synthetic: ``True`` if the quote was a synthetic placeholder.
        generated_at: UTC timestamp of the decision.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    action: Action
    confidence: Confidence
    current_price: float
    target: float
    stop_loss: float
    timeframe: str
    expected_return: PercentRange
    probability_of_success: PercentRange
    risk_level: RiskLevel
    decision_factors: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    catalysts: tuple[str, ...] = ()
    reason: str = ""
    net_score: int = 0
    bullish_score: int = 0
    bearish_score: int = 0
    quote_source: str = ""
    quote_synthetic: bool = False
    generated_at: datetime = Field(default_factory=utcnow)
