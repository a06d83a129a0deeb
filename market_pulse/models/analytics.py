"""
Analytics snapshot models — per-symbol risk, technical, earnings, liquidity,
options and market-context metrics consumed by the scoring engine.

Snapshots are table-driven reference data (``config/analytics/snapshots.json``),
not estimates computed from price history. They are treated as a contract:
every category field is required, so a missing or mistyped metric fails at
load time with a ``pydantic.ValidationError`` rather than silently skewing a
recommendation.

All models are frozen.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

VolatilityRanking = Literal["Low", "Medium", "High"]

# Annualised volatility (percent) below which a stock ranks "Low" / "Medium".
LOW_VOLATILITY_CEILING = 20.0
MEDIUM_VOLATILITY_CEILING = 30.0


class RiskMetrics(BaseModel):
    """Risk-adjusted return and market-sensitivity figures."""

    model_config = ConfigDict(frozen=True)

    sharpe_ratio: float
    beta: float
    volatility_pct: float
    max_drawdown_pct: float

    @field_validator("volatility_pct")
    @classmethod
    def validate_volatility(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"volatility_pct must be non-negative, got {v}.")
        return v

    @property
    def volatility_fraction(self) -> float:
        return self.volatility_pct / 100.0

    @property
    def volatility_ranking(self) -> VolatilityRanking:
        if self.volatility_pct < LOW_VOLATILITY_CEILING:
            return "Low"
        if self.volatility_pct < MEDIUM_VOLATILITY_CEILING:
            return "Medium"
        return "High"


class TechnicalIndicators(BaseModel):
    """Band, VWAP and relative-strength readings."""

    model_config = ConfigDict(frozen=True)

    vwap: float
    vwap_signal: Literal["Above VWAP", "Below VWAP"]
    bollinger_position: str
    bollinger_squeeze: bool
    relative_strength: int
    sector_outperformance: str
    ichimoku_signal: str

    @field_validator("relative_strength")
    @classmethod
    def validate_relative_strength(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"relative_strength must be in [0, 100], got {v}.")
        return v


class MarketContext(BaseModel):
    """Regime and rotation descriptors for the broader market."""

    model_config = ConfigDict(frozen=True)

    market_regime: str
    sector_rotation: str
    global_correlation: str
    currency_impact: str
    market_breadth: str


class EarningsIntelligence(BaseModel):
    """Earnings calendar, surprise odds and analyst revision counts."""

    model_config = ConfigDict(frozen=True)

    days_to_earnings: int
    surprise_probability_pct: float
    analyst_upgrades: int
    analyst_downgrades: int
    forward_pe: float
    pe_vs_sector: str
    earnings_growth: str

    @field_validator("days_to_earnings", "analyst_upgrades", "analyst_downgrades")
    @classmethod
    def validate_counts(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Counts and day offsets must be non-negative, got {v}.")
        return v

    @field_validator("surprise_probability_pct")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"surprise_probability_pct must be in [0, 100], got {v}.")
        return v


class LiquidityMetrics(BaseModel):
    """Tradability measures."""

    model_config = ConfigDict(frozen=True)

    liquidity_score: int
    bid_ask_spread_pct: float
    average_daily_volume: str
    optimal_order_size: str

    @field_validator("liquidity_score")
    @classmethod
    def validate_score(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"liquidity_score must be in [0, 100], got {v}.")
        return v


class OptionsAnalysis(BaseModel):
    """Derivatives positioning."""

    model_config = ConfigDict(frozen=True)

    put_call_ratio: float
    implied_volatility_pct: float
    options_flow: str
    max_pain: str
    open_interest: str

    @field_validator("put_call_ratio")
    @classmethod
    def validate_pcr(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"put_call_ratio must be non-negative, got {v}.")
        return v


class AnalyticsSnapshot(BaseModel):
    """Complete per-symbol analytics bundle.

    Attributes:
        symbol: Canonical uppercase ticker (or ``"DEFAULT"`` for the
            catch-all profile).
        risk: Risk metrics.
        technical: Technical indicators.
        market: Market context.
        earnings: Earnings intelligence.
        liquidity: Liquidity metrics.
        options: Options analysis.
        catalysts: Symbol-specific upcoming catalysts, in display order.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    risk: RiskMetrics
    technical: TechnicalIndicators
    market: MarketContext
    earnings: EarningsIntelligence
    liquidity: LiquidityMetrics
    options: OptionsAnalysis
    catalysts: tuple[str, ...] = ()

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    def priced_at(self, price: float) -> "AnalyticsSnapshot":
        """Return a copy whose VWAP signal reflects ``price``.

        The stored ``vwap_signal`` is relative to the reference price the
        table was built from; a live quote moves it.
        """
        signal = "Above VWAP" if price > self.technical.vwap else "Below VWAP"
        if signal == self.technical.vwap_signal:
            return self
        technical = self.technical.model_copy(update={"vwap_signal": signal})
        return self.model_copy(update={"technical": technical})
