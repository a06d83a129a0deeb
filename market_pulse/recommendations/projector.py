"""
Decision projector: maps a net score plus quote and snapshot to a complete
``Recommendation``.

Action tiers (net score ``s``; thresholds from ``[projection]``)
----------------------------------------------------------------
    s >  25          → BUY  HIGH    expected 12–18%      success 75–85%
    10 < s <= 25     → BUY  MEDIUM  expected 8–12%       success 65–75%
    -10 <= s <= 10   → HOLD MEDIUM  expected 3–8%        success 50–65%
    -25 <= s < -10   → SELL MEDIUM  expected -5 to +3%   success 60–70%
    s < -25          → SELL HIGH    expected -10 to -5%  success 70–80%

A synthetic quote downgrades confidence to LOW whatever the tier.

Target offset (first match wins, percent of price)
--------------------------------------------------
    BUY : squeeze and RS > 70 → +2.5 | RS > 60 → +1.5 | oversold → +2.0 | +1.0
    SELL: overbought → -2.0 | RS < 40 → -1.5 | -1.0
    HOLD: +0.5

Stop-loss offset
----------------
    clamp(volatility_fraction × 0.06, 0.5%, 1.5%)
    BUY/HOLD stop below the price, SELL stop above it.

Tier bands, target offsets, timeframes and risk levels are ordered tables
(``DEFAULT_TIER_BANDS``, ``TARGET_OFFSETS``, ``TIMEFRAMES``, ``RISK_LEVELS``)
read by a single first-match lookup.

Every mapping is a pure function of its arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, TypeVar

from market_pulse.models.analytics import AnalyticsSnapshot, TechnicalIndicators
from market_pulse.models.quote import Quote
from market_pulse.models.recommendation import (
    Action,
    Confidence,
    PercentRange,
    Recommendation,
    RiskLevel,
    ScoreFactors,
)

if TYPE_CHECKING:
    from market_pulse.config import ProjectionConfig

logger = logging.getLogger(__name__)

EARNINGS_CATALYST_DAYS = 15
PRE_EARNINGS_DAYS = 5
MAX_REASON_FACTORS = 3

T = TypeVar("T")


@dataclass(frozen=True)
class ActionTier:
    action: Action
    confidence: Confidence
    expected_return: PercentRange
    probability_of_success: PercentRange


STRONG_BUY = ActionTier(Action.BUY, Confidence.HIGH, PercentRange(low=12, high=18), PercentRange(low=75, high=85))
BUY = ActionTier(Action.BUY, Confidence.MEDIUM, PercentRange(low=8, high=12), PercentRange(low=65, high=75))
HOLD = ActionTier(Action.HOLD, Confidence.MEDIUM, PercentRange(low=3, high=8), PercentRange(low=50, high=65))
SELL = ActionTier(Action.SELL, Confidence.MEDIUM, PercentRange(low=-5, high=3), PercentRange(low=60, high=70))
STRONG_SELL = ActionTier(Action.SELL, Confidence.HIGH, PercentRange(low=-10, high=-5), PercentRange(low=70, high=80))


# ── Tables ────────────────────────────────────────────────────────────────────

# (floor, floor_inclusive, tier), highest band first. A score lands in the
# first band whose floor it clears; below every floor is STRONG_SELL.
TierBand = tuple[int, bool, ActionTier]


def tier_bands(
    strong_buy_above: int = 25,
    buy_above: int = 10,
    hold_floor: int = -10,
    sell_floor: int = -25,
) -> tuple[TierBand, ...]:
    return (
        (strong_buy_above, False, STRONG_BUY),
        (buy_above, False, BUY),
        (hold_floor, True, HOLD),
        (sell_floor, True, SELL),
    )


DEFAULT_TIER_BANDS = tier_bands()

# Per action: (predicate(technical), offset %), first match wins.
TARGET_OFFSETS: dict[Action, tuple[tuple[Callable[[TechnicalIndicators], bool], float], ...]] = {
    Action.BUY: (
        (lambda t: t.bollinger_squeeze and t.relative_strength > 70, 2.5),
        (lambda t: t.relative_strength > 60, 1.5),
        (lambda t: "Oversold" in t.bollinger_position, 2.0),
    ),
    Action.SELL: (
        (lambda t: "Overbought" in t.bollinger_position, -2.0),
        (lambda t: t.relative_strength < 40, -1.5),
    ),
    Action.HOLD: (),
}
DEFAULT_TARGET_OFFSETS: dict[Action, float] = {
    Action.BUY: 1.0,
    Action.SELL: -1.0,
    Action.HOLD: 0.5,
}

# (predicate(action, snapshot), label), first match wins.
TIMEFRAMES: tuple[tuple[Callable[[Action, AnalyticsSnapshot], bool], str], ...] = (
    (lambda a, s: s.technical.bollinger_squeeze and s.technical.relative_strength > 70,
     "2-4 hours (Strong breakout setup)"),
    (lambda a, s: s.technical.bollinger_squeeze,
     "4-6 hours (Breakout expected)"),
    (lambda a, s: s.technical.vwap_signal == "Above VWAP" and a == Action.BUY,
     "1-2 hours (Momentum trade)"),
    (lambda a, s: s.earnings.days_to_earnings <= PRE_EARNINGS_DAYS,
     "Same day (Pre-earnings volatility)"),
    (lambda a, s: a == Action.SELL,
     "1-3 hours (Quick exit)"),
    (lambda a, s: s.technical.relative_strength > 65,
     "2-4 hours (Momentum continuation)"),
)
DEFAULT_TIMEFRAME = "4-8 hours (Position trade)"

# (predicate(risk_factor_count, bearish_score, volatility_ranking), level),
# first match wins.
RISK_LEVELS: tuple[tuple[Callable[[int, int, str], bool], RiskLevel], ...] = (
    (lambda n, bearish, vol: n >= 4 or bearish > 20 or vol == "High", RiskLevel.HIGH),
    (lambda n, bearish, vol: n >= 2 or bearish > 10, RiskLevel.MEDIUM),
)
DEFAULT_RISK_LEVEL = RiskLevel.LOW


# ── Pure mappings ─────────────────────────────────────────────────────────────


def first_match(table: Iterable[tuple[Callable[..., bool], T]], default: T, *args: Any) -> T:
    """Result of the first row whose predicate holds for ``args``, else ``default``."""
    for predicate, result in table:
        if predicate(*args):
            return result
    return default


def determine_tier(net_score: int, bands: tuple[TierBand, ...] = DEFAULT_TIER_BANDS) -> ActionTier:
    """Map a net score to its action tier (first band cleared wins)."""
    for floor, inclusive, tier in bands:
        if net_score > floor or (inclusive and net_score == floor):
            return tier
    return STRONG_SELL


def target_offset_pct(action: Action, snapshot: AnalyticsSnapshot) -> float:
    """Signed target offset in percent of the current price."""
    return first_match(TARGET_OFFSETS[action], DEFAULT_TARGET_OFFSETS[action], snapshot.technical)


def stop_loss_fraction(
    volatility_fraction: float,
    multiplier: float = 0.06,
    min_pct: float = 0.5,
    max_pct: float = 1.5,
) -> float:
    """Stop distance as a fraction of price, clamped to ``[min_pct, max_pct]`` %."""
    return _clamp(volatility_fraction * multiplier, min_pct / 100.0, max_pct / 100.0)


def select_timeframe(action: Action, snapshot: AnalyticsSnapshot) -> str:
    return first_match(TIMEFRAMES, DEFAULT_TIMEFRAME, action, snapshot)


def assess_risk_level(
    risk_factor_count: int,
    bearish_score: int,
    volatility_ranking: str,
) -> RiskLevel:
    """HIGH: ≥4 risk factors, bearish > 20 or High volatility.
    MEDIUM: ≥2 risk factors or bearish > 10. Otherwise LOW."""
    return first_match(
        RISK_LEVELS, DEFAULT_RISK_LEVEL, risk_factor_count, bearish_score, volatility_ranking
    )


def build_catalysts(snapshot: AnalyticsSnapshot) -> tuple[str, ...]:
    catalysts: list[str] = []
    days = snapshot.earnings.days_to_earnings
    if days <= EARNINGS_CATALYST_DAYS:
        catalysts.append(f"Earnings results in {days} days")
    if "favor" in snapshot.market.sector_rotation:
        catalysts.append("Favorable sector rotation dynamics")
    catalysts.extend(snapshot.catalysts)
    return tuple(catalysts)


def build_reason(action: Action, net_score: int, decision_factors: tuple[str, ...]) -> str:
    reason = f"Analytics-driven {action.value} (Score: {net_score})."
    if decision_factors:
        reason += " Key factors: " + ", ".join(decision_factors[:MAX_REASON_FACTORS])
    return reason


# ── Projector ─────────────────────────────────────────────────────────────────


class DecisionProjector:
    """Turn a net score into a structured ``Recommendation``.

    Args:
        config: ``[projection]`` thresholds and stop-loss band. ``None`` uses
            the built-in defaults.
    """

    def __init__(self, config: Optional["ProjectionConfig"] = None) -> None:
        if config is None:
            from market_pulse.config import ProjectionConfig

            config = ProjectionConfig()
        self.config = config
        self.tier_bands = tier_bands(
            strong_buy_above=config.strong_buy_above,
            buy_above=config.buy_above,
            hold_floor=config.hold_floor,
            sell_floor=config.sell_floor,
        )

    def tier_for(self, net_score: int) -> ActionTier:
        return determine_tier(net_score, self.tier_bands)

    def project(
        self,
        net_score: int,
        quote: Quote,
        snapshot: AnalyticsSnapshot,
        factors: Optional[ScoreFactors] = None,
    ) -> Recommendation:
        """Build the recommendation for ``quote.symbol``.

        Args:
            net_score: Bullish minus bearish score.
            quote: Quote the price offsets are computed from.
            snapshot: Analytics snapshot for the same symbol.
            factors: Full scoring output. When omitted, the bullish/bearish
                split is inferred from ``net_score`` and no factor text is
                attached.

        Raises:
            ValueError: If ``factors`` disagrees with ``net_score``.
        """
        if factors is None:
            factors = ScoreFactors(
                bullish_score=max(net_score, 0),
                bearish_score=max(-net_score, 0),
            )
        elif factors.net_score != net_score:
            raise ValueError(
                f"net_score {net_score} does not match factors ({factors.net_score})."
            )

        tier = self.tier_for(net_score)
        action = tier.action
        confidence = Confidence.LOW if quote.synthetic else tier.confidence

        price = quote.current_price
        target = price * (1.0 + target_offset_pct(action, snapshot) / 100.0)

        c = self.config
        stop_offset = stop_loss_fraction(
            snapshot.risk.volatility_fraction,
            multiplier=c.volatility_multiplier,
            min_pct=c.stop_loss_min_pct,
            max_pct=c.stop_loss_max_pct,
        )
        if action == Action.SELL:
            stop_loss = price * (1.0 + stop_offset)
        else:
            stop_loss = price * (1.0 - stop_offset)

        recommendation = Recommendation(
            symbol=quote.symbol,
            action=action,
            confidence=confidence,
            current_price=price,
            target=round(target, 2),
            stop_loss=round(stop_loss, 2),
            timeframe=select_timeframe(action, snapshot),
            expected_return=tier.expected_return,
            probability_of_success=tier.probability_of_success,
            risk_level=assess_risk_level(
                len(factors.risk_factors),
                factors.bearish_score,
                snapshot.risk.volatility_ranking,
            ),
            decision_factors=factors.decision_factors,
            risk_factors=factors.risk_factors,
            catalysts=build_catalysts(snapshot),
            reason=build_reason(action, net_score, factors.decision_factors),
            net_score=net_score,
            bullish_score=factors.bullish_score,
            bearish_score=factors.bearish_score,
            quote_source=quote.source,
            quote_synthetic=quote.synthetic,
        )
        logger.debug(
            "Projected %s: %s %s (net=%d)",
            quote.symbol, action.value, confidence.value, net_score,
        )
        return recommendation


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
