"""
Scoring rules as data.

A ``Rule`` is a named, independent check over one scoring context:

    context = {
        "risk":      RiskMetrics,
        "technical": TechnicalIndicators,
        "market":    MarketContext,
        "earnings":  EarningsIntelligence,
        "liquidity": LiquidityMetrics,
        "options":   OptionsAnalysis,
        "quote":     Quote,
    }

Each rule holds one or more ``Condition``s — ``(metric path, operator,
operand)`` triples, all of which must hold — plus a side, a weight and a
reason template. Templates are ``str.format`` strings over the same context,
e.g. ``"Excellent risk-adjusted returns (Sharpe: {risk.sharpe_ratio})"``.

Sides
-----
  bullish : weight added to the bullish score, reason to decision factors.
  bearish : weight added to the bearish score, reason to risk factors.
  risk    : reason to risk factors only; weight is always 0.

A metric path that does not exist in the context raises
``SnapshotFieldError``: a misspelt rule must never silently score zero.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, Mapping, Union

Side = Literal["bullish", "bearish", "risk"]

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
    "contains": lambda value, operand: operand in str(value),
    "is": lambda value, operand: bool(value) is operand,
}


class SnapshotFieldError(LookupError):
    """A rule referenced a metric path that the scoring context lacks."""


@dataclass(frozen=True)
class Ref:
    """Operand that refers to another metric path instead of a constant."""

    path: str


@dataclass(frozen=True)
class Condition:
    path: str
    op: str
    operand: Union[Ref, str, int, float, bool]

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(
                f"Unknown operator '{self.op}'; expected one of {sorted(_OPERATORS)}."
            )

    def holds(self, context: Mapping[str, Any]) -> bool:
        value = resolve_metric(context, self.path)
        operand = self.operand
        if isinstance(operand, Ref):
            operand = resolve_metric(context, operand.path)
        return _OPERATORS[self.op](value, operand)


@dataclass(frozen=True)
class Rule:
    """One independent scoring rule.

    Attributes:
        name: Unique identifier; also the key for weight overrides.
        category: Snapshot category the rule reads (for reporting only).
        conditions: All must hold for the rule to match.
        side: ``"bullish"``, ``"bearish"`` or ``"risk"``.
        weight: Points added to the side's score on a match.
        reason: ``str.format`` template rendered against the context.
    """

    name: str
    category: str
    conditions: tuple[Condition, ...]
    side: Side
    weight: int
    reason: str

    def __post_init__(self) -> None:
        if self.side not in ("bullish", "bearish", "risk"):
            raise ValueError(f"Rule '{self.name}': unknown side '{self.side}'.")
        if self.weight < 0:
            raise ValueError(f"Rule '{self.name}': weight must be non-negative.")
        if self.side == "risk" and self.weight != 0:
            raise ValueError(f"Rule '{self.name}': risk-only rules carry no weight.")
        if not self.conditions:
            raise ValueError(f"Rule '{self.name}': at least one condition is required.")

    def matches(self, context: Mapping[str, Any]) -> bool:
        return all(condition.holds(context) for condition in self.conditions)

    def render_reason(self, context: Mapping[str, Any]) -> str:
        try:
            return self.reason.format(**context)
        except (AttributeError, KeyError) as exc:
            raise SnapshotFieldError(
                f"Rule '{self.name}': reason template references unknown field ({exc})."
            ) from exc

    def with_weight(self, weight: int) -> "Rule":
        return replace(self, weight=weight)


def resolve_metric(context: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path such as ``"risk.sharpe_ratio"`` in ``context``.

    Raises:
        SnapshotFieldError: If any path segment is missing.
    """
    head, _, rest = path.partition(".")
    if head not in context:
        raise SnapshotFieldError(f"Unknown metric category '{head}' in path '{path}'.")
    value = context[head]
    for part in rest.split(".") if rest else ():
        try:
            value = getattr(value, part)
        except AttributeError:
            raise SnapshotFieldError(f"Unknown metric '{part}' in path '{path}'.") from None
    return value


def _rule(
    name: str,
    category: str,
    side: Side,
    weight: int,
    reason: str,
    *conditions: tuple[str, str, Any],
) -> Rule:
    return Rule(
        name=name,
        category=category,
        conditions=tuple(Condition(*c) for c in conditions),
        side=side,
        weight=weight,
        reason=reason,
    )


# ── Default rule table ────────────────────────────────────────────────────────
# Evaluation order is table order; factor lists preserve it.

DEFAULT_RULES: tuple[Rule, ...] = (
    # Risk
    _rule("strong_sharpe", "risk", "bullish", 15,
          "Excellent risk-adjusted returns (Sharpe: {risk.sharpe_ratio:.2f})",
          ("risk.sharpe_ratio", ">", 1.4)),
    _rule("weak_sharpe", "risk", "bearish", 10,
          "Poor risk-adjusted returns (Sharpe: {risk.sharpe_ratio:.2f})",
          ("risk.sharpe_ratio", "<", 1.0)),
    _rule("high_beta", "risk", "risk", 0,
          "High market sensitivity (Beta: {risk.beta:.2f})",
          ("risk.beta", ">", 1.3)),
    _rule("high_volatility", "risk", "bearish", 5,
          "High volatility environment ({risk.volatility_pct:.1f}%)",
          ("risk.volatility_ranking", "==", "High")),
    # Technical
    _rule("above_vwap", "technical", "bullish", 10,
          "Trading above VWAP - institutional support",
          ("technical.vwap_signal", "==", "Above VWAP")),
    _rule("below_vwap", "technical", "bearish", 5,
          "Trading below VWAP - weak momentum",
          ("technical.vwap_signal", "==", "Below VWAP")),
    _rule("strong_relative_strength", "technical", "bullish", 15,
          "Strong relative strength ({technical.relative_strength}/100)",
          ("technical.relative_strength", ">", 70)),
    _rule("weak_relative_strength", "technical", "bearish", 10,
          "Weak relative strength ({technical.relative_strength}/100)",
          ("technical.relative_strength", "<", 30)),
    _rule("bollinger_squeeze", "technical", "bullish", 8,
          "Bollinger squeeze - breakout imminent",
          ("technical.bollinger_squeeze", "is", True)),
    _rule("bollinger_overbought", "technical", "bearish", 12,
          "Overbought on Bollinger Bands",
          ("technical.bollinger_position", "contains", "Overbought")),
    _rule("bollinger_oversold", "technical", "bullish", 12,
          "Oversold on Bollinger Bands - bounce opportunity",
          ("technical.bollinger_position", "contains", "Oversold")),
    # Earnings
    _rule("earnings_surprise", "earnings", "bullish", 12,
          "High earnings surprise probability near results "
          "({earnings.surprise_probability_pct:.0f}%)",
          ("earnings.days_to_earnings", "<=", 15),
          ("earnings.surprise_probability_pct", ">=", 70)),
    _rule("earnings_window", "earnings", "risk", 0,
          "Earnings volatility risk ({earnings.days_to_earnings} days to results)",
          ("earnings.days_to_earnings", "<=", 15)),
    _rule("analyst_upgrades", "earnings", "bullish", 8,
          "Recent analyst upgrades ({earnings.analyst_upgrades} up, "
          "{earnings.analyst_downgrades} down)",
          ("earnings.analyst_upgrades", ">", Ref("earnings.analyst_downgrades"))),
    _rule("analyst_downgrades", "earnings", "bearish", 8,
          "Recent analyst downgrades ({earnings.analyst_downgrades} down, "
          "{earnings.analyst_upgrades} up)",
          ("earnings.analyst_downgrades", ">", Ref("earnings.analyst_upgrades"))),
    # Liquidity
    _rule("excellent_liquidity", "liquidity", "bullish", 5,
          "Excellent liquidity ({liquidity.liquidity_score}/100)",
          ("liquidity.liquidity_score", ">", 90)),
    _rule("poor_liquidity", "liquidity", "bearish", 8,
          "Poor liquidity ({liquidity.liquidity_score}/100)",
          ("liquidity.liquidity_score", "<", 70)),
    # Options
    _rule("high_put_call", "options", "bullish", 10,
          "High put/call ratio indicates oversold sentiment ({options.put_call_ratio:.2f})",
          ("options.put_call_ratio", ">", 1.2)),
    _rule("low_put_call", "options", "bearish", 8,
          "Low put/call ratio indicates complacency ({options.put_call_ratio:.2f})",
          ("options.put_call_ratio", "<", 0.8)),
    _rule("call_buying", "options", "bullish", 8,
          "Dominant call buying flow",
          ("options.options_flow", "==", "Call buying dominant")),
    _rule("put_buying", "options", "bearish", 8,
          "Increasing put buying activity",
          ("options.options_flow", "contains", "Put buying")),
    # Market context
    _rule("bull_regime", "market", "bullish", 10,
          "Favorable market regime ({market.market_regime})",
          ("market.market_regime", "contains", "Bull Market")),
    _rule("bear_regime", "market", "bearish", 15,
          "Challenging market environment ({market.market_regime})",
          ("market.market_regime", "contains", "Bear")),
    _rule("sector_rotation", "market", "bullish", 8,
          "Sector rotation favorable ({market.sector_rotation})",
          ("market.sector_rotation", "contains", "in favor")),
    # Quote sanity
    _rule("quote_range_mismatch", "quote", "risk", 0,
          "Quote price {quote.current_price:.2f} outside reported day range "
          "{quote.day_low:.2f}-{quote.day_high:.2f}",
          ("quote.within_day_range", "is", False)),
    _rule("synthetic_quote", "quote", "risk", 0,
          "Live quote unavailable - using synthetic placeholder price",
          ("quote.synthetic", "is", True)),
)


def apply_weight_overrides(
    rules: tuple[Rule, ...],
    overrides: Mapping[str, int],
) -> tuple[Rule, ...]:
    """Return ``rules`` with weights replaced by name.

    Raises:
        ValueError: If an override names an unknown rule or targets a
            risk-only rule with a non-zero weight.
    """
    names = {rule.name for rule in rules}
    unknown = sorted(set(overrides) - names)
    if unknown:
        raise ValueError(f"Weight override for unknown rule(s): {unknown}.")
    return tuple(
        rule.with_weight(overrides[rule.name]) if rule.name in overrides else rule
        for rule in rules
    )
