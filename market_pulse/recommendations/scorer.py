"""
Scoring engine: evaluates the rule table against one quote + analytics
snapshot and accumulates bullish/bearish points.

    net_score = bullish_score − bearish_score

Every rule is evaluated in table order in a single pass; there is no early
exit and no symbol-specific branching. The engine holds no mutable state,
so one instance can score many symbols concurrently and the same inputs
always produce the same ``ScoreFactors``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from market_pulse.models.analytics import AnalyticsSnapshot
from market_pulse.models.quote import Quote
from market_pulse.models.recommendation import ScoreFactors
from market_pulse.recommendations.rules import (
    DEFAULT_RULES,
    Rule,
    apply_weight_overrides,
)

logger = logging.getLogger(__name__)


def build_context(quote: Quote, snapshot: AnalyticsSnapshot) -> dict[str, Any]:
    """Map rule path heads to the objects they read."""
    return {
        "risk": snapshot.risk,
        "technical": snapshot.technical,
        "market": snapshot.market,
        "earnings": snapshot.earnings,
        "liquidity": snapshot.liquidity,
        "options": snapshot.options,
        "quote": quote,
    }


class ScoringEngine:
    """Deterministic multi-factor scorer.

    Args:
        rules: Ordered rule table. Defaults to ``DEFAULT_RULES``.
        weight_overrides: Rule name → replacement weight
            (``[scoring.weights]`` in config).
    """

    def __init__(
        self,
        rules: Optional[tuple[Rule, ...]] = None,
        weight_overrides: Optional[Mapping[str, int]] = None,
    ) -> None:
        rules = DEFAULT_RULES if rules is None else tuple(rules)
        if weight_overrides:
            rules = apply_weight_overrides(rules, weight_overrides)
        names = [rule.name for rule in rules]
        if len(names) != len(set(names)):
            raise ValueError("Rule names must be unique.")
        self.rules: tuple[Rule, ...] = rules

    def score(self, quote: Quote, snapshot: AnalyticsSnapshot) -> ScoreFactors:
        """Evaluate every rule and accumulate scores and reasons.

        Raises:
            SnapshotFieldError: If a rule references a missing metric.
        """
        context = build_context(quote, snapshot)
        bullish = 0
        bearish = 0
        decision_factors: list[str] = []
        risk_factors: list[str] = []
        matched: list[str] = []

        for rule in self.rules:
            if not rule.matches(context):
                continue
            matched.append(rule.name)
            reason = rule.render_reason(context)
            if rule.side == "bullish":
                bullish += rule.weight
                decision_factors.append(reason)
            elif rule.side == "bearish":
                bearish += rule.weight
                risk_factors.append(reason)
            else:
                risk_factors.append(reason)

        factors = ScoreFactors(
            bullish_score=bullish,
            bearish_score=bearish,
            decision_factors=tuple(decision_factors),
            risk_factors=tuple(risk_factors),
            matched_rules=tuple(matched),
        )
        logger.debug(
            "Scored %s: bullish=%d bearish=%d net=%d",
            quote.symbol, bullish, bearish, factors.net_score,
        )
        return factors
