"""
Tests for market_pulse/recommendations/rules.py.

What we test
------------
  - The default table: 26 uniquely named rules, risk rules carry no weight.
  - Condition operators, including metric-to-metric ``Ref`` operands.
  - Unknown metric paths raise ``SnapshotFieldError`` (fail loud).
  - Rule construction validation.
  - Reason templates render against the context.
  - Weight overrides by name.
"""

from __future__ import annotations

import pytest

from market_pulse.recommendations.rules import (
    DEFAULT_RULES,
    Condition,
    Ref,
    Rule,
    SnapshotFieldError,
    apply_weight_overrides,
    resolve_metric,
)
from market_pulse.recommendations.scorer import build_context


def _context(make_quote, make_snapshot, **snapshot_overrides):
    return build_context(make_quote(), make_snapshot(**snapshot_overrides))


def _rule_named(name: str) -> Rule:
    return next(rule for rule in DEFAULT_RULES if rule.name == name)


class TestDefaultRules:
    def test_table_size_and_unique_names(self):
        names = [rule.name for rule in DEFAULT_RULES]
        assert len(names) == 26
        assert len(set(names)) == 26

    def test_risk_rules_weightless(self):
        assert all(rule.weight == 0 for rule in DEFAULT_RULES if rule.side == "risk")

    def test_scored_rules_have_weight(self):
        assert all(rule.weight > 0 for rule in DEFAULT_RULES if rule.side != "risk")

    def test_every_rule_resolves_on_neutral_snapshot(self, make_quote, make_snapshot):
        context = _context(make_quote, make_snapshot)
        for rule in DEFAULT_RULES:
            rule.matches(context)
            rule.render_reason(context)

    @pytest.mark.parametrize(
        "name, overrides, expected",
        [
            ("strong_sharpe", {"risk": {"sharpe_ratio": 1.4}}, False),
            ("strong_sharpe", {"risk": {"sharpe_ratio": 1.41}}, True),
            ("weak_sharpe", {"risk": {"sharpe_ratio": 1.0}}, False),
            ("weak_sharpe", {"risk": {"sharpe_ratio": 0.99}}, True),
            ("high_volatility", {"risk": {"volatility_pct": 30.0}}, True),
            ("strong_relative_strength", {"technical": {"relative_strength": 70}}, False),
            ("strong_relative_strength", {"technical": {"relative_strength": 71}}, True),
            ("weak_relative_strength", {"technical": {"relative_strength": 29}}, True),
            ("earnings_surprise", {"earnings": {"days_to_earnings": 15, "surprise_probability_pct": 70}}, True),
            ("earnings_surprise", {"earnings": {"days_to_earnings": 16, "surprise_probability_pct": 90}}, False),
            ("analyst_upgrades", {"earnings": {"analyst_upgrades": 3, "analyst_downgrades": 2}}, True),
            ("analyst_downgrades", {"earnings": {"analyst_upgrades": 2, "analyst_downgrades": 2}}, False),
            ("poor_liquidity", {"liquidity": {"liquidity_score": 69}}, True),
            ("high_put_call", {"options": {"put_call_ratio": 1.25}}, True),
            ("put_buying", {"options": {"options_flow": "Put buying increasing"}}, True),
            ("bear_regime", {"market": {"market_regime": "Bear Market - Distribution"}}, True),
            ("bull_regime", {"market": {"market_regime": "Bull Market - Trending Phase"}}, True),
            ("sector_rotation", {"market": {"sector_rotation": "Energy sector in favor"}}, True),
        ],
    )
    def test_thresholds(self, make_quote, make_snapshot, name, overrides, expected):
        context = _context(make_quote, make_snapshot, **overrides)
        assert _rule_named(name).matches(context) is expected


class TestConditions:
    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unknown operator"):
            Condition("risk.beta", "~=", 1.0)

    def test_ref_operand(self, make_quote, make_snapshot):
        context = _context(make_quote, make_snapshot, earnings={"analyst_upgrades": 4})
        cond = Condition("earnings.analyst_upgrades", ">", Ref("earnings.analyst_downgrades"))
        assert cond.holds(context) is True

    def test_contains_operator(self, make_quote, make_snapshot):
        context = _context(make_quote, make_snapshot)
        assert Condition("technical.bollinger_position", "contains", "Normal").holds(context)

    def test_quote_property_path(self, make_quote, make_snapshot):
        context = build_context(make_quote(current_price=2000.0), make_snapshot())
        assert resolve_metric(context, "quote.within_day_range") is False


class TestResolveMetric:
    def test_resolves_nested(self, make_quote, make_snapshot):
        context = _context(make_quote, make_snapshot, risk={"beta": 1.7})
        assert resolve_metric(context, "risk.beta") == 1.7

    def test_unknown_category(self, make_quote, make_snapshot):
        with pytest.raises(SnapshotFieldError, match="category"):
            resolve_metric(_context(make_quote, make_snapshot), "fundamentals.pe")

    def test_unknown_field(self, make_quote, make_snapshot):
        with pytest.raises(SnapshotFieldError, match="sharpe"):
            resolve_metric(_context(make_quote, make_snapshot), "risk.sharpe")


class TestRule:
    def _conditions(self):
        return (Condition("risk.beta", ">", 1.3),)

    def test_risk_rule_with_weight_rejected(self):
        with pytest.raises(ValueError, match="risk-only"):
            Rule("x", "risk", self._conditions(), "risk", 5, "reason")

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            Rule("x", "risk", self._conditions(), "bullish", -1, "reason")

    def test_unknown_side_rejected(self):
        with pytest.raises(ValueError, match="unknown side"):
            Rule("x", "risk", self._conditions(), "sideways", 1, "reason")  # type: ignore[arg-type]

    def test_no_conditions_rejected(self):
        with pytest.raises(ValueError, match="condition"):
            Rule("x", "risk", (), "bullish", 1, "reason")

    def test_render_reason(self, make_quote, make_snapshot):
        context = _context(make_quote, make_snapshot, risk={"sharpe_ratio": 1.5})
        assert _rule_named("strong_sharpe").render_reason(context) == (
            "Excellent risk-adjusted returns (Sharpe: 1.50)"
        )

    def test_bad_template_raises(self, make_quote, make_snapshot):
        rule = Rule("x", "risk", self._conditions(), "bullish", 1, "{risk.nope}")
        with pytest.raises(SnapshotFieldError, match="template"):
            rule.render_reason(_context(make_quote, make_snapshot))


class TestWeightOverrides:
    def test_override_by_name(self):
        rules = apply_weight_overrides(DEFAULT_RULES, {"strong_sharpe": 20})
        assert next(r for r in rules if r.name == "strong_sharpe").weight == 20
        assert [r.name for r in rules] == [r.name for r in DEFAULT_RULES]

    def test_unknown_rule_rejected(self):
        with pytest.raises(ValueError, match="unknown rule"):
            apply_weight_overrides(DEFAULT_RULES, {"moon_phase": 3})

    def test_risk_rule_nonzero_override_rejected(self):
        with pytest.raises(ValueError, match="risk-only"):
            apply_weight_overrides(DEFAULT_RULES, {"high_beta": 3})
