"""Tests for the analytics snapshot models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from market_pulse.models.analytics import AnalyticsSnapshot


class TestRiskMetrics:
    @pytest.mark.parametrize(
        "volatility, ranking",
        [(0.0, "Low"), (19.9, "Low"), (20.0, "Medium"), (29.9, "Medium"), (30.0, "High")],
    )
    def test_volatility_ranking(self, make_snapshot, volatility, ranking):
        snapshot = make_snapshot(risk={"volatility_pct": volatility})
        assert snapshot.risk.volatility_ranking == ranking

    def test_volatility_fraction(self, make_snapshot):
        assert make_snapshot(risk={"volatility_pct": 25.0}).risk.volatility_fraction == pytest.approx(0.25)


class TestSnapshotValidation:
    def test_missing_category_raises(self, raw_snapshot):
        del raw_snapshot["options"]
        with pytest.raises(ValidationError, match="options"):
            AnalyticsSnapshot(symbol="TCS", **raw_snapshot)

    def test_missing_field_raises(self, raw_snapshot):
        del raw_snapshot["risk"]["sharpe_ratio"]
        with pytest.raises(ValidationError, match="sharpe_ratio"):
            AnalyticsSnapshot(symbol="TCS", **raw_snapshot)

    def test_relative_strength_bounds(self, make_snapshot):
        with pytest.raises(ValidationError, match="relative_strength"):
            make_snapshot(technical={"relative_strength": 101})

    def test_unknown_vwap_signal_rejected(self, make_snapshot):
        with pytest.raises(ValidationError):
            make_snapshot(technical={"vwap_signal": "At VWAP"})


class TestPricedAt:
    def test_flips_to_above(self, make_snapshot):
        snapshot = make_snapshot(technical={"vwap": 100.0, "vwap_signal": "Below VWAP"})
        repriced = snapshot.priced_at(101.0)
        assert repriced.technical.vwap_signal == "Above VWAP"
        assert snapshot.technical.vwap_signal == "Below VWAP"

    def test_at_vwap_is_below(self, make_snapshot):
        snapshot = make_snapshot(technical={"vwap": 100.0, "vwap_signal": "Above VWAP"})
        assert snapshot.priced_at(100.0).technical.vwap_signal == "Below VWAP"

    def test_unchanged_returns_self(self, make_snapshot):
        snapshot = make_snapshot(technical={"vwap": 100.0, "vwap_signal": "Below VWAP"})
        assert snapshot.priced_at(90.0) is snapshot
