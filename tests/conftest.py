"""
Shared pytest fixtures for the Market Pulse test suite.

Provides:
  - ``make_quote`` / ``make_snapshot``: builders for domain objects with
    neutral defaults; pass overrides per test.
  - ``fake_clock``: a manually advanced monotonic clock for TTL and
    deadline tests.
  - ``make_provider``: builder for ``StubProvider``, a call-counting
    provider double that returns a fixed result or raises.

The neutral snapshot is chosen so that exactly one rule fires
(``below_vwap``, bearish 5); every other metric sits between thresholds.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Optional

import pytest

from market_pulse.models.analytics import AnalyticsSnapshot
from market_pulse.models.quote import Quote
from market_pulse.providers.base import Provider


# ── Clock ─────────────────────────────────────────────────────────────────────

class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ── Domain object builders ────────────────────────────────────────────────────

_NEUTRAL_SNAPSHOT: dict[str, Any] = {
    "risk": {
        "sharpe_ratio": 1.2,
        "beta": 1.0,
        "volatility_pct": 25.0,
        "max_drawdown_pct": -10.0,
    },
    "technical": {
        "vwap": 1000.0,
        "vwap_signal": "Below VWAP",
        "bollinger_position": "Within Bands (Normal)",
        "bollinger_squeeze": False,
        "relative_strength": 50,
        "sector_outperformance": "In line with sector",
        "ichimoku_signal": "Inside Cloud - Neutral",
    },
    "market": {
        "market_regime": "Sideways Market - Range Bound",
        "sector_rotation": "Neutral rotation",
        "global_correlation": "Low correlation",
        "currency_impact": "Neutral",
        "market_breadth": "Balanced breadth",
    },
    "earnings": {
        "days_to_earnings": 30,
        "surprise_probability_pct": 50.0,
        "analyst_upgrades": 1,
        "analyst_downgrades": 1,
        "forward_pe": 20.0,
        "pe_vs_sector": "In line with sector",
        "earnings_growth": "10% YoY growth expected",
    },
    "liquidity": {
        "liquidity_score": 80,
        "bid_ask_spread_pct": 0.05,
        "average_daily_volume": "₹500 Cr",
        "optimal_order_size": "₹10 Lakh per order",
    },
    "options": {
        "put_call_ratio": 1.0,
        "implied_volatility_pct": 25.0,
        "options_flow": "Balanced flow",
        "max_pain": "₹1,000",
        "open_interest": "Evenly spread",
    },
}


def build_snapshot(symbol: str = "TEST", catalysts: tuple[str, ...] = (), **overrides: dict) -> AnalyticsSnapshot:
    """Neutral snapshot with per-category field overrides.

    Example::

        build_snapshot(risk={"sharpe_ratio": 1.5}, technical={"relative_strength": 75})
    """
    payload = copy.deepcopy(_NEUTRAL_SNAPSHOT)
    for category, fields in overrides.items():
        payload[category].update(fields)
    return AnalyticsSnapshot(symbol=symbol, catalysts=catalysts, **payload)


def build_quote(**overrides: Any) -> Quote:
    fields: dict[str, Any] = {
        "symbol": "TEST",
        "current_price": 1000.0,
        "day_high": 1010.0,
        "day_low": 990.0,
        "previous_close": 995.0,
        "volume": 1_000_000,
        "change_percent": 0.5,
        "source": "stub",
    }
    fields.update(overrides)
    return Quote(**fields)


@pytest.fixture
def make_snapshot() -> Callable[..., AnalyticsSnapshot]:
    return build_snapshot


@pytest.fixture
def make_quote() -> Callable[..., Quote]:
    return build_quote


@pytest.fixture
def raw_snapshot() -> dict[str, Any]:
    """Deep copy of the neutral snapshot payload (no ``symbol`` key)."""
    return copy.deepcopy(_NEUTRAL_SNAPSHOT)


# ── Provider double ───────────────────────────────────────────────────────────

class StubProvider(Provider):
    """Provider double recording every ``fetch`` call.

    Args:
        name: Provider name reported to the fallback chain.
        result: Value to return, or a ``request -> value`` callable.
        error: Exception to raise instead of returning.
        timeout_s: Per-attempt timeout the chain reads.
        clock: Optional ``FakeClock`` advanced by ``delay`` on every call.
        delay: Simulated latency in seconds.
    """

    def __init__(
        self,
        name: str,
        result: Any = None,
        error: Optional[BaseException] = None,
        timeout_s: float = 5.0,
        clock: Optional[FakeClock] = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(timeout_s=timeout_s)
        self.name = name  # type: ignore[misc]
        self.result = result
        self.error = error
        self.calls: list[tuple[str, float]] = []
        self._fake_clock = clock
        self._delay = delay

    def fetch(self, request: str, timeout: float) -> Any:
        self.calls.append((request, timeout))
        if self._fake_clock is not None and self._delay:
            self._fake_clock.advance(self._delay)
        if self.error is not None:
            raise self.error
        if callable(self.result):
            return self.result(request)
        return self.result


@pytest.fixture
def make_provider() -> Callable[..., StubProvider]:
    return StubProvider
