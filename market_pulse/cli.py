"""
Market Pulse — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging (stderr, so ``--json`` output stays parseable).
  3. Build the service/advisor from config.
  4. Print a table, or JSON with ``--json``.

Install and run::

    pip install -e .
    market-pulse --help
    market-pulse validate-config
    market-pulse sources
    market-pulse quote RELIANCE TCS
    market-pulse news --topic MARKET
    market-pulse recommend RELIANCE HDFCBANK --deadline 8
    market-pulse analytics INFY
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="market-pulse",
    help="Market Pulse — resilient quotes, news and analytics-driven trade ideas.",
    add_completion=False,
)

_CONFIG_OPTION_HELP = "Path to TOML config file (default: config/default.toml)."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from market_pulse.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config) -> None:
    """Set up logging from config."""
    from market_pulse.utils.logging import configure_logging
    configure_logging(config.logging)


def _deadline(seconds: Optional[float], config) -> Optional[float]:
    from market_pulse.utils.time_utils import deadline_after

    if seconds is None:
        seconds = config.acquisition.request_deadline_seconds
    return deadline_after(seconds)


def _symbols_or_universe(symbols: Optional[list[str]], config) -> list[str]:
    return [s.upper() for s in symbols] if symbols else list(config.universe.symbols)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields (API keys masked).",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    acq = config.acquisition

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Quote providers:  {' -> '.join(acq.quote_providers)}")
    typer.echo(f"  News providers:   {' -> '.join(acq.news_providers)}")
    typer.echo(f"  Quote TTL:        {acq.quote_ttl_seconds:g}s")
    typer.echo(f"  News TTL:         {acq.news_ttl_seconds:g}s")
    typer.echo(f"  Snapshot file:    {config.analytics.snapshot_file}")
    typer.echo(f"  Universe:         {', '.join(config.universe.symbols)}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        dumped = config.model_dump()
        for key in ("alpha_vantage_api_key", "twelve_data_api_key", "newsapi_api_key"):
            if dumped["providers"].get(key):
                dumped["providers"][key] = "***"
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("sources")
def sources(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """List configured providers per capability, in fallback order."""
    config = _load_config_or_exit(config_path)
    p = config.providers

    def _status(name: str) -> str:
        if not p.is_configured(name):
            return "no API key (will be skipped)"
        return "ready"

    for label, names in (
        ("Quotes", config.acquisition.quote_providers),
        ("News", config.acquisition.news_providers),
    ):
        typer.echo(f"{label}:")
        for rank, name in enumerate(names, start=1):
            typer.echo(f"  {rank}. {name:<14} timeout={p.timeout_for(name):g}s  {_status(name)}")
        typer.echo("  -> fallback (synthetic)")


@app.command("quote")
def quote(
    symbols: Optional[list[str]] = typer.Argument(None, help="Tickers (default: universe)."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
    deadline_s: Optional[float] = typer.Option(
        None, "--deadline", min=0, help="Overall time budget in seconds (>= 0)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Fetch live quotes (synthetic placeholders when every provider fails)."""
    from market_pulse.acquisition.service import AcquisitionService

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    service = AcquisitionService.from_config(config)
    quotes = service.get_quotes(
        _symbols_or_universe(symbols, config),
        deadline=_deadline(deadline_s, config),
    )

    if as_json:
        typer.echo(json.dumps(
            [q.model_dump(mode="json") for q in quotes.values()], indent=2
        ))
        return

    typer.echo(f"{'SYMBOL':<12} {'PRICE':>10} {'CHG%':>7} {'LOW':>10} {'HIGH':>10}  SOURCE")
    for q in quotes.values():
        flag = " (synthetic)" if q.synthetic else ""
        typer.echo(
            f"{q.symbol:<12} {q.current_price:>10.2f} {q.change_percent:>+7.2f} "
            f"{q.day_low:>10.2f} {q.day_high:>10.2f}  {q.source}{flag}"
        )


@app.command("news")
def news(
    topic: str = typer.Option("MARKET", "--topic", help="MARKET or a ticker."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a list."),
    deadline_s: Optional[float] = typer.Option(
        None, "--deadline", min=0, help="Overall time budget in seconds (>= 0)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Fetch curated market headlines."""
    from market_pulse.acquisition.service import AcquisitionService

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    service = AcquisitionService.from_config(config)
    batch = service.get_news(topic, deadline=_deadline(deadline_s, config))

    if as_json:
        typer.echo(json.dumps(batch.model_dump(mode="json"), indent=2))
        return

    suffix = " (synthetic)" if batch.synthetic else ""
    typer.echo(f"{len(batch)} headline(s) for {batch.topic} from {batch.source}{suffix}")
    for item in batch:
        typer.echo(f"  [{item.sentiment:<8}] {item.symbol:<10} {item.headline}")
        typer.echo(f"             {item.source} - {item.url}")


@app.command("recommend")
def recommend(
    symbols: Optional[list[str]] = typer.Argument(None, help="Tickers (default: universe)."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
    deadline_s: Optional[float] = typer.Option(
        None, "--deadline", min=0, help="Overall time budget in seconds (>= 0)."
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Also write JSON + CSV reports to this directory."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Produce BUY/SELL/HOLD recommendations with target and stop-loss."""
    from market_pulse.analytics.store import SnapshotNotFoundError
    from market_pulse.recommendations.advisor import Advisor
    from market_pulse.recommendations.reporter import (
        recommendations_payload,
        write_recommendations_csv,
        write_recommendations_json,
    )
    from market_pulse.recommendations.rules import SnapshotFieldError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        advisor = Advisor.from_config(config)
        recs = advisor.recommend_many(
            _symbols_or_universe(symbols, config),
            deadline=_deadline(deadline_s, config),
        )
    except (FileNotFoundError, SnapshotNotFoundError, SnapshotFieldError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if output_dir:
        out = Path(output_dir)
        write_recommendations_json(recs, out)
        write_recommendations_csv(recs, out)

    if as_json:
        typer.echo(json.dumps(recommendations_payload(recs), indent=2, ensure_ascii=False))
        return

    for rec in recs:
        typer.echo(
            f"{rec.symbol:<12} {rec.action.value:<4} {rec.confidence.value:<6} "
            f"price={rec.current_price:.2f} target={rec.target:.2f} "
            f"stop={rec.stop_loss:.2f} risk={rec.risk_level.value} "
            f"net={rec.net_score:+d}"
        )
        typer.echo(f"             {rec.timeframe}; expected {rec.expected_return}, "
                   f"success {rec.probability_of_success}")
        typer.echo(f"             {rec.reason}")


@app.command("analytics")
def analytics(
    symbol: str = typer.Argument(..., help="Ticker to show."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_OPTION_HELP),
) -> None:
    """Print the analytics snapshot used to score a symbol."""
    from pydantic import ValidationError

    from market_pulse.analytics.store import AnalyticsStore, SnapshotNotFoundError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        store = AnalyticsStore.from_config(config.analytics)
        snapshot = store.get(symbol)
    except (FileNotFoundError, SnapshotNotFoundError, ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if not store.has_own_snapshot(symbol):
        typer.echo(f"[WARN] No dedicated snapshot for {snapshot.symbol}; showing DEFAULT profile.")
    payload = snapshot.model_dump(mode="json")
    payload["risk"]["volatility_ranking"] = snapshot.risk.volatility_ranking
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
