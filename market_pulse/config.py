"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — API keys and env overrides (gitignored)
  4. Environment variables        — ``MARKET_PULSE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The acquisition service, advisor and CLI commands all receive an
``AppConfig`` instance — never raw dicts or individual env var lookups
scattered through the codebase. API keys are the one exception to the TOML
layering: they are only ever read from the environment (``.env`` included),
so they never end up in a committed file.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

QUOTE_PROVIDER_NAMES = frozenset({"yahoo", "alpha_vantage", "twelve_data"})
NEWS_PROVIDER_NAMES = frozenset({"rss", "newsapi"})
KEYED_PROVIDER_NAMES = frozenset({"alpha_vantage", "twelve_data", "newsapi"})

# Env var → providers.<field>
_API_KEY_ENV_VARS: dict[str, str] = {
    "ALPHA_VANTAGE_API_KEY": "alpha_vantage_api_key",
    "TWELVE_DATA_API_KEY": "twelve_data_api_key",
    "NEWSAPI_API_KEY": "newsapi_api_key",
}

# ── Sub-config models ─────────────────────────────────────────────────────────


class AcquisitionConfig(BaseModel):
    """Cache lifetimes, provider order and concurrency for acquisition."""

    model_config = ConfigDict(frozen=True)

    quote_ttl_seconds: float = 60.0
    # Kept at 1 s to match the legacy service; almost certainly meant to be
    # longer. See DESIGN.md.
    news_ttl_seconds: float = 1.0
    quote_providers: list[str] = ["yahoo", "alpha_vantage", "twelve_data"]
    news_providers: list[str] = ["rss", "newsapi"]
    max_workers: int = 8
    news_limit: int = 7
    request_deadline_seconds: Optional[float] = None

    @field_validator("quote_ttl_seconds", "news_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"TTL must be positive, got {v}.")
        return v

    @field_validator("max_workers", "news_limit")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v

    @field_validator("request_deadline_seconds")
    @classmethod
    def validate_deadline(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"request_deadline_seconds must be positive, got {v}.")
        return v

    @field_validator("quote_providers")
    @classmethod
    def validate_quote_providers(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in QUOTE_PROVIDER_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown quote provider(s) {unknown}; "
                f"expected any of {sorted(QUOTE_PROVIDER_NAMES)}."
            )
        return v

    @field_validator("news_providers")
    @classmethod
    def validate_news_providers(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in NEWS_PROVIDER_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown news provider(s) {unknown}; "
                f"expected any of {sorted(NEWS_PROVIDER_NAMES)}."
            )
        return v


class RssFeedConfig(BaseModel):
    """One RSS feed aggregated by the ``rss`` news provider."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class ProvidersConfig(BaseModel):
    """Per-provider endpoints, timeouts and credentials."""

    model_config = ConfigDict(frozen=True)

    default_timeout_seconds: float = 5.0
    timeouts: dict[str, float] = {}
    market_suffix: str = ".NS"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )

    yahoo_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    twelve_data_base_url: str = "https://api.twelvedata.com"
    newsapi_base_url: str = "https://newsapi.org/v2"
    newsapi_country: str = "in"
    newsapi_category: str = "business"

    rss_feeds: list[RssFeedConfig] = [
        RssFeedConfig(
            name="moneycontrol",
            url="https://www.moneycontrol.com/rss/marketreports.xml",
        ),
        RssFeedConfig(
            name="economic_times",
            url="https://economictimes.indiatimes.com/markets/rssfeeds/1977021501.cms",
        ),
        RssFeedConfig(
            name="business_standard",
            url="https://www.business-standard.com/rss/markets-106.rss",
        ),
    ]
    rss_entries_per_feed: int = 5

    # Populated from the environment only (see _API_KEY_ENV_VARS).
    alpha_vantage_api_key: Optional[str] = None
    twelve_data_api_key: Optional[str] = None
    newsapi_api_key: Optional[str] = None

    @field_validator("default_timeout_seconds")
    @classmethod
    def validate_default_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"default_timeout_seconds must be positive, got {v}.")
        return v

    @field_validator("timeouts")
    @classmethod
    def validate_timeouts(cls, v: dict[str, float]) -> dict[str, float]:
        for name, seconds in v.items():
            if name not in QUOTE_PROVIDER_NAMES | NEWS_PROVIDER_NAMES:
                raise ValueError(f"Timeout given for unknown provider '{name}'.")
            if seconds <= 0:
                raise ValueError(f"Timeout for '{name}' must be positive, got {seconds}.")
        return v

    def timeout_for(self, provider: str) -> float:
        """Return the configured timeout for ``provider`` in seconds."""
        return self.timeouts.get(provider, self.default_timeout_seconds)

    def api_key_for(self, provider: str) -> Optional[str]:
        """Return the API key for a keyed provider, ``None`` otherwise."""
        return getattr(self, f"{provider}_api_key", None)

    def is_configured(self, provider: str) -> bool:
        """``False`` only for a keyed provider whose key is missing."""
        if provider not in KEYED_PROVIDER_NAMES:
            return True
        return bool(self.api_key_for(provider))


class NewsConfig(BaseModel):
    """Relevance filter, symbol tagging and sentiment lexicons."""

    model_config = ConfigDict(frozen=True)

    relevance_keywords: list[str] = [
        "stock", "market", "nifty", "sensex", "share",
        "equity", "trading", "investment",
    ]
    tracked_symbols: list[str] = [
        "RELIANCE", "TCS", "HDFCBANK", "INFY", "ITC", "BHARTIARTL", "ADANIGREEN",
    ]
    positive_words: list[str] = [
        "gain", "rise", "up", "high", "strong", "beat", "win", "growth", "positive",
    ]
    negative_words: list[str] = [
        "fall", "drop", "down", "low", "weak", "miss", "loss", "decline", "negative",
    ]
    min_headline_length: int = 20
    excluded_phrases: list[str] = [
        "click here", "watch video", "breaking:", "live:", "advertisement",
    ]
    summary_max_chars: int = 150

    @field_validator("tracked_symbols")
    @classmethod
    def normalize_symbols(cls, v: list[str]) -> list[str]:
        return [s.strip().upper() for s in v if s.strip()]


class SyntheticConfig(BaseModel):
    """Reference values for placeholder quotes when every provider fails."""

    model_config = ConfigDict(frozen=True)

    reference_prices: dict[str, float] = {
        "RELIANCE": 2750.50,
        "HDFCBANK": 1685.40,
        "TCS": 4127.65,
        "INFY": 1481.20,
        "BHARTIARTL": 948.75,
        "ITC": 418.95,
    }
    reference_volumes: dict[str, int] = {
        "RELIANCE": 4_500_000,
        "HDFCBANK": 3_650_000,
        "TCS": 1_980_000,
        "INFY": 4_200_000,
        "BHARTIARTL": 2_800_000,
        "ITC": 3_200_000,
    }
    default_price: float = 1000.0
    default_volume: int = 1_000_000

    @field_validator("reference_prices")
    @classmethod
    def validate_prices(cls, v: dict[str, float]) -> dict[str, float]:
        for symbol, price in v.items():
            if price <= 0:
                raise ValueError(f"Reference price for {symbol} must be positive, got {price}.")
        return {k.upper(): p for k, p in v.items()}

    @field_validator("reference_volumes")
    @classmethod
    def normalize_volume_keys(cls, v: dict[str, int]) -> dict[str, int]:
        return {k.upper(): n for k, n in v.items()}

    @field_validator("default_price")
    @classmethod
    def validate_default_price(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"default_price must be positive, got {v}.")
        return v


class AnalyticsConfig(BaseModel):
    """Location of the analytics snapshot table."""

    model_config = ConfigDict(frozen=True)

    snapshot_file: str = "config/analytics/snapshots.json"
    # When True, symbols without their own snapshot use the "DEFAULT" profile.
    use_default_snapshot: bool = True


class ScoringConfig(BaseModel):
    """Rule weight overrides, keyed by rule name."""

    model_config = ConfigDict(frozen=True)

    weights: dict[str, int] = {}

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, int]) -> dict[str, int]:
        for name, weight in v.items():
            if weight < 0:
                raise ValueError(f"Weight for rule '{name}' must be non-negative, got {weight}.")
        return v


class ProjectionConfig(BaseModel):
    """Net-score thresholds and stop-loss band for the decision projector.

    Action bands (net score ``s``):
      s >  strong_buy_above  → BUY HIGH
      s >  buy_above         → BUY MEDIUM
      s >= hold_floor        → HOLD MEDIUM
      s >= sell_floor        → SELL MEDIUM
      otherwise              → SELL HIGH
    """

    model_config = ConfigDict(frozen=True)

    strong_buy_above: int = 25
    buy_above: int = 10
    hold_floor: int = -10
    sell_floor: int = -25
    stop_loss_min_pct: float = 0.5
    stop_loss_max_pct: float = 1.5
    volatility_multiplier: float = 0.06

    @model_validator(mode="after")
    def validate_ordering(self) -> "ProjectionConfig":
        if not self.sell_floor < self.hold_floor <= self.buy_above < self.strong_buy_above:
            raise ValueError(
                "Projection thresholds must satisfy "
                "sell_floor < hold_floor <= buy_above < strong_buy_above."
            )
        if not 0 < self.stop_loss_min_pct <= self.stop_loss_max_pct:
            raise ValueError(
                "Stop-loss band must satisfy 0 < stop_loss_min_pct <= stop_loss_max_pct."
            )
        if self.volatility_multiplier <= 0:
            raise ValueError("volatility_multiplier must be positive.")
        return self


class UniverseConfig(BaseModel):
    """Default symbol list for batch commands."""

    model_config = ConfigDict(frozen=True)

    symbols: list[str] = ["RELIANCE", "HDFCBANK", "TCS", "INFY"]

    @field_validator("symbols")
    @classmethod
    def normalize_symbols(cls, v: list[str]) -> list[str]:
        return [s.strip().upper() for s in v if s.strip()]


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: Optional[str] = None
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    ``AppConfig()`` with no arguments yields the built-in defaults, which
    tests rely on.
    """

    model_config = ConfigDict(frozen=True)

    acquisition: AcquisitionConfig = AcquisitionConfig()
    providers: ProvidersConfig = ProvidersConfig()
    news: NewsConfig = NewsConfig()
    synthetic: SyntheticConfig = SyntheticConfig()
    analytics: AnalyticsConfig = AnalyticsConfig()
    scoring: ScoringConfig = ScoringConfig()
    projection: ProjectionConfig = ProjectionConfig()
    universe: UniverseConfig = UniverseConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def resolve_path(path: str | Path) -> Path:
    """Resolve a config-relative path against the project root."""
    path = Path(path)
    return path if path.is_absolute() else _find_project_root() / path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply API keys and MARKET_PULSE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply API keys and MARKET_PULSE_* env vars to the raw config dict.

    Supported overrides:
      ALPHA_VANTAGE_API_KEY       → raw["providers"]["alpha_vantage_api_key"]
      TWELVE_DATA_API_KEY         → raw["providers"]["twelve_data_api_key"]
      NEWSAPI_API_KEY             → raw["providers"]["newsapi_api_key"]
      MARKET_PULSE_LOG_LEVEL      → raw["logging"]["level"]
      MARKET_PULSE_QUOTE_TTL      → raw["acquisition"]["quote_ttl_seconds"]
      MARKET_PULSE_NEWS_TTL       → raw["acquisition"]["news_ttl_seconds"]
      MARKET_PULSE_DEBUG          → raw["debug"]
    """
    for env_var, field in _API_KEY_ENV_VARS.items():
        if key := os.environ.get(env_var):
            raw.setdefault("providers", {})[field] = key

    if log_level := os.environ.get("MARKET_PULSE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if quote_ttl := os.environ.get("MARKET_PULSE_QUOTE_TTL"):
        raw.setdefault("acquisition", {})["quote_ttl_seconds"] = float(quote_ttl)

    if news_ttl := os.environ.get("MARKET_PULSE_NEWS_TTL"):
        raw.setdefault("acquisition", {})["news_ttl_seconds"] = float(news_ttl)

    if debug := os.environ.get("MARKET_PULSE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        acquisition=AcquisitionConfig(**raw.get("acquisition", {})),
        providers=ProvidersConfig(**raw.get("providers", {})),
        news=NewsConfig(**raw.get("news", {})),
        synthetic=SyntheticConfig(**raw.get("synthetic", {})),
        analytics=AnalyticsConfig(**raw.get("analytics", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        projection=ProjectionConfig(**raw.get("projection", {})),
        universe=UniverseConfig(**raw.get("universe", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
