"""
Upstream provider adapters.

Quote sources: Yahoo Finance (no key), Alpha Vantage, Twelve Data.
News sources:  aggregated RSS feeds (no key), NewsAPI.

Adapters fetch and parse only; caching and fallback live in
``market_pulse.acquisition``.
"""
