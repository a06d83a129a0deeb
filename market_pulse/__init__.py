"""
Market Pulse — resilient quote/news acquisition and analytics-driven trade
recommendations.

Top-level layout:
  - ``providers``        — upstream quote and news adapters.
  - ``acquisition``      — TTL cache, fallback chains and the acquisition service.
  - ``analytics``        — per-symbol analytics snapshot store.
  - ``recommendations``  — scoring rules, scoring engine and decision projector.
"""

__version__ = "0.1.0"
