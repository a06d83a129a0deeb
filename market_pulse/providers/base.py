"""
Provider adapter contract and shared HTTP/parse helpers.

A provider adapter wraps exactly one upstream source and turns a request
(a ticker for quotes, a topic for news) into a typed record. Adapters do no
caching, no retries and no fallback — that is the job of
``market_pulse.acquisition.fallback.FallbackChain``.

Failure contract: an adapter either returns a fully populated record or
raises. Expected failure types:
  - ``ProviderError``          — transient/network/rate-limit/missing key.
  - ``ProviderResponseError``  — payload arrived but is malformed or is
                                 missing a required field (fail closed).
  - ``httpx.HTTPError``        — transport errors and non-2xx responses.

Every adapter accepts an optional ``httpx.Client``. Tests inject a client
built on ``httpx.MockTransport``; production code passes ``None`` and the
module-level ``httpx.get`` is used.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Mapping, Optional, TypeVar

import httpx

from market_pulse.models.news import NewsBatch
from market_pulse.models.quote import Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderError(RuntimeError):
    """Upstream source unavailable, rate limited or not configured."""


class ProviderResponseError(ProviderError):
    """Upstream payload is malformed or missing a required field."""


# ── Parse helpers ─────────────────────────────────────────────────────────────


def require(data: Mapping[str, Any], key: str, provider: str) -> Any:
    """Return ``data[key]``, raising ``ProviderResponseError`` if absent/null.

    ``data`` itself may be any decoded JSON value; a non-object fails the
    same way a missing key does.
    """
    if not isinstance(data, Mapping):
        raise ProviderResponseError(
            f"{provider}: expected an object holding '{key}', got {type(data).__name__}."
        )
    value = data.get(key)
    if value is None or value == "":
        raise ProviderResponseError(f"{provider}: required field '{key}' missing.")
    return value


def require_object(data: Mapping[str, Any], key: str, provider: str) -> Mapping[str, Any]:
    """Return ``data[key]`` when it is a JSON object."""
    value = require(data, key, provider)
    if not isinstance(value, Mapping):
        raise ProviderResponseError(
            f"{provider}: field '{key}' is not an object: {type(value).__name__}."
        )
    return value


def to_float(value: Any, field: str, provider: str) -> float:
    """Parse a numeric field that may arrive as a string (``"12.5%"`` allowed)."""
    try:
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ProviderResponseError(
            f"{provider}: field '{field}' is not numeric: {value!r}"
        ) from exc


def to_int(value: Any, field: str, provider: str) -> int:
    return int(to_float(value, field, provider))


# ── Adapter base classes ──────────────────────────────────────────────────────


class Provider(ABC, Generic[T]):
    """One upstream source behind a uniform ``fetch(request, timeout)`` call.

    Args:
        timeout_s: Upper bound for a single fetch, in seconds. The fallback
            chain may pass a smaller value when a deadline is near.
        client: Optional ``httpx.Client`` (injected in tests).
    """

    name: ClassVar[str] = "provider"

    def __init__(
        self,
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s}.")
        self.timeout_s = timeout_s
        self._client = client

    @abstractmethod
    def fetch(self, request: str, timeout: float) -> T:
        """Fetch one record for ``request`` within ``timeout`` seconds."""
        raise NotImplementedError

    def _get(
        self,
        url: str,
        *,
        timeout: float,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        """Issue a GET and raise ``httpx.HTTPStatusError`` on non-2xx."""
        if self._client is not None:
            resp = self._client.get(url, params=params, headers=headers, timeout=timeout)
        else:
            resp = httpx.get(url, params=params, headers=headers, timeout=timeout)
        resp.raise_for_status()
        return resp

    def _get_json(self, url: str, **kwargs: Any) -> dict[str, Any]:
        resp = self._get(url, **kwargs)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderResponseError(f"{self.name}: response is not JSON.") from exc
        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"{self.name}: expected a JSON object, got {type(data).__name__}."
            )
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, timeout_s={self.timeout_s})"


class QuoteProvider(Provider[Quote]):
    """Adapter returning a live ``Quote`` for a canonical ticker."""

    def __init__(
        self,
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
        market_suffix: str = ".NS",
    ) -> None:
        super().__init__(timeout_s=timeout_s, client=client)
        self.market_suffix = market_suffix

    def upstream_symbol(self, symbol: str) -> str:
        """Map a canonical ticker to the exchange-qualified upstream symbol."""
        symbol = symbol.strip().upper()
        if self.market_suffix and not symbol.endswith(self.market_suffix):
            return f"{symbol}{self.market_suffix}"
        return symbol


class NewsProvider(Provider[NewsBatch]):
    """Adapter returning a ``NewsBatch`` for a topic (``"MARKET"`` or a ticker)."""
