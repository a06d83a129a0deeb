"""
Ordered provider fallback with a deterministic synthetic last resort.

``FallbackChain.resolve(request, deadline)``:
  1. Try each provider once, in configured order. Each attempt gets
     ``min(provider.timeout_s, time left before deadline)`` seconds.
  2. The first structurally valid result is re-tagged
     ``source=<provider name>, synthetic=False`` and returned.
  3. Recoverable failures (see ``RECOVERABLE_ERRORS``) and results rejected
     by the validator are logged at WARNING and the next provider is tried.
  4. When every provider has failed, or the deadline has passed, the
     synthesizer's result is returned tagged ``source="fallback",
     synthetic=True``.

``resolve`` never raises for provider failures. Programming errors (anything
outside ``RECOVERABLE_ERRORS``) still propagate.

Diagnostics:
  - ``last_attempts`` — per-thread list of ``ChainAttempt`` for the most
    recent resolution on the calling thread.
  - ``stats()``       — cumulative per-provider success/failure counters.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar

import httpx
from pydantic import ValidationError

from market_pulse.providers.base import Provider, ProviderError
from market_pulse.utils.time_utils import Clock, monotonic

logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "fallback"

RECOVERABLE_ERRORS: tuple[type[BaseException], ...] = (
    ProviderError,
    httpx.HTTPError,
    ValidationError,
    KeyError,
    TypeError,
    ValueError,
)


class _Taggable(Protocol):
    def tagged(self, source: str, synthetic: bool) -> "_Taggable": ...


T = TypeVar("T", bound=_Taggable)


@dataclass(frozen=True)
class ChainAttempt:
    """Outcome of one provider attempt within a resolution.

    ``outcome`` is one of ``"success"``, ``"error"``, ``"invalid"`` or
    ``"skipped"`` (deadline already passed).
    """

    provider: str
    outcome: str
    error: Optional[str] = None
    duration_ms: float = 0.0


class FallbackChain(Generic[T]):
    """Resolve a request against providers in priority order.

    Args:
        providers: Providers in priority order; each is tried at most once
            per resolution.
        synthesizer: ``request -> T`` deterministic placeholder builder.
        validator: Optional extra structural check; a result for which it
            returns ``False`` counts as a failed attempt.
        clock: Monotonic clock, shared with the deadline.
        label: Capability name used in log lines (``"quote"``, ``"news"``).
    """

    def __init__(
        self,
        providers: Sequence[Provider[T]],
        synthesizer: Callable[[str], T],
        validator: Optional[Callable[[T], bool]] = None,
        clock: Clock = monotonic,
        label: str = "record",
    ) -> None:
        self._providers = list(providers)
        self._synthesizer = synthesizer
        self._validator = validator
        self._clock = clock
        self.label = label
        self._local = threading.local()
        self._stats_lock = threading.Lock()
        self._stats: dict[str, dict[str, int]] = {
            p.name: {"success": 0, "failure": 0} for p in self._providers
        }
        self._stats[FALLBACK_SOURCE] = {"success": 0, "failure": 0}

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    @property
    def last_attempts(self) -> list[ChainAttempt]:
        """Attempts made by the most recent ``resolve`` on this thread."""
        return list(getattr(self._local, "attempts", []))

    def stats(self) -> dict[str, dict[str, int]]:
        """Cumulative success/failure counts per provider (plus ``fallback``)."""
        with self._stats_lock:
            return {name: dict(counts) for name, counts in self._stats.items()}

    def _count(self, provider: str, key: str) -> None:
        with self._stats_lock:
            self._stats.setdefault(provider, {"success": 0, "failure": 0})[key] += 1

    def resolve(self, request: str, deadline: Optional[float] = None) -> T:
        """Return the first valid provider result, or a synthetic one."""
        attempts: list[ChainAttempt] = []
        self._local.attempts = attempts

        for provider in self._providers:
            now = self._clock()
            if deadline is not None and now >= deadline:
                attempts.append(ChainAttempt(provider.name, "skipped", "deadline passed"))
                continue

            timeout = provider.timeout_s
            if deadline is not None:
                timeout = min(timeout, deadline - now)

            started = self._clock()
            try:
                result = provider.fetch(request, timeout=timeout)
            except RECOVERABLE_ERRORS as exc:
                elapsed_ms = (self._clock() - started) * 1000.0
                attempts.append(
                    ChainAttempt(provider.name, "error", f"{type(exc).__name__}: {exc}", elapsed_ms)
                )
                self._count(provider.name, "failure")
                logger.warning(
                    "%s provider %s failed for %s: %s",
                    self.label, provider.name, request, exc,
                    extra={"provider": provider.name, "request": request},
                )
                continue

            elapsed_ms = (self._clock() - started) * 1000.0
            if self._validator is not None and not self._validator(result):
                attempts.append(
                    ChainAttempt(provider.name, "invalid", "rejected by validator", elapsed_ms)
                )
                self._count(provider.name, "failure")
                logger.warning(
                    "%s provider %s returned an invalid result for %s",
                    self.label, provider.name, request,
                    extra={"provider": provider.name, "request": request},
                )
                continue

            attempts.append(ChainAttempt(provider.name, "success", None, elapsed_ms))
            self._count(provider.name, "success")
            return result.tagged(source=provider.name, synthetic=False)

        self._count(FALLBACK_SOURCE, "success")
        logger.warning(
            "All %s providers failed for %s; serving synthetic fallback",
            self.label, request,
            extra={"provider": FALLBACK_SOURCE, "request": request},
        )
        return self._synthesizer(request).tagged(source=FALLBACK_SOURCE, synthetic=True)
