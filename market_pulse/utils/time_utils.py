"""
Time utilities for caching and deadline-bounded acquisition.

Two clocks are used across the package:
  - Wall clock (``utcnow``) — timezone-aware UTC timestamps stamped on quotes,
    news batches and recommendations.
  - Monotonic clock (``monotonic``) — seconds from an arbitrary origin, used
    for TTL expiry and request deadlines. It never jumps with system clock
    adjustments.

A *deadline* is an absolute monotonic instant in seconds. ``None`` means no
deadline.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], float]


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def monotonic() -> float:
    """Return monotonic seconds; the default clock for caches and deadlines."""
    return time.monotonic()


def deadline_after(
    timeout_s: Optional[float],
    clock: Clock = monotonic,
) -> Optional[float]:
    """Convert a relative timeout into an absolute deadline.

    Args:
        timeout_s: Seconds from now, or ``None`` for no deadline.
        clock: Monotonic clock to anchor the deadline to.

    Returns:
        Absolute deadline in clock seconds, or ``None``.

    Raises:
        ValueError: If ``timeout_s`` is negative.
    """
    if timeout_s is None:
        return None
    if timeout_s < 0:
        raise ValueError(f"timeout_s must be non-negative, got {timeout_s}.")
    return clock() + timeout_s


def remaining(
    deadline: Optional[float],
    clock: Clock = monotonic,
) -> Optional[float]:
    """Return seconds left before ``deadline`` (never negative), or ``None``."""
    if deadline is None:
        return None
    return max(0.0, deadline - clock())


def expired(deadline: Optional[float], clock: Clock = monotonic) -> bool:
    """``True`` if ``deadline`` is set and has passed."""
    return deadline is not None and clock() >= deadline
