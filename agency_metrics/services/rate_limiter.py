"""
Fixed-window request limiter protecting the scan and export triggers.

Algorithm (per key):
    - no entry, or entry expired (expires_at <= now): start a fresh window
      {count: 1, expires_at: now + window_ms} and allow
    - count >= limit: deny, retryAfter = expires_at - now
    - otherwise: increment, allow, remaining = limit - count

Windows are independent per key and are not smoothed: a burst straddling a
window boundary can be admitted up to 2 x limit times. That coarseness is a
property of the fixed-window algorithm and is kept as is.

Keys combine the caller identifier with the action being limited, see
get_rate_limit_identifier().

Expired windows are swept from the map at most once per window length, on
the next check after the previous sweep, so idle keys do not accumulate.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from agency_metrics.models import RateLimitResult


logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS: int = 60_000
DEFAULT_MAX_REQUESTS: int = 30


def _wall_clock_ms() -> float:
    return time.time() * 1000


@dataclass
class RateLimitEntry:
    """
    Counter for one key's current window.

    Attributes:
        count: Requests admitted in the current window.
        expires_at: Epoch milliseconds at which the window ends.
    """
    count: int
    expires_at: float


def get_rate_limit_identifier(ip: Optional[str], extra_key: Optional[str] = None) -> str:
    """
    Build a limiter key from the caller address and an optional action.

    >>> get_rate_limit_identifier(" 10.0.0.1 ", "alerts-scan")
    '10.0.0.1:alerts-scan'
    >>> get_rate_limit_identifier(None)
    'unknown'
    """
    base = (ip or "").strip() or "unknown"
    return f"{base}:{extra_key}" if extra_key else base


class RateLimiter:
    """
    Process-wide fixed-window counters, one entry per key, mutex-guarded.
    """

    def __init__(
        self,
        default_limit: int = DEFAULT_MAX_REQUESTS,
        default_window_ms: int = DEFAULT_WINDOW_MS,
        clock: Callable[[], float] = _wall_clock_ms,
    ) -> None:
        self.default_limit = default_limit
        self.default_window_ms = default_window_ms
        self._clock = clock
        self._buckets: Dict[str, RateLimitEntry] = {}
        self._next_sweep_at: float = 0.0
        self._lock = threading.Lock()

    def check_rate_limit(
        self,
        identifier: str,
        limit: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> RateLimitResult:
        """
        Count one request for `identifier` and decide whether it is admitted.

        Returns:
            RateLimitResult; a denial is a value with allowed=False and
            retryAfter in milliseconds, never an exception.
        """
        limit = self.default_limit if limit is None else limit
        window_ms = self.default_window_ms if window_ms is None else window_ms

        with self._lock:
            now = self._clock()
            if now >= self._next_sweep_at:
                self._drop_expired(now)
                self._next_sweep_at = now + window_ms
            current = self._buckets.get(identifier)

            if current is None or current.expires_at <= now:
                self._buckets[identifier] = RateLimitEntry(count=1, expires_at=now + window_ms)
                return RateLimitResult(allowed=True, remaining=max(0, limit - 1))

            if current.count >= limit:
                retry_after = max(0, math.ceil(current.expires_at - now))
                logger.warning(
                    "Rate limit exceeded for %s (%d/%d), retry in %d ms",
                    identifier, current.count, limit, retry_after,
                )
                return RateLimitResult(allowed=False, remaining=0, retryAfter=retry_after)

            current.count += 1
            return RateLimitResult(allowed=True, remaining=max(0, limit - current.count))

    def purge_expired(self) -> int:
        """Drop entries whose window has ended. Returns how many were dropped."""
        with self._lock:
            return self._drop_expired(self._clock())

    def _drop_expired(self, now: float) -> int:
        expired = [key for key, entry in self._buckets.items() if entry.expires_at <= now]
        for key in expired:
            del self._buckets[key]
        if expired:
            logger.debug("Dropped %d expired rate limit windows", len(expired))
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)
