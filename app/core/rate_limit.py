# app/core/rate_limit.py
"""
In-memory token bucket limiter used to throttle login attempts.

One bucket per key (client IP). Each attempt consumes a token; tokens
refill at `per_minute / 60` per second up to `burst`. State lives in the
process, so each worker throttles independently.
"""
import logging
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)

STALE_BUCKET_SECONDS = 300.0


@dataclass
class TokenBucket:
    tokens: float
    last_refill: float
    max_tokens: float
    refill_rate: float  # tokens per second

    def consume(self, now: float) -> Tuple[bool, float]:
        """Returns (allowed, retry_after_seconds)."""
        elapsed = now - self.last_refill
        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True, 0.0
        return False, (1.0 - self.tokens) / self.refill_rate


@dataclass
class RateLimiter:
    per_minute: int = 10
    burst: int = 5
    clock: Callable[[], float] = field(default=time.monotonic)
    _buckets: Dict[str, TokenBucket] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)
    _last_cleanup: float = 0.0

    def __post_init__(self):
        self._last_cleanup = self.clock()

    @property
    def enabled(self) -> bool:
        return self.per_minute > 0

    def check(self, key: str) -> Tuple[bool, float]:
        if not self.enabled:
            return True, 0.0

        now = self.clock()
        with self._lock:
            if now - self._last_cleanup > 60.0:
                self._cleanup(now)
                self._last_cleanup = now

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(
                    tokens=float(self.burst),
                    last_refill=now,
                    max_tokens=float(self.burst),
                    refill_rate=self.per_minute / 60.0,
                )
                self._buckets[key] = bucket
            allowed, retry_after = bucket.consume(now)

        if not allowed:
            logger.warning("Rate limit exceeded for %s, retry in %.1fs", key, retry_after)
        return allowed, retry_after

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def _cleanup(self, now: float) -> None:
        stale = [k for k, b in self._buckets.items() if now - b.last_refill > STALE_BUCKET_SECONDS]
        for k in stale:
            del self._buckets[k]
