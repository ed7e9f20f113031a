"""
Fixed-window rate limiting for the login endpoints.

Uses Redis when RATE_LIMIT_REDIS_URL is set so every worker process shares
the same counters. Without Redis, or while it is unreachable, counters live
in this process.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import redis

from ..errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Seconds between sweeps of idle in-process buckets
SWEEP_INTERVAL = 60


@dataclass
class RateLimitStatus:
    limit: int
    remaining: int
    reset: int  # Unix timestamp when the window resets

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class RateLimiter:
    """Counts requests per (bucket, identifier) and rejects those over the limit."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._client = client
        # key -> (window_seconds, request timestamps)
        self._fallback_buckets: Dict[str, Tuple[int, List[float]]] = {}
        self._last_sweep = time.monotonic()
        self._lock = threading.Lock()

    def _get_client(self) -> Optional[redis.Redis]:
        if self._client is None and self.redis_url:
            self._client = redis.Redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=0.5,
                socket_timeout=0.5,
            )
        return self._client

    def enforce(self, bucket: str, identifier: str, limit: int, window_seconds: int) -> RateLimitStatus:
        """
        Count one request.

        Returns:
            RateLimitStatus after counting this request

        Raises:
            RateLimitExceeded: limit reached for the current window
        """
        key = f"rl:{bucket}:{identifier}"
        client = self._get_client()

        if client is not None:
            try:
                # SET NX EX opens the window with its expiry; MULTI makes the
                # open, the count and the TTL read one atomic step
                pipe = client.pipeline(transaction=True)
                pipe.set(key, 0, ex=window_seconds, nx=True)
                pipe.incr(key)
                pipe.ttl(key)
                _, count, ttl = pipe.execute()
                reset = int(time.time()) + (ttl if ttl and ttl > 0 else window_seconds)
                return self._check(count, limit, reset)
            except redis.RedisError as e:
                logger.warning(f"Rate limit Redis fallback engaged: {e.__class__.__name__}")

        return self._enforce_local(key, limit, window_seconds)

    def _enforce_local(self, key: str, limit: int, window_seconds: int) -> RateLimitStatus:
        now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            self._sweep(now)
            _, timestamps = self._fallback_buckets.setdefault(key, (window_seconds, []))
            while timestamps and timestamps[0] < cutoff:
                timestamps.pop(0)
            oldest = timestamps[0] if timestamps else now
            reset = int(time.time() + (oldest + window_seconds - now))
            if len(timestamps) >= limit:
                raise RateLimitExceeded(limit=limit, remaining=0, reset=reset)
            timestamps.append(now)
            return RateLimitStatus(limit=limit, remaining=limit - len(timestamps), reset=reset)

    def _sweep(self, now: float) -> None:
        """Drop buckets whose newest request is older than their window. Caller holds the lock."""
        if now - self._last_sweep < SWEEP_INTERVAL:
            return
        self._last_sweep = now
        idle = [
            key for key, (window, timestamps) in self._fallback_buckets.items()
            if not timestamps or timestamps[-1] < now - window
        ]
        for key in idle:
            del self._fallback_buckets[key]

    @staticmethod
    def _check(count: int, limit: int, reset: int) -> RateLimitStatus:
        if count > limit:
            raise RateLimitExceeded(limit=limit, remaining=0, reset=reset)
        return RateLimitStatus(limit=limit, remaining=limit - count, reset=reset)

    def reset(self) -> None:
        """Forget in-process counters."""
        with self._lock:
            self._fallback_buckets.clear()
