"""Simple in-memory sliding-window rate limiter.

State lives in the process that created the limiter; running several API
processes multiplies the effective limit by the number of processes.
"""

import math
import time
from collections import defaultdict
from collections.abc import Callable
from threading import Lock

from fastapi import HTTPException, Request

from scoopops.core.config import settings


class RateLimiter:
    """In-memory sliding-window rate limiter keyed by an arbitrary string.

    Tracks request timestamps in a rolling window and rejects calls that
    exceed the configured limit. Expired timestamps are only dropped when the
    same key is seen again.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def _prune(self, key: str, now: float) -> list[float]:
        cutoff = now - self.window_seconds
        timestamps = [t for t in self._requests[key] if t > cutoff]
        self._requests[key] = timestamps
        return timestamps

    def is_allowed(self, key: str) -> bool:
        """Return True if the request is within the rate limit, False otherwise."""
        now = time.monotonic()

        with self._lock:
            timestamps = self._prune(key, now)

            if len(timestamps) >= self.max_requests:
                return False

            timestamps.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest counted request leaves the window (0 if not limited)."""
        now = time.monotonic()

        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) < self.max_requests:
                return 0
            oldest = timestamps[0]
            return max(1, math.ceil(oldest + self.window_seconds - now))

    def remaining(self, key: str) -> int:
        """Number of requests still allowed for ``key`` in the current window."""
        now = time.monotonic()
        with self._lock:
            return max(0, self.max_requests - len(self._prune(key, now)))

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()


login_rate_limiter = RateLimiter(
    settings.RATE_LIMIT_LOGIN_REQUESTS, settings.RATE_LIMIT_LOGIN_WINDOW
)
refresh_rate_limiter = RateLimiter(
    settings.RATE_LIMIT_REFRESH_REQUESTS, settings.RATE_LIMIT_REFRESH_WINDOW
)
signup_rate_limiter = RateLimiter(
    settings.RATE_LIMIT_SIGNUP_REQUESTS, settings.RATE_LIMIT_SIGNUP_WINDOW
)
default_rate_limiter = RateLimiter(
    settings.RATE_LIMIT_DEFAULT_REQUESTS, settings.RATE_LIMIT_DEFAULT_WINDOW
)


def get_client_ip(request: Request) -> str:
    """Best-effort client address: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(limiter: RateLimiter, scope: str) -> Callable[[Request], None]:
    """Build a FastAPI dependency that enforces ``limiter`` per client IP."""

    def dependency(request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        key = f"{scope}:{get_client_ip(request)}"
        if not limiter.is_allowed(key):
            retry_after = limiter.retry_after(key)
            raise HTTPException(
                status_code=429,
                detail="Too many requests",
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limiter.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return dependency
