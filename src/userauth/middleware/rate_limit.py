"""Rate limiting middleware — in-memory token buckets.

Learn: Each client IP gets a token bucket per bucket type. A bucket
holds `rpm` tokens and refills at rpm/60 tokens per second; every
request spends one. Login and registration get a stricter bucket
(10/min by default) to slow down password guessing.

State lives in this process only. Behind several workers each one
counts separately, which is acceptable for a single-instance service.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

_AUTH_ROUTES = {("POST", "/api/auth"), ("POST", "/api/users")}


@dataclass
class TokenBucket:
    """Token bucket for a single client."""

    tokens: float
    last_refill: float
    capacity: float
    refill_rate: float  # tokens per second

    def consume(self, now: float) -> tuple[bool, float]:
        """Try to spend one token.

        Returns (allowed, retry_after_seconds).
        """
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True, 0.0
        return False, (1.0 - self.tokens) / self.refill_rate


class RateLimiter:
    """Per-key token buckets guarded by a lock.

    Buckets idle longer than `stale_after` seconds have refilled to
    capacity and are dropped by a sweep that runs at most once every
    `cleanup_interval` seconds.
    """

    def __init__(
        self,
        rpm: int,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: float = 60.0,
        stale_after: float = 300.0,
    ):
        self.rpm = rpm
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()
        self._cleanup_interval = cleanup_interval
        self._stale_after = stale_after
        self._last_cleanup = clock()

    def check(self, key: str) -> tuple[bool, float, int]:
        """Returns (allowed, retry_after_seconds, remaining)."""
        now = self._clock()
        with self._lock:
            if now - self._last_cleanup >= self._cleanup_interval:
                self._cleanup_stale_buckets(now)
                self._last_cleanup = now

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(
                    tokens=float(self.rpm),
                    last_refill=now,
                    capacity=float(self.rpm),
                    refill_rate=self.rpm / 60.0,
                )
                self._buckets[key] = bucket
            allowed, retry_after = bucket.consume(now)
            return allowed, retry_after, int(bucket.tokens)

    def _cleanup_stale_buckets(self, now: float) -> None:
        stale = [
            key for key, bucket in self._buckets.items()
            if now - bucket.last_refill > self._stale_after
        ]
        for key in stale:
            del self._buckets[key]
        if stale:
            logger.debug(
                "ratelimit.cleanup", evicted=len(stale), remaining=len(self._buckets)
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory rate limiting per IP."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default = RateLimiter(default_rpm)
        self.auth = RateLimiter(auth_rpm)

    async def dispatch(self, request: Request, call_next) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        is_auth = (request.method, request.url.path.rstrip("/")) in _AUTH_ROUTES
        limiter = self.auth if is_auth else self.default

        allowed, retry_after, remaining = limiter.check(client_ip)
        if not allowed:
            logger.warning(
                "ratelimit.exceeded",
                client_ip=client_ip,
                bucket="auth" if is_auth else "api",
            )
            return JSONResponse(
                status_code=429,
                content={"msg": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(max(1, int(retry_after + 0.999)))},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.rpm)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
