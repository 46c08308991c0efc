"""Per-client sliding-window rate limiting for API routes."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Deque

from fastapi import Request, Response

from app.core.config import settings
from app.core.exceptions import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitPolicy:
    scope: str
    limit: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0


def policy_for(scope: str) -> RateLimitPolicy:
    # Import uploads parse and write whole exports, so they get a much smaller budget.
    limit = settings.RATE_LIMIT_IMPORT_MAX_REQUESTS if scope == "import" else settings.RATE_LIMIT_MAX_REQUESTS
    return RateLimitPolicy(scope=scope, limit=limit, window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS)


class SlidingWindowLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, Deque[float]] = {}
        self._lock = Lock()

    def check(self, key: str, policy: RateLimitPolicy) -> RateLimitDecision:
        if policy.limit <= 0:
            return RateLimitDecision(allowed=True, remaining=0)
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - policy.window_seconds:
                hits.popleft()
            if len(hits) >= policy.limit:
                retry_after = max(int(hits[0] + policy.window_seconds - now), 1)
                return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
            hits.append(now)
            return RateLimitDecision(allowed=True, remaining=policy.limit - len(hits))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


_limiter = SlidingWindowLimiter()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


def rate_limit(scope: str = "default"):
    def _dependency(request: Request, response: Response) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        policy = policy_for(scope)
        decision = _limiter.check(f"{scope}:{client_address(request)}", policy)
        response.headers["X-RateLimit-Limit"] = str(policy.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Window"] = str(policy.window_seconds)
        if not decision.allowed:
            raise RateLimitExceeded(
                retry_after=decision.retry_after,
                limit=policy.limit,
                window_seconds=policy.window_seconds,
            )

    return _dependency
