"""Sliding-window rate limiting middleware.

Keeps the timestamps of recent requests per client and refuses a request
once a client already has ``requests`` of them inside the last
``window_seconds``. State is in memory and local to one middleware
instance.
"""

import math
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for the sliding-window limiter."""

    requests: int = 100
    window_seconds: float = 60.0
    key_header: str | None = None

    def __post_init__(self) -> None:
        if self.requests < 1:
            msg = f"RateLimitConfig.requests must be at least 1, got {self.requests}"
            raise ConfigurationError(msg)
        if self.window_seconds <= 0:
            msg = f"RateLimitConfig.window_seconds must be positive, got {self.window_seconds}"
            raise ConfigurationError(msg)


class RateLimitMiddleware:
    """In-memory sliding-window limiter keyed by client identity.

    The identity is the value of ``key_header`` when configured and
    present, else ``request.client``, else ``"unknown"``.
    """

    __slots__ = ("_clock", "_config", "_hits", "_last_sweep")

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep: float | None = None

    def _identity_key(self, request: Request) -> str:
        header_name = self._config.key_header
        if header_name:
            raw = request.headers.get(header_name)
            if raw:
                # Standard comma-separated proxy chain, first hop is the client.
                forwarded = raw.split(",")[0].strip()
                if forwarded:
                    return forwarded
        return request.client or "unknown"

    def _sweep(self, now: float) -> None:
        """Forget clients with no request inside the window."""
        window = self._config.window_seconds
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= window]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def _check_and_update(self, key: str, now: float) -> tuple[bool, int]:
        cfg = self._config
        hits = self._hits.setdefault(key, deque())
        while hits and now - hits[0] >= cfg.window_seconds:
            hits.popleft()

        if len(hits) >= cfg.requests:
            retry_after = max(1, math.ceil(cfg.window_seconds - (now - hits[0])))
            return False, retry_after

        hits.append(now)
        return True, 0

    async def __call__(self, request: Request, next: Next) -> Envelope:
        now = self._clock()
        if self._last_sweep is None or now - self._last_sweep >= self._config.window_seconds:
            self._sweep(now)
        key = self._identity_key(request)
        allowed, retry_after = self._check_and_update(key, now)
        if not allowed:
            return Envelope.json(
                {"error": "Too Many Requests"},
                status=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await next(request)
