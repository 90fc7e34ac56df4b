"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Envelope

Built-in middleware:
    AccessLogMiddleware -- Request/response logging on ``wren.access``
    CORSMiddleware -- Fixed CORS headers, 204 for preflight
    JSONBodyMiddleware -- Decode textual JSON bodies, 400 on malformed input
    RateLimitMiddleware -- Sliding-window per-client limiting, 429 when exceeded
"""

from wren.middleware.access_log import AccessLogMiddleware
from wren.middleware.body import JSONBodyMiddleware
from wren.middleware.builtin import CORSConfig, CORSMiddleware, cors_headers
from wren.middleware.protocol import Middleware, Next
from wren.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware

__all__ = [
    "AccessLogMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "JSONBodyMiddleware",
    "Middleware",
    "Next",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "cors_headers",
]
