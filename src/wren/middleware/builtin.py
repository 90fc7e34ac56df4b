"""Built-in middleware: CORS.

Adds a fixed set of CORS headers to every envelope and answers
preflight ``OPTIONS`` requests directly with an empty 204.
"""

from dataclasses import dataclass

from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    The defaults are permissive: any origin, the common REST methods,
    and the two headers API clients send most. Narrow what you need::

        CORSConfig(allow_origin="https://example.com", max_age=600)
    """

    allow_origin: str = "*"
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    max_age: int = 86400  # 24 hours


class CORSMiddleware:
    """Fixed-header CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (returns 204 with CORS headers, no handler runs)
    - Every other request (adds CORS headers to the envelope)

    Usage::

        app.add_middleware(CORSMiddleware(CORSConfig(allow_origin="https://example.com")))
    """

    __slots__ = ("_headers", "config")

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()
        self._headers = cors_headers(self.config)

    async def __call__(self, request: Request, next: Next) -> Envelope:
        """Process the request with CORS handling."""
        if request.method.upper() == "OPTIONS":
            return Envelope(status=204, headers=dict(self._headers))

        envelope = await next(request)
        return envelope.with_headers(self._headers)


def cors_headers(config: CORSConfig | None = None) -> dict[str, str]:
    """Return the CORS header set for *config*."""
    cfg = config or CORSConfig()
    return {
        "Access-Control-Allow-Origin": cfg.allow_origin,
        "Access-Control-Allow-Methods": ", ".join(cfg.allow_methods),
        "Access-Control-Allow-Headers": ", ".join(cfg.allow_headers),
        "Access-Control-Max-Age": str(cfg.max_age),
    }
