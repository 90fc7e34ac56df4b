"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Envelope: ...

No base class required. The framework checks the shape, not the lineage.

Middleware may return early with its own Envelope (short-circuit), pass
a modified copy of the request on, or adjust the envelope that comes
back with the chainable ``.with_*()`` methods.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from wren.http.request import Request
from wren.http.response import Envelope

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Envelope]]


class Middleware(Protocol):
    """Protocol for wren middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Envelope:
            start = time.monotonic()
            envelope = await next(request)
            elapsed = time.monotonic() - start
            return envelope.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class Blocker:
            async def __call__(self, request: Request, next: Next) -> Envelope:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Envelope: ...
