"""Middleware chain composition.

The dispatcher knows nothing about middleware. Transports call the
composed pipeline instead, which runs each middleware outermost-first
and ends at ``Dispatcher.handle``.
"""

from collections.abc import Callable, Sequence
from typing import Any

from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next


def build_pipeline(dispatch: Next, middleware: Sequence[Callable[..., Any]]) -> Next:
    """Wrap *dispatch* in *middleware*; the first entry runs first."""
    handler = dispatch
    for mw in reversed(middleware):
        outer = handler
        mw_ref = mw

        async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> Envelope:
            return await _mw(req, _next)

        handler = make_next

    return handler
