"""Access log middleware.

Logs each request on the way in and its status and duration on the way
out, on the ``wren.access`` logger.
"""

import logging
import time

from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next

logger = logging.getLogger("wren.access")


class AccessLogMiddleware:
    __slots__ = ("level",)

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    async def __call__(self, request: Request, next: Next) -> Envelope:
        start = time.monotonic()
        logger.log(self.level, "[%s] %s", request.method, request.path)

        envelope = await next(request)

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.log(
            self.level,
            "[%s] %s - %d (%.0fms)",
            request.method,
            request.path,
            envelope.status,
            elapsed_ms,
        )
        return envelope
