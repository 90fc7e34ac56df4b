"""Error envelopes for the dispatch pipeline.

Request-time failures never escape the dispatcher. They are mapped to
fixed envelopes here, and the details that must not reach the caller
go to the ``wren.server`` log instead.
"""

import logging

from wren.http.request import Request
from wren.http.response import Envelope

logger = logging.getLogger("wren.server")

NOT_FOUND_BODY = {"error": "Not Found"}
INTERNAL_ERROR = "Internal Server Error"


def not_found() -> Envelope:
    """404 envelope for a request no route accepts."""
    return Envelope(status=404, headers={}, body=dict(NOT_FOUND_BODY))


def handle_internal_error(exc: Exception, request: Request) -> Envelope:
    """Log a handler failure and return the fixed 500 envelope.

    Only the exception message reaches the caller; the traceback is
    logged.
    """
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)
    return Envelope(
        status=500,
        headers={},
        body={"error": INTERNAL_ERROR, "message": str(exc)},
    )
