"""JSON body parsing middleware.

Transports often deliver bodies as raw text. This middleware decodes a
``str`` or ``bytes`` body as JSON before the handler runs, so handlers
always see structured data. Bodies that are already structured pass
through untouched.
"""

import json

from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next


class JSONBodyMiddleware:
    """Decode textual JSON bodies; reject malformed ones with a 400.

    Usage::

        app.add_middleware(JSONBodyMiddleware())
    """

    __slots__ = ()

    async def __call__(self, request: Request, next: Next) -> Envelope:
        body = request.body
        if not body or not isinstance(body, (str, bytes, bytearray)):
            return await next(request)

        try:
            parsed = json.loads(body)
        except ValueError:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
            return Envelope.json({"error": "Invalid JSON"}, status=400)

        return await next(request.with_body(parsed))
