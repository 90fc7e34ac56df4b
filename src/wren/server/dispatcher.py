"""Request dispatch — route, invoke, and normalize to an envelope.

The dispatcher is the single entry point transports call. It resolves
the request against its router, hands the handler a request view and a
fresh response builder, and turns the outcome into an ``Envelope``.

Guarantees:
    - ``handle()`` always returns an Envelope; handler failures become 500s.
    - A failing handler's partial writes to the builder are discarded.
    - Each request gets its own builder; nothing is shared between calls.
"""

import logging

from wren._internal.invoke import invoke
from wren.http.request import Request, RequestView
from wren.http.response import Envelope, ResponseBuilder
from wren.routing.router import Router
from wren.server.errors import handle_internal_error, not_found

logger = logging.getLogger("wren.server")


class Dispatcher:
    """Dispatch abstract requests through one router.

    Usage::

        router = Router()
        router.add("GET", "/users/:id", get_user)
        dispatcher = Dispatcher(router)
        envelope = await dispatcher.handle(Request("GET", "/users/42"))

    The dispatcher does no retries and enforces no timeouts. A handler
    that never completes stalls the call; bounding it is up to the
    transport.
    """

    __slots__ = ("router",)

    def __init__(self, router: Router) -> None:
        self.router = router

    async def handle(self, request: Request) -> Envelope:
        """Process a single request through route resolution and the handler."""
        match = self.router.match(request.method, request.path)
        if match is None:
            logger.debug("404 %s %s", request.method, request.path)
            return not_found()

        view = RequestView.from_request(request, match.params)
        response = ResponseBuilder()
        try:
            # The return value is ignored; handlers answer through the builder.
            await invoke(match.handler, view, response)
        except Exception as exc:
            return handle_internal_error(exc, request)

        return response.to_envelope()

    __call__ = handle
