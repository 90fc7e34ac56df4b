"""Polling transport.

Some request sources cannot push: a queue that has to be drained, an
inbox that has to be checked. ``PollingTransport`` calls a source on a
fixed interval, dispatches whatever requests it returns, and hands each
envelope to an optional sink.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import anyio

from wren._internal.invoke import invoke
from wren._internal.types import PollSource
from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next
from wren.server.errors import handle_internal_error

logger = logging.getLogger("wren.server")


def _as_request(item: Request | Mapping[str, Any]) -> Request:
    if isinstance(item, Request):
        return item
    return Request.from_dict(item)


class PollingTransport:
    """Poll *source* every *interval* seconds until stopped.

    *source* is a sync or async callable returning an iterable of
    ``Request`` objects (or request mappings). *sink*, when given, is
    called as ``sink(request, envelope)`` for each result.

    A failing poll is logged and the loop keeps going.
    """

    __slots__ = ("_handler", "_sink", "_source", "_stop_requested", "_wakeup", "interval")

    def __init__(
        self,
        handler: Next,
        source: PollSource,
        *,
        interval: float = 2.0,
        sink: Any = None,
    ) -> None:
        self._handler = handler
        self._source = source
        self._sink = sink
        self._stop_requested = False
        self._wakeup: anyio.Event | None = None
        self.interval = interval

    @property
    def running(self) -> bool:
        return not self._stop_requested

    async def poll_once(self) -> list[Envelope]:
        """Run one poll and dispatch everything it returned.

        Each item is handled on its own: a malformed item is logged and
        skipped, a failing pipeline becomes a 500 envelope, and a failing
        sink is logged. The rest of the batch is still dispatched.
        """
        items: Iterable[Request | Mapping[str, Any]] | None = await invoke(self._source)
        envelopes: list[Envelope] = []
        for item in items or ():
            try:
                request = _as_request(item)
            except (KeyError, TypeError):
                logger.warning("Dropping malformed polled request: %r", item)
                continue

            try:
                envelope = await self._handler(request)
            except Exception as exc:
                envelope = handle_internal_error(exc, request)

            if self._sink is not None:
                try:
                    await invoke(self._sink, request, envelope)
                except Exception:
                    logger.exception("Sink failed for %s %s", request.method, request.path)
            envelopes.append(envelope)
        return envelopes

    async def run(self) -> None:
        """Poll until ``stop()`` is called."""
        logger.debug("Polling every %ss", self.interval)
        while self.running:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Poll failed")
            if not self.running:
                break
            self._wakeup = anyio.Event()
            with anyio.move_on_after(self.interval):
                await self._wakeup.wait()
        logger.debug("Polling stopped")

    def stop(self) -> None:
        self._stop_requested = True
        if self._wakeup is not None:
            self._wakeup.set()
