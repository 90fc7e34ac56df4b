"""In-process message channel transport.

Requests travel as messages over AnyIO memory object streams instead of
a socket. ``ChannelServer`` reads request messages, runs each through
the pipeline in its own task, and writes back a reply carrying the same
``request_id``. ``ChannelClient`` is the other end: it sends requests and
matches replies to waiting callers by id.

Two message shapes are accepted:

- typed: ``RequestMessage`` in, ``ResponseMessage`` out
- plain dicts, for producers that only speak mappings::

      {"type": "API_REQUEST", "request_id": "...", "request": {"method": ..., "path": ...}}
      {"type": "API_RESPONSE", "request_id": "...", "response": {"status": ..., ...}}

Anything else is ignored.
"""

import logging
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from wren.errors import TransportClosed, TransportTimeout
from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next
from wren.server.errors import handle_internal_error

logger = logging.getLogger("wren.server")

API_REQUEST = "API_REQUEST"
API_RESPONSE = "API_RESPONSE"


@dataclass(frozen=True, slots=True)
class RequestMessage:
    request_id: str
    request: Request


@dataclass(frozen=True, slots=True)
class ResponseMessage:
    request_id: str
    envelope: Envelope


def decode_request(message: Any) -> RequestMessage | None:
    """Turn an incoming message into a ``RequestMessage``, or ``None`` to ignore it."""
    if isinstance(message, RequestMessage):
        return message
    if isinstance(message, Mapping) and message.get("type") == API_REQUEST:
        try:
            return RequestMessage(
                request_id=str(message["request_id"]),
                request=Request.from_dict(message["request"]),
            )
        except (KeyError, TypeError):
            logger.warning("Dropping malformed %s message: %r", API_REQUEST, message)
            return None
    return None


def encode_reply(incoming: Any, request_id: str, envelope: Envelope) -> Any:
    """Build the reply in the same shape the request arrived in."""
    if isinstance(incoming, Mapping):
        return {"type": API_RESPONSE, "request_id": request_id, "response": envelope.to_dict()}
    return ResponseMessage(request_id=request_id, envelope=envelope)


class ChannelServer:
    """Serve requests arriving on a memory object stream.

    Each message is handled in its own task, so a slow handler does not
    hold up the next message. Replies may therefore come back out of
    order; clients match them by ``request_id``.
    """

    __slots__ = ("_handler",)

    def __init__(self, handler: Next) -> None:
        self._handler = handler

    async def serve(
        self,
        receive: MemoryObjectReceiveStream[Any],
        send: MemoryObjectSendStream[Any],
    ) -> None:
        """Serve until *receive* is closed, then close *send*.

        In-flight requests finish before *send* is closed.
        """
        async with send, receive:
            async with anyio.create_task_group() as tg:
                async for message in receive:
                    tg.start_soon(self._handle_message, message, send)
        logger.debug("Channel server stopped")

    async def _handle_message(self, message: Any, send: MemoryObjectSendStream[Any]) -> None:
        decoded = decode_request(message)
        if decoded is None:
            logger.debug("Ignoring message: %r", message)
            return

        try:
            envelope = await self._handler(decoded.request)
        except Exception as exc:
            # The dispatcher never raises; this only catches failing middleware.
            envelope = handle_internal_error(exc, decoded.request)

        try:
            await send.send(encode_reply(message, decoded.request_id, envelope))
        except (anyio.BrokenResourceError, anyio.ClosedResourceError):
            logger.warning("Reply for %s dropped: channel closed", decoded.request_id)


@dataclass(slots=True)
class _Pending:
    event: anyio.Event
    envelope: Envelope | None = None


class ChannelClient:
    """Client end of a message channel.

    ``run()`` must be running (usually in a task group) for replies to be
    delivered. ``open_channel()`` wires both ends together.
    """

    __slots__ = ("_closed", "_pending", "_receive", "_send", "timeout")

    def __init__(
        self,
        send: MemoryObjectSendStream[Any],
        receive: MemoryObjectReceiveStream[Any],
        *,
        timeout: float | None = None,
    ) -> None:
        self._send = send
        self._receive = receive
        self._pending: dict[str, _Pending] = {}
        self._closed = False
        self.timeout = timeout

    async def run(self) -> None:
        """Deliver replies to waiting callers until the reply stream closes."""
        async with self._receive:
            async for message in self._receive:
                self._deliver(message)
        self._closed = True
        for pending in self._pending.values():
            pending.event.set()

    def _deliver(self, message: Any) -> None:
        if isinstance(message, ResponseMessage):
            request_id, envelope = message.request_id, message.envelope
        elif isinstance(message, Mapping) and message.get("type") == API_RESPONSE:
            request_id = str(message.get("request_id"))
            envelope = Envelope.from_dict(message.get("response") or {})
        else:
            return

        pending = self._pending.get(request_id)
        if pending is None:
            logger.debug("Reply for unknown request %s", request_id)
            return
        pending.envelope = envelope
        pending.event.set()

    async def send(self, request: Request, *, timeout: float | None = None) -> Envelope:
        """Send *request* and wait for its envelope.

        Raises ``TransportTimeout`` when no reply arrives within *timeout*
        (default: the client's ``timeout``) and ``TransportClosed`` when the
        channel closes first.
        """
        if self._closed:
            raise TransportClosed("Channel is closed")

        request_id = uuid.uuid4().hex
        pending = _Pending(event=anyio.Event())
        self._pending[request_id] = pending
        limit = self.timeout if timeout is None else timeout
        try:
            try:
                await self._send.send(RequestMessage(request_id=request_id, request=request))
            except (anyio.BrokenResourceError, anyio.ClosedResourceError) as exc:
                raise TransportClosed("Channel is closed") from exc

            try:
                with anyio.fail_after(limit):
                    await pending.event.wait()
            except TimeoutError as exc:
                msg = f"No reply to {request.method} {request.path} within {limit}s"
                raise TransportTimeout(msg) from exc
        finally:
            self._pending.pop(request_id, None)

        if pending.envelope is None:
            raise TransportClosed("Channel closed before a reply arrived")
        return pending.envelope

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        client: str | None = None,
        timeout: float | None = None,
    ) -> Envelope:
        """Build a Request and ``send()`` it."""
        request = Request(
            method=method,
            path=path,
            query=query or {},
            body=body,
            headers=headers or {},
            client=client,
        )
        return await self.send(request, timeout=timeout)

    async def aclose(self) -> None:
        """Close the request stream; the server stops once in-flight work finishes."""
        await self._send.aclose()


@asynccontextmanager
async def open_channel(
    handler: Next,
    *,
    buffer: int = 64,
    timeout: float | None = None,
) -> AsyncIterator[ChannelClient]:
    """Run a ChannelServer for *handler* and yield a connected client.

    Usage::

        async with open_channel(app.handle) as client:
            envelope = await client.request("GET", "/users/42")
    """
    request_send, request_receive = anyio.create_memory_object_stream(buffer)
    reply_send, reply_receive = anyio.create_memory_object_stream(buffer)
    server = ChannelServer(handler)
    client = ChannelClient(request_send, reply_receive, timeout=timeout)

    async with anyio.create_task_group() as tg:
        tg.start_soon(server.serve, request_receive, reply_send)
        tg.start_soon(client.run)
        try:
            yield client
        finally:
            await client.aclose()
