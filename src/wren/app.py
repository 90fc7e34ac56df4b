"""Wren application class.

Owns one router, one dispatcher, the middleware list, and the storage.
Routes can be registered at any time, including while the app is
listening; the table is live. The middleware chain is rebuilt whenever
middleware is added.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from wren._internal.invoke import invoke
from wren._internal.types import Handler, PollSource
from wren.config import AppConfig
from wren.data.storage import Storage
from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.builtin import CORSConfig, CORSMiddleware
from wren.middleware.protocol import Middleware, Next
from wren.routing.route import RouteInfo
from wren.routing.router import Router
from wren.server.channel import ChannelClient, ChannelServer, open_channel
from wren.server.dispatcher import Dispatcher
from wren.server.pipeline import build_pipeline
from wren.server.polling import PollingTransport

logger = logging.getLogger("wren.server")


class App:
    """The wren application.

    Usage::

        app = App()

        @app.get("/users/:id")
        async def get_user(req, res):
            res.json({"id": req.params["id"]})

        await app.listen()
        envelope = await app.request("GET", "/users/42")
    """

    __slots__ = (
        "_dispatcher",
        "_listening",
        "_middleware_list",
        "_pipeline",
        "_poller",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_storage",
        "config",
    )

    def __init__(self, config: AppConfig | None = None, *, storage: Storage | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._dispatcher = Dispatcher(self._router)
        self._middleware_list: list[Middleware] = []
        self._pipeline: Next | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._storage = storage or Storage(self.config.storage, path=self.config.storage_path)
        self._poller: PollingTransport | None = None
        self._listening = False

    # -- Route registration --

    def add_route(self, method: str, template: str, handler: Handler) -> None:
        """Register *handler* for *method* and *template*."""
        self._router.add(method, template, handler)

    def route(
        self,
        template: str,
        *,
        methods: Sequence[str] | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            template: Route template. Use ``:name`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
        """

        def decorator(func: Handler) -> Handler:
            for method in methods or ("GET",):
                self._router.add(method, template, func)
            return func

        return decorator

    def get(self, template: str) -> Callable[[Handler], Handler]:
        return self.route(template, methods=("GET",))

    def post(self, template: str) -> Callable[[Handler], Handler]:
        return self.route(template, methods=("POST",))

    def put(self, template: str) -> Callable[[Handler], Handler]:
        return self.route(template, methods=("PUT",))

    def delete(self, template: str) -> Callable[[Handler], Handler]:
        return self.route(template, methods=("DELETE",))

    def patch(self, template: str) -> Callable[[Handler], Handler]:
        return self.route(template, methods=("PATCH",))

    # -- Middleware and lifecycle hooks --

    def add_middleware(self, middleware: Middleware) -> None:
        """Append a middleware; the first one added runs outermost."""
        self._middleware_list.append(middleware)
        self._pipeline = None

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async function to run at the end of ``listen()``."""
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a sync or async function to run at the start of ``stop()``."""
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        return self._router

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def routes(self) -> list[RouteInfo]:
        return self._router.routes

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def listening(self) -> bool:
        return self._listening

    # -- Lifecycle --

    async def listen(self) -> None:
        """Initialize storage, build the pipeline, and run startup hooks.

        Calling ``listen()`` on an app that is already listening logs a
        warning and does nothing.
        """
        if self._listening:
            logger.warning("App is already listening")
            return

        await self._storage.init()
        self._pipeline = self._build_pipeline()
        self._listening = True

        for hook in self._startup_hooks:
            await invoke(hook)

        logger.info("Server started with %d routes", len(self._router))
        if self.config.debug:
            for info in self._router.routes:
                logger.info("  %-7s %s", info.method, info.template)

    async def stop(self) -> None:
        """Stop polling, run shutdown hooks, and close storage.

        A running ``poll()`` is stopped even if the app never listened.
        """
        if self._poller is not None:
            self._poller.stop()

        if not self._listening:
            return
        self._listening = False

        for hook in self._shutdown_hooks:
            await invoke(hook)

        await self._storage.close()
        logger.info("Server stopped")

    # -- Request handling --

    def _build_pipeline(self) -> Next:
        middleware: list[Middleware] = list(self._middleware_list)
        if self.config.cors:
            middleware.insert(0, CORSMiddleware(CORSConfig(allow_origin=self.config.cors_origin)))
        return build_pipeline(self._dispatcher.handle, middleware)

    async def handle(self, request: Request) -> Envelope:
        """Run *request* through the middleware chain and the dispatcher."""
        if self._pipeline is None:
            self._pipeline = self._build_pipeline()
        return await self._pipeline(request)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        client: str | None = None,
    ) -> Envelope:
        """Inject a request directly, without a channel."""
        return await self.handle(
            Request(
                method=method,
                path=path,
                query=query or {},
                body=body,
                headers=headers or {},
                client=client,
            )
        )

    # -- Transports --

    def open_channel(self) -> AbstractAsyncContextManager[ChannelClient]:
        """Serve this app over an in-process channel and yield a client.

        Usage::

            async with app.open_channel() as client:
                envelope = await client.request("GET", "/users/42")
        """
        return open_channel(
            self.handle,
            buffer=self.config.channel_buffer,
            timeout=self.config.request_timeout,
        )

    async def serve(
        self,
        receive: MemoryObjectReceiveStream[Any],
        send: MemoryObjectSendStream[Any],
        *,
        poll_source: PollSource | None = None,
        sink: Any = None,
    ) -> None:
        """Serve request messages from *receive*, replying on *send*.

        When ``config.polling`` is set and *poll_source* is given, the
        polling transport runs alongside the channel and stops with it.
        Returns once *receive* is closed.
        """
        await self.listen()
        try:
            async with anyio.create_task_group() as tg:
                poller: PollingTransport | None = None
                if self.config.polling and poll_source is not None:
                    poller = self._make_poller(poll_source, sink)
                    tg.start_soon(poller.run)
                await ChannelServer(self.handle).serve(receive, send)
                if poller is not None:
                    poller.stop()
        finally:
            await self.stop()

    async def poll(self, source: PollSource, sink: Any = None) -> None:
        """Poll *source* every ``config.polling_interval`` seconds until ``stop()``."""
        poller = self._make_poller(source, sink)
        try:
            await poller.run()
        finally:
            self._poller = None

    def _make_poller(self, source: PollSource, sink: Any) -> PollingTransport:
        self._poller = PollingTransport(
            self.handle,
            source,
            interval=self.config.polling_interval,
            sink=sink,
        )
        return self._poller
