"""Tests for wren.app — registration, lifecycle, and transports."""

import logging

import anyio
import pytest

from wren.app import App
from wren.config import AppConfig
from wren.data.storage import Storage
from wren.errors import ConfigurationError, MalformedPatternError
from wren.http.request import Request
from wren.http.response import Envelope
from wren.middleware.protocol import Next
from wren.server.channel import RequestMessage, ResponseMessage
from wren.testing import TestClient


def _plain_app(**overrides) -> App:
    return App(AppConfig(cors=False, **overrides))


class TestRegistration:
    def test_decorators_register_methods(self) -> None:
        app = _plain_app()

        @app.get("/items")
        def list_items(req, res): ...

        @app.post("/items")
        def create_item(req, res): ...

        @app.put("/items/:id")
        def replace_item(req, res): ...

        @app.patch("/items/:id")
        def update_item(req, res): ...

        @app.delete("/items/:id")
        def delete_item(req, res): ...

        assert [(r.method, r.template, r.handler_name) for r in app.routes] == [
            ("GET", "/items", "list_items"),
            ("POST", "/items", "create_item"),
            ("PUT", "/items/:id", "replace_item"),
            ("PATCH", "/items/:id", "update_item"),
            ("DELETE", "/items/:id", "delete_item"),
        ]

    def test_decorator_returns_function(self) -> None:
        app = _plain_app()

        def handler(req, res): ...

        assert app.get("/")(handler) is handler

    def test_route_with_several_methods(self) -> None:
        app = _plain_app()

        @app.route("/things", methods=["get", "post"])
        def things(req, res): ...

        assert [r.method for r in app.routes] == ["GET", "POST"]

    def test_route_defaults_to_get(self) -> None:
        app = _plain_app()
        app.route("/")(lambda req, res: None)
        assert app.routes[0].method == "GET"

    def test_malformed_pattern_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from wren.routing import router as router_module
        from wren.routing.pattern import CompiledPattern, PatternToken

        def broken_compile(template: str) -> CompiledPattern:
            return CompiledPattern(template, (PatternToken("/"),), ("id",))

        monkeypatch.setattr(router_module, "compile_template", broken_compile)
        app = _plain_app()
        with pytest.raises(MalformedPatternError):
            app.add_route("GET", "/users/:id", lambda req, res: None)
        assert app.routes == []

    def test_malformed_pattern_is_configuration_error(self) -> None:
        assert issubclass(MalformedPatternError, ConfigurationError)


class TestLifecycle:
    async def test_listen_and_stop(self) -> None:
        app = _plain_app()
        assert not app.listening
        await app.listen()
        assert app.listening
        assert app.storage.initialized
        await app.stop()
        assert not app.listening
        assert not app.storage.initialized

    async def test_listen_twice_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        app = _plain_app()
        started: list[bool] = []
        app.on_startup(lambda: started.append(True))

        await app.listen()
        with caplog.at_level(logging.WARNING, logger="wren.server"):
            await app.listen()

        assert "already listening" in caplog.text
        assert started == [True]
        await app.stop()

    async def test_stop_when_not_listening_is_noop(self) -> None:
        await _plain_app().stop()

    async def test_hooks_sync_and_async(self) -> None:
        app = _plain_app()
        events: list[str] = []

        @app.on_startup
        def sync_start() -> None:
            events.append("start")

        @app.on_shutdown
        async def async_stop() -> None:
            await anyio.sleep(0)
            events.append("stop")

        await app.listen()
        await app.stop()
        assert events == ["start", "stop"]

    async def test_startup_log(self, caplog: pytest.LogCaptureFixture) -> None:
        app = _plain_app(debug=True)
        app.get("/users/:id")(lambda req, res: None)

        with caplog.at_level(logging.INFO, logger="wren.server"):
            await app.listen()
        await app.stop()

        assert "Server started with 1 routes" in caplog.text
        assert "/users/:id" in caplog.text

    async def test_routes_added_after_listen_are_live(self) -> None:
        app = _plain_app()
        async with TestClient(app) as client:
            assert (await client.get("/late")).status == 404
            app.get("/late")(lambda req, res: res.text("here"))
            assert (await client.get("/late")).body == "here"

    async def test_shared_storage(self) -> None:
        storage = Storage()
        app = App(AppConfig(cors=False), storage=storage)

        @app.post("/notes/:id")
        async def save(req, res):
            await app.storage.set("notes", req.params["id"], req.body)
            res.set_status(201)

        async with TestClient(app) as client:
            assert (await client.post("/notes/1", body="hello")).status == 201
            assert await storage.get("notes", "1") == "hello"


class TestRequestHandling:
    async def test_direct_request(self) -> None:
        app = _plain_app()

        @app.get("/users/:id")
        def get_user(req, res):
            res.json({"id": req.params["id"], "q": dict(req.query)})

        async with TestClient(app) as client:
            envelope = await client.get("/users/42", query={"expand": "1"})

        assert envelope == Envelope(
            status=200,
            headers={"Content-Type": "application/json"},
            body={"id": "42", "q": {"expand": "1"}},
        )

    async def test_cors_on_by_default(self) -> None:
        app = App()
        app.get("/")(lambda req, res: res.text("hi"))

        async with TestClient(app) as client:
            envelope = await client.get("/")
            missing = await client.get("/missing")
            preflight = await client.options("/")

        assert envelope.header("Access-Control-Allow-Origin") == "*"
        assert envelope.header("Content-Type") == "text/plain"
        assert missing.status == 404
        assert missing.header("Access-Control-Allow-Origin") == "*"
        assert preflight.status == 204

    async def test_cors_origin_from_config(self) -> None:
        app = App(AppConfig(cors_origin="https://a.test"))
        async with TestClient(app) as client:
            envelope = await client.get("/")
        assert envelope.header("Access-Control-Allow-Origin") == "https://a.test"

    async def test_cors_disabled(self) -> None:
        app = _plain_app()
        async with TestClient(app) as client:
            envelope = await client.get("/missing")
        assert envelope.headers == {}

    async def test_middleware_order(self) -> None:
        app = _plain_app()
        order: list[str] = []

        def tag(name: str):
            async def mw(request: Request, next: Next) -> Envelope:
                order.append(name)
                return await next(request)

            return mw

        app.add_middleware(tag("first"))
        app.add_middleware(tag("second"))
        app.get("/")(lambda req, res: order.append("handler"))

        async with TestClient(app) as client:
            await client.get("/")
        assert order == ["first", "second", "handler"]

    async def test_middleware_added_after_listen(self) -> None:
        app = _plain_app()

        async def stamp(request: Request, next: Next) -> Envelope:
            return (await next(request)).with_header("X-Stamp", "1")

        async with TestClient(app) as client:
            app.add_middleware(stamp)
            envelope = await client.get("/")
        assert envelope.header("X-Stamp") == "1"

    async def test_handle_without_listen(self) -> None:
        app = _plain_app()
        app.get("/")(lambda req, res: res.text("ok"))
        envelope = await app.handle(Request("GET", "/"))
        assert envelope.body == "ok"

    async def test_handler_error(self) -> None:
        app = _plain_app()

        @app.get("/boom")
        def boom(req, res):
            raise RuntimeError("boom")

        async with TestClient(app) as client:
            envelope = await client.get("/boom")
        assert envelope.status == 500
        assert envelope.body == {"error": "Internal Server Error", "message": "boom"}


class TestTransports:
    async def test_open_channel(self) -> None:
        app = _plain_app()
        app.get("/ping")(lambda req, res: res.text("pong"))

        async with app.open_channel() as client:
            envelope = await client.request("GET", "/ping")
        assert envelope.body == "pong"

    async def test_serve(self) -> None:
        app = _plain_app()
        app.get("/ping")(lambda req, res: res.text("pong"))
        request_send, request_receive = anyio.create_memory_object_stream(8)
        reply_send, reply_receive = anyio.create_memory_object_stream(8)

        async with anyio.create_task_group() as tg:
            tg.start_soon(app.serve, request_receive, reply_send)
            await request_send.send(RequestMessage("1", Request("GET", "/ping")))
            with anyio.fail_after(2):
                reply = await reply_receive.receive()
            await request_send.aclose()

        assert reply == ResponseMessage(
            "1", Envelope(status=200, headers={"Content-Type": "text/plain"}, body="pong")
        )
        assert not app.listening

    async def test_serve_with_polling(self) -> None:
        app = _plain_app(polling=True, polling_interval=0.01)
        app.post("/inbox/:id")(lambda req, res: res.json({"got": req.params["id"]}))
        delivered = anyio.Event()
        results: list[Envelope] = []
        batches = [[{"method": "POST", "path": "/inbox/1"}]]

        def source():
            return batches.pop() if batches else []

        def sink(request: Request, envelope: Envelope) -> None:
            results.append(envelope)
            delivered.set()

        request_send, request_receive = anyio.create_memory_object_stream(8)
        reply_send, reply_receive = anyio.create_memory_object_stream(8)

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(
                    lambda: app.serve(request_receive, reply_send, poll_source=source, sink=sink)
                )
                await delivered.wait()
                await request_send.aclose()

        reply_receive.close()
        assert results[0].body == {"got": "1"}
        assert not app.listening

    async def test_poll_until_stop(self) -> None:
        app = _plain_app(polling_interval=0.01)
        app.post("/inbox/:id")(lambda req, res: res.text(req.params["id"]))
        seen: list[str] = []

        def sink(request: Request, envelope: Envelope) -> None:
            seen.append(envelope.body)

        await app.listen()
        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(app.poll, lambda: [Request("POST", "/inbox/a")], sink)
                while not seen:
                    await anyio.sleep(0.01)
                await app.stop()

        assert seen[0] == "a"

    async def test_stop_ends_poll_without_listen(self) -> None:
        app = _plain_app(polling_interval=60)
        app.post("/inbox/:id")(lambda req, res: res.text(req.params["id"]))
        seen: list[str] = []

        with anyio.fail_after(2):
            async with anyio.create_task_group() as tg:
                tg.start_soon(
                    app.poll,
                    lambda: [Request("POST", "/inbox/a")],
                    lambda request, envelope: seen.append(envelope.body),
                )
                while not seen:
                    await anyio.sleep(0.01)
                await app.stop()

        assert seen == ["a"]
        assert not app.listening
