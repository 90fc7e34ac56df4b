"""Wren — an HTTP server that lives inside your process.

Routes, handlers, and response envelopes without a socket: requests
arrive over an in-process channel, a polling source, or a direct call.

Basic usage::

    from wren import App

    app = App()

    @app.get("/users/:id")
    async def get_user(req, res):
        res.json({"id": req.params["id"]})

    await app.listen()
    envelope = await app.request("GET", "/users/42")
    envelope.body  # {"id": "42"}
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Dispatcher",
    "Envelope",
    "MalformedPatternError",
    "Middleware",
    "Next",
    "Request",
    "RequestView",
    "ResponseBuilder",
    "Router",
    "Storage",
    "WrenError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name in ("Request", "RequestView"):
        from wren.http import request as _req

        return getattr(_req, name)

    if name in ("Envelope", "ResponseBuilder"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name == "Router":
        from wren.routing.router import Router

        return Router

    if name == "Dispatcher":
        from wren.server.dispatcher import Dispatcher

        return Dispatcher

    if name == "Storage":
        from wren.data.storage import Storage

        return Storage

    if name in ("Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("WrenError", "ConfigurationError", "MalformedPatternError"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
