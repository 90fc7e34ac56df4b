"""Ordered router with first-match semantics.

Routes live in a plain list in registration order. ``match()`` walks the
list and returns the first route whose method and pattern both accept
the request. Tables are expected to be small, so a linear scan is all
the structure there is.
"""

import logging

from wren._internal.types import Handler
from wren.errors import MalformedPatternError
from wren.routing.pattern import compile_template
from wren.routing.route import CompiledRoute, RouteInfo, RouteMatch

logger = logging.getLogger("wren.server")


class Router:
    """Route table owned by one app (or one dispatcher).

    Usage::

        router = Router()
        router.add("GET", "/users/:id", get_user)
        match = router.match("GET", "/users/42")
        match.params  # {"id": "42"}
    """

    __slots__ = ("_routes",)

    def __init__(self) -> None:
        self._routes: list[CompiledRoute] = []

    def __len__(self) -> int:
        return len(self._routes)

    def add(self, method: str, template: str, handler: Handler) -> CompiledRoute:
        """Compile *template* and append a route for *method*.

        Registering the same method and template twice is allowed; the
        earlier registration keeps winning at match time.

        Raises ``MalformedPatternError`` if the compiled matcher's captures
        do not line up with its parameter names.
        """
        pattern = compile_template(template)
        if pattern.capture_count != len(pattern.param_names):
            raise MalformedPatternError(
                template,
                f"{pattern.capture_count} captures for {len(pattern.param_names)} parameter names",
            )
        route = CompiledRoute(
            method=method.upper(),
            template=template,
            pattern=pattern,
            handler=handler,
        )
        self._routes.append(route)
        logger.debug("route added: %s %s", route.method, template)
        return route

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Resolve *method* and *path* to the first matching route.

        Returns ``None`` when nothing matches. An empty table, an unknown
        method, and an unknown path are indistinguishable.
        """
        method = method.upper()
        for route in self._routes:
            if route.method != method:
                continue
            captures = route.pattern.match(path)
            if captures is None:
                continue
            # Duplicate names: the later capture overwrites the earlier one.
            params: dict[str, str] = {}
            for name, value in zip(route.pattern.param_names, captures, strict=True):
                params[name] = value
            return RouteMatch(route=route, params=params)
        return None

    @property
    def routes(self) -> list[RouteInfo]:
        """Return method, template, and handler name for every route, in table order."""
        return [
            RouteInfo(
                method=route.method,
                template=route.template,
                handler_name=getattr(route.handler, "__name__", repr(route.handler)),
            )
            for route in self._routes
        ]
