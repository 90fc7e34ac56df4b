"""CompiledRoute, RouteMatch, and RouteInfo frozen dataclasses."""

from dataclasses import dataclass

from wren._internal.types import Handler
from wren.routing.pattern import CompiledPattern


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A registered route. Created by ``Router.add()``, never modified."""

    method: str
    template: str
    pattern: CompiledPattern
    handler: Handler


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: CompiledRoute
    params: dict[str, str]

    @property
    def handler(self) -> Handler:
        return self.route.handler


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """Read-only description of a registered route, for introspection."""

    method: str
    template: str
    handler_name: str = ""
