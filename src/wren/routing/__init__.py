"""Routing — ordered route table with token-based path matching.

Route templates are compiled once, at registration, into immutable
matchers. Matching scans the table in registration order and the
first route whose method and pattern both accept the request wins.
"""

from wren.routing.pattern import CompiledPattern, PatternToken, compile_template, parse_template
from wren.routing.route import CompiledRoute, RouteInfo, RouteMatch
from wren.routing.router import Router

__all__ = [
    "CompiledPattern",
    "CompiledRoute",
    "PatternToken",
    "RouteInfo",
    "RouteMatch",
    "Router",
    "compile_template",
    "parse_template",
]
