"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler, called as handler(request_view, response); sync or async
Handler: TypeAlias = Callable[..., Any]

# Polling source, returns (or awaits to) an iterable of requests
PollSource: TypeAlias = Callable[..., Any]
