"""Abstract request and the handler-facing request view.

A transport builds a ``Request`` from whatever it received. The
dispatcher never mutates it; middleware that needs a different body
(JSON parsing, for example) passes a copy made with ``replace()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from wren.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable abstract request.

    ``query`` and ``headers`` default to empty mappings and ``body`` to
    ``None``. ``client`` identifies the caller (an address, a tab id,
    anything stable) and is used for per-client rate limiting.
    """

    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    headers: Headers = field(default_factory=Headers)
    client: str | None = None

    def __post_init__(self) -> None:
        if self.query is None:
            object.__setattr__(self, "query", {})
        if not isinstance(self.headers, Headers):
            object.__setattr__(self, "headers", Headers(self.headers))

    def with_body(self, body: Any) -> Request:
        """Return a copy of this request carrying *body*."""
        return replace(self, body=body)

    def to_dict(self) -> dict[str, Any]:
        """Plain-record form used by the dict message protocol."""
        return {
            "method": self.method,
            "path": self.path,
            "query": dict(self.query),
            "body": self.body,
            "headers": dict(self.headers.raw),
            "client": self.client,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Request:
        """Build a Request from a plain mapping.

        Only ``method`` and ``path`` are required.
        """
        return cls(
            method=data["method"],
            path=data["path"],
            query=data.get("query") or {},
            body=data.get("body"),
            headers=Headers(data.get("headers") or {}),
            client=data.get("client"),
        )


@dataclass(frozen=True, slots=True)
class RequestView:
    """What a handler sees: the request plus the extracted path parameters.

    Path parameters are kept in ``params`` and query parameters in
    ``query``; the two are never merged.
    """

    method: str
    path: str
    params: Mapping[str, str]
    query: Mapping[str, Any]
    body: Any
    headers: Headers
    client: str | None = None

    @classmethod
    def from_request(cls, request: Request, params: Mapping[str, str]) -> RequestView:
        return cls(
            method=request.method,
            path=request.path,
            params=dict(params),
            query=request.query or {},
            body=request.body,
            headers=request.headers,
            client=request.client,
        )
