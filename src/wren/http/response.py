"""Response builder and response envelope.

Handlers get a mutable ``ResponseBuilder`` for the duration of one
dispatch. When the handler finishes, the builder is frozen into an
``Envelope``, the plain ``{status, headers, body}`` record returned to
the transport. Middleware adjusts envelopes with the chainable
``.with_*()`` methods, each of which returns a new Envelope.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True, slots=True)
class Envelope:
    """The finalized result of dispatching one request.

    Immutable by convention: ``headers`` is a plain dict for easy
    comparison and serialization, but every transformation copies it.
    """

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    # -- Constructors --

    @staticmethod
    def json(
        data: Any,
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Envelope:
        merged = {"Content-Type": JSON_CONTENT_TYPE, **(headers or {})}
        return Envelope(status=status, headers=merged, body=data)

    @staticmethod
    def text(
        text: str,
        *,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Envelope:
        merged = {"Content-Type": TEXT_CONTENT_TYPE, **(headers or {})}
        return Envelope(status=status, headers=merged, body=text)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Envelope:
        return cls(
            status=int(data.get("status", 200)),
            headers=dict(data.get("headers") or {}),
            body=data.get("body"),
        )

    # -- Chainable transformations --

    def with_status(self, status: int) -> Envelope:
        """Return a new Envelope with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Envelope:
        """Return a new Envelope with *name* set to *value*."""
        return replace(self, headers={**self.headers, name: value})

    def with_headers(self, headers: Mapping[str, str]) -> Envelope:
        """Return a new Envelope with additional headers."""
        return replace(self, headers={**self.headers, **headers})

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        name_lower = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name_lower:
                return value
        return default

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def to_dict(self) -> dict[str, Any]:
        """Plain-record form: ``{"status", "headers", "body"}``."""
        return {"status": self.status, "headers": dict(self.headers), "body": self.body}


class ResponseBuilder:
    """Mutable response accumulator handed to a handler.

    Every method returns the builder, so calls chain::

        res.set_status(201).json({"id": item_id})

    Body writes replace each other; only the last one is kept.
    """

    __slots__ = ("body", "headers", "status")

    def __init__(self) -> None:
        self.status: int = 200
        self.headers: dict[str, str] = {}
        self.body: Any = None

    def json(self, data: Any) -> ResponseBuilder:
        """Set a JSON body and the matching Content-Type."""
        self.headers["Content-Type"] = JSON_CONTENT_TYPE
        self.body = data
        return self

    def text(self, data: str) -> ResponseBuilder:
        """Set a plain-text body and the matching Content-Type."""
        self.headers["Content-Type"] = TEXT_CONTENT_TYPE
        self.body = data
        return self

    def set_status(self, code: int) -> ResponseBuilder:
        self.status = code
        return self

    def set_header(self, name: str, value: str) -> ResponseBuilder:
        self.headers[name] = value
        return self

    def to_envelope(self) -> Envelope:
        """Snapshot the current state as an Envelope."""
        return Envelope(status=self.status, headers=dict(self.headers), body=self.body)

    def __repr__(self) -> str:
        return f"ResponseBuilder(status={self.status}, headers={self.headers!r})"
