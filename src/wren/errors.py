"""Wren exception hierarchy.

Shared across Router, App, transports, and storage so every module
raises and catches the same types.

Request-time conditions (no matching route, a failing handler) are never
raised past the dispatcher; they become envelopes. The exceptions here
are for programming-time defects and collaborator failures.
"""


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration is invalid.

    Typically raised at registration or startup time.
    """


class MalformedPatternError(ConfigurationError):
    """A route template compiled to a matcher whose captures do not line
    up with its parameter names.

    Raised from ``Router.add()``; the route is not registered.
    """

    def __init__(self, template: str, detail: str) -> None:
        super().__init__(f"Malformed route template {template!r}: {detail}")
        self.template = template


class TransportError(WrenError):
    """Base for failures in the transport adapters."""


class TransportClosed(TransportError):  # noqa: N818
    """The channel was closed before a reply arrived."""


class TransportTimeout(TransportError):  # noqa: N818
    """No reply arrived within the configured request timeout."""
