"""``wren call`` — dispatch one request and print the envelope."""

import argparse
import json
import sys
from typing import Any

import anyio

from wren.app import App
from wren.cli._resolve import configure_logging, resolve_app
from wren.http.response import Envelope


def _parse_query(pairs: list[str]) -> dict[str, str]:
    query: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Invalid query parameter {pair!r}: expected key=value"
            raise ValueError(msg)
        query[key] = value
    return query


async def _call(app: App, method: str, path: str, query: dict[str, str], body: Any) -> Envelope:
    await app.listen()
    try:
        return await app.request(method, path, query=query, body=body)
    finally:
        await app.stop()


def run_call(args: argparse.Namespace) -> None:
    """Dispatch ``args.method`` ``args.path`` against ``args.app`` and print JSON."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(args.log_level or app.config.log_level)

    try:
        query = _parse_query(args.query or [])
        body = json.loads(args.body) if args.body is not None else None
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    envelope = anyio.run(_call, app, args.method.upper(), args.path, query, body)
    print(json.dumps(envelope.to_dict(), indent=2, default=str))
    if envelope.status >= 500:
        raise SystemExit(1)
