"""Wren CLI — route listing and one-off request dispatch.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren — an HTTP server that lives inside your process.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=("debug", "info", "warning", "error"),
        help="Logging level (default: the app's config.log_level)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wren routes ------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- wren call --------------------------------------------------------
    call_parser = subparsers.add_parser("call", help="Dispatch one request and print the envelope")
    call_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    call_parser.add_argument("method", help="HTTP method (e.g. GET)")
    call_parser.add_argument("path", help="Request path (e.g. /users/42)")
    call_parser.add_argument("--body", default=None, help="Request body as JSON")
    call_parser.add_argument(
        "--query",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from wren.cli._routes import run_routes

        run_routes(args)
    elif args.command == "call":
        from wren.cli._call import run_call

        run_call(args)
