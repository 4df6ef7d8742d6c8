"""Mew CLI — mew dev / mew serve / mew build.

Entry point for the ``mew`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _add_server_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", nargs="?", default=".", help="Applet directory")
    parser.add_argument("--host", default=None, help="Bind address (default 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default 4002)")
    parser.add_argument("--entry", default=None, help="Document served at / (default index.html)")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the mew CLI."""
    parser = argparse.ArgumentParser(
        prog="mew",
        description="Live-reload development server for single-page HTML applets.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # mew dev
    dev_parser = subparsers.add_parser(
        "dev",
        help="Serve the applet and reload browsers when it changes",
    )
    _add_server_args(dev_parser)
    dev_parser.add_argument(
        "--debounce", type=int, default=None, dest="debounce_ms",
        help="Quiet period in ms before reloading (default 300)",
    )

    # mew serve
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the applet without live reload",
    )
    _add_server_args(serve_parser)

    # mew build
    build_parser = subparsers.add_parser(
        "build",
        help="Export a JSON manifest for every applet",
    )
    build_parser.add_argument("root", nargs="?", default=".", help="Applet directory")
    build_parser.add_argument("--output", default=None, help="Output directory (default dist)")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from mew import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from mew._errors import MewError
    from mew.app import build, dev, serve

    try:
        if args.command == "dev":
            dev(
                root=args.root, host=args.host, port=args.port,
                entry=args.entry, debounce_ms=args.debounce_ms,
            )
        elif args.command == "serve":
            serve(root=args.root, host=args.host, port=args.port, entry=args.entry)
        elif args.command == "build":
            build(root=args.root, output=args.output)
    except MewError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
