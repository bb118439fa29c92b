"""Lookout CLI — lookout run / lookout client.

Entry point for the ``lookout`` command-line interface.
"""

from __future__ import annotations

import argparse
import logging
import sys

from lookout.config import Strategy

_LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the lookout CLI."""
    parser = argparse.ArgumentParser(
        prog="lookout",
        description="Live-reload pipeline: mirror a source tree and notify browsers of changes.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lookout run
    run_parser = subparsers.add_parser(
        "run",
        help="Reconcile the mirror and/or watch for changes",
    )
    run_parser.add_argument("root", nargs="?", default=None, help="Source directory (default: src)")
    run_parser.add_argument("--dest", default=None, help="Mirror directory (default: build)")
    run_parser.add_argument(
        "-c", "--copy-all", action="store_true",
        help="Copy every changed file from source to mirror once",
    )
    run_parser.add_argument(
        "-w", "--watch-all", action="store_true",
        help="Start the notification channel and watch for changes",
    )
    run_parser.add_argument(
        "--mirror", action="store_true", default=None,
        help="Also copy each changed file to the mirror while watching",
    )
    run_parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port (default: 9996)")
    run_parser.add_argument(
        "--strategy", choices=[s.value for s in Strategy], default=None,
        help="Strategy sent with each notification",
    )
    run_parser.add_argument(
        "--quiet-period", type=int, default=None, metavar="MS",
        help="Debounce window in milliseconds (default: 100)",
    )
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # lookout client
    client_parser = subparsers.add_parser(
        "client",
        help="Print the browser client <script> tag",
    )
    client_parser.add_argument("--port", type=int, default=9996, help="Notification channel port")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from lookout import __version__

    return __version__


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "client":
        from lookout.client.hmr import render_client_script

        sys.stdout.write(render_client_script(args.port))
        return

    if not (args.copy_all or args.watch_all):
        parser.error("nothing to do: pass --copy-all and/or --watch-all")

    _configure_logging(args.verbose)

    from lookout._errors import ConfigError, ServerStartError
    from lookout.app import run

    try:
        run(
            args.root,
            dest=args.dest,
            copy_all=args.copy_all or None,
            watch=args.watch_all or None,
            mirror=args.mirror,
            host=args.host,
            port=args.port,
            strategy=args.strategy,
            quiet_period_ms=args.quiet_period,
        )
    except (ConfigError, ServerStartError) as exc:
        print(f"lookout: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
