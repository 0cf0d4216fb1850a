"""Command-line entry point: ``ergo-shutdown``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .client import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_SCHEME, DEFAULT_TIMEOUT, ConnectionTarget
from .credentials import KeyStore
from .shutdown import ShutdownOrchestrator, prompt_user

console = Console(highlight=False)

EPILOG = """\
examples:
  ergo-shutdown --set-key YOUR_API_KEY    # Save API key
  ergo-shutdown --view-key                # View saved key
  ergo-shutdown --remove-key              # Remove saved key
  ergo-shutdown                           # Run shutdown with saved key
  ergo-shutdown --api-key KEY             # Run with temporary key
"""


def _warn(msg: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(msg)}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ergo-shutdown",
        description="Ergo Node Shutdown Tool",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    keys = parser.add_mutually_exclusive_group()
    keys.add_argument("--set-key", nargs="?", const="", metavar="KEY",
                      help="Save new API key for future use")
    keys.add_argument("--view-key", action="store_true",
                      help="View current saved API key (masked)")
    keys.add_argument("--remove-key", action="store_true",
                      help="Remove saved API key")
    parser.add_argument("--host", default=DEFAULT_HOST,
                        help=f"Host address (default: {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help=f"Port number (default: {DEFAULT_PORT})")
    parser.add_argument("--scheme", choices=["http", "https"], default=DEFAULT_SCHEME,
                        help=f"URL scheme (default: {DEFAULT_SCHEME})")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT:g})")
    parser.add_argument("--insecure", action="store_true",
                        help="Skip TLS certificate verification (https only)")
    parser.add_argument("--api-key", metavar="KEY",
                        help="Use API key for this session only")
    parser.add_argument("--env-file", type=Path, default=None, metavar="PATH",
                        help="Key file to use (default: ./.env)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug logging")
    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _run(args: argparse.Namespace) -> int:
    store = KeyStore(args.env_file, console=console)

    if args.set_key is not None:
        if not args.set_key.strip():
            _warn("No API key provided with --set-key")
            return 1
        return 0 if store.save(args.set_key.strip()) else 1

    if args.view_key:
        console.print(escape(store.display_masked()))
        return 0

    if args.remove_key:
        return 0 if store.erase() else 1

    target = ConnectionTarget(host=args.host, port=args.port, scheme=args.scheme)
    orchestrator = ShutdownOrchestrator(
        target,
        store,
        ask=prompt_user,
        api_key=args.api_key,
        console=console,
        timeout=args.timeout,
        verify_ssl=not args.insecure,
    )
    return orchestrator.run().exit_code


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        code = _run(args)
    except (KeyboardInterrupt, EOFError):
        console.print()
        console.print("[yellow]Shutdown cancelled.[/yellow]")
        code = 1
    except Exception as e:
        _warn(str(e))
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
