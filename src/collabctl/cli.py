"""
Command-line interface for collabctl.

Provides administration commands against a remote collaboration server:
- post create: Create a post in a channel
- post list: List (and optionally follow) the posts of a channel
- status get / status set: Show or change user presence statuses

Usage:
    collabctl [--server URL] [--token TOKEN] [--format plain|json] [--quiet] <group> <command> ...
    collabctl post create myteam:town-square --message "hello"
    collabctl post list myteam:town-square --number 20 --follow

Environment Variables:
    COLLABCTL_SERVER_URL: Server URL (default: http://localhost:8065)
    COLLABCTL_ACCESS_TOKEN: Personal access token or session token
    COLLABCTL_REQUEST_TIMEOUT: Request timeout in seconds (default: 30)
    COLLABCTL_FORMAT: Output format, plain or json (default: plain)
    COLLABCTL_LOG_LEVEL: Log level for diagnostics on stderr (default: WARNING)
    COLLABCTL_CONFIG: Path to an INI config file

Exit codes:
    0 on success, 1 on any error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from collabctl import __version__
from collabctl.commands import COMMAND_GROUPS
from collabctl.config import DEFAULT_SERVER_URL, OUTPUT_FORMATS, configure_logging, load_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with global options and all command groups."""
    parser = argparse.ArgumentParser(
        prog="collabctl",
        description="collabctl - remote administration client for a collaboration server",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # Global options. Defaults are None so that unset flags fall through to
    # the environment, the config file and then the built-in defaults.
    parser.add_argument(
        "--server",
        "-s",
        dest="server_url",
        default=None,
        help=f"Server URL (default: {DEFAULT_SERVER_URL}, or COLLABCTL_SERVER_URL env var)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Access token (default: COLLABCTL_ACCESS_TOKEN env var or config file)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: 30, or COLLABCTL_REQUEST_TIMEOUT env var)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: plain, or COLLABCTL_FORMAT env var)",
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        default=None,
        help="Path to an INI config file (default: ~/.config/collabctl/config.ini)",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        default=None,
        help="Suppress normal output; errors are still printed",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Diagnostic log level on stderr, e.g. DEBUG (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for group in COMMAND_GROUPS:
        group.register(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.config = load_config(
            args.config_file,
            overrides={
                "server.url": args.server_url,
                "server.token": args.token,
                "server.timeout": args.timeout,
                "output.format": args.output_format,
                "output.quiet": args.quiet,
                "logging.level": args.log_level,
            },
        )
        configure_logging(args.config.logging)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.config.source:
        logger.debug("Loaded configuration from %s", args.config.source)

    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        # Follow mode handles Ctrl+C itself; anywhere else the command is cut short
        print("\nInterrupted.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
