"""Command line entry point: ``aduib-naming <command>``.

Each module of :mod:`aduib_naming.cli.commands` adds its subparser through
``register_parser`` and binds a ``handler`` returning the exit code.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from aduib_naming.cli.commands import resolve, schemes, version
from aduib_naming.exceptions import NamingException
from aduib_naming.observability import LOG_FORMAT_CONSOLE, LOG_FORMAT_JSON, configure_logging

__all__ = ["EXIT_ERROR", "EXIT_SUCCESS", "build_parser", "main"]

EXIT_SUCCESS = 0
EXIT_ERROR = 1

COMMANDS = (resolve, schemes, version)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aduib-naming",
        description="Resolve service names into live address sets",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level, including recovered DNS lookup failures.",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-format",
        choices=[LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE],
        default=LOG_FORMAT_CONSOLE,
        help="Format of the diagnostics written to stderr (default: console).",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for command in COMMANDS:
        command.register_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    configure_logging(level, log_format=args.log_format)

    try:
        return int(args.handler(args))
    except NamingException as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR
