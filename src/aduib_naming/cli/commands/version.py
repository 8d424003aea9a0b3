from __future__ import annotations

import argparse
from importlib import metadata

__all__ = ["register_parser", "run"]

DISTRIBUTION = "aduib-naming"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("version", help=f"Print the installed {DISTRIBUTION} version.")
    parser.set_defaults(handler=run)


def run(_: argparse.Namespace) -> int:
    try:
        print(metadata.version(DISTRIBUTION))
    except metadata.PackageNotFoundError:
        print("unknown")
    return 0
