from __future__ import annotations

import argparse

from aduib_naming.config import load_config
from aduib_naming.naming.registry import create_default_registry

__all__ = ["register_parser", "run"]


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "schemes",
        help="List the registered resolver schemes.",
        description="List the schemes of the default registry; the default scheme is marked.",
    )
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace) -> int:
    registry = create_default_registry(config=load_config(args.config))
    for scheme in registry.schemes():
        marker = " (default)" if scheme == registry.default_scheme else ""
        print(f"{scheme}{marker}")
    return 0
