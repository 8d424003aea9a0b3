"""Resolve command for aduib-naming.

Watches a name and prints every batch of address updates as it arrives.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from aduib_naming.config import load_config
from aduib_naming.core.context import Scope
from aduib_naming.naming.registry import create_default_registry
from aduib_naming.naming.update import Update

__all__ = ["register_parser", "run"]


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the resolve command subparser.

    Args:
        subparsers: The argparse subparsers action to add to.
    """
    parser = subparsers.add_parser(
        "resolve",
        help="Watch the addresses of a name.",
        description="Resolve a name and print address updates until stopped.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  aduib-naming resolve example.com:443
  aduib-naming resolve "dns:///example.com:8443?freq=60" --count 0
  aduib-naming resolve 10.0.0.1:8080 --format json
        """,
    )
    parser.add_argument("uri", help="Name to resolve, with or without scheme.")
    parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="Stop after this many update batches; 0 watches until interrupted (default: 1).",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Stop after this many seconds.")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format (default: text).")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace) -> int:
    try:
        asyncio.run(_watch(args))
    except KeyboardInterrupt:
        pass
    return 0


async def _watch(args: argparse.Namespace) -> None:
    registry = create_default_registry(config=load_config(args.config))
    async with registry, Scope(timeout=args.timeout) as scope:
        watcher = await registry.resolve(scope, args.uri)
        batches = 0
        async with watcher:
            async for updates in watcher:
                _print_updates(updates, args.format)
                batches += 1
                if args.count and batches >= args.count:
                    break


def _print_updates(updates: list[Update], output_format: str) -> None:
    if output_format == "json":
        print(json.dumps([
            {"op": update.op.name, "addr": update.addr, "metadata": dict(update.metadata or {})}
            for update in updates
        ]))
    else:
        for update in updates:
            print(f"{update.op.name:<6} {update.addr}")
    sys.stdout.flush()
