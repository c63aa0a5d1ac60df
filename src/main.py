# src/main.py - v2
"""CLI entry point: get, set, update, add and delete through the cache.

Usage:
    firecache get <path> [--force]
    firecache set <path> '<json>' [--merge]
    firecache update <path> '<json>'
    firecache add <collection> '<json>'
    firecache delete <path>

The backing store comes from FIRECACHE_* settings (.env). Results are
printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from firecache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="firecache",
        description=f"firecache v{__version__} - write-through document cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- get ---
    p_get = subparsers.add_parser("get", help="Read a document or collection")
    p_get.add_argument("path", help="Document or collection path")
    p_get.add_argument(
        "--force", action="store_true",
        help="Bypass the cache and read from the store",
    )
    p_get.set_defaults(func=_cmd_get)

    # --- set ---
    p_set = subparsers.add_parser("set", help="Write a document")
    p_set.add_argument("path", help="Document path")
    p_set.add_argument("data", type=_json_object, help="Document fields as JSON")
    p_set.add_argument(
        "--merge", action="store_true",
        help="Merge into the existing document instead of replacing it",
    )
    p_set.set_defaults(func=_cmd_set)

    # --- update ---
    p_update = subparsers.add_parser("update", help="Patch fields of a document")
    p_update.add_argument("path", help="Document path")
    p_update.add_argument("data", type=_json_object, help="Fields as JSON")
    p_update.set_defaults(func=_cmd_update)

    # --- add ---
    p_add = subparsers.add_parser("add", help="Add a document with a generated id")
    p_add.add_argument("collection", help="Collection path")
    p_add.add_argument("data", type=_json_object, help="Document fields as JSON")
    p_add.set_defaults(func=_cmd_add)

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Delete a document")
    p_delete.add_argument("path", help="Document path")
    p_delete.set_defaults(func=_cmd_delete)

    return parser


def _json_object(raw: str) -> dict[str, Any]:
    """argparse type: a JSON object literal."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}") from e
    if not isinstance(value, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return value


async def _run(args: argparse.Namespace) -> int:
    from firecache.cache.cache_factory import create_document_cache
    from firecache.config.settings import load_settings

    settings = load_settings(eviction_enabled=False)
    async with create_document_cache(settings) as cache:
        return await args.func(cache, args)


async def _cmd_get(cache: Any, args: argparse.Namespace) -> int:
    result = await cache.get(args.path, force_refresh=args.force)
    if result is None:
        logger.error("Not found: %s", args.path)
        return 1
    _print_json(result)
    return 0


async def _cmd_set(cache: Any, args: argparse.Namespace) -> int:
    _print_json(await cache.set(args.path, args.data, merge=args.merge, fetch=True))
    return 0


async def _cmd_update(cache: Any, args: argparse.Namespace) -> int:
    result = await cache.update(args.path, args.data, fetch=True)
    if result is None:
        logger.error("Update failed: %s", args.path)
        return 1
    _print_json(result)
    return 0


async def _cmd_add(cache: Any, args: argparse.Namespace) -> int:
    _print_json(await cache.add(args.collection, args.data, fetch=True))
    return 0


async def _cmd_delete(cache: Any, args: argparse.Namespace) -> int:
    await cache.delete(args.path)
    return 0


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str, ensure_ascii=False))


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from firecache.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")
    # Quiet noisy libraries
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
