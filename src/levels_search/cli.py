"""Command-line entry point: index, remove and query against the configured store."""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

import orjson

from levels_search import __version__
from levels_search.config import Settings, load_settings
from levels_search.errors import LevelsSearchError
from levels_search.observability.logging import configure_logging
from levels_search.search.combinators import Combinator
from levels_search.search.index import Search, create_index
from levels_search.storage.factory import create_store


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="levels-search", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--db", type=Path, help="SQLite database file (overrides LEVELS_SEARCH_DB_PATH)")
    parser.add_argument("--namespace", help="Index namespace (overrides LEVELS_SEARCH_NAMESPACE)")
    parser.add_argument("--log-level", help="Logging level (overrides LEVELS_SEARCH_LOG_LEVEL)")

    commands = parser.add_subparsers(dest="command", required=True)

    index_cmd = commands.add_parser("index", help="Index TEXT under document ID")
    index_cmd.add_argument("doc_id", help="Integer document id")
    index_cmd.add_argument("text", nargs="+", help="Text to index")

    remove_cmd = commands.add_parser("remove", help="Remove every posting of document ID")
    remove_cmd.add_argument("doc_id", help="Integer document id")

    query_cmd = commands.add_parser("query", help="Print ids matching TEXT as JSON")
    query_cmd.add_argument("text", nargs="+", help="Query text")
    query_cmd.add_argument(
        "--or",
        dest="combinator",
        action="store_const",
        const=Combinator.UNION,
        default=Combinator.INTERSECTION,
        help="Match any term instead of all terms",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.db is not None:
        overrides["db_path"] = args.db
    if args.namespace is not None:
        overrides["namespace"] = args.namespace
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return load_settings(**overrides)


async def _dispatch(search: Search, args: argparse.Namespace) -> object:
    if args.command == "index":
        await search.index(" ".join(args.text), args.doc_id)
        return {"indexed": int(args.doc_id)}
    if args.command == "remove":
        await search.remove(args.doc_id)
        return {"removed": int(args.doc_id)}
    return await search.query(" ".join(args.text)).with_combinator(args.combinator).execute()


async def run(args: argparse.Namespace, settings: Settings) -> object:
    store = create_store(settings)
    try:
        search = create_index(store, settings.namespace, max_concurrent_scans=settings.max_concurrent_scans)
        return await _dispatch(search, args)
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = _settings_from_args(args)
        configure_logging(settings.log_level, json_output=settings.log_json)
        result = asyncio.run(run(args, settings))
    except (LevelsSearchError, ValueError) as exc:
        logger.error("levels-search %s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(orjson.dumps(result).decode("utf-8"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
