"""history-search command line.

Commands:
  - `history-search sources`: list discovered browser history databases
  - `history-search populate [--browser KIND] [--latest] [--no-build-index]`
  - `history-search index`: index URLs not yet in the search index
  - `history-search search QUERY`
"""
from __future__ import annotations

import argparse
import logging
import sys
import time

from history_search.config import Settings, load_settings
from history_search.context import ExecutionContext
from history_search.exceptions import HistorySearchError
from history_search.extractors.registry import discover
from history_search.search.gateway import SearchGateway
from history_search.search.index import WhooshDocumentIndex
from history_search.search.indexer import Indexer
from history_search.store.sqlite import HistoryStore
from history_search.sync.driver import SyncDriver, SyncMode

logger = logging.getLogger(__name__)


def _run_index(settings: Settings, store: HistoryStore, ctx: ExecutionContext) -> int:
    print("Indexing results...")
    started = time.monotonic()
    with WhooshDocumentIndex(settings.index_dir) as doc_index:
        count = Indexer(store, doc_index, ctx=ctx).build_index()
    print(f"Indexed {count} records in {time.monotonic() - started:.2f}s")
    return 0


def cmd_sources(args: argparse.Namespace, settings: Settings) -> int:
    extractors = discover()
    if not extractors:
        print("No browser history databases found.")
        return 0
    for extractor in extractors:
        print(f"{extractor.name():<10} {extractor.source_path()}")
    return 0


def cmd_populate(args: argparse.Namespace, settings: Settings) -> int:
    ctx = ExecutionContext(timeout=args.timeout)
    extractors = discover()
    mode = SyncMode.INCREMENTAL if args.latest else SyncMode.FULL

    with HistoryStore(settings.db_path) as store:
        report = SyncDriver(store, ctx).run(extractors, mode=mode, only=args.browser)
        for result in report.results:
            if result.ok:
                print(
                    f"ok    {result.name:<10} {result.urls_upserted} urls, "
                    f"{result.visits_inserted} new visits  ({result.source_path})"
                )
            else:
                print(f"FAIL  {result.name:<10} {result.error}  ({result.source_path})")

        if not report.ok:
            print("One or more browsers failed", file=sys.stderr)
            return 1

        if args.build_index:
            return _run_index(settings, store, ctx)
    return 0


def cmd_index(args: argparse.Namespace, settings: Settings) -> int:
    ctx = ExecutionContext(timeout=args.timeout)
    with HistoryStore(settings.db_path) as store:
        return _run_index(settings, store, ctx)


def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    with HistoryStore(settings.db_path) as store, WhooshDocumentIndex(settings.index_dir) as doc_index:
        results = SearchGateway(store, doc_index, limit=args.limit or settings.search_limit).search(args.query)

    for record in results.urls:
        visited = record.last_visit.strftime("%Y-%m-%d %H:%M") if record.last_visit else "-"
        print(f"{visited}  {record.title or '(untitled)'}")
        print(f"                  {record.url}")
    print(f"{len(results.urls)} shown, {results.total_count} total")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="history-search",
        description="Aggregate, deduplicate and search local browser history.",
    )
    parser.add_argument("--db", help="Path to the unified history database")
    parser.add_argument("--index-dir", help="Directory of the full-text search index")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline in seconds")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sources", help="List discovered browser history databases")
    p.set_defaults(func=cmd_sources)

    p = sub.add_parser("populate", help="Import URLs and visits from all known sources")
    p.add_argument(
        "-b",
        "--browser",
        default=None,
        help="Only import this browser (e.g. chrome) or one profile of it (e.g. \"chrome:Profile 1\")",
    )
    p.add_argument(
        "--latest",
        action="store_true",
        help="Only import visits newer than the last import of each source",
    )
    p.add_argument(
        "--build-index",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Update the search index after importing (required for search)",
    )
    p.set_defaults(func=cmd_populate)

    p = sub.add_parser("index", help="Index URLs not yet in the search index")
    p.set_defaults(func=cmd_index)

    p = sub.add_parser("search", help="Full-text search over indexed history")
    p.add_argument("query", help="Query text, e.g. 'title:python docs'")
    p.add_argument("-n", "--limit", type=int, default=None, help="Maximum results to show")
    p.set_defaults(func=cmd_search)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(db_path=args.db, index_dir=args.index_dir)

    level = settings.log_level
    if args.verbose == 1:
        level = "INFO"
    elif args.verbose >= 2:
        level = "DEBUG"
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings.ensure_dirs()
    try:
        return args.func(args, settings)
    except HistorySearchError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
