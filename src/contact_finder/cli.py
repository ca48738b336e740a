"""CLI entrypoint for contact-finder."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Sequence
from typing import Any, TextIO

from .config import DEFAULT_MAX_CANDIDATE_URLS, DEFAULT_WORKERS, FinderConfig
from .crawler import AdaptiveCrawler
from .errors import ConfigError, ContactFinderError, InvalidSearchError
from .events import SearchSession, format_sse
from .logging_utils import configure_logging, get_logger
from .models import SearchParams
from .monitor import run_monitoring
from .orchestrator import build_fetcher, build_search, save_search, search_contacts
from .registry import SourceRegistry, load_registry
from .store import JsonFileStore

DEFAULT_STORE = "contact_finder.json"


def _add_search_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", default="", help="Free-text query (name, city, keyword).")
    parser.add_argument(
        "--position",
        default="all",
        help="all, education_secretary, labor_secretary, it_director or procurement.",
    )
    parser.add_argument("--state", default="all", help="Two-letter state code or 'all'.")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Contact Finder - public official contacts from Brazilian government sources."
    )
    parser.add_argument("--registry", help="JSON file overriding the built-in source registry.")
    parser.add_argument("--store", default=DEFAULT_STORE, help="JSON file used for persistence.")
    parser.add_argument("--serpapi-key", help="SerpApi key (or set SERPAPI_KEY env var).")
    parser.add_argument(
        "--workers", type=int, default=DEFAULT_WORKERS, help="Number of sources queried at once."
    )
    parser.add_argument(
        "--max-candidate-urls",
        type=int,
        default=DEFAULT_MAX_CANDIDATE_URLS,
        help="Pages crawled per site in streaming mode.",
    )
    parser.add_argument(
        "--demo", action="store_true", help="Fall back to sample contacts when nothing is found."
    )
    parser.add_argument("--check-mx", action="store_true", help="Annotate emails with MX checks.")
    parser.add_argument("--no-progress", action="store_true", help="Disable tqdm progress bars.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command", required=True)
    search = commands.add_parser("search", help="Query every source and print contacts as JSON.")
    _add_search_arguments(search)
    stream = commands.add_parser("stream", help="Crawl government sites, emitting SSE frames.")
    _add_search_arguments(stream)
    commands.add_parser("monitor", help="Run every active alert once.")

    alerts = commands.add_parser("alerts", help="Manage monitoring alerts.")
    alert_commands = alerts.add_subparsers(dest="alerts_command", required=True)
    add = alert_commands.add_parser("add", help="Create an alert.")
    add.add_argument("keyword")
    add.add_argument("email")
    alert_commands.add_parser("list", help="List alerts.")
    deactivate = alert_commands.add_parser("deactivate", help="Deactivate an alert.")
    deactivate.add_argument("alert_id")

    history = commands.add_parser("history", help="Show recent searches.")
    history.add_argument("--limit", type=int, default=10)
    history.add_argument("--clear", action="store_true", help="Delete the search history.")

    favorite = commands.add_parser("favorite", help="Toggle or list favorite contacts.")
    favorite.add_argument("contact_id", nargs="?", help="Contact id to toggle.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def namespace_to_config(args: argparse.Namespace) -> FinderConfig:
    """Convert CLI args to validated FinderConfig."""
    return FinderConfig(
        workers=args.workers,
        max_candidate_urls=args.max_candidate_urls,
        demo_mode=bool(args.demo),
        check_mx=bool(args.check_mx),
        serpapi_key=args.serpapi_key or os.getenv("SERPAPI_KEY"),
        show_progress=not args.no_progress,
    )


def _params(args: argparse.Namespace) -> SearchParams:
    return SearchParams.create(query=args.query, position=args.position, state=args.state)


def _dump(payload: Any, out: TextIO) -> None:
    out.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")


def _run_search(
    args: argparse.Namespace, config: FinderConfig, registry: SourceRegistry, out: TextIO
) -> None:
    logger = get_logger()
    params = _params(args)
    store = JsonFileStore(args.store)
    search = build_search(config, logger=logger, registry=registry)
    results = search_contacts(params, search=search, store=store, logger=logger)
    save_search(store, params, results, logger)
    _dump([contact.to_dict() for contact in results], out)


def _run_stream(
    args: argparse.Namespace, config: FinderConfig, registry: SourceRegistry, out: TextIO
) -> None:
    logger = get_logger()
    crawler = AdaptiveCrawler(
        fetcher=build_fetcher(config, logger), config=config, registry=registry, logger=logger
    )
    session = SearchSession(
        _params(args),
        crawler=crawler,
        registry=registry,
        logger=logger,
        demo_mode=config.demo_mode,
    )
    for event in session.events():
        out.write(format_sse(event))
        out.flush()


def _run_monitor(
    args: argparse.Namespace, config: FinderConfig, registry: SourceRegistry, out: TextIO
) -> None:
    logger = get_logger()
    search = build_search(config, logger=logger, registry=registry)
    results = run_monitoring(JsonFileStore(args.store), search, logger)
    _dump({"monitored": len(results), "results": [item.to_dict() for item in results]}, out)


def _run_alerts(args: argparse.Namespace, out: TextIO) -> None:
    store = JsonFileStore(args.store)
    if args.alerts_command == "add":
        _dump({"id": store.create_alert(args.keyword, args.email)}, out)
    elif args.alerts_command == "deactivate":
        store.deactivate_alert(args.alert_id)
        _dump({"id": args.alert_id, "isActive": False}, out)
    else:
        _dump([alert.to_dict() for alert in store.get_alerts()], out)


def _run_history(args: argparse.Namespace, out: TextIO) -> None:
    store = JsonFileStore(args.store)
    if args.clear:
        store.clear_search_history()
        return
    _dump([entry.to_dict() for entry in store.get_search_history(args.limit)], out)


def _run_favorite(args: argparse.Namespace, out: TextIO) -> None:
    store = JsonFileStore(args.store)
    if args.contact_id:
        _dump({"id": args.contact_id, "favorite": store.toggle_favorite(args.contact_id)}, out)
        return
    _dump(store.get_favorites(), out)


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    configure_logging(args.verbose)
    logger = get_logger()
    out = out or sys.stdout
    try:
        config = namespace_to_config(args)
        registry = load_registry(args.registry) if args.registry else SourceRegistry()
        if args.command == "search":
            _run_search(args, config, registry, out)
        elif args.command == "stream":
            _run_stream(args, config, registry, out)
        elif args.command == "monitor":
            _run_monitor(args, config, registry, out)
        elif args.command == "alerts":
            _run_alerts(args, out)
        elif args.command == "history":
            _run_history(args, out)
        elif args.command == "favorite":
            _run_favorite(args, out)
    except (ConfigError, InvalidSearchError) as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    except ContactFinderError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
