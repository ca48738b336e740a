"""Core aggregation: fan out to every source, merge and dedupe."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, TypeVar

from tqdm import tqdm

from .config import FinderConfig
from .errors import SearchError
from .fetchers import RequestsFetcher, make_session
from .models import Contact, Fetcher, SearchHistoryEntry, SearchParams, SourceAdapter, Store
from .registry import SourceRegistry
from .sources.base import BaseAdapter
from .sources.gazette import OfficialGazetteAdapter
from .sources.municipalities import MunicipalityAdapter
from .sources.procurement import ProcurementPortalAdapter
from .sources.transparency import TransparencyPortalAdapter
from .sources.web_search import WebSearchAdapter
from .validation import dedup_key, dedupe_contacts, mx_check

__all__ = [
    "ContactSearch",
    "build_default_adapters",
    "build_search",
    "dedup_key",
    "fan_out",
    "save_search",
    "search_contacts",
]

T = TypeVar("T")
R = TypeVar("R")
SettledHook = Callable[[str, int, BaseException | None], None]
MxCheckFn = Callable[[str], bool]

DEFAULT_ADAPTERS: tuple[type[BaseAdapter], ...] = (
    TransparencyPortalAdapter,
    OfficialGazetteAdapter,
    MunicipalityAdapter,
    ProcurementPortalAdapter,
    WebSearchAdapter,
)


def fan_out(
    items: Sequence[T],
    task: Callable[[T], R],
    *,
    workers: int,
    on_settled: Callable[[T, R | None, BaseException | None], None] | None = None,
    show_progress: bool = False,
    desc: str = "",
) -> list[tuple[R | None, BaseException | None]]:
    """Run ``task`` for every item and wait for all of them to settle.

    Results come back in input order as ``(result, error)`` pairs; a raising
    task never aborts the others. With ``workers == 1`` items run in order on
    the calling thread.
    """
    outcomes: list[tuple[R | None, BaseException | None]] = [(None, None)] * len(items)

    def settle(index: int, result: R | None, error: BaseException | None) -> None:
        outcomes[index] = (result, error)
        if on_settled is not None:
            on_settled(items[index], result, error)

    if workers == 1:
        iterator: Any = range(len(items))
        if show_progress:
            iterator = tqdm(iterator, total=len(items), desc=desc)
        for index in iterator:
            try:
                settle(index, task(items[index]), None)
            except Exception as exc:
                settle(index, None, exc)
        return outcomes

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(task, item): index for index, item in enumerate(items)}
        completed: Any = as_completed(futures)
        if show_progress:
            completed = tqdm(completed, total=len(futures), desc=desc)
        for future in completed:
            index = futures[future]
            try:
                settle(index, future.result(), None)
            except Exception as exc:
                settle(index, None, exc)
    return outcomes


class ContactSearch:
    """Queries every adapter concurrently and merges the results."""

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        workers: int,
        logger: logging.Logger,
        show_progress: bool = False,
        check_mx: bool = False,
        mx_checker: MxCheckFn = mx_check,
    ) -> None:
        self._adapters = list(adapters)
        self._workers = workers
        self._logger = logger
        self._show_progress = show_progress
        self._check_mx = check_mx
        self._mx_checker = mx_checker

    @property
    def adapters(self) -> list[SourceAdapter]:
        return list(self._adapters)

    def run(self, params: SearchParams, on_settled: SettledHook | None = None) -> list[Contact]:
        self._logger.info("Starting search: %s", params.to_dict())

        def settled(
            adapter: SourceAdapter, result: list[Contact] | None, error: BaseException | None
        ) -> None:
            if error is not None:
                self._logger.error("[%s] source failed: %s", adapter.name, error)
            if on_settled is not None:
                on_settled(adapter.name, len(result or []), error)

        outcomes = fan_out(
            self._adapters,
            lambda adapter: adapter.search(params),
            workers=min(self._workers, max(len(self._adapters), 1)),
            on_settled=settled,
            show_progress=self._show_progress,
            desc="querying sources",
        )
        merged: list[Contact] = []
        for result, _error in outcomes:
            merged.extend(result or [])
        results = dedupe_contacts(merged)
        self._logger.info(
            "Search finished: %d contacts (%d before dedup)", len(results), len(merged)
        )
        if self._check_mx:
            results = [self._annotate_mx(contact) for contact in results]
        return results

    def _annotate_mx(self, contact: Contact) -> Contact:
        if not contact.email:
            return contact
        mx_ok = self._mx_checker(contact.email)
        return replace(contact, metadata={**contact.metadata, "mxOk": mx_ok})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def search_contacts(
    params: SearchParams,
    *,
    search: ContactSearch,
    store: Store,
    logger: logging.Logger,
) -> list[Contact]:
    """Run a search, sort by state then city and persist the results."""
    results = sorted(search.run(params), key=lambda contact: (contact.state, contact.city))
    try:
        store.save_search_results(results)
    except Exception as exc:
        logger.error("Could not save search results: %s", exc)
        raise SearchError("Failed to search contacts.") from exc
    return results


def save_search(
    store: Store, params: SearchParams, results: Sequence[Contact], logger: logging.Logger
) -> bool:
    """Record a history entry; a persistence failure is logged, not raised."""
    entry = SearchHistoryEntry(
        query=params.query,
        timestamp=_now_iso(),
        results=len(results),
        filters={"position": params.position.value, "state": params.state},
    )
    try:
        store.save_search_history(entry)
    except Exception as exc:
        logger.error("Could not save search history: %s", exc)
        return False
    return True


def build_default_adapters(
    config: FinderConfig,
    registry: SourceRegistry,
    fetcher: Fetcher,
    logger: logging.Logger,
) -> list[BaseAdapter]:
    return [
        adapter_cls(fetcher=fetcher, config=config, registry=registry, logger=logger)
        for adapter_cls in DEFAULT_ADAPTERS
    ]


def build_fetcher(config: FinderConfig, logger: logging.Logger) -> RequestsFetcher:
    session = make_session(
        config.user_agent, verify_tls=config.verify_tls, max_redirects=config.max_redirects
    )
    return RequestsFetcher(session=session, timeout=config.request_timeout, logger=logger)


def build_search(
    config: FinderConfig,
    *,
    logger: logging.Logger,
    registry: SourceRegistry | None = None,
    fetcher: Fetcher | None = None,
) -> ContactSearch:
    """Build concrete dependencies and return a ready ContactSearch."""
    registry = registry or SourceRegistry()
    fetcher = fetcher or build_fetcher(config, logger)
    return ContactSearch(
        build_default_adapters(config, registry, fetcher, logger),
        workers=config.workers,
        logger=logger,
        show_progress=config.show_progress,
        check_mx=config.check_mx,
    )
