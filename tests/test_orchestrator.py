import logging
import threading
from datetime import date
from typing import Any

import pytest

from contact_finder.config import FinderConfig
from contact_finder.errors import SearchError
from contact_finder.models import Contact, SearchHistoryEntry, SearchParams
from contact_finder.orchestrator import (
    ContactSearch,
    build_search,
    dedup_key,
    fan_out,
    save_search,
    search_contacts,
)

LOGGER = logging.getLogger("test")


def _contact(name: str, state: str = "SP", city: str = "", email: str | None = None) -> Contact:
    return Contact(
        id=f"x-{name}",
        name=name,
        position="Diretor de Compras",
        city=city,
        state=state,
        department="Secretaria Municipal de Administração",
        last_updated=date(2024, 5, 1),
        source="fake",
        email=email,
        phone="(11) 3396-0200",
    )


class FakeAdapter:
    def __init__(self, name: str, contacts: list[Contact] | None = None, error: bool = False):
        self.name = name
        self._contacts = contacts or []
        self._error = error
        self.calls: list[SearchParams] = []

    def search(self, params: SearchParams) -> list[Contact]:
        self.calls.append(params)
        if self._error:
            raise RuntimeError(f"{self.name} broke")
        return list(self._contacts)


class FakeStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[Contact] = []
        self.history: list[SearchHistoryEntry] = []

    def save_search_results(self, contacts: list[Contact]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved.extend(contacts)

    def save_search_history(self, entry: SearchHistoryEntry) -> str:
        if self.fail:
            raise OSError("disk full")
        self.history.append(entry)
        return "h1"


def _adapters() -> list[FakeAdapter]:
    return [
        FakeAdapter("A", [_contact("Ana Lima"), _contact("Bruno Costa")]),
        FakeAdapter("B", error=True),
        FakeAdapter("C", [_contact("Ana Lima")]),
    ]


@pytest.mark.parametrize("workers", [1, 3])
def test_run_merges_dedupes_and_survives_failing_sources(workers: int) -> None:
    settled: list[tuple[str, int, str | None]] = []
    search = ContactSearch(_adapters(), workers=workers, logger=LOGGER)

    results = search.run(
        SearchParams(),
        on_settled=lambda name, count, error: settled.append(
            (name, count, str(error) if error else None)
        ),
    )

    assert [contact.name for contact in results] == ["Ana Lima", "Bruno Costa"]
    assert sorted(settled) == [("A", 2, None), ("B", 0, "B broke"), ("C", 1, None)]


def test_run_passes_params_to_every_adapter() -> None:
    adapters = _adapters()
    params = SearchParams.create("Campinas", "procurement", "SP")
    ContactSearch(adapters, workers=2, logger=LOGGER).run(params)
    assert all(adapter.calls == [params] for adapter in adapters)


def test_run_annotates_mx_status_when_enabled() -> None:
    adapters = [
        FakeAdapter(
            "A",
            [_contact("Ana Lima", email="ana@sp.gov.br"), _contact("Bruno Costa", email=None)],
        )
    ]
    checked: list[str] = []

    def fake_mx(email: str) -> bool:
        checked.append(email)
        return False

    search = ContactSearch(
        adapters, workers=1, logger=LOGGER, check_mx=True, mx_checker=fake_mx
    )
    first, second = search.run(SearchParams())
    assert first.metadata == {"mxOk": False}
    assert second.metadata == {}
    assert checked == ["ana@sp.gov.br"]


def test_fan_out_keeps_input_order_and_runs_concurrently() -> None:
    barrier = threading.Barrier(3, timeout=5)

    def task(value: int) -> int:
        barrier.wait()
        if value == 2:
            raise ValueError("two")
        return value * 10

    outcomes = fan_out([1, 2, 3], task, workers=3)

    assert outcomes[0] == (10, None)
    assert outcomes[1][0] is None
    assert isinstance(outcomes[1][1], ValueError)
    assert outcomes[2] == (30, None)


def test_dedup_key_uses_name_email_and_phone() -> None:
    assert dedup_key(_contact("Ana Lima", email="a@sp.gov.br")) == (
        "Ana Lima",
        "a@sp.gov.br",
        "(11) 3396-0200",
    )


def test_search_contacts_sorts_and_saves() -> None:
    adapters = [
        FakeAdapter(
            "A",
            [
                _contact("Rui Prado", state="SP", city="Santos"),
                _contact("Eva Dias", state="MG", city="Uberaba"),
                _contact("Ivo Melo", state="SP", city="Campinas"),
            ],
        )
    ]
    store = FakeStore()
    search = ContactSearch(adapters, workers=1, logger=LOGGER)

    results = search_contacts(SearchParams(), search=search, store=store, logger=LOGGER)

    assert [contact.name for contact in results] == ["Eva Dias", "Ivo Melo", "Rui Prado"]
    assert store.saved == results


def test_search_contacts_wraps_store_failures() -> None:
    search = ContactSearch(_adapters(), workers=1, logger=LOGGER)
    with pytest.raises(SearchError, match="Failed to search contacts"):
        search_contacts(SearchParams(), search=search, store=FakeStore(fail=True), logger=LOGGER)


def test_save_search_records_history_entry() -> None:
    store = FakeStore()
    params = SearchParams.create("Campinas", "it_director", "sp")

    assert save_search(store, params, [_contact("Ana Lima")], LOGGER) is True

    [entry] = store.history
    assert entry.query == "Campinas"
    assert entry.results == 1
    assert entry.filters == {"position": "it_director", "state": "SP"}
    assert entry.timestamp.endswith("Z")


def test_save_search_reports_failure_without_raising() -> None:
    assert save_search(FakeStore(fail=True), SearchParams(), [], LOGGER) is False


def test_build_search_wires_default_sources() -> None:
    class NullFetcher:
        def fetch(self, url: str, **kwargs: Any) -> str:
            return ""

    search = build_search(
        FinderConfig(workers=2, show_progress=False), logger=LOGGER, fetcher=NullFetcher()
    )
    assert [adapter.name for adapter in search.adapters] == [
        "Portal da Transparência",
        "Diário Oficial",
        "Sites de Prefeituras",
        "Portal de Compras Governamentais",
        "Busca na Web",
    ]
    assert search.run(SearchParams()) == []
