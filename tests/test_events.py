import json
import logging
from datetime import date
from typing import Any

import pytest

from contact_finder.crawler import CrawlResult
from contact_finder.demo import DEMO_SOURCE
from contact_finder.errors import SessionStateError
from contact_finder.events import SearchSession, format_sse
from contact_finder.models import (
    CompleteEvent,
    Contact,
    DomainTarget,
    LogEvent,
    ProgressEvent,
    SearchParams,
)
from contact_finder.registry import SourceRegistry

LOGGER = logging.getLogger("test")

GOOD = DomainTarget("Prefeitura Boa", "https://boa.sp.gov.br", "SP")
EMPTY = DomainTarget("Prefeitura Vazia", "https://vazia.sp.gov.br", "SP")
BROKEN = DomainTarget("Prefeitura Quebrada", "https://quebrada.sp.gov.br", "SP")
EXPLODING = DomainTarget("Prefeitura Explosiva", "https://explosiva.sp.gov.br", "SP")


def _contact(name: str) -> Contact:
    return Contact(
        id=f"adaptive-{name}",
        name=name,
        position="Diretor de Compras",
        city="Santos",
        state="SP",
        department="Secretaria Municipal de Administração",
        last_updated=date(2024, 5, 1),
        source="Site boa.sp.gov.br",
        email=f"{name.split()[0].lower()}@boa.sp.gov.br",
    )


class FakeCrawler:
    def discover(self, target: DomainTarget, params: SearchParams) -> CrawlResult:
        if target is BROKEN:
            return CrawlResult(error="timeout")
        if target is EXPLODING:
            raise RuntimeError("kaboom")
        if target is EMPTY:
            return CrawlResult()
        return CrawlResult(urls=[f"{target.url}/equipe"])

    def extract(self, target: DomainTarget, urls: list[str], params: SearchParams) -> CrawlResult:
        contacts = [_contact("Ana Lima"), _contact("Ana Lima"), _contact("Bruno Costa")]
        return CrawlResult(urls=urls, contacts=contacts)


class FailingRegistry(SourceRegistry):
    def targets_for_state(self, state: str) -> list[DomainTarget]:
        raise RuntimeError("registry unavailable")


def _session(
    targets: tuple[DomainTarget, ...], demo_mode: bool = False, params: Any = None
) -> SearchSession:
    return SearchSession(
        params or SearchParams(),
        crawler=FakeCrawler(),  # type: ignore[arg-type]
        registry=SourceRegistry(domain_targets=targets),
        logger=LOGGER,
        demo_mode=demo_mode,
    )


def _progress(events: list[Any]) -> list[int]:
    return [event.percent for event in events if isinstance(event, ProgressEvent)]


def test_events_stream_logs_progress_and_results() -> None:
    session = _session((GOOD, EMPTY, BROKEN, EXPLODING))
    events = list(session.events())

    percents = _progress(events)
    assert percents == sorted(percents)
    assert percents[0] == 0
    assert percents[-1] == 100

    complete = events[-1]
    assert isinstance(complete, CompleteEvent)
    assert [contact.name for contact in complete.results] == ["Ana Lima", "Bruno Costa"]
    assert all(not isinstance(event, CompleteEvent) for event in events[:-1])
    assert events.index(ProgressEvent(100)) < len(events) - 1

    logs = [
        (event.source, event.message, event.severity)
        for event in events
        if isinstance(event, LogEvent)
    ]
    assert ("Prefeitura Boa", "Iniciando busca em Prefeitura Boa...", "info") in logs
    assert ("Prefeitura Boa", "Encontradas 1 URLs relevantes", "success") in logs
    assert ("Prefeitura Boa", "Encontrados 3 contatos válidos", "success") in logs
    assert ("Prefeitura Vazia", "Nenhuma URL relevante encontrada", "warning") in logs
    assert ("Prefeitura Quebrada", "Erro ao extrair URLs: timeout", "error") in logs
    assert ("Prefeitura Explosiva", "Erro ao processar domínio: kaboom", "error") in logs
    assert session.state == "complete"


def test_each_phase_is_announced_before_it_runs() -> None:
    events = list(_session((GOOD, EMPTY)).events())

    messages = [
        (event.source, event.message, event.severity)
        for event in events
        if isinstance(event, LogEvent)
    ]
    assert messages[:5] == [
        ("Prefeitura Boa", "Iniciando busca em Prefeitura Boa...", "info"),
        ("Prefeitura Boa", "Extraindo URLs relevantes...", "info"),
        ("Prefeitura Boa", "Encontradas 1 URLs relevantes", "success"),
        ("Prefeitura Boa", "Extraindo contatos das URLs...", "info"),
        ("Prefeitura Boa", "Encontrados 3 contatos válidos", "success"),
    ]
    assert ("Prefeitura Vazia", "Extraindo contatos das URLs...", "info") not in messages


def test_events_can_only_be_consumed_once() -> None:
    session = _session((GOOD,))
    list(session.events())
    with pytest.raises(SessionStateError):
        session.events()


def test_no_targets_still_reaches_full_progress() -> None:
    events = list(_session(()).events())
    assert _progress(events) == [0, 100]
    assert events[-1] == CompleteEvent(())


def test_demo_mode_fills_empty_results() -> None:
    params = SearchParams.create(state="MG")
    events = list(_session((EMPTY,), demo_mode=True, params=params).events())

    assert LogEvent("Sistema", "Usando resultados simulados para demonstração") in events
    complete = events[-1]
    assert isinstance(complete, CompleteEvent)
    assert [contact.name for contact in complete.results] == ["Roberto Almeida"]
    assert complete.results[0].source == DEMO_SOURCE


def test_session_level_failure_still_completes() -> None:
    session = SearchSession(
        SearchParams(),
        crawler=FakeCrawler(),  # type: ignore[arg-type]
        registry=FailingRegistry(),
        logger=LOGGER,
    )
    events = list(session.events())
    assert events == [
        LogEvent("Sistema", "Erro no processo de busca: registry unavailable", "error"),
        ProgressEvent(100),
        CompleteEvent(()),
    ]
    assert session.state == "complete"


def test_closing_the_stream_early_stops_emission() -> None:
    session = _session((GOOD, EMPTY))
    stream = session.events()
    assert next(stream) == ProgressEvent(0)
    stream.close()  # type: ignore[attr-defined]
    assert session.state == "complete"
    assert list(stream) == []


def test_format_sse_frames_events_as_json() -> None:
    frame = format_sse(LogEvent("Sistema", "Usando resultados simulados", "info"))
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert json.loads(frame[len("data: ") :]) == {
        "type": "log",
        "source": "Sistema",
        "message": "Usando resultados simulados",
        "severity": "info",
    }
    assert format_sse(ProgressEvent(40)) == 'data: {"type": "progress", "percent": 40}\n\n'
