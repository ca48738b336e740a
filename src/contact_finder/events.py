"""Streaming search: per-target logs, progress ticks and a final result set."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

from .crawler import AdaptiveCrawler
from .demo import build_fallback_contacts
from .errors import SessionStateError
from .models import (
    CompleteEvent,
    Contact,
    DomainTarget,
    LogEvent,
    ProgressEvent,
    SearchEvent,
    SearchParams,
)
from .registry import SourceRegistry
from .validation import dedupe_contacts

SYSTEM_SOURCE = "Sistema"

IDLE = "idle"
RUNNING = "running"
COMPLETE = "complete"


def format_sse(event: SearchEvent) -> str:
    """Render one event as a server-sent-events frame."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


class SearchSession:
    """One streaming search over the registry's domain targets.

    Targets are crawled one after another so progress stays ordered. The
    event iterator can be consumed once; closing it early stops emission.
    """

    def __init__(
        self,
        params: SearchParams,
        *,
        crawler: AdaptiveCrawler,
        registry: SourceRegistry,
        logger: logging.Logger,
        demo_mode: bool = False,
    ) -> None:
        self.params = params
        self._crawler = crawler
        self._registry = registry
        self._logger = logger
        self._demo_mode = demo_mode
        self._percent = 0
        self.state = IDLE

    def events(self) -> Iterator[SearchEvent]:
        if self.state != IDLE:
            raise SessionStateError(f"Session already {self.state}.")
        self.state = RUNNING
        return self._run()

    def _progress(self, value: float) -> ProgressEvent:
        self._percent = max(self._percent, min(100, int(value)))
        return ProgressEvent(self._percent)

    def _complete(self, contacts: list[Contact]) -> Iterator[SearchEvent]:
        results = dedupe_contacts(contacts)
        if not results and self._demo_mode:
            self._logger.info("No contacts found, using demo data")
            results = build_fallback_contacts(self.params)
            yield LogEvent(SYSTEM_SOURCE, "Usando resultados simulados para demonstração", "info")
        yield CompleteEvent(tuple(results))

    def _run(self) -> Iterator[SearchEvent]:
        contacts: list[Contact] = []
        try:
            targets = self._registry.targets_for_state(self.params.state)
            total = len(targets)
            self._logger.info("Streaming search over %d targets: %s", total, self.params.to_dict())
            yield self._progress(0)
            for index, target in enumerate(targets):
                yield from self._crawl_target(index, total, target, contacts)
                yield self._progress((index + 1) * 100 // total)
            if not total:
                yield self._progress(100)
            yield from self._complete(contacts)
        except Exception as exc:
            self._logger.error("Streaming search failed: %s", exc)
            yield LogEvent(SYSTEM_SOURCE, f"Erro no processo de busca: {exc}", "error")
            yield self._progress(100)
            yield from self._complete([])
        finally:
            self.state = COMPLETE

    def _crawl_target(
        self, index: int, total: int, target: DomainTarget, contacts: list[Contact]
    ) -> Iterator[SearchEvent]:
        yield LogEvent(target.name, f"Iniciando busca em {target.name}...")
        try:
            yield LogEvent(target.name, "Extraindo URLs relevantes...")
            discovered = self._crawler.discover(target, self.params)
            yield self._progress((index + 0.25) * 100 / total)
            if discovered.error:
                yield LogEvent(target.name, f"Erro ao extrair URLs: {discovered.error}", "error")
                return
            yield LogEvent(
                target.name, f"Encontradas {len(discovered.urls)} URLs relevantes", "success"
            )
            if not discovered.urls:
                yield LogEvent(target.name, "Nenhuma URL relevante encontrada", "warning")
                return
            yield LogEvent(target.name, "Extraindo contatos das URLs...")
            extracted = self._crawler.extract(target, discovered.urls, self.params)
            yield self._progress((index + 0.75) * 100 / total)
            if extracted.error:
                yield LogEvent(target.name, f"Erro ao extrair contatos: {extracted.error}", "error")
                return
            contacts.extend(extracted.contacts)
            yield LogEvent(
                target.name,
                f"Encontrados {len(extracted.contacts)} contatos válidos",
                "success",
            )
        except Exception as exc:
            self._logger.error("[%s] target failed: %s", target.name, exc)
            yield LogEvent(target.name, f"Erro ao processar domínio: {exc}", "error")
