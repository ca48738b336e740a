"""Two-phase crawler for arbitrary government sites.

``discover`` looks for administrative pages linked from a site's root;
``extract`` scans those pages for contact blocks and staff tables. The phases
are separate calls so a caller can report progress between them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlparse

from .extraction import (
    ContactCandidate,
    FreeTextStrategy,
    canonicalize_url,
    dedupe_preserve_order,
    domain_from_url,
)
from .models import Contact, DomainTarget, SearchParams
from .normalization import position_label
from .sources.base import BaseAdapter, parse_html
from .validation import dedupe_contacts, normalize_urls

BLOCK_SELECTOR = "div, section, article"
_WORD = re.compile(r"[a-z0-9à-ÿ]+")


@dataclass(frozen=True)
class CrawlResult:
    urls: list[str] = field(default_factory=list)
    contacts: list[Contact] = field(default_factory=list)
    error: str | None = None


def _same_site(url: str, base_url: str) -> bool:
    host = domain_from_url(url)
    base_host = domain_from_url(base_url)
    if not host or not base_host:
        return False
    return host in base_host or base_host in host


def _link_matches(url: str, terms: list[str]) -> bool:
    parsed = urlparse(url)
    text = unquote(f"{parsed.path}?{parsed.query}").lower()
    words = set(_WORD.findall(text))
    for term in terms:
        # Two-letter terms such as "ti" only count as whole words.
        if len(term) <= 2:
            if term in words:
                return True
        elif term in text:
            return True
    return False


class AdaptiveCrawler(BaseAdapter):
    name = "Busca Adaptativa"
    key = "crawler"
    prefix = "adaptive"

    def __init__(self, **kwargs: Any) -> None:
        config = kwargs["config"]
        kwargs.setdefault("text_strategy", FreeTextStrategy(max_chars=config.max_block_chars))
        super().__init__(**kwargs)

    def link_terms(self, params: SearchParams) -> list[str]:
        terms = list(self._registry.crawl_terms)
        terms.extend(self._registry.crawl_position_terms.get(params.position, ()))
        terms.extend(params.query_terms())
        return dedupe_preserve_order([term.lower() for term in terms if term])

    def discover(self, target: DomainTarget, params: SearchParams) -> CrawlResult:
        try:
            return CrawlResult(urls=self._discover(target, params))
        except Exception as exc:
            self._logger.error("[%s] discovery failed for %s: %s", self.name, target.url, exc)
            return CrawlResult(error=str(exc))

    def _discover(self, target: DomainTarget, params: SearchParams) -> list[str]:
        base_url = target.url.rstrip("/")
        html = self._fetcher.fetch(base_url, timeout=self._config.crawl_root_timeout)
        if not html:
            self._logger.info("[%s] %s unreachable, using fallback paths", self.name, base_url)
            return [base_url + path for path in self._registry.crawl_fallback_paths]

        terms = self.link_terms(params)
        links: list[str] = []
        for anchor in parse_html(html).find_all("a", href=True):
            href = str(anchor.get("href", "")).strip()
            if not href or href.startswith(("mailto:", "tel:", "javascript:", "#")):
                continue
            url = canonicalize_url(href, base_url + "/")
            if _same_site(url, base_url) and _link_matches(url, terms):
                links.append(url)
        return normalize_urls(links)[: self._config.max_candidate_urls]

    def extract(self, target: DomainTarget, urls: list[str], params: SearchParams) -> CrawlResult:
        try:
            return CrawlResult(urls=list(urls), contacts=self._extract(target, urls, params))
        except Exception as exc:
            self._logger.error("[%s] extraction failed for %s: %s", self.name, target.url, exc)
            return CrawlResult(urls=list(urls), error=str(exc))

    def _extract(
        self, target: DomainTarget, urls: list[str], params: SearchParams
    ) -> list[Contact]:
        city, state = self._registry.locate(target.url)
        state = state or target.state_code
        source = f"Site {domain_from_url(target.url) or target.url}"
        fallback_position = "" if params.all_positions else position_label(params.position)
        fields = {"city": city, "state": state, "source": source}

        processed: set[str] = set()
        contacts: list[Contact] = []
        for page_index, url in enumerate(urls):
            if url in processed:
                continue
            processed.add(url)
            html = self._fetcher.fetch(url, timeout=self._config.crawl_page_timeout)
            if not html:
                continue
            soup = parse_html(html)
            for block_index, candidates in enumerate(self._block_candidates(soup)):
                contacts.extend(
                    self.contacts_from_candidates(
                        candidates,
                        index=f"{page_index}-b{block_index}",
                        fallback_position=fallback_position,
                        source_url=url,
                        **fields,
                    )
                )
            for table_index, table in enumerate(soup.find_all("table")):

                def handle_row(
                    index: int,
                    row: Any,
                    page_index: int = page_index,
                    table_index: int = table_index,
                    url: str = url,
                ) -> None:
                    contacts.extend(
                        self.contacts_from_candidates(
                            self._row_strategy.candidates(row),
                            index=f"{page_index}-t{table_index}-{index}",
                            source_url=url,
                            **fields,
                        )
                    )

                self.each_safely(table.find_all("tr"), handle_row)
        return dedupe_contacts(contacts)

    def _block_candidates(self, soup: Any) -> list[list[ContactCandidate]]:
        """Candidates from the innermost qualifying blocks of a page.

        A block is skipped when a nested block already qualifies, so a wrapper
        never pairs one person's name with a sibling's channels. Blocks
        holding a table are left to the row strategy.
        """
        found: dict[int, tuple[Any, list[ContactCandidate]]] = {}

        def collect(index: int, element: Any) -> None:
            if element.find("table") is not None:
                return
            candidates = self._text_strategy.candidates(element)
            if candidates:
                found[id(element)] = (element, candidates)

        self.each_safely(soup.select(BLOCK_SELECTOR), collect)
        return [
            candidates
            for element, candidates in found.values()
            if not any(id(inner) in found for inner in element.select(BLOCK_SELECTOR))
        ]

    def _search(self, params: SearchParams) -> list[Contact]:
        contacts: list[Contact] = []
        for target in self._registry.targets_for_state(params.state):
            discovered = self.discover(target, params)
            if discovered.urls:
                contacts.extend(self.extract(target, discovered.urls, params).contacts)
        return dedupe_contacts(contacts)
