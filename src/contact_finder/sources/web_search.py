"""General web search (SerpApi, Google HTML, DuckDuckGo HTML)."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from ..models import Contact, SearchParams
from .base import BaseAdapter, first_href, first_text, matches_any, parse_html

SERPAPI_URL = "https://serpapi.com/search.json"
GOOGLE_URL = "https://www.google.com/search"
DUCKDUCKGO_URLS = ("https://html.duckduckgo.com/html/", "https://duckduckgo.com/html/")
MAX_RESULTS = 10
CITY_REGEX = re.compile(
    r"[Pp]refeitura\s+(?:[Mm]unicipal\s+)?d[eao]\s+"
    r"([A-ZÀ-Þ][\wÀ-ÿ'-]*(?:\s+(?:d[aeo]s?\s+)?[A-ZÀ-Þ][\wÀ-ÿ'-]*)*)"
)


@dataclass(frozen=True)
class SearchHit:
    title: str
    url: str
    snippet: str


def _decode_ddg_href(href: str) -> str | None:
    if not href:
        return None
    if "uddg=" not in href:
        return href
    encoded = href.split("uddg=")[-1].split("&", maxsplit=1)[0]
    return unquote(encoded)


def city_from_text(text: str) -> str:
    match = CITY_REGEX.search(text)
    return match.group(1).strip() if match else ""


class WebSearchAdapter(BaseAdapter):
    """SerpApi -> Google HTML -> DuckDuckGo HTML; the first engine with hits wins."""

    name = "Busca na Web"
    key = "web_search"
    prefix = "gs"

    def build_query(self, params: SearchParams) -> str:
        parts = [self.position_term(params) or "secretário municipal"]
        parts.append("prefeitura" if params.all_states else f"prefeitura {params.state}")
        if params.query:
            parts.append(params.query)
        parts.append("contato email telefone")
        return " ".join(parts)

    def is_relevant(self, hit: SearchHit, params: SearchParams) -> bool:
        text = f"{hit.title} {hit.snippet}".lower()
        if not matches_any(text, self._registry.generic_terms.get(self.key, ())):
            return False
        position_term = self.position_term(params)
        if position_term and position_term.lower() not in text:
            return False
        if not params.all_states and params.state.lower() not in text:
            return False
        terms = params.query_terms()
        return not terms or matches_any(text, terms)

    def _search(self, params: SearchParams) -> list[Contact]:
        query = self.build_query(params)
        self._logger.debug("[%s] query: %s", self.name, query)
        hits: list[SearchHit] = []
        if self._config.serpapi_key:
            hits = self._search_serpapi(query)
        if not hits:
            hits = self._search_google(query)
        if not hits:
            hits = self._search_duckduckgo(query)
        return self._contacts(hits[:MAX_RESULTS], params)

    def _contacts(self, hits: list[SearchHit], params: SearchParams) -> list[Contact]:
        state = "" if params.all_states else params.state
        contacts: list[Contact] = []

        def handle(index: int, hit: SearchHit) -> None:
            if not self.is_relevant(hit, params):
                return
            contacts.extend(
                self.contacts_from_candidates(
                    self._text_strategy.candidates(hit.snippet),
                    index=index,
                    fallback_position=self.position_term(params),
                    city=city_from_text(f"{hit.title} {hit.snippet}"),
                    state=state,
                    source_url=hit.url or None,
                    metadata={"title": hit.title} if hit.title else None,
                )
            )

        self.each_safely(hits, handle)
        return contacts

    def _search_serpapi(self, query: str) -> list[SearchHit]:
        body = self._fetcher.fetch(
            SERPAPI_URL,
            params={
                "q": query,
                "engine": "google",
                "num": MAX_RESULTS,
                "hl": "pt-br",
                "api_key": self._config.serpapi_key,
            },
            timeout=self._config.search_timeout,
        )
        if not body:
            return []
        try:
            payload = json.loads(body)
        except ValueError as exc:
            self._logger.warning("SerpApi returned invalid JSON: %s", exc)
            return []

        output: list[SearchHit] = []
        for item in payload.get("organic_results", []):
            link = item.get("link") or item.get("url")
            if isinstance(link, str):
                output.append(
                    SearchHit(str(item.get("title") or ""), link, str(item.get("snippet") or ""))
                )
        return output

    def _search_google(self, query: str) -> list[SearchHit]:
        html = self._fetcher.fetch(
            GOOGLE_URL, params={"q": query, "hl": "pt-BR"}, timeout=self._config.search_timeout
        )
        if not html:
            return []
        output: list[SearchHit] = []

        def handle(_index: int, element: Any) -> None:
            output.append(
                SearchHit(
                    first_text(element, "h3"),
                    first_href(element, "a[href]"),
                    first_text(element, ".VwiC3b, .yXK7lf, .st"),
                )
            )

        self.each_safely(parse_html(html).select("div.g"), handle)
        return output

    def _search_duckduckgo(self, query: str) -> list[SearchHit]:
        for base in DUCKDUCKGO_URLS:
            html = self._fetcher.fetch(
                base, params={"q": query}, timeout=self._config.search_timeout
            )
            if not html:
                continue
            output: list[SearchHit] = []

            def handle(_index: int, element: Any) -> None:
                href = _decode_ddg_href(first_href(element, "a.result__a")) or ""
                if not href.startswith("http") or "duckduckgo.com" in href:
                    return
                output.append(
                    SearchHit(
                        first_text(element, "a.result__a"),
                        href,
                        first_text(element, ".result__snippet"),
                    )
                )

            self.each_safely(parse_html(html).select("div.result"), handle)
            if output:
                return output
        return []
