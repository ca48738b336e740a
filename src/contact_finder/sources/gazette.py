"""Official gazettes (appointment and dismissal notices)."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from ..extraction import canonicalize_url
from ..models import Contact, SearchParams
from .base import BaseAdapter, first_href, matches_any, parse_html

BLOCK_SELECTOR = "div.resultado, div.publicacao, div.materia, div.item, article"
DATE_REGEX = re.compile(r"\b(\d{2})/(\d{2})/(\d{4})\b")
ACT_TYPES = (
    ("exonera", "Exoneração"),
    ("designa", "Designação"),
    ("nomea", "Nomeação"),
    ("nomeia", "Nomeação"),
)


def publication_date(text: str) -> date | None:
    """First dd/mm/yyyy date in a notice, if it is a real calendar date."""
    match = DATE_REGEX.search(text)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(0), "%d/%m/%Y").date()
    except ValueError:
        return None


def act_type(text: str) -> str:
    lowered = text.lower()
    for needle, label in ACT_TYPES:
        if needle in lowered:
            return label
    return "Nomeação"


class OfficialGazetteAdapter(BaseAdapter):
    name = "Diário Oficial"
    key = "gazette"
    prefix = "do"

    def gazette_urls(self, params: SearchParams) -> tuple[str, ...]:
        if not params.all_states and params.state in self._registry.gazette_state_urls:
            return self._registry.gazette_state_urls[params.state]
        return self._registry.gazette_urls

    def _search(self, params: SearchParams) -> list[Contact]:
        terms = self.search_terms(params)
        results: list[Contact] = []
        for url in self.gazette_urls(params):
            html = self._fetcher.fetch(
                url,
                params={"q": " ".join(terms), "pagina": 1},
                timeout=self._config.request_timeout,
            )
            if not html:
                continue
            results.extend(self._parse(html, url, terms))
        return results

    def _parse(self, html: str, url: str, terms: list[str]) -> list[Contact]:
        soup = parse_html(html)
        _city, state = self._registry.locate(url)
        source = f"Diário Oficial de {state}" if state else "Diário Oficial da União"
        contacts: list[Contact] = []

        def handle(index: int, element: Any) -> None:
            text = element.get_text(" ", strip=True)
            if not matches_any(text, terms):
                return
            published = publication_date(text)
            details = first_href(element, "a[href]:not([href^='mailto:'])")
            contacts.extend(
                self.contacts_from_candidates(
                    self._text_strategy.candidates(element),
                    index=index,
                    city="",
                    state=state,
                    source=source,
                    source_url=canonicalize_url(details, url) if details else url,
                    last_updated=published,
                    metadata={
                        "publicationDate": (published or self._today()).isoformat(),
                        "actType": act_type(text),
                    },
                )
            )

        self.each_safely(soup.select(BLOCK_SELECTOR), handle)
        return contacts
