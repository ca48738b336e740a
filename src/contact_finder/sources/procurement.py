"""Federal procurement portal (tender officers and purchasing contacts)."""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup

from ..extraction import canonicalize_url, extract_contact_info, mailto_addresses
from ..models import Contact, SearchParams
from .base import BaseAdapter, first_href, first_text, matches_any, parse_html, split_location

CARD_SELECTOR = "div.licitacao, div.pregao, div.edital, div.compra, div.card, div.item, article"
PROCUREMENT_POSITION = "Responsável por Compras"
DEFAULT_DEPARTMENT = "Setor de Compras"
DEPARTMENT_SELECTOR = ".orgao, .departamento, .department, .organization"
AGENCY_LOCATION = re.compile(r"([^/\d]+)/([A-Z]{2})\b")
AGENCY_PREFIX = re.compile(r"^prefeitura\s+(?:municipal\s+)?d[eao]\s+", re.IGNORECASE)


class ProcurementPortalAdapter(BaseAdapter):
    name = "Portal de Compras Governamentais"
    key = "procurement"
    prefix = "cg"

    def _search(self, params: SearchParams) -> list[Contact]:
        terms = self.search_terms(params)
        state_filter = "" if params.all_states else params.state
        query: dict[str, Any] = {"q": " ".join(terms)}
        if state_filter:
            query["uf"] = state_filter
        results: list[Contact] = []
        for url in self._registry.procurement_urls:
            html = self._fetcher.fetch(url, params=query, timeout=self._config.request_timeout)
            if not html:
                continue
            soup = parse_html(html)
            results.extend(self._parse_cards(soup, url, state_filter))
            results.extend(self._parse_tables(soup, url, terms, state_filter))
        return results

    def _parse_cards(self, soup: BeautifulSoup, url: str, state_filter: str) -> list[Contact]:
        contacts: list[Contact] = []

        def handle(index: int, element: Any) -> None:
            contact_nodes = element.select(".contato, .responsavel, .contact, .info")
            if not contact_nodes:
                return
            title = first_text(element, "h2, h3, .titulo, .title")
            description = first_text(element, ".descricao, .description, .content, p")
            city, state = split_location(first_text(element, ".local, .location, .endereco"))
            details = first_href(element, "a[href]:not([href^='mailto:'])")
            candidates = [
                candidate
                for node in contact_nodes
                for candidate in self._text_strategy.candidates(node)
            ]
            contacts.extend(
                self.contacts_from_candidates(
                    candidates,
                    index=index,
                    fallback_position=PROCUREMENT_POSITION,
                    city=city,
                    state=state or state_filter,
                    department=first_text(element, DEPARTMENT_SELECTOR) or DEFAULT_DEPARTMENT,
                    source_url=canonicalize_url(details, url) if details else url,
                    metadata={"tender": title, "description": description},
                )
            )

        self.each_safely(soup.select(CARD_SELECTOR), handle)
        return contacts

    def _parse_tables(
        self, soup: BeautifulSoup, url: str, terms: list[str], state_filter: str
    ) -> list[Contact]:
        contacts: list[Contact] = []
        for table_index, table in enumerate(soup.find_all("table")):
            if not matches_any(table.get_text(" ", strip=True), terms):
                continue

            def handle(row_index: int, row: Any, table_index: int = table_index) -> None:
                cells = row.find_all("td")
                if len(cells) < 3:
                    return
                tender = cells[0].get_text(" ", strip=True)
                agency = cells[1].get_text(" ", strip=True)
                responsible = cells[2].get_text(" ", strip=True)
                if not responsible or not agency:
                    return
                contact_cell = cells[3] if len(cells) > 3 else cells[2]
                info = extract_contact_info(contact_cell.get_text(" ", strip=True))
                emails = mailto_addresses(contact_cell) + info.emails
                city, state = "", state_filter
                location = AGENCY_LOCATION.search(agency)
                if location:
                    city = AGENCY_PREFIX.sub("", location.group(1).strip())
                    state = location.group(2)
                contact = self.build_contact(
                    index=f"t{table_index}-{row_index}",
                    name=responsible,
                    position=PROCUREMENT_POSITION,
                    city=city,
                    state=state,
                    email=emails[0] if emails else None,
                    phone=info.phones[0] if info.phones else None,
                    department=agency,
                    source_url=url,
                    metadata={"tender": tender},
                )
                if contact is not None:
                    contacts.append(contact)

            self.each_safely(table.find_all("tr"), handle)
        return contacts
