"""Municipal government websites (secretariat and staff pages)."""

from __future__ import annotations

from typing import Any

from bs4 import BeautifulSoup

from ..extraction import canonicalize_url, mailto_addresses
from ..models import Contact, SearchParams
from ..registry import Municipality
from .base import (
    BaseAdapter,
    first_email,
    first_href,
    first_phone,
    first_text,
    matches_any,
    parse_html,
)

CARD_SELECTOR = (
    "div.secretaria, div.contato, div.equipe, div.servidor, div.funcionario, "
    "div.card, div.membro, div.pessoa"
)
NAME_SELECTOR = "h2, h3, .nome, .title, .name"
POSITION_SELECTOR = ".cargo, .position, .funcao, .role"
DEPARTMENT_SELECTOR = ".departamento, .secretaria, .setor, .department"
PHONE_SELECTOR = ".telefone, .phone, .contato, .tel"


class MunicipalityAdapter(BaseAdapter):
    name = "Sites de Prefeituras"
    key = "municipality"
    prefix = "pref"

    def municipalities(self, params: SearchParams) -> list[Municipality]:
        if params.all_states:
            return list(self._registry.municipalities)
        return [item for item in self._registry.municipalities if item.state == params.state]

    def _search(self, params: SearchParams) -> list[Contact]:
        terms = self.search_terms(params)
        results: list[Contact] = []
        for municipality in self.municipalities(params):
            requests = [(municipality.url + path, None) for path in municipality.paths]
            requests.append((municipality.url + "/busca", {"q": " ".join(terms)}))
            for url, query in requests:
                self._logger.debug("[%s] fetching %s", self.name, url)
                html = self._fetcher.fetch(
                    url, params=query, timeout=self._config.municipality_timeout
                )
                if not html:
                    continue
                soup = parse_html(html)
                results.extend(self._parse_cards(soup, municipality, url))
                results.extend(self._parse_tables(soup, municipality, url, terms))
        return results

    def _source(self, municipality: Municipality) -> str:
        return f"Site da Prefeitura de {municipality.city}"

    def _parse_cards(
        self, soup: BeautifulSoup, municipality: Municipality, page_url: str
    ) -> list[Contact]:
        contacts: list[Contact] = []

        def handle(index: int, element: Any) -> None:
            name = first_text(element, NAME_SELECTOR)
            position = first_text(element, POSITION_SELECTOR)
            if not name or not position:
                return
            emails = mailto_addresses(element)
            details = first_href(element, "a[href]:not([href^='mailto:'])")
            contact = self.build_contact(
                index=index,
                name=name,
                position=position,
                city=municipality.city,
                state=municipality.state,
                email=emails[0] if emails else first_email(element.get_text(" ", strip=True)),
                phone=first_phone(first_text(element, PHONE_SELECTOR)),
                department=first_text(element, DEPARTMENT_SELECTOR) or None,
                source=self._source(municipality),
                source_url=canonicalize_url(details, municipality.url) if details else page_url,
            )
            if contact is not None:
                contacts.append(contact)

        self.each_safely(soup.select(CARD_SELECTOR), handle)
        return contacts

    def _parse_tables(
        self, soup: BeautifulSoup, municipality: Municipality, page_url: str, terms: list[str]
    ) -> list[Contact]:
        contacts: list[Contact] = []
        for table_index, table in enumerate(soup.find_all("table")):
            if not matches_any(table.get_text(" ", strip=True), terms):
                continue

            def handle(row_index: int, row: Any, table_index: int = table_index) -> None:
                cells = row.find_all("td")
                department = cells[2].get_text(" ", strip=True) if len(cells) > 2 else ""
                if "@" in department:
                    department = ""
                contacts.extend(
                    self.contacts_from_candidates(
                        self._row_strategy.candidates(row),
                        index=f"t{table_index}-{row_index}",
                        city=municipality.city,
                        state=municipality.state,
                        department=department or None,
                        source=self._source(municipality),
                        source_url=page_url,
                    )
                )

            self.each_safely(table.find_all("tr"), handle)
        return contacts
