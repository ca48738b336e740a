"""Federal transparency portal (public servant listings)."""

from __future__ import annotations

from typing import Any

from ..extraction import canonicalize_url
from ..models import Contact, SearchParams
from .base import (
    BaseAdapter,
    first_email,
    first_href,
    first_phone,
    first_text,
    parse_html,
    split_location,
)

BLOCK_SELECTOR = ".resultado-busca, .servidor, .funcionario"


class TransparencyPortalAdapter(BaseAdapter):
    name = "Portal da Transparência"
    key = "transparency"
    prefix = "pt"

    def _search(self, params: SearchParams) -> list[Contact]:
        query = {
            "q": params.query,
            "cargo": self.position_term(params),
            "uf": "" if params.all_states else params.state,
            "pagina": 1,
        }
        results: list[Contact] = []
        for base_url in self._registry.transparency_urls:
            html = self._fetcher.fetch(base_url, params=query, timeout=self._config.request_timeout)
            if not html:
                continue
            results.extend(self._parse(html, base_url))
            if results:
                break
        return results

    def _parse(self, html: str, base_url: str) -> list[Contact]:
        soup = parse_html(html)
        contacts: list[Contact] = []

        def handle(index: int, element: Any) -> None:
            name = first_text(element, ".nome-servidor, .nome, h3")
            position = first_text(element, ".cargo, .funcao")
            if not name or not position:
                return
            city, state = split_location(first_text(element, ".lotacao, .local"))
            email = first_href(element, "a[href^='mailto:']").removeprefix("mailto:")
            email = email.split("?", maxsplit=1)[0] or first_email(first_text(element, ".email"))
            phone = first_phone(first_text(element, ".telefone, .phone"))
            if not email and not phone:
                info = self._text_strategy.candidates(element)
                email = next((item.email for item in info if item.email), "") or ""
                phone = next((item.phone for item in info if item.phone), "") or ""
            details = first_href(element, "a[href]:not([href^='mailto:'])")
            contact = self.build_contact(
                index=index,
                name=name,
                position=position,
                city=city,
                state=state,
                email=email,
                phone=phone,
                department=first_text(element, ".orgao, .departamento") or None,
                source_url=canonicalize_url(details, base_url) if details else base_url,
            )
            if contact is not None:
                contacts.append(contact)

        self.each_safely(soup.select(BLOCK_SELECTOR), handle)
        return contacts
