"""Shared behavior for source adapters."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any, TypeVar

from bs4 import BeautifulSoup

from ..config import FinderConfig
from ..extraction import (
    ContactCandidate,
    FreeTextStrategy,
    TableRowStrategy,
    extract_emails,
    extract_phones,
    format_phone,
    is_valid_phone,
    slugify,
)
from ..models import Contact, ExtractionStrategy, Fetcher, SearchParams
from ..normalization import infer_department_from_position, normalize_position
from ..registry import SourceRegistry
from ..validation import has_usable_contact, is_valid_email

T = TypeVar("T")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def first_text(element: Any, selector: str) -> str:
    """Text of the first node matching ``selector`` inside ``element``, or ""."""
    node = element.select_one(selector)
    return node.get_text(" ", strip=True) if node is not None else ""


def first_href(element: Any, selector: str = "a[href]") -> str:
    node = element.select_one(selector)
    return str(node.get("href", "")).strip() if node is not None else ""


def split_location(text: str) -> tuple[str, str]:
    """Split a "City/UF" label into its parts."""
    parts = [part.strip() for part in text.split("/")]
    city = parts[0] if parts else ""
    state = parts[1].upper() if len(parts) > 1 else ""
    return city, state


def first_email(text: str) -> str:
    emails = extract_emails(text)
    return emails[0] if emails else ""


def first_phone(text: str) -> str:
    phones = extract_phones(text)
    return phones[0] if phones else ""


def matches_any(text: str, terms: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(term.lower() in lowered for term in terms if term)


class BaseAdapter:
    """Template for one external source.

    Subclasses implement ``_search``; ``search`` wraps it so that nothing
    escapes to the orchestrator. Contacts are built through ``build_contact``,
    which applies the shared validity rule and id scheme.
    """

    name = ""
    key = ""
    prefix = ""

    def __init__(
        self,
        *,
        fetcher: Fetcher,
        config: FinderConfig,
        registry: SourceRegistry,
        logger: logging.Logger,
        text_strategy: ExtractionStrategy | None = None,
        row_strategy: ExtractionStrategy | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._registry = registry
        self._logger = logger
        self._text_strategy = text_strategy or FreeTextStrategy()
        self._row_strategy = row_strategy or TableRowStrategy()
        self._today = today

    def search(self, params: SearchParams) -> list[Contact]:
        self._logger.info("[%s] searching %s", self.name, params.to_dict())
        try:
            contacts = self._search(params)
        except Exception as exc:
            self._logger.warning("[%s] search failed: %s", self.name, exc)
            return []
        if not contacts:
            self._logger.info("[%s] no contacts found", self.name)
        else:
            self._logger.info("[%s] found %d contacts", self.name, len(contacts))
        return contacts

    def _search(self, params: SearchParams) -> list[Contact]:
        raise NotImplementedError

    def position_term(self, params: SearchParams) -> str:
        return self._registry.position_term(self.key, params.position)

    def search_terms(self, params: SearchParams) -> list[str]:
        """Free query plus the provider's position phrase, else generic terms."""
        terms = [term for term in (params.query, self.position_term(params)) if term]
        return terms or list(self._registry.generic_terms.get(self.key, ()))

    def each_safely(self, elements: Iterable[T], handler: Callable[[int, T], None]) -> None:
        """Apply ``handler`` per element; a broken element is skipped, not fatal."""
        for index, element in enumerate(elements):
            try:
                handler(index, element)
            except Exception as exc:
                self._logger.debug("[%s] skipping unparsable element %d: %s", self.name, index, exc)

    def build_contact(
        self,
        *,
        index: int | str,
        name: str,
        position: str,
        city: str,
        state: str,
        email: str | None,
        phone: str | None,
        source: str | None = None,
        source_url: str | None = None,
        department: str | None = None,
        normalize: bool = True,
        last_updated: date | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Contact | None:
        """Return a Contact, or None when it has no usable email or phone."""
        name = " ".join((name or "").split())
        email = (email or "").strip() or None
        phone = (phone or "").strip() or None
        if not name or not has_usable_contact(email, phone):
            return None
        return Contact(
            id=f"{self.prefix}-{index}-{state}-{slugify(name)}",
            name=name,
            position=normalize_position(position) if normalize else position,
            position_raw=position,
            city=city,
            state=state,
            email=email if is_valid_email(email) else None,
            phone=format_phone(phone) if phone and is_valid_phone(phone) else None,
            department=department or infer_department_from_position(position),
            last_updated=last_updated or self._today(),
            source=source or self.name,
            source_url=source_url,
            metadata=dict(metadata or {}),
        )

    def contacts_from_candidates(
        self,
        candidates: list[ContactCandidate],
        *,
        index: int | str,
        fallback_position: str = "",
        **fields: Any,
    ) -> list[Contact]:
        """Build contacts for each candidate; the id index is ``{index}-{n}``."""
        contacts: list[Contact] = []
        for offset, candidate in enumerate(candidates):
            contact = self.build_contact(
                index=f"{index}-{offset}",
                name=candidate.name,
                position=candidate.position or fallback_position,
                email=candidate.email,
                phone=candidate.phone,
                **fields,
            )
            if contact is not None:
                contacts.append(contact)
        return contacts
