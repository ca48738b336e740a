"""Pure extraction, phone formatting and URL normalization utilities."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import Tag

UNIDENTIFIED_NAME = "Não identificado"

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
# Optional area code, "(11) ", "11 " or "11", then a 4-5 digit prefix and 4 digit suffix.
PHONE_CANDIDATE_REGEX = re.compile(r"(?<!\d)(?:\(\d{2}\)\s*|\d{2}\s*)?\d{4,5}[-\s]?\d{4}(?!\d)")
DISPLAY_PHONE_REGEX = re.compile(r"^(\(\d{2}\) )?\d{4,5}-\d{4}$")
_UPPER = "A-ZÀ-ÖØ-Þ"
_LOWER = "a-zß-öø-ÿ"
NAME_REGEX = re.compile(rf"[{_UPPER}][{_LOWER}]+(?:\s+[{_UPPER}][{_LOWER}]+)+")
POSITION_REGEX = re.compile(
    r"secret[aá]ri[oa]\s+(?:municipal\s+)?de\s+\w+"
    r"|diretora?\s+(?:de\s+)?(?:ti|tecnologia|compras)\b",
    re.IGNORECASE,
)
POSITION_HINT_REGEX = re.compile(
    r"secret[aá]ri[oa]|diretora?|coordenadora?|gerente|chefe", re.IGNORECASE
)
# Capitalized runs made of these words are titles or institutions, not people.
INSTITUTIONAL_WORDS = frozenset(
    {
        "secretário", "secretária", "secretaria", "prefeitura", "prefeito", "prefeita",
        "municipal", "diretor", "diretora", "diretoria", "coordenador", "coordenadora",
        "gerente", "chefe", "governo", "câmara", "portal", "diário", "oficial", "estado",
        "educação", "trabalho", "administração", "tecnologia", "informação", "compras",
        "licitações", "saúde", "fazenda", "obras", "planejamento", "renda", "emprego",
    }
)  # fmt: skip

VALID_AREA_CODES = frozenset(
    {
        "11", "12", "13", "14", "15", "16", "17", "18", "19",
        "21", "22", "24", "27", "28",
        "31", "32", "33", "34", "35", "37", "38",
        "41", "42", "43", "44", "45", "46", "47", "48", "49",
        "51", "53", "54", "55",
        "61", "62", "63", "64", "65", "66", "67", "68", "69",
        "71", "73", "74", "75", "77", "79",
        "81", "82", "83", "84", "85", "86", "87", "88", "89",
        "91", "92", "93", "94", "95", "96", "97", "98", "99",
    }
)  # fmt: skip


@dataclass(frozen=True)
class ContactInfo:
    """Raw contact channels found in one piece of text."""

    emails: list[str]
    phones: list[str]
    possible_names: list[str]

    @property
    def has_name(self) -> bool:
        return self.possible_names != [UNIDENTIFIED_NAME]


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def format_phone(phone: str) -> str:
    """Format a Brazilian number for display; unformattable input is returned as-is."""
    digits = digits_only(phone)
    if len(digits) in (10, 11):
        split = 7 if len(digits) == 11 else 6
        return f"({digits[:2]}) {digits[2:split]}-{digits[split:]}"
    if len(digits) == 9:
        return f"{digits[:5]}-{digits[5:]}"
    if len(digits) == 8:
        return f"{digits[:4]}-{digits[4:]}"
    return phone


def is_valid_phone(phone: str) -> bool:
    """Return True for plausible Brazilian fixed or mobile numbers."""
    digits = digits_only(phone)
    if not 8 <= len(digits) <= 11:
        return False
    if len(set(digits)) == 1:
        return False
    if len(digits) >= 10 and digits[:2] not in VALID_AREA_CODES:
        return False
    return bool(DISPLAY_PHONE_REGEX.match(format_phone(digits)))


def extract_emails(text: str) -> list[str]:
    """Return emails in order of appearance, duplicates included."""
    return EMAIL_REGEX.findall(text or "")


def extract_phones(text: str) -> list[str]:
    """Return valid phone substrings, one per distinct number."""
    phones: list[str] = []
    seen: set[str] = set()
    for match in PHONE_CANDIDATE_REGEX.finditer(text or ""):
        candidate = match.group(0).strip()
        digits = digits_only(candidate)
        if digits in seen or not is_valid_phone(candidate):
            continue
        seen.add(digits)
        phones.append(candidate)
    return phones


def extract_names(text: str) -> list[str]:
    return [" ".join(match.group(0).split()) for match in NAME_REGEX.finditer(text or "")]


def extract_contact_info(text: str | None) -> ContactInfo:
    """Pull emails, phones and name candidates out of free text. Never raises."""
    text = text or ""
    names = extract_names(text)
    return ContactInfo(
        emails=extract_emails(text),
        phones=extract_phones(text),
        possible_names=names or [UNIDENTIFIED_NAME],
    )


def find_position(text: str) -> str:
    match = POSITION_REGEX.search(text or "")
    return match.group(0) if match else ""


def personal_names(names: list[str]) -> list[str]:
    """Split name runs at title/institution words and keep runs of two or more tokens."""
    output: list[str] = []
    for name in names:
        run: list[str] = []
        for token in name.split() + [""]:
            if token and token.lower() not in INSTITUTIONAL_WORDS:
                run.append(token)
                continue
            if len(run) >= 2:
                output.append(" ".join(run))
            run = []
    return dedupe_preserve_order(output)


def slugify(value: str) -> str:
    return re.sub(r"\s+", "-", value.strip()).lower()


def canonicalize_url(href: str, base: str) -> str:
    """Resolve relative URLs and strip hash fragments."""
    return urljoin(base, href).split("#", maxsplit=1)[0]


def domain_from_url(url: str) -> str:
    """Lowercase host of a URL without port or credentials; empty when there is none."""
    return urlparse(url).hostname or ""


def dedupe_preserve_order(items: list[str]) -> list[str]:
    """Dedupe values while preserving first-seen order."""
    output: list[str] = []
    seen: set[str] = set()
    for item in items:
        normalized = item.split("#", maxsplit=1)[0]
        if normalized in seen:
            continue
        seen.add(normalized)
        output.append(item)
    return output


def mailto_addresses(element: Any) -> list[str]:
    """Addresses from mailto links inside an element, query strings dropped."""
    if not isinstance(element, Tag):
        return []
    addresses: list[str] = []
    for anchor in element.select("a[href^='mailto:']"):
        address = str(anchor["href"]).split(":", maxsplit=1)[1].split("?", maxsplit=1)[0].strip()
        if address:
            addresses.append(address)
    return addresses


def element_text(element: Any) -> str:
    if isinstance(element, Tag):
        return element.get_text(" ", strip=True)
    return str(element or "")


@dataclass(frozen=True)
class ContactCandidate:
    """A name paired with the channels found next to it, before validation."""

    name: str
    position: str
    emails: tuple[str, ...]
    phones: tuple[str, ...]
    text: str = ""

    @property
    def email(self) -> str | None:
        return self.emails[0] if self.emails else None

    @property
    def phone(self) -> str | None:
        return self.phones[0] if self.phones else None


class FreeTextStrategy:
    """Finds contacts in unstructured blocks of text.

    A block qualifies only when a name-shaped token appears together with an
    email, a phone number or a job-title keyword. Blocks longer than
    ``max_chars`` are page-level wrappers and are skipped.
    """

    def __init__(self, max_chars: int | None = None) -> None:
        self._max_chars = max_chars

    def qualifies(self, text: str) -> bool:
        if not NAME_REGEX.search(text):
            return False
        return bool(
            EMAIL_REGEX.search(text)
            or PHONE_CANDIDATE_REGEX.search(text)
            or POSITION_HINT_REGEX.search(text)
        )

    def candidates(self, element: Any) -> list[ContactCandidate]:
        text = element_text(element)
        if self._max_chars is not None and len(text) > self._max_chars:
            return []
        if not self.qualifies(text):
            return []
        info = extract_contact_info(text)
        if not info.has_name:
            return []
        emails = tuple(dedupe_preserve_order(mailto_addresses(element) + info.emails))
        position = find_position(text)
        return [
            ContactCandidate(
                name=name,
                position=position,
                emails=emails,
                phones=tuple(info.phones),
                text=text,
            )
            for name in personal_names(info.possible_names)
        ]


class TableRowStrategy:
    """Reads a table row as name / position columns plus channels in any cell."""

    def __init__(
        self, *, name_column: int = 0, position_column: int | None = 1, min_name_length: int = 6
    ) -> None:
        self._name_column = name_column
        self._position_column = position_column
        self._min_name_length = min_name_length

    def candidates(self, element: Any) -> list[ContactCandidate]:
        if not isinstance(element, Tag):
            return []
        cells = element.find_all("td")
        if len(cells) < 2 or len(cells) <= self._name_column:
            return []
        name = " ".join(cells[self._name_column].get_text(" ", strip=True).split())
        if len(name) < self._min_name_length:
            return []
        position = ""
        if self._position_column is not None and len(cells) > self._position_column:
            position = cells[self._position_column].get_text(" ", strip=True)
        text = element_text(element)
        info = extract_contact_info(text)
        emails = tuple(dedupe_preserve_order(mailto_addresses(element) + info.emails))
        return [
            ContactCandidate(
                name=name,
                position=position,
                emails=emails,
                phones=tuple(info.phones),
                text=text,
            )
        ]
