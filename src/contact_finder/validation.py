"""Validation and runtime guardrails."""

from __future__ import annotations

import socket
from urllib.parse import urlparse

import dns.resolver

from .errors import ConfigError
from .extraction import EMAIL_REGEX, is_valid_phone
from .models import Contact


def is_supported_url(url: str) -> bool:
    """Allow only absolute HTTP(S) URLs with a hostname."""
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def normalize_urls(urls: list[str]) -> list[str]:
    """Normalize and dedupe candidate URL list."""
    output: list[str] = []
    seen: set[str] = set()
    for raw in urls:
        value = raw.strip()
        if not is_supported_url(value):
            continue
        key = value.split("?", maxsplit=1)[0].rstrip("/")
        if key in seen:
            continue
        seen.add(key)
        output.append(value)
    return output


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_REGEX.fullmatch(email.strip()) is not None


def has_usable_contact(email: str | None, phone: str | None) -> bool:
    """The one validity rule every source applies before emitting a contact."""
    return is_valid_email(email) or (bool(phone) and is_valid_phone(phone or ""))


def dedup_key(contact: Contact) -> tuple[str, str, str]:
    """Identity of a contact across sources: name, email and phone."""
    return (contact.name, contact.email or "", contact.phone or "")


def dedupe_contacts(contacts: list[Contact]) -> list[Contact]:
    """Keep the first contact for each dedup key, in input order."""
    seen: set[tuple[str, str, str]] = set()
    output: list[Contact] = []
    for contact in contacts:
        key = dedup_key(contact)
        if key in seen:
            continue
        seen.add(key)
        output.append(contact)
    return output


def validate_runtime_constraints(
    *,
    workers: int,
    timeouts: dict[str, float],
    max_candidate_urls: int,
    max_block_chars: int,
) -> None:
    """Validate runtime configuration and raise ConfigError on invalid values."""
    if workers < 1:
        raise ConfigError("--workers must be >= 1.")
    for name, value in timeouts.items():
        if value <= 0:
            raise ConfigError(f"{name} must be > 0.")
    if max_candidate_urls < 1:
        raise ConfigError("--max-candidate-urls must be >= 1.")
    if max_block_chars < 1:
        raise ConfigError("max_block_chars must be >= 1.")


def mx_check(email: str) -> bool:
    """Return True when target domain has MX or A record."""
    try:
        domain = email.split("@", maxsplit=1)[1]
    except IndexError:
        return False
    try:
        answers = dns.resolver.resolve(domain, "MX", lifetime=8)
        return bool(answers)
    except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
        try:
            socket.gethostbyname(domain)
            return True
        except OSError:
            return False
    except dns.exception.DNSException:
        return False
