"""Protocols and lightweight model types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Protocol

from .errors import InvalidSearchError

ALL = "all"

BRAZILIAN_STATES = (
    ("Acre", "AC"),
    ("Alagoas", "AL"),
    ("Amapá", "AP"),
    ("Amazonas", "AM"),
    ("Bahia", "BA"),
    ("Ceará", "CE"),
    ("Distrito Federal", "DF"),
    ("Espírito Santo", "ES"),
    ("Goiás", "GO"),
    ("Maranhão", "MA"),
    ("Mato Grosso", "MT"),
    ("Mato Grosso do Sul", "MS"),
    ("Minas Gerais", "MG"),
    ("Pará", "PA"),
    ("Paraíba", "PB"),
    ("Paraná", "PR"),
    ("Pernambuco", "PE"),
    ("Piauí", "PI"),
    ("Rio de Janeiro", "RJ"),
    ("Rio Grande do Norte", "RN"),
    ("Rio Grande do Sul", "RS"),
    ("Rondônia", "RO"),
    ("Roraima", "RR"),
    ("Santa Catarina", "SC"),
    ("São Paulo", "SP"),
    ("Sergipe", "SE"),
    ("Tocantins", "TO"),
)
STATE_CODES = frozenset(code for _name, code in BRAZILIAN_STATES)


def is_state_code(value: str) -> bool:
    return value.strip().upper() in STATE_CODES


class Position(str, Enum):
    """Job positions a search can be narrowed to."""

    ALL = "all"
    EDUCATION_SECRETARY = "education_secretary"
    LABOR_SECRETARY = "labor_secretary"
    IT_DIRECTOR = "it_director"
    PROCUREMENT = "procurement"


# Identifiers used by the first version of the product, still accepted on input.
POSITION_ALIASES = {
    "todos": Position.ALL,
    "secretario_educacao": Position.EDUCATION_SECRETARY,
    "secretario_trabalho": Position.LABOR_SECRETARY,
    "diretor_ti": Position.IT_DIRECTOR,
    "compras": Position.PROCUREMENT,
}


def parse_position(value: str | Position | None) -> Position:
    """Resolve a position identifier or alias to the enum value."""
    if isinstance(value, Position):
        return value
    key = (value or ALL).strip().lower()
    if key in POSITION_ALIASES:
        return POSITION_ALIASES[key]
    try:
        return Position(key)
    except ValueError as exc:
        raise InvalidSearchError(f"Unknown position: {value!r}") from exc


@dataclass(frozen=True)
class SearchParams:
    """One search request; immutable for the lifetime of a search."""

    query: str = ""
    position: Position = Position.ALL
    state: str = ALL

    @classmethod
    def create(
        cls, query: str | None = "", position: str | Position | None = ALL, state: str | None = ALL
    ) -> SearchParams:
        """Validate raw trigger input and build normalized params."""
        raw_state = (state or ALL).strip()
        if raw_state.lower() in {ALL, "todos"}:
            normalized_state = ALL
        elif is_state_code(raw_state):
            normalized_state = raw_state.upper()
        else:
            raise InvalidSearchError(f"State must be a Brazilian state code or 'all': {state!r}")
        return cls(
            query=(query or "").strip(),
            position=parse_position(position),
            state=normalized_state,
        )

    @property
    def all_positions(self) -> bool:
        return self.position is Position.ALL

    @property
    def all_states(self) -> bool:
        return self.state == ALL

    def query_terms(self) -> list[str]:
        return [term for term in self.query.lower().split() if term]

    def to_dict(self) -> dict[str, str]:
        return {"query": self.query, "position": self.position.value, "state": self.state}


@dataclass(frozen=True)
class Contact:
    """A discovered official and the channels they can be reached through."""

    id: str
    name: str
    position: str
    city: str
    state: str
    department: str
    last_updated: date
    source: str
    position_raw: str = ""
    email: str | None = None
    phone: str | None = None
    source_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape used by the event stream and the Store."""
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "positionRaw": self.position_raw,
            "city": self.city,
            "state": self.state,
            "email": self.email,
            "phone": self.phone,
            "department": self.department,
            "lastUpdated": self.last_updated.isoformat(),
            "source": self.source,
            "sourceUrl": self.source_url,
        }
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Contact:
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            position=str(payload.get("position", "")),
            position_raw=str(payload.get("positionRaw", "")),
            city=str(payload.get("city", "")),
            state=str(payload.get("state", "")),
            email=payload.get("email") or None,
            phone=payload.get("phone") or None,
            department=str(payload.get("department", "")),
            last_updated=date.fromisoformat(str(payload["lastUpdated"])),
            source=str(payload.get("source", "")),
            source_url=payload.get("sourceUrl") or None,
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass(frozen=True)
class DomainTarget:
    """A site crawled by the streaming search; empty state_code means national."""

    name: str
    url: str
    state_code: str = ""


@dataclass
class MonitoringAlert:
    """A saved keyword watch. Deactivated, never deleted."""

    id: str
    keyword: str
    email: str
    is_active: bool = True
    last_check: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "email": self.email,
            "isActive": self.is_active,
            "lastCheck": self.last_check,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> MonitoringAlert:
        return cls(
            id=str(payload["id"]),
            keyword=str(payload.get("keyword", "")),
            email=str(payload.get("email", "")),
            is_active=bool(payload.get("isActive", True)),
            last_check=str(payload.get("lastCheck", "")),
        )


@dataclass(frozen=True)
class SearchHistoryEntry:
    """One executed search as remembered by the Store."""

    query: str
    timestamp: str
    results: int
    filters: dict[str, str]
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "timestamp": self.timestamp,
            "results": self.results,
            "filters": dict(self.filters),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> SearchHistoryEntry:
        return cls(
            id=str(payload.get("id", "")),
            query=str(payload.get("query", "")),
            timestamp=str(payload.get("timestamp", "")),
            results=int(payload.get("results", 0)),
            filters=dict(payload.get("filters") or {}),
        )


@dataclass(frozen=True)
class LogEvent:
    source: str
    message: str
    severity: str = "info"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "log",
            "source": self.source,
            "message": self.message,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class ProgressEvent:
    percent: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": "progress", "percent": self.percent}


@dataclass(frozen=True)
class CompleteEvent:
    """Terminal event carrying the final deduped contact list."""

    results: tuple[Contact, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "complete", "results": [contact.to_dict() for contact in self.results]}


SearchEvent = LogEvent | ProgressEvent | CompleteEvent


class Fetcher(Protocol):
    """Contract for HTML fetchers."""

    def fetch(
        self, url: str, *, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> str:
        """Return response body for a URL or an empty string."""


class SourceAdapter(Protocol):
    """Contract for one external contact source."""

    name: str

    def search(self, params: SearchParams) -> list[Contact]:
        """Return contacts for a search; never raises."""


class ExtractionStrategy(Protocol):
    """Contract for turning one HTML element into contact candidates."""

    def candidates(self, element: Any) -> list[Any]:
        """Return ContactCandidate objects found in the element."""


class Store(Protocol):
    """Persistence collaborator. Implementations live outside the search core."""

    def get_active_alerts(self) -> list[MonitoringAlert]:
        """Return alerts with is_active set."""

    def update_alert_last_check(self, alert_id: str, timestamp: str) -> None:
        """Refresh an alert's last check timestamp."""

    def create_alert(self, keyword: str, email: str) -> str:
        """Create an active alert and return its id."""

    def deactivate_alert(self, alert_id: str) -> None:
        """Mark an alert inactive."""

    def save_search_results(self, contacts: list[Contact]) -> None:
        """Upsert contacts by id."""

    def save_search_history(self, entry: SearchHistoryEntry) -> str:
        """Record a search and return the entry id."""

    def get_search_history(self, limit: int = 10) -> list[SearchHistoryEntry]:
        """Return the most recent searches, newest first."""

    def clear_search_history(self) -> None:
        """Remove all history entries."""

    def toggle_favorite(self, contact_id: str) -> bool:
        """Flip favorite state; return True when the contact is now a favorite."""

    def get_favorites(self) -> list[str]:
        """Return favorite contact ids."""
