"""Static source registries, injectable and overridable from a JSON file.

Every table here is data, not behavior: candidate URLs, the keyword-mapping
tables that translate a :class:`Position` into each provider's vocabulary,
crawl keywords and URL location hints.  ``load_registry`` reads a JSON
document whose top-level keys mirror the :class:`SourceRegistry` fields and
replaces the matching defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError, InvalidSearchError
from .models import DomainTarget, Position, parse_position


@dataclass(frozen=True)
class Municipality:
    city: str
    state: str
    url: str
    paths: tuple[str, ...] = ("/",)


@dataclass(frozen=True)
class LocationHint:
    """A URL substring that pins a site to a city and/or state."""

    pattern: str
    state: str
    city: str = ""


DEFAULT_DOMAIN_TARGETS = (
    DomainTarget("Prefeitura de São Paulo", "https://www.capital.sp.gov.br", "SP"),
    DomainTarget("Prefeitura do Rio de Janeiro", "https://www.rio.rj.gov.br", "RJ"),
    DomainTarget("Prefeitura de Belo Horizonte", "https://prefeitura.pbh.gov.br", "MG"),
    DomainTarget("Portal da Transparência", "https://portaldatransparencia.gov.br"),
    DomainTarget("Diário Oficial", "https://www.in.gov.br"),
)

DEFAULT_MUNICIPALITIES = (
    Municipality(
        "São Paulo",
        "SP",
        "https://www.capital.sp.gov.br",
        ("/", "/secretarias-municipais", "/contato"),
    ),
    Municipality(
        "Rio de Janeiro",
        "RJ",
        "https://www.rio.rj.gov.br",
        ("/", "/web/transparenciacarioca", "/web/transparenciacarioca/secretarias"),
    ),
    Municipality(
        "Belo Horizonte",
        "MG",
        "https://prefeitura.pbh.gov.br",
        ("/", "/estrutura-de-governo", "/transparencia"),
    ),
    Municipality("Salvador", "BA", "https://www.salvador.ba.gov.br", ("/", "/secretarias")),
    Municipality(
        "Fortaleza",
        "CE",
        "https://www.fortaleza.ce.gov.br",
        ("/", "/institucional/a-secretaria", "/institucional/secretarias-regionais"),
    ),
    Municipality("Curitiba", "PR", "https://www.curitiba.pr.gov.br", ("/", "/secretarias")),
    Municipality("Recife", "PE", "https://www2.recife.pe.gov.br", ("/", "/secretarias-e-orgaos")),
    Municipality(
        "Porto Alegre", "RS", "https://prefeitura.poa.br", ("/", "/estrutura/secretarias")
    ),
    Municipality("Goiânia", "GO", "https://www.goiania.go.gov.br", ("/", "/secretarias")),
    Municipality("Manaus", "AM", "https://www.manaus.am.gov.br", ("/", "/secretarias")),
)

DEFAULT_TRANSPARENCY_URLS = (
    "https://portaldatransparencia.gov.br/servidores",
    "https://www.portaltransparencia.gov.br/servidores",
    "https://transparencia.gov.br/servidores",
)

DEFAULT_GAZETTE_URLS = (
    "https://www.imprensaoficial.com.br",
    "https://www.ioerj.com.br",
    "https://www.iof.mg.gov.br",
    "https://www.in.gov.br",
    "https://dosp.com.br",
    "https://dom.sc.gov.br",
)

DEFAULT_GAZETTE_STATE_URLS = {
    "SP": ("https://www.imprensaoficial.com.br", "https://dosp.com.br"),
    "RJ": ("https://www.ioerj.com.br",),
    "MG": ("https://www.iof.mg.gov.br",),
    "SC": ("https://dom.sc.gov.br",),
}

DEFAULT_PROCUREMENT_URLS = (
    "https://www.gov.br/compras",
    "https://compras.gov.br",
    "https://www.comprasgovernamentais.gov.br",
    "https://comprasnet.gov.br",
)

DEFAULT_POSITION_TERMS = {
    "transparency": {
        Position.EDUCATION_SECRETARY: "SECRETÁRIO MUNICIPAL DE EDUCAÇÃO",
        Position.LABOR_SECRETARY: "SECRETÁRIO MUNICIPAL DE TRABALHO",
        Position.IT_DIRECTOR: "DIRETOR DE TECNOLOGIA DA INFORMAÇÃO",
        Position.PROCUREMENT: "DIRETOR DE COMPRAS",
    },
    "gazette": {
        Position.EDUCATION_SECRETARY: "Secretário Municipal de Educação",
        Position.LABOR_SECRETARY: "Secretário Municipal de Trabalho",
        Position.IT_DIRECTOR: "Diretor de Tecnologia da Informação",
        Position.PROCUREMENT: "Diretor de Compras",
    },
    "municipality": {
        Position.EDUCATION_SECRETARY: "Secretário(a) de Educação",
        Position.LABOR_SECRETARY: "Secretário(a) de Trabalho",
        Position.IT_DIRECTOR: "Diretor(a) de Tecnologia da Informação",
        Position.PROCUREMENT: "Diretor(a) de Compras",
    },
    "procurement": {
        Position.EDUCATION_SECRETARY: "Responsável por Educação",
        Position.LABOR_SECRETARY: "Responsável por Trabalho",
        Position.IT_DIRECTOR: "Responsável por TI",
        Position.PROCUREMENT: "Responsável por Compras",
    },
    "web_search": {
        Position.EDUCATION_SECRETARY: "secretário municipal de educação",
        Position.LABOR_SECRETARY: "secretário municipal de trabalho",
        Position.IT_DIRECTOR: "diretor de tecnologia da informação prefeitura",
        Position.PROCUREMENT: "diretor de compras prefeitura",
    },
}

DEFAULT_GENERIC_TERMS = {
    "gazette": ("secretário", "nomeação", "designação"),
    "municipality": ("secretário", "secretaria", "contato"),
    "procurement": ("licitação", "pregão", "compras", "edital"),
    "web_search": ("prefeitura", "secretário", "secretaria", "municipal", "diretor"),
}

DEFAULT_CRAWL_TERMS = (
    "secretaria",
    "secretário",
    "contato",
    "equipe",
    "estrutura",
    "governo",
    "gestão",
    "organograma",
    "transparência",
)

DEFAULT_CRAWL_POSITION_TERMS = {
    Position.EDUCATION_SECRETARY: ("educação", "ensino", "escolar"),
    Position.LABOR_SECRETARY: ("trabalho", "emprego", "renda"),
    Position.IT_DIRECTOR: ("tecnologia", "informação", "ti", "informática"),
    Position.PROCUREMENT: ("compras", "licitação", "pregão", "contratação"),
}

DEFAULT_CRAWL_FALLBACK_PATHS = ("/contato", "/secretarias", "/governo", "/estrutura", "/equipe")

DEFAULT_LOCATION_HINTS = (
    LocationHint("capital.sp", "SP", "São Paulo"),
    LocationHint("prefeitura.sp", "SP", "São Paulo"),
    LocationHint("sp.gov", "SP"),
    LocationHint("rio.rj", "RJ", "Rio de Janeiro"),
    LocationHint("prefeitura.rio", "RJ", "Rio de Janeiro"),
    LocationHint("rj.gov", "RJ"),
    LocationHint("pbh.gov", "MG", "Belo Horizonte"),
    LocationHint("mg.gov", "MG"),
    LocationHint("imprensaoficial.com.br", "SP"),
    LocationHint("dosp.com.br", "SP"),
    LocationHint("ioerj.com.br", "RJ"),
    LocationHint("dom.sc.gov.br", "SC"),
)


@dataclass(frozen=True)
class SourceRegistry:
    """All static lookup data consumed by sources and the crawler."""

    domain_targets: tuple[DomainTarget, ...] = DEFAULT_DOMAIN_TARGETS
    municipalities: tuple[Municipality, ...] = DEFAULT_MUNICIPALITIES
    transparency_urls: tuple[str, ...] = DEFAULT_TRANSPARENCY_URLS
    gazette_urls: tuple[str, ...] = DEFAULT_GAZETTE_URLS
    gazette_state_urls: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_GAZETTE_STATE_URLS)
    )
    procurement_urls: tuple[str, ...] = DEFAULT_PROCUREMENT_URLS
    position_terms: dict[str, dict[Position, str]] = field(
        default_factory=lambda: {key: dict(value) for key, value in DEFAULT_POSITION_TERMS.items()}
    )
    generic_terms: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_GENERIC_TERMS)
    )
    crawl_terms: tuple[str, ...] = DEFAULT_CRAWL_TERMS
    crawl_position_terms: dict[Position, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_CRAWL_POSITION_TERMS)
    )
    crawl_fallback_paths: tuple[str, ...] = DEFAULT_CRAWL_FALLBACK_PATHS
    location_hints: tuple[LocationHint, ...] = DEFAULT_LOCATION_HINTS

    def position_term(self, source: str, position: Position) -> str:
        """Provider phrasing for a position; empty for Position.ALL or unmapped."""
        return self.position_terms.get(source, {}).get(position, "")

    def targets_for_state(self, state: str) -> list[DomainTarget]:
        """National targets are always kept; state-bound ones only on a match."""
        if state == "all":
            return list(self.domain_targets)
        return [
            target
            for target in self.domain_targets
            if not target.state_code or target.state_code == state
        ]

    def locate(self, url: str) -> tuple[str, str]:
        """Return (city, state) implied by a site URL."""
        lowered = url.lower()
        city = ""
        state = ""
        for hint in self.location_hints:
            if hint.pattern not in lowered:
                continue
            city = city or hint.city
            state = state or hint.state
        return city, state


def _positions(mapping: dict[str, Any]) -> dict[Position, Any]:
    return {parse_position(key): value for key, value in mapping.items()}


def _sequence(name: str, value: Any) -> tuple[Any, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"Registry entry {name} must be a list, got {type(value).__name__}")
    return tuple(value)


def _convert(name: str, value: Any) -> Any:
    if name == "domain_targets":
        return tuple(
            DomainTarget(item["name"], item["url"], item.get("state_code", "")) for item in value
        )
    if name == "municipalities":
        return tuple(
            Municipality(item["city"], item["state"], item["url"], tuple(item.get("paths", ["/"])))
            for item in value
        )
    if name == "location_hints":
        return tuple(
            LocationHint(item["pattern"], item.get("state", ""), item.get("city", ""))
            for item in value
        )
    if name == "gazette_state_urls":
        return {state.upper(): _sequence(f"{name}.{state}", urls) for state, urls in value.items()}
    if name == "position_terms":
        return {source: _positions(mapping) for source, mapping in value.items()}
    if name == "generic_terms":
        return {source: _sequence(f"{name}.{source}", terms) for source, terms in value.items()}
    if name == "crawl_position_terms":
        return {
            position: _sequence(f"{name}.{position.value}", terms)
            for position, terms in _positions(value).items()
        }
    return _sequence(name, value)


def load_registry(path: str | Path, base: SourceRegistry | None = None) -> SourceRegistry:
    """Load registry overrides from a JSON file on top of ``base`` (or the defaults)."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read registry file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Registry file must contain a JSON object.")

    known = {item.name for item in fields(SourceRegistry)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown registry keys: {', '.join(unknown)}")
    try:
        overrides = {name: _convert(name, value) for name, value in payload.items()}
    except (KeyError, TypeError, AttributeError, InvalidSearchError) as exc:
        raise ConfigError(f"Malformed registry entry: {exc}") from exc
    return replace(base or SourceRegistry(), **overrides)
