"""Deterministic sample contacts shown when a demo search finds nothing."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from .models import Contact, Position, SearchParams

DEMO_SOURCE = "Dados Simulados"

_POSITION_KEYWORDS = {
    Position.EDUCATION_SECRETARY: "educação",
    Position.LABOR_SECRETARY: "trabalho",
    Position.IT_DIRECTOR: "tecnologia",
    Position.PROCUREMENT: "compras",
}

_SAMPLES = (
    {
        "id": "sim-1",
        "name": "Carlos Eduardo Silva",
        "position": "Secretário Municipal de Educação",
        "city": "São Paulo",
        "state": "SP",
        "email": "carlos.silva@educacao.sp.gov.br",
        "phone": "(11) 3396-0200",
        "department": "Secretaria Municipal de Educação",
        "source_url": "https://educacao.sme.prefeitura.sp.gov.br/",
    },
    {
        "id": "sim-2",
        "name": "Mariana Oliveira",
        "position": "Secretária Municipal de Trabalho",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "email": "mariana.oliveira@trabalho.rio.gov.br",
        "phone": "(21) 2976-1500",
        "department": "Secretaria Municipal de Trabalho e Renda",
        "source_url": "https://trabalho.prefeitura.rio/",
    },
    {
        "id": "sim-3",
        "name": "Roberto Almeida",
        "position": "Diretor de Tecnologia da Informação",
        "city": "Belo Horizonte",
        "state": "MG",
        "email": "roberto.almeida@pbh.gov.br",
        "phone": "(31) 3277-4000",
        "department": "Secretaria Municipal de Administração",
        "source_url": "https://prefeitura.pbh.gov.br/",
    },
    {
        "id": "sim-4",
        "name": "Fernanda Santos",
        "position": "Diretora de Compras",
        "city": "Curitiba",
        "state": "PR",
        "email": "fernanda.santos@curitiba.pr.gov.br",
        "phone": "(41) 3350-8484",
        "department": "Secretaria Municipal de Administração",
        "source_url": "https://www.curitiba.pr.gov.br/",
    },
)


def _matches(contact: Contact, params: SearchParams) -> bool:
    if not params.all_states and contact.state != params.state:
        return False
    keyword = _POSITION_KEYWORDS.get(params.position)
    if keyword and keyword not in contact.position.lower():
        return False
    query = params.query.lower()
    if query and not any(
        query in value.lower() for value in (contact.name, contact.position, contact.department)
    ):
        return False
    return True


def build_fallback_contacts(
    params: SearchParams, today: Callable[[], date] = date.today
) -> list[Contact]:
    """Sample contacts narrowed by ``params``; the full set when nothing matches."""
    contacts = [
        Contact(last_updated=today(), source=DEMO_SOURCE, position_raw=sample["position"], **sample)
        for sample in _SAMPLES
    ]
    matching = [contact for contact in contacts if _matches(contact, params)]
    return matching or contacts
