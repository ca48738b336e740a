"""Job title normalization and department inference."""

from __future__ import annotations

import re

from .models import Position

UNSPECIFIED_POSITION = "Não especificado"
DEFAULT_DEPARTMENT = "Prefeitura Municipal"

EDUCATION_SECRETARY = "Secretário Municipal de Educação"
LABOR_SECRETARY = "Secretário Municipal de Trabalho"
IT_DIRECTOR = "Diretor de Tecnologia da Informação"
PROCUREMENT_DIRECTOR = "Diretor de Compras"

POSITION_VARIANTS = {
    "secretário de educação": EDUCATION_SECRETARY,
    "secretária de educação": EDUCATION_SECRETARY,
    "secretário municipal de educação": EDUCATION_SECRETARY,
    "secretária municipal de educação": EDUCATION_SECRETARY,
    "sec. de educação": EDUCATION_SECRETARY,
    "sec. municipal de educação": EDUCATION_SECRETARY,
    "secretário de trabalho": LABOR_SECRETARY,
    "secretária de trabalho": LABOR_SECRETARY,
    "secretário municipal de trabalho": LABOR_SECRETARY,
    "secretária municipal de trabalho": LABOR_SECRETARY,
    "sec. de trabalho": LABOR_SECRETARY,
    "sec. municipal de trabalho": LABOR_SECRETARY,
    "secretário de trabalho e renda": LABOR_SECRETARY,
    "secretário municipal de trabalho e renda": LABOR_SECRETARY,
    "diretor de ti": IT_DIRECTOR,
    "diretora de ti": IT_DIRECTOR,
    "diretor de tecnologia": IT_DIRECTOR,
    "diretora de tecnologia": IT_DIRECTOR,
    "diretor de tecnologia da informação": IT_DIRECTOR,
    "diretora de tecnologia da informação": IT_DIRECTOR,
    "gerente de ti": IT_DIRECTOR,
    "coordenador de ti": IT_DIRECTOR,
    "diretor de compras": PROCUREMENT_DIRECTOR,
    "diretora de compras": PROCUREMENT_DIRECTOR,
    "diretor de licitações": PROCUREMENT_DIRECTOR,
    "diretora de licitações": PROCUREMENT_DIRECTOR,
    "diretor de compras e licitações": PROCUREMENT_DIRECTOR,
    "diretora de compras e licitações": PROCUREMENT_DIRECTOR,
    "coordenador de compras": PROCUREMENT_DIRECTOR,
    "coordenadora de compras": PROCUREMENT_DIRECTOR,
    "responsável por compras": PROCUREMENT_DIRECTOR,
}

POSITION_LABELS = {
    Position.EDUCATION_SECRETARY: EDUCATION_SECRETARY,
    Position.LABOR_SECRETARY: LABOR_SECRETARY,
    Position.IT_DIRECTOR: IT_DIRECTOR,
    Position.PROCUREMENT: PROCUREMENT_DIRECTOR,
}

# "ti" only counts as a whole word; otherwise "gestão de atividades" reads as IT.
_IT_TOKEN = re.compile(r"\bti\b")


def normalize_position(raw: str | None) -> str:
    """Collapse known title variants to one canonical label.

    Unknown titles come back with only the first character upper-cased, so
    ``"bizarre title"`` becomes ``"Bizarre title"``.
    """
    if not raw or not raw.strip():
        return UNSPECIFIED_POSITION
    key = raw.strip().lower()
    if key in POSITION_VARIANTS:
        return POSITION_VARIANTS[key]
    return key[0].upper() + key[1:]


def infer_department_from_position(raw: str | None) -> str:
    """Guess the organizational unit from keywords in a job title."""
    if not raw:
        return DEFAULT_DEPARTMENT
    text = raw.strip().lower()
    if "educação" in text:
        return "Secretaria Municipal de Educação"
    if "trabalho" in text:
        return "Secretaria Municipal de Trabalho"
    if "tecnologia" in text or _IT_TOKEN.search(text):
        return "Secretaria Municipal de Administração"
    if "compras" in text or "licitações" in text:
        return "Secretaria Municipal de Administração"
    return DEFAULT_DEPARTMENT


def position_label(position: Position) -> str:
    """Canonical title for a searchable position; empty for Position.ALL."""
    return POSITION_LABELS.get(position, "")
