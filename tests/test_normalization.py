from contact_finder.models import Position, is_state_code
from contact_finder.normalization import (
    infer_department_from_position,
    normalize_position,
    position_label,
)


def test_normalize_position_maps_known_variants() -> None:
    assert normalize_position("secretária de educação") == "Secretário Municipal de Educação"
    assert normalize_position("  Sec. Municipal de Trabalho ") == (
        "Secretário Municipal de Trabalho"
    )
    assert normalize_position("Gerente de TI") == "Diretor de Tecnologia da Informação"
    assert normalize_position("Responsável por Compras") == "Diretor de Compras"


def test_normalize_position_unknown_and_empty() -> None:
    assert normalize_position("bizarre title") == "Bizarre title"
    assert normalize_position("CHEFE DE GABINETE") == "Chefe de gabinete"
    assert normalize_position("") == "Não especificado"
    assert normalize_position(None) == "Não especificado"


def test_infer_department_from_position() -> None:
    assert infer_department_from_position("Secretário de Educação") == (
        "Secretaria Municipal de Educação"
    )
    assert infer_department_from_position("secretário de trabalho e renda") == (
        "Secretaria Municipal de Trabalho"
    )
    assert infer_department_from_position("Diretor de TI") == (
        "Secretaria Municipal de Administração"
    )
    assert infer_department_from_position("Diretora de Licitações") == (
        "Secretaria Municipal de Administração"
    )
    assert infer_department_from_position("gestão de atividades") == "Prefeitura Municipal"
    assert infer_department_from_position("") == "Prefeitura Municipal"


def test_position_label_and_state_codes() -> None:
    assert position_label(Position.PROCUREMENT) == "Diretor de Compras"
    assert position_label(Position.ALL) == ""
    assert is_state_code("sp") is True
    assert is_state_code("XX") is False
