import logging
from datetime import date
from typing import Any

from contact_finder.config import FinderConfig
from contact_finder.models import Position, SearchParams
from contact_finder.registry import Municipality, SourceRegistry
from contact_finder.sources.base import BaseAdapter, split_location
from contact_finder.sources.gazette import OfficialGazetteAdapter, act_type, publication_date
from contact_finder.sources.municipalities import MunicipalityAdapter
from contact_finder.sources.procurement import ProcurementPortalAdapter
from contact_finder.sources.transparency import TransparencyPortalAdapter

TODAY = date(2024, 5, 1)


class FakeFetcher:
    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.calls: list[tuple[str, dict[str, Any] | None, float | None]] = []

    def fetch(
        self, url: str, *, params: dict[str, Any] | None = None, timeout: float | None = None
    ) -> str:
        self.calls.append((url, params, timeout))
        return self.pages.get(url, "")


def _adapter(cls: type[BaseAdapter], fetcher: FakeFetcher, registry: SourceRegistry) -> Any:
    return cls(
        fetcher=fetcher,
        config=FinderConfig(),
        registry=registry,
        logger=logging.getLogger("test"),
        today=lambda: TODAY,
    )


TRANSPARENCY_HTML = """
<div class="servidor">
  <span class="nome-servidor">Ana Paula Lima</span>
  <span class="cargo">Secretária de Educação</span>
  <span class="lotacao">São Paulo/SP</span>
  <a href="mailto:ana.lima@sp.gov.br">email</a>
  <span class="telefone">(11) 3396-0200</span>
  <a href="/servidores/123">Detalhes</a>
</div>
<div class="servidor">
  <span class="nome">Sem Contato Nenhum</span>
  <span class="cargo">Assessor</span>
</div>
"""


def test_transparency_adapter_reads_structured_blocks() -> None:
    registry = SourceRegistry(
        transparency_urls=("https://portal.test/servidores", "https://mirror.test/servidores")
    )
    fetcher = FakeFetcher({"https://portal.test/servidores": TRANSPARENCY_HTML})
    adapter = _adapter(TransparencyPortalAdapter, fetcher, registry)

    [contact] = adapter.search(SearchParams.create("", "education_secretary", "SP"))

    assert contact.id == "pt-0-SP-ana-paula-lima"
    assert contact.name == "Ana Paula Lima"
    assert contact.position == "Secretário Municipal de Educação"
    assert contact.position_raw == "Secretária de Educação"
    assert (contact.city, contact.state) == ("São Paulo", "SP")
    assert contact.email == "ana.lima@sp.gov.br"
    assert contact.phone == "(11) 3396-0200"
    assert contact.department == "Secretaria Municipal de Educação"
    assert contact.source == "Portal da Transparência"
    assert contact.source_url == "https://portal.test/servidores/123"
    assert contact.last_updated == TODAY
    assert fetcher.calls == [
        (
            "https://portal.test/servidores",
            {"q": "", "cargo": "SECRETÁRIO MUNICIPAL DE EDUCAÇÃO", "uf": "SP", "pagina": 1},
            15.0,
        )
    ]


def test_transparency_adapter_moves_to_next_url_after_failure() -> None:
    registry = SourceRegistry(
        transparency_urls=("https://down.test/servidores", "https://portal.test/servidores")
    )
    fetcher = FakeFetcher({"https://portal.test/servidores": TRANSPARENCY_HTML})
    contacts = _adapter(TransparencyPortalAdapter, fetcher, registry).search(SearchParams())
    assert [contact.name for contact in contacts] == ["Ana Paula Lima"]
    assert [call[0] for call in fetcher.calls] == [
        "https://down.test/servidores",
        "https://portal.test/servidores",
    ]


GAZETTE_HTML = """
<div class="publicacao">
  PORTARIA de 12/03/2024: fica nomeado Bruno Costa para o cargo de
  Secretário Municipal de Educação. Contato: bruno.costa@educacao.sp.gov.br
  <a href="/materia/55">Ver</a>
</div>
<div class="publicacao">Aviso de pregão eletrônico número 4</div>
"""


def test_gazette_adapter_reads_notices_for_the_state() -> None:
    registry = SourceRegistry(
        gazette_urls=("https://www.in.gov.br",),
        gazette_state_urls={"SP": ("https://www.imprensaoficial.com.br",)},
    )
    fetcher = FakeFetcher({"https://www.imprensaoficial.com.br": GAZETTE_HTML})
    adapter = _adapter(OfficialGazetteAdapter, fetcher, registry)

    [contact] = adapter.search(SearchParams.create("", "education_secretary", "SP"))

    assert contact.id == "do-0-0-SP-bruno-costa"
    assert contact.position == "Secretário Municipal de Educação"
    assert contact.source == "Diário Oficial de SP"
    assert contact.source_url == "https://www.imprensaoficial.com.br/materia/55"
    assert contact.last_updated == date(2024, 3, 12)
    assert contact.metadata == {"publicationDate": "2024-03-12", "actType": "Nomeação"}
    assert [call[0] for call in fetcher.calls] == ["https://www.imprensaoficial.com.br"]


def test_gazette_helpers() -> None:
    assert publication_date("publicado em 31/12/2023") == date(2023, 12, 31)
    assert publication_date("em 31/02/2023") is None
    assert publication_date("sem data") is None
    assert act_type("Resolve EXONERAR a pedido") == "Exoneração"
    assert act_type("fica designada") == "Designação"
    assert act_type("texto qualquer") == "Nomeação"


MUNICIPALITY_HTML = """
<div class="secretaria">
  <h3>Fernanda Santos</h3>
  <p class="cargo">Diretora de Compras</p>
  <p class="departamento">Secretaria de Administração</p>
  <a href="mailto:fernanda.santos@curitiba.pr.gov.br">Email</a>
  <p class="telefone">(41) 3350-8484</p>
</div>
<div class="secretaria">
  <h3>Sem Cargo</h3>
</div>
<table>
  <tr><th>Nome</th><th>Cargo</th><th>Email</th></tr>
  <tr><td>Ricardo Gomes</td><td>Secretário de Trabalho</td><td>ricardo@curitiba.pr.gov.br</td></tr>
</table>
"""


def test_municipality_adapter_reads_cards_and_tables() -> None:
    registry = SourceRegistry(
        municipalities=(
            Municipality("Curitiba", "PR", "https://www.curitiba.pr.gov.br", ("/secretarias",)),
            Municipality("Recife", "PE", "https://www2.recife.pe.gov.br", ("/",)),
        )
    )
    fetcher = FakeFetcher({"https://www.curitiba.pr.gov.br/secretarias": MUNICIPALITY_HTML})
    adapter = _adapter(MunicipalityAdapter, fetcher, registry)

    card, row = adapter.search(SearchParams.create("", "all", "PR"))

    assert card.id == "pref-0-PR-fernanda-santos"
    assert card.position == "Diretor de Compras"
    assert card.department == "Secretaria de Administração"
    assert card.email == "fernanda.santos@curitiba.pr.gov.br"
    assert card.phone == "(41) 3350-8484"
    assert card.source == "Site da Prefeitura de Curitiba"
    assert card.source_url == "https://www.curitiba.pr.gov.br/secretarias"

    assert row.id == "pref-t0-1-0-PR-ricardo-gomes"
    assert row.position == "Secretário Municipal de Trabalho"
    assert row.department == "Secretaria Municipal de Trabalho"
    assert row.email == "ricardo@curitiba.pr.gov.br"

    assert fetcher.calls == [
        ("https://www.curitiba.pr.gov.br/secretarias", None, 20.0),
        (
            "https://www.curitiba.pr.gov.br/busca",
            {"q": "secretário secretaria contato"},
            20.0,
        ),
    ]


PROCUREMENT_HTML = """
<div class="licitacao">
  <h3>Pregão 10/2024</h3>
  <p class="descricao">Aquisição de computadores</p>
  <span class="local">Curitiba/PR</span>
  <div class="contato">Responsável: Marcos Pereira - marcos.pereira@curitiba.pr.gov.br</div>
</div>
<div class="licitacao"><h3>Sem contato</h3></div>
<table>
  <tr><td>Pregão 11/2024</td><td>Prefeitura de Londrina/PR</td>
      <td>Juliana Alves</td><td>(43) 3372-4000</td></tr>
  <tr><td>Pregão 12/2024</td><td>Órgão sem contato</td><td>Pedro Lopes</td><td>-</td></tr>
</table>
"""


def test_procurement_adapter_reads_tender_cards_and_tables() -> None:
    registry = SourceRegistry(procurement_urls=("https://compras.test",))
    fetcher = FakeFetcher({"https://compras.test": PROCUREMENT_HTML})
    adapter = _adapter(ProcurementPortalAdapter, fetcher, registry)

    card, row = adapter.search(SearchParams())

    assert card.id == "cg-0-0-PR-marcos-pereira"
    assert card.position == "Diretor de Compras"
    assert card.position_raw == "Responsável por Compras"
    assert card.department == "Setor de Compras"
    assert (card.city, card.state) == ("Curitiba", "PR")
    assert card.metadata == {
        "tender": "Pregão 10/2024",
        "description": "Aquisição de computadores",
    }

    assert row.id == "cg-t0-0-PR-juliana-alves"
    assert (row.city, row.state) == ("Londrina", "PR")
    assert row.phone == "(43) 3372-4000"
    assert row.email is None
    assert row.department == "Prefeitura de Londrina/PR"
    assert row.metadata == {"tender": "Pregão 11/2024"}

    assert fetcher.calls == [
        ("https://compras.test", {"q": "licitação pregão compras edital"}, 15.0)
    ]


def test_adapter_search_never_raises() -> None:
    class Exploding(TransparencyPortalAdapter):
        def _search(self, params: SearchParams) -> list[Any]:
            raise RuntimeError("boom")

    adapter = _adapter(Exploding, FakeFetcher({}), SourceRegistry())
    assert adapter.search(SearchParams()) == []


def test_build_contact_applies_validity_rule() -> None:
    adapter = _adapter(TransparencyPortalAdapter, FakeFetcher({}), SourceRegistry())
    assert (
        adapter.build_contact(
            index=0, name="Ana Lima", position="", city="", state="", email="x", phone="0000-0000"
        )
        is None
    )
    contact = adapter.build_contact(
        index=3,
        name="  Ana   Lima ",
        position="",
        city="",
        state="RJ",
        email="broken",
        phone="21987654321",
    )
    assert contact is not None
    assert contact.id == "pt-3-RJ-ana-lima"
    assert contact.email is None
    assert contact.phone == "(21) 98765-4321"
    assert contact.position == "Não especificado"
    assert contact.department == "Prefeitura Municipal"


def test_search_terms_and_location_helpers() -> None:
    adapter = _adapter(OfficialGazetteAdapter, FakeFetcher({}), SourceRegistry())
    assert adapter.search_terms(SearchParams()) == ["secretário", "nomeação", "designação"]
    assert adapter.search_terms(SearchParams(query="Campinas", position=Position.PROCUREMENT)) == [
        "Campinas",
        "Diretor de Compras",
    ]
    assert split_location("Niterói / rj") == ("Niterói", "RJ")
    assert split_location("") == ("", "")
