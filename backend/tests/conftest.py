import base64
from io import BytesIO

import pytest
from PIL import Image

from composer.schemas import DataContext, Page, Position, Template, default_table
from composer.schemas.element import ImageElement, LineElement, SpacerElement, TableElement, TextElement, VariableElement


def png_data_uri(width: int, height: int, mode: str = "RGBA") -> str:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    img = Image.new(mode, (width, height), color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def make_png():
    return png_data_uri


@pytest.fixture
def proposal_context() -> DataContext:
    return DataContext.model_validate({
        "proposta": {
            "numero": "2024-017",
            "titulo": "Novo site institucional",
            "created_at": "2024-03-05T10:00:00Z",
            "data_vencimento": "2024-04-04",
            "status": "enviada",
            "desconto": 10,
            "observacoes": "Hospedagem não inclusa",
        },
        "cliente": {"nome": "Ana Souza", "empresa": "Souza & Filhos", "email": "ana@souza.com.br"},
        "servicos": [{"nome": "Landing page", "quantidade": 2, "valor_base": 100}],
        "empresa": {"nome": "Estúdio Norte"},
    })


@pytest.fixture
def every_kind_template(make_png) -> Template:
    """Two pages, each holding at least one element of every kind."""
    first = Page(
        id="pagina_1",
        name="Página 1",
        elements=[
            TextElement(id="t1", content="Proposta para {{cliente_nome}}", position=Position(x=50, y=50)),
            VariableElement(id="v1", content="{{valor_total}}", position=Position(x=50, y=110)),
            ImageElement(id="i1", content=make_png(20, 10), position=Position(x=300, y=50)),
            TableElement(id="tb1", content=default_table(), position=Position(x=40, y=170)),
            LineElement(id="l1", position=Position(x=40, y=400)),
            SpacerElement(id="s1", position=Position(x=40, y=420)),
        ],
    )
    second = Page(
        id="pagina_2",
        name="Página 2",
        elements=[
            TextElement(id="t2", content="Validade: {{proposta_validade}}", position=Position(x=40, y=20)),
            VariableElement(id="v2", content="{{valor_total_extenso}}", position=Position(x=40, y=60)),
            ImageElement(id="i2", content="", position=Position(x=400, y=20)),
            TableElement(id="tb2", content="{{servicos_tabela}}", position=Position(x=40, y=300)),
            LineElement(id="l2", position=Position(x=40, y=500)),
            SpacerElement(id="s2", position=Position(x=40, y=520)),
        ],
    )
    return Template(name="Modelo completo", description="Todos os tipos", category="Consultoria", pages=[first, second])
