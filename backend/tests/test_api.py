import asyncio

import pytest
from fastapi.testclient import TestClient

from composer.db.init_db import init_db
from composer.db.session import get_db, make_sessionmaker
from composer.main import app


@pytest.fixture
def client(tmp_path):
    engine, factory = make_sessionmaker(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")

    async def create_tables():
        await init_db(engine)
        # Connections opened here belong to this event loop; the client runs its own
        await engine.dispose()

    asyncio.run(create_tables())

    async def override_get_db():
        async with factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _payload(name="Proposta padrão", category="Geral", **extra):
    template = {
        "pages": [{
            "id": "pagina_1",
            "name": "Página 1",
            "elements": [
                {"id": "t1", "kind": "text", "content": "Olá {{cliente_nome}}", "position": {"x": 40, "y": 40}},
                {"id": "v1", "kind": "variable", "content": "{{valor_total}}", "position": {"x": 40, "y": 100}},
            ],
        }],
    }
    return {"name": name, "category": category, "template": template, **extra}


CONTEXT = {
    "cliente": {"nome": "Ana Souza"},
    "servicos": [{"nome": "Logo", "quantidade": 1, "valor_base": 500}],
}


def test_health_and_root() -> None:
    plain = TestClient(app)
    assert plain.get("/health").json()["status"] == "ok"
    assert "message" in plain.get("/").json()


def test_variable_catalog_endpoints() -> None:
    plain = TestClient(app)
    groups = plain.get("/api/v1/variables/").json()
    assert groups[0]["category"]["id"] == "cliente"
    assert any(variable["token"] == "{{valor_total}}" for group in groups for variable in group["variables"])

    filtered = plain.get("/api/v1/variables/", params={"search": "extenso"}).json()
    assert [variable["id"] for group in filtered for variable in group["variables"]] == ["valor_total_extenso"]

    categories = plain.get("/api/v1/variables/categories").json()
    assert {category["id"] for category in categories} >= {"cliente", "proposta", "valores", "servicos", "empresa"}


def test_template_categories_endpoint() -> None:
    categories = TestClient(app).get("/api/v1/document-templates/categories").json()
    assert "Geral" in categories
    assert "Consultoria" in categories


def test_render_preview_accepts_legacy_records() -> None:
    plain = TestClient(app)
    response = plain.post("/api/v1/render/", json={
        "template": {"elementos": [{"id": "1", "tipo": "texto", "conteudo": "Cliente: {{cliente_nome}}"}]},
        "context": CONTEXT,
    })
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Cliente: Ana Souza" in response.text


def test_render_preview_of_broken_template_is_an_error_page() -> None:
    response = TestClient(app).post("/api/v1/render/", json={"template": {
        "pages": [{"id": "p", "name": "P", "elements": [{"id": "x", "kind": "text", "position": {"x": "abc"}}]}],
    }})
    assert response.status_code == 200
    assert "Erro ao renderizar modelo" in response.text


def test_template_lifecycle(client) -> None:
    response = client.post("/api/v1/document-templates/", json=_payload(is_default=True))
    assert response.status_code == 201, response.text
    created = response.json()
    template_id = created["id"]
    assert created["template"]["pages"][0]["elements"][0]["kind"] == "text"

    assert client.post("/api/v1/document-templates/", json=_payload()).status_code == 400
    assert client.post("/api/v1/document-templates/", json=_payload(name="Outro", category="  ")).status_code == 422

    listing = client.get("/api/v1/document-templates/").json()
    assert [summary["name"] for summary in listing] == ["Proposta padrão"]
    assert "template" not in listing[0]

    fetched = client.get(f"/api/v1/document-templates/{template_id}").json()
    assert fetched["template"]["name"] == "Proposta padrão"

    renamed = client.put(f"/api/v1/document-templates/{template_id}", json={"name": "Proposta 2024"})
    assert renamed.status_code == 200
    assert renamed.json()["template"]["name"] == "Proposta 2024"

    rendered = client.post(f"/api/v1/document-templates/{template_id}/render", json=CONTEXT)
    assert rendered.status_code == 200
    assert "Olá Ana Souza" in rendered.text
    assert "R$ 500,00" in rendered.text

    without_context = client.post(f"/api/v1/document-templates/{template_id}/render")
    assert "{{cliente_nome}}" in without_context.text

    # The default template is protected
    assert client.delete(f"/api/v1/document-templates/{template_id}").status_code == 400

    other = client.post("/api/v1/document-templates/", json=_payload(name="Temporário")).json()
    assert client.delete(f"/api/v1/document-templates/{other['id']}").status_code == 200
    assert client.get(f"/api/v1/document-templates/{other['id']}").status_code == 404


def test_pdf_export(client, monkeypatch) -> None:
    class FakeHTML:
        def __init__(self, string, base_url=None):
            self.string = string

        def write_pdf(self):
            return b"%PDF-1.7 fake"

    monkeypatch.setattr("composer.services.renderer.HTML", FakeHTML)
    template_id = client.post("/api/v1/document-templates/", json=_payload(name="Proposta Ana!")).json()["id"]

    response = client.post(f"/api/v1/document-templates/{template_id}/pdf", json=CONTEXT)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == "attachment; filename=Proposta-Ana.pdf"
    assert response.content == b"%PDF-1.7 fake"


def test_pdf_export_failure_is_a_500(client, monkeypatch) -> None:
    class BrokenHTML:
        def __init__(self, string, base_url=None):
            pass

        def write_pdf(self):
            raise RuntimeError("no fonts")

    monkeypatch.setattr("composer.services.renderer.HTML", BrokenHTML)
    template_id = client.post("/api/v1/document-templates/", json=_payload()).json()["id"]
    assert client.post(f"/api/v1/document-templates/{template_id}/pdf").status_code == 500


def test_storage_unavailable_without_a_database(monkeypatch) -> None:
    monkeypatch.setattr("composer.db.session.SessionLocal", None)
    response = TestClient(app).get("/api/v1/document-templates/")
    assert response.status_code == 503
