import asyncio

import pytest

from composer import crud
from composer.db.init_db import init_db
from composer.db.session import make_sessionmaker
from composer.models.document_template import DocumentTemplate as DocumentTemplateModel
from composer.schemas import DocumentTemplateCreate, DocumentTemplateUpdate, Template
from composer.services.template_saving import TemplateValidationError


def _run(tmp_path, scenario):
    """Run `scenario(db)` against a fresh SQLite database."""
    async def main():
        engine, factory = make_sessionmaker(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
        await init_db(engine)
        try:
            async with factory() as db:
                return await scenario(db)
        finally:
            await engine.dispose()

    return asyncio.run(main())


def _create_in(name, category="Geral", is_default=False, template=None) -> DocumentTemplateCreate:
    return DocumentTemplateCreate(
        name=name,
        category=category,
        is_default=is_default,
        template=template or Template.blank(),
    )


def test_create_and_read_back(tmp_path, every_kind_template) -> None:
    async def scenario(db):
        created = await crud.document_template.create_document_template(
            db, template_in=_create_in("Site institucional", "Consultoria", template=every_kind_template)
        )
        by_id = await crud.document_template.get_document_template(db, template_id=created.id)
        by_name = await crud.document_template.get_document_template_by_name(db, name="Site institucional")
        return created, by_id, by_name

    created, by_id, by_name = _run(tmp_path, scenario)
    assert by_id.id == created.id == by_name.id
    assert created.created_at is not None
    stored = created.template
    assert stored["name"] == "Site institucional"
    assert len(stored["pages"]) == 2
    # Embedded images are optimised before storage
    image = next(element for element in stored["pages"][0]["elements"] if element["id"] == "i1")
    assert image["content"].startswith("data:image/jpeg;base64,")


def test_blank_names_are_rejected(tmp_path) -> None:
    async def scenario(db):
        template_in = _create_in("Modelo")
        # Bypass the request schema to reach the save-time check
        template_in.name = "  "
        await crud.document_template.create_document_template(db, template_in=template_in)

    with pytest.raises(TemplateValidationError):
        _run(tmp_path, scenario)


def test_listing_filters_by_category_and_orders_by_name(tmp_path) -> None:
    async def scenario(db):
        for name, category in [("Zeta", "Geral"), ("Alfa", "Geral"), ("App", "Mobile")]:
            await crud.document_template.create_document_template(db, template_in=_create_in(name, category))
        everything = await crud.document_template.get_all_document_templates(db)
        general = await crud.document_template.get_all_document_templates(db, category="Geral")
        return [t.name for t in everything], [t.name for t in general]

    everything, general = _run(tmp_path, scenario)
    assert everything == ["Alfa", "Zeta", "App"]
    assert general == ["Alfa", "Zeta"]


def test_only_one_default_and_it_cannot_be_deleted(tmp_path) -> None:
    async def scenario(db):
        first = await crud.document_template.create_document_template(db, template_in=_create_in("Um", is_default=True))
        second = await crud.document_template.create_document_template(db, template_in=_create_in("Dois", is_default=True))
        await db.refresh(first)
        default = await crud.document_template.get_default_template(db)
        assert default.id == second.id
        assert first.is_default is False

        with pytest.raises(ValueError):
            await crud.document_template.delete_document_template(db, db_obj=second)

        await crud.document_template.delete_document_template(db, db_obj=first)
        return await crud.document_template.get_document_template(db, template_id=first.id)

    assert _run(tmp_path, scenario) is None


def test_update_mirrors_metadata_into_the_stored_tree(tmp_path) -> None:
    async def scenario(db):
        created = await crud.document_template.create_document_template(db, template_in=_create_in("Antes"))
        new_tree = Template.blank(name="ignorado", category="ignorado")
        new_tree.pages[0].name = "Capa"
        return await crud.document_template.update_document_template(
            db, db_obj=created, obj_in=DocumentTemplateUpdate(name="Depois", description="Nova", template=new_tree)
        )

    updated = _run(tmp_path, scenario)
    assert updated.name == "Depois"
    assert updated.template["name"] == "Depois"
    assert updated.template["description"] == "Nova"
    assert updated.template["category"] == "Geral"
    assert updated.template["pages"][0]["name"] == "Capa"


def test_legacy_rows_load_as_pages(tmp_path) -> None:
    async def scenario(db):
        row = DocumentTemplateModel(
            name="Legado",
            category="Geral",
            template={"elementos": [{"id": "1", "tipo": "texto", "conteudo": "Oi {{cliente_nome}}"}]},
        )
        db.add(row)
        await db.commit()
        await db.refresh(row)
        return crud.document_template.load_record_template(row)

    template = _run(tmp_path, scenario)
    assert template.name == "Legado"
    assert len(template.pages) == 1
    assert template.pages[0].elements[0].content == "Oi {{cliente_nome}}"
