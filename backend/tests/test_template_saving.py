import asyncio

import pytest

from composer.schemas import Template
from composer.services.template_saving import TemplateValidationError, prepare_for_save, validate_for_save


@pytest.mark.parametrize("name, category", [("", "Geral"), ("   ", "Geral"), ("Modelo", ""), ("Modelo", "  ")])
def test_name_and_category_are_required(name, category) -> None:
    template = Template.blank(name=name, category=category)
    with pytest.raises(TemplateValidationError):
        validate_for_save(template)
    # Callers that only know about ValueError still catch it
    with pytest.raises(ValueError):
        asyncio.run(prepare_for_save(template))


def test_record_uses_the_pages_shape(every_kind_template) -> None:
    record = asyncio.run(prepare_for_save(every_kind_template, optimize_images=False))
    assert record["name"] == "Modelo completo"
    assert "defaultConfig" in record
    assert [page["id"] for page in record["pages"]] == ["pagina_1", "pagina_2"]
    assert Template.model_validate(record) == every_kind_template


def test_images_are_optimised_on_a_copy(every_kind_template) -> None:
    original = every_kind_template.pages[0].get_element("i1").content
    record = asyncio.run(prepare_for_save(every_kind_template))

    saved_image = next(element for element in record["pages"][0]["elements"] if element["id"] == "i1")
    assert saved_image["content"].startswith("data:image/jpeg;base64,")
    assert every_kind_template.pages[0].get_element("i1").content == original
