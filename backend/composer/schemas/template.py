# backend/composer/schemas/template.py
from pydantic import Field, field_validator
from typing import List, Optional

from composer.schemas.element import Element
from composer.schemas.primitives import CamelModel, PageConfig

TEMPLATE_CATEGORIES = [
    "Desenvolvimento Web",
    "Design Gráfico",
    "Marketing Digital",
    "Consultoria",
    "E-commerce",
    "Mobile",
    "Geral",
]


class Page(CamelModel):
    id: str
    name: str
    elements: List[Element] = []
    config: PageConfig = Field(default_factory=PageConfig.from_settings)

    @field_validator("elements")
    @classmethod
    def check_unique_ids(cls, v):
        ids = [element.id for element in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Element ids must be unique within a page")
        return v

    def index_of(self, element_id: str) -> int:
        for index, element in enumerate(self.elements):
            if element.id == element_id:
                return index
        return -1

    def get_element(self, element_id: str) -> Optional[Element]:
        index = self.index_of(element_id)
        return self.elements[index] if index >= 0 else None


class Template(CamelModel):
    name: str = ""
    description: str = ""
    category: str = ""
    pages: List[Page] = Field(min_length=1)
    default_config: PageConfig = Field(default_factory=PageConfig.from_settings)

    @classmethod
    def blank(cls, name: str = "", category: str = "") -> "Template":
        config = PageConfig.from_settings()
        return cls(
            name=name,
            category=category,
            pages=[Page(id="pagina_1", name="Página 1", config=config.model_copy())],
            default_config=config,
        )

    def get_page(self, page_id: str) -> Optional[Page]:
        return next((page for page in self.pages if page.id == page_id), None)

    def to_record(self) -> dict:
        """JSON-compatible record in the current `pages[]` shape."""
        return self.model_dump(mode="json", by_alias=True)
