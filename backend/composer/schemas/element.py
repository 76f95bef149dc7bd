# backend/composer/schemas/element.py
import re
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field, field_validator

from composer.schemas.primitives import CamelModel, ElementStyle, Position, new_id
from composer.schemas.table import TableData

TOKEN_ONLY_PATTERN = re.compile(r"^\{\{[A-Za-z_][A-Za-z0-9_]*\}\}$")


class ElementKind(str, Enum):
    TEXT = "text"
    VARIABLE = "variable"
    IMAGE = "image"
    TABLE = "table"
    LINE = "line"
    SPACER = "spacer"


TEXTUAL_KINDS = frozenset({ElementKind.TEXT, ElementKind.VARIABLE})


class ElementBase(CamelModel):
    id: str = Field(default_factory=new_id)
    position: Position = Field(default_factory=Position)
    style: ElementStyle = Field(default_factory=ElementStyle)
    locked: bool = False


class TextElement(ElementBase):
    kind: Literal["text"] = "text"
    content: str = ""


class VariableElement(ElementBase):
    kind: Literal["variable"] = "variable"
    content: str = ""  # e.g. "{{cliente_nome}}"


class ImageElement(ElementBase):
    kind: Literal["image"] = "image"
    content: str = ""  # data URI or empty

    @property
    def has_embedded_image(self) -> bool:
        return self.content.startswith("data:image/")


class TableElement(ElementBase):
    kind: Literal["table"] = "table"
    # A table is either edited cell by cell or bound to the computed services table token
    content: Union[TableData, str] = Field(default_factory=TableData)

    @field_validator("content")
    @classmethod
    def check_bound_token(cls, v):
        if isinstance(v, str) and not TOKEN_ONLY_PATTERN.match(v.strip()):
            raise ValueError("A table bound to data must hold a single token such as {{servicos_tabela}}")
        return v

    @property
    def is_bound(self) -> bool:
        return isinstance(self.content, str)


class LineElement(ElementBase):
    kind: Literal["line"] = "line"
    content: str = ""


class SpacerElement(ElementBase):
    kind: Literal["spacer"] = "spacer"
    content: str = ""


Element = Annotated[
    Union[TextElement, VariableElement, ImageElement, TableElement, LineElement, SpacerElement],
    Field(discriminator="kind"),
]

ELEMENT_CLASSES = {
    ElementKind.TEXT: TextElement,
    ElementKind.VARIABLE: VariableElement,
    ElementKind.IMAGE: ImageElement,
    ElementKind.TABLE: TableElement,
    ElementKind.LINE: LineElement,
    ElementKind.SPACER: SpacerElement,
}
