# backend/composer/schemas/primitives.py
"""Plain value objects shared by elements, tables and pages."""
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from composer.core.config import settings

TextAlign = Literal["left", "center", "right", "justify"]


def new_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


class CamelModel(BaseModel):
    # Stored records use camelCase keys (fontSize, backgroundColor, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(CamelModel):
    x: float = 0
    y: float = 0


class ElementStyle(CamelModel):
    font_size: str = "16px"
    font_weight: str = "normal"
    color: str = "#333333"
    background_color: str = "transparent"
    text_align: TextAlign = "left"
    padding: str = "8px"
    margin: str = "4px"
    border_radius: str = "0px"
    border: str = "none"
    width: str = "auto"
    height: str = "auto"


class CellStyle(CamelModel):
    background_color: str = "#ffffff"
    color: str = "#374151"
    font_weight: str = "normal"
    text_align: TextAlign = "left"


class TableStyle(CamelModel):
    border_color: str = "#d1d5db"
    border_width: str = "1px"


class PageConfig(CamelModel):
    width: str = "800px"
    height: str = "auto"
    background_color: str = "#ffffff"
    background_image: Optional[str] = None
    padding: str = "40px"
    font_family: str = "Arial, sans-serif"

    @classmethod
    def from_settings(cls) -> "PageConfig":
        return cls(
            width=settings.DEFAULT_PAGE_WIDTH,
            height=settings.DEFAULT_PAGE_HEIGHT,
            background_color=settings.DEFAULT_PAGE_BACKGROUND,
            padding=settings.DEFAULT_PAGE_PADDING,
            font_family=settings.DEFAULT_FONT_FAMILY,
        )


def merge_changes(model: CamelModel, changes: dict) -> CamelModel:
    """Validated copy of `model` with `changes` applied; keys may be snake_case or camelCase."""
    data = model.model_dump(by_alias=True)
    data.update({to_camel(key) if "_" in key else key: value for key, value in changes.items()})
    return type(model).model_validate(data)
