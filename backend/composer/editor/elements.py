# backend/composer/editor/elements.py
from typing import Optional, Union

from composer.core.config import settings
from composer.schemas.element import ELEMENT_CLASSES, Element, ElementKind, TableElement
from composer.schemas.primitives import ElementStyle, Position, new_id
from composer.schemas.table import TableData, default_table
from composer.schemas.template import Page

DEFAULT_TEXT = "Texto de exemplo"
DEFAULT_VARIABLE = "{{variavel}}"


def _default_content(kind: ElementKind) -> Union[str, TableData]:
    if kind == ElementKind.TEXT:
        return DEFAULT_TEXT
    if kind == ElementKind.VARIABLE:
        return DEFAULT_VARIABLE
    if kind == ElementKind.TABLE:
        return default_table()
    return ""


def create_element(kind: Union[ElementKind, str], page: Page, content: Optional[Union[str, TableData]] = None) -> Element:
    """
    New element for `page`, stacked below the ones already there.
    The element is returned, not inserted; callers append it to the page.
    """
    kind = ElementKind(kind)
    position = Position(
        x=settings.ELEMENT_START_X,
        y=settings.ELEMENT_START_Y + settings.ELEMENT_VERTICAL_STEP * len(page.elements),
    )
    existing_ids = {element.id for element in page.elements}
    element_id = new_id(f"{kind.value}_")
    while element_id in existing_ids:
        element_id = new_id(f"{kind.value}_")

    element_class = ELEMENT_CLASSES[kind]
    return element_class(
        id=element_id,
        position=position,
        style=ElementStyle(),
        content=_default_content(kind) if content is None else content,
        locked=False,
    )


def _fresh_table_ids(table: TableData) -> None:
    for row in table.rows:
        row.id = new_id("row_")
        for cell in row.cells:
            cell.id = new_id("cell_")


def duplicate_element(element: Element, offset: Optional[float] = None) -> Element:
    """Deep copy with new ids, shifted down and right."""
    offset = settings.DUPLICATE_OFFSET if offset is None else offset
    copy = element.model_copy(deep=True)
    copy.id = new_id(f"{copy.kind}_")
    copy.position = Position(x=element.position.x + offset, y=element.position.y + offset)
    if isinstance(copy, TableElement) and not copy.is_bound:
        _fresh_table_ids(copy.content)
    return copy
