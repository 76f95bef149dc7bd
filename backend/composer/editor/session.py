# backend/composer/editor/session.py
"""
Editing session over one Template.

The session owns the template being edited plus the transient UI state
(selection, drag, pending text or cell edit, context menu). All mutation goes
through its methods. Operations that are not allowed (editing a locked element,
removing the last page, ...) leave everything unchanged and return False;
refusals of structural rules also leave a Notice for the user.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from composer.core.config import settings
from composer.editor import table_editing
from composer.editor.elements import create_element, duplicate_element
from composer.editor.table_editing import CellEdit
from composer.schemas.element import TOKEN_ONLY_PATTERN, TEXTUAL_KINDS, Element, ElementKind, ImageElement, TableElement
from composer.schemas.primitives import Position, merge_changes, new_id
from composer.schemas.table import TableData
from composer.schemas.template import Page, Template
from composer.services.image_optimizer import optimize_data_uri_async
from composer.services.legacy import load_template
from composer.services.template_saving import prepare_for_save

logger = logging.getLogger(__name__)

PointerLike = Union[Position, Tuple[float, float]]

ARROW_KEYS = {
    "ArrowLeft": (-1, 0),
    "ArrowRight": (1, 0),
    "ArrowUp": (0, -1),
    "ArrowDown": (0, 1),
}


class EditorMode(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    EDITING = "editing"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    level: NoticeLevel
    message: str


@dataclass
class DragState:
    element: Element
    offset_x: float
    offset_y: float


@dataclass
class TextEdit:
    element_id: str
    buffer: str


@dataclass
class ContextMenu:
    element_id: str
    position: Position


def _as_position(pointer: PointerLike) -> Position:
    if isinstance(pointer, Position):
        return pointer
    x, y = pointer
    return Position(x=x, y=y)


class EditorSession:
    def __init__(self, template: Optional[Template] = None):
        self.template = template or Template.blank()
        self.current_page_id: str = self.template.pages[0].id
        self.selected_id: Optional[str] = None
        self.drag: Optional[DragState] = None
        self.text_edit: Optional[TextEdit] = None
        self.cell_edit: Optional[CellEdit] = None
        self.context_menu: Optional[ContextMenu] = None
        self.notices: List[Notice] = []

    @classmethod
    def load(cls, raw: Any) -> "EditorSession":
        """Open a stored record; legacy shapes are migrated here."""
        return cls(load_template(raw))

    # --- State queries ---

    @property
    def mode(self) -> EditorMode:
        if self.text_edit or self.cell_edit:
            return EditorMode.EDITING
        if self.selected_id:
            return EditorMode.SELECTED
        return EditorMode.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None

    @property
    def current_page(self) -> Page:
        page = self.template.get_page(self.current_page_id)
        if page is None:
            # Keep the pointer valid even if pages were replaced wholesale
            page = self.template.pages[0]
            self.current_page_id = page.id
        return page

    @property
    def selected_element(self) -> Optional[Element]:
        return self.find_element(self.selected_id) if self.selected_id else None

    def find_element(self, element_id: str) -> Optional[Element]:
        return self.current_page.get_element(element_id)

    def _find_anywhere(self, element_id: str) -> Optional[Element]:
        for page in self.template.pages:
            element = page.get_element(element_id)
            if element is not None:
                return element
        return None

    # --- Helpers ---

    def _notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
        logger.warning("Editor notice (%s): %s", level.value, message)

    def _editable(self, element_id: Optional[str], action: str) -> Optional[Element]:
        """The element, if it exists on the current page and is unlocked."""
        element = self.find_element(element_id) if element_id else None
        if element is None:
            logger.debug("Refused %s: element %s not on the current page", action, element_id)
            return None
        if element.locked:
            logger.debug("Refused %s: element %s is locked", action, element_id)
            return None
        return element

    def _editable_table(self, element_id: str, action: str) -> Optional[TableData]:
        element = self._editable(element_id, action)
        if not isinstance(element, TableElement):
            return None
        if element.is_bound:
            logger.debug("Refused %s: table %s is bound to service data", action, element_id)
            return None
        return element.content

    def _commit_pending(self) -> None:
        if self.text_edit:
            self.commit_text_edit()
        if self.cell_edit:
            self.commit_cell_edit()

    def _discard_pending(self) -> None:
        self.text_edit = None
        self.cell_edit = None

    def _clear_selection(self) -> None:
        self.selected_id = None
        self.drag = None
        self.context_menu = None

    # --- Selection ---

    def select(self, element_id: str) -> bool:
        if self.find_element(element_id) is None:
            return False
        if self.selected_id != element_id:
            self._commit_pending()
        self.selected_id = element_id
        return True

    def click_canvas(self) -> None:
        """Click on empty canvas: acts as a blur for pending edits, then clears the selection."""
        self._commit_pending()
        self._clear_selection()

    def escape(self) -> None:
        self._discard_pending()
        self._clear_selection()

    # --- Drag ---

    def pointer_down(self, element_id: str, pointer: PointerLike) -> bool:
        """Select the element and start dragging it; locked elements are selected but not dragged."""
        if not self.select(element_id):
            return False
        self.context_menu = None
        element = self._editable(element_id, "drag")
        if element is None or self.text_edit or self.cell_edit:
            return False
        pointer = _as_position(pointer)
        self.drag = DragState(
            element=element,
            offset_x=pointer.x - element.position.x,
            offset_y=pointer.y - element.position.y,
        )
        return True

    def pointer_move(self, pointer: PointerLike) -> bool:
        if self.drag is None:
            return False
        pointer = _as_position(pointer)
        self.drag.element.position = Position(
            x=max(0.0, pointer.x - self.drag.offset_x),
            y=max(0.0, pointer.y - self.drag.offset_y),
        )
        return True

    def pointer_up(self) -> bool:
        if self.drag is None:
            return False
        self.drag = None
        return True

    # --- Text editing ---

    def begin_text_edit(self, element_id: str) -> bool:
        element = self._editable(element_id, "text edit")
        if element is None or ElementKind(element.kind) not in TEXTUAL_KINDS:
            return False
        self.select(element_id)
        self._commit_pending()
        self.drag = None
        self.text_edit = TextEdit(element_id=element_id, buffer=element.content)
        return True

    def update_text_buffer(self, text: str) -> bool:
        if self.text_edit is None:
            return False
        self.text_edit.buffer = text
        return True

    def commit_text_edit(self) -> bool:
        edit, self.text_edit = self.text_edit, None
        if edit is None:
            return False
        element = self._editable(edit.element_id, "text commit")
        if element is None:
            return False
        element.content = edit.buffer
        return True

    def cancel_text_edit(self) -> bool:
        had_edit = self.text_edit is not None
        self.text_edit = None
        return had_edit

    # --- Element lifecycle ---

    def add_element(self, kind: Union[ElementKind, str], content: Optional[Union[str, TableData]] = None) -> Element:
        self._commit_pending()
        page = self.current_page
        element = create_element(kind, page, content)
        page.elements.append(element)
        self.selected_id = element.id
        return element

    def add_variable(self, token: str) -> Element:
        return self.add_element(ElementKind.VARIABLE, token)

    def delete_element(self, element_id: str) -> bool:
        element = self._editable(element_id, "delete")
        if element is None:
            return False
        page = self.current_page
        page.elements.pop(page.index_of(element_id))
        if self.text_edit and self.text_edit.element_id == element_id:
            self.text_edit = None
        if self.cell_edit and self.cell_edit.element_id == element_id:
            self.cell_edit = None
        if self.drag and self.drag.element.id == element_id:
            self.drag = None
        if self.context_menu and self.context_menu.element_id == element_id:
            self.context_menu = None
        if self.selected_id == element_id:
            self.selected_id = None
        return True

    def duplicate_element(self, element_id: str) -> Optional[Element]:
        element = self.find_element(element_id)
        if element is None:
            return None
        self._commit_pending()
        copy = duplicate_element(element)
        self.current_page.elements.append(copy)
        self.selected_id = copy.id
        self.context_menu = None
        return copy

    def toggle_lock(self, element_id: str) -> bool:
        element = self.find_element(element_id)
        if element is None:
            return False
        self._commit_pending()
        if self.drag and self.drag.element is element:
            self.drag = None
        element.locked = not element.locked
        return True

    # --- Z-order (list order; later is on top) ---

    def _swap(self, element_id: str, step: int) -> bool:
        elements = self.current_page.elements
        index = self.current_page.index_of(element_id)
        target = index + step
        if index < 0 or not 0 <= target < len(elements):
            return False
        elements[index], elements[target] = elements[target], elements[index]
        return True

    def move_up(self, element_id: str) -> bool:
        return self._swap(element_id, 1)

    def move_down(self, element_id: str) -> bool:
        return self._swap(element_id, -1)

    def move_to_front(self, element_id: str) -> bool:
        page = self.current_page
        index = page.index_of(element_id)
        if index < 0 or index == len(page.elements) - 1:
            return False
        page.elements.append(page.elements.pop(index))
        return True

    def move_to_back(self, element_id: str) -> bool:
        page = self.current_page
        index = page.index_of(element_id)
        if index <= 0:
            return False
        page.elements.insert(0, page.elements.pop(index))
        return True

    # --- Properties panel ---

    def nudge(self, dx_sign: int, dy_sign: int, large: bool = False) -> bool:
        if self.text_edit or self.cell_edit:
            return False
        element = self._editable(self.selected_id, "nudge")
        if element is None:
            return False
        step = settings.NUDGE_STEP_LARGE if large else settings.NUDGE_STEP
        element.position = Position(
            x=max(0.0, element.position.x + dx_sign * step),
            y=max(0.0, element.position.y + dy_sign * step),
        )
        return True

    def move_element(self, element_id: str, x: float, y: float) -> bool:
        element = self._editable(element_id, "move")
        if element is None:
            return False
        element.position = Position(x=max(0.0, x), y=max(0.0, y))
        return True

    def update_style(self, element_id: str, **changes) -> bool:
        element = self._editable(element_id, "style change")
        if element is None:
            return False
        element.style = merge_changes(element.style, changes)
        return True

    def set_content(self, element_id: str, content: Union[str, TableData, dict]) -> bool:
        element = self._editable(element_id, "content change")
        if element is None:
            return False
        if isinstance(element, TableElement):
            if isinstance(content, str):
                if not TOKEN_ONLY_PATTERN.match(content.strip()):
                    raise ValueError("A table can only be bound to a single token such as {{servicos_tabela}}")
                content = content.strip()
            else:
                content = TableData.model_validate(content)
            if self.cell_edit and self.cell_edit.element_id == element_id:
                self.cell_edit = None
        elif not isinstance(content, str):
            raise ValueError(f"{element.kind} elements hold text content")
        element.content = content
        return True

    # --- Tables ---

    def add_table_row(self, element_id: str) -> bool:
        table = self._editable_table(element_id, "add row")
        if table is None:
            return False
        table_editing.add_row(table)
        return True

    def remove_table_row(self, element_id: str, row_id: str) -> bool:
        table = self._editable_table(element_id, "remove row")
        if table is None:
            return False
        if len(table.rows) <= 1:
            self._notify(NoticeLevel.WARNING, "A tabela precisa ter pelo menos uma linha")
            return False
        removed = table_editing.remove_row(table, row_id)
        if removed and self.cell_edit and self.cell_edit.row_id == row_id:
            self.cell_edit = None
        return removed

    def add_table_column(self, element_id: str) -> bool:
        table = self._editable_table(element_id, "add column")
        if table is None:
            return False
        return table_editing.add_column(table)

    def remove_table_column(self, element_id: str, index: int) -> bool:
        table = self._editable_table(element_id, "remove column")
        if table is None:
            return False
        if table.column_count <= 1:
            self._notify(NoticeLevel.WARNING, "A tabela precisa ter pelo menos uma coluna")
            return False
        if self.cell_edit and self.cell_edit.element_id == element_id:
            row = table.get_row(self.cell_edit.row_id)
            if row and 0 <= index < len(row.cells) and row.cells[index].id == self.cell_edit.cell_id:
                self.cell_edit = None
        return table_editing.remove_column(table, index)

    def set_cell_style(self, element_id: str, row_id: str, cell_id: str, **changes) -> bool:
        table = self._editable_table(element_id, "cell style")
        if table is None:
            return False
        return table_editing.set_cell_style(table, row_id, cell_id, **changes)

    def begin_cell_edit(self, element_id: str, row_id: str, cell_id: str) -> bool:
        table = self._editable_table(element_id, "cell edit")
        if table is None:
            return False
        self.select(element_id)
        self._commit_pending()
        edit = table_editing.begin_cell_edit(table, element_id, row_id, cell_id)
        if edit is None:
            return False
        self.drag = None
        self.cell_edit = edit
        return True

    def update_cell_buffer(self, text: str) -> bool:
        if self.cell_edit is None:
            return False
        self.cell_edit.buffer = text
        return True

    def commit_cell_edit(self) -> bool:
        edit, self.cell_edit = self.cell_edit, None
        if edit is None:
            return False
        table = self._editable_table(edit.element_id, "cell commit")
        if table is None:
            return False
        return edit.commit(table)

    def cancel_cell_edit(self) -> bool:
        had_edit = self.cell_edit is not None
        self.cell_edit = None
        return had_edit

    # --- Context menu ---

    def open_context_menu(self, element_id: str, position: PointerLike) -> bool:
        if not self.select(element_id):
            return False
        self.context_menu = ContextMenu(element_id=element_id, position=_as_position(position))
        return True

    def close_context_menu(self) -> None:
        self.context_menu = None

    # --- Keyboard ---

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """Editor shortcuts. Returns True when the key was handled."""
        editing = self.text_edit is not None or self.cell_edit is not None

        if key == "Escape":
            self.escape()
            return True
        if key == "Enter" and self.cell_edit is not None:
            return self.commit_cell_edit()
        if editing:
            return False
        if key == "Delete" and self.selected_id:
            return self.delete_element(self.selected_id)
        if ctrl and key.lower() == "d" and self.selected_id:
            return self.duplicate_element(self.selected_id) is not None
        if key in ARROW_KEYS and self.selected_id:
            dx, dy = ARROW_KEYS[key]
            self.nudge(dx, dy, large=shift)
            return True
        if key == "Tab":
            return self._cycle_selection(backwards=shift)
        return False

    def _cycle_selection(self, backwards: bool = False) -> bool:
        elements = self.current_page.elements
        if not elements:
            return False
        index = self.current_page.index_of(self.selected_id) if self.selected_id else -1
        if backwards:
            index = len(elements) - 1 if index <= 0 else index - 1
        else:
            index = 0 if index < 0 or index >= len(elements) - 1 else index + 1
        self.selected_id = elements[index].id
        self.context_menu = None
        return True

    # --- Pages ---

    def add_page(self) -> Page:
        self._commit_pending()
        existing_ids = {page.id for page in self.template.pages}
        page_id = new_id("pagina_")
        while page_id in existing_ids:
            page_id = new_id("pagina_")
        page = Page(
            id=page_id,
            name=f"Página {len(self.template.pages) + 1}",
            elements=[],
            config=self.template.default_config.model_copy(deep=True),
        )
        self.template.pages.append(page)
        self.current_page_id = page.id
        self._clear_selection()
        return page

    def remove_page(self, page_id: str) -> bool:
        page = self.template.get_page(page_id)
        if page is None:
            return False
        if len(self.template.pages) <= 1:
            self._notify(NoticeLevel.WARNING, "O modelo deve ter pelo menos uma página")
            return False
        if page_id == self.current_page_id:
            self._discard_pending()
            self._clear_selection()
        self.template.pages = [p for p in self.template.pages if p.id != page_id]
        if page_id == self.current_page_id:
            self.current_page_id = self.template.pages[0].id
        return True

    def rename_page(self, page_id: str, name: str) -> bool:
        page = self.template.get_page(page_id)
        if page is None or not name or not name.strip():
            return False
        page.name = name.strip()
        return True

    def select_page(self, page_id: str) -> bool:
        if self.template.get_page(page_id) is None:
            return False
        if page_id != self.current_page_id:
            self._commit_pending()
            self._clear_selection()
            self.current_page_id = page_id
        return True

    def update_page_config(self, page_id: str, **changes) -> bool:
        page = self.template.get_page(page_id)
        if page is None:
            return False
        page.config = merge_changes(page.config, changes)
        return True

    def update_default_config(self, **changes) -> None:
        self.template.default_config = merge_changes(self.template.default_config, changes)

    def set_metadata(self, name: Optional[str] = None, description: Optional[str] = None, category: Optional[str] = None) -> None:
        if name is not None:
            self.template.name = name
        if description is not None:
            self.template.description = description
        if category is not None:
            self.template.category = category

    # --- Images and saving ---

    async def optimize_image_element(self, element_id: str, library: bool = False) -> bool:
        """
        Re-encode the element's embedded image off the event loop. The result is
        applied only if the element still exists and still holds the same payload.
        """
        element = self._find_anywhere(element_id)
        if not isinstance(element, ImageElement) or not element.has_embedded_image:
            return False
        original = element.content
        if library:
            optimized = await optimize_data_uri_async(
                original, settings.LIBRARY_IMAGE_MAX_WIDTH, settings.LIBRARY_IMAGE_JPEG_QUALITY
            )
        else:
            optimized = await optimize_data_uri_async(original)

        current = self._find_anywhere(element_id)
        if not isinstance(current, ImageElement) or current.content != original:
            logger.debug("Dropped optimised image for %s: element changed meanwhile", element_id)
            return False
        if optimized == original:
            return False
        current.content = optimized
        return True

    def snapshot(self) -> Template:
        return self.template.model_copy(deep=True)

    async def prepare_save(self) -> dict:
        """Record to persist. Raises TemplateValidationError when name or category is missing."""
        self._commit_pending()
        return await prepare_for_save(self.template)
