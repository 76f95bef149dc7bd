# backend/composer/editor/table_editing.py
"""
Structural edits on TableData. Every operation keeps the cell matrix
rectangular; refused edits (last row, last column, unknown ids) return False.
"""
from dataclasses import dataclass
from typing import Optional

from composer.schemas.primitives import merge_changes
from composer.schemas.table import Cell, Row, TableData

DEFAULT_COLUMN_COUNT = 3


def add_row(table: TableData) -> Row:
    columns = table.column_count or DEFAULT_COLUMN_COUNT
    row = Row(cells=[Cell() for _ in range(columns)])
    table.rows.append(row)
    return row


def remove_row(table: TableData, row_id: str) -> bool:
    if len(table.rows) <= 1:
        return False
    for index, row in enumerate(table.rows):
        if row.id == row_id:
            del table.rows[index]
            return True
    return False


def add_column(table: TableData) -> bool:
    if not table.rows:
        add_row(table)
        return True
    for row in table.rows:
        row.cells.append(Cell())
    return True


def remove_column(table: TableData, index: int) -> bool:
    if table.column_count <= 1 or not 0 <= index < table.column_count:
        return False
    for row in table.rows:
        del row.cells[index]
    return True


def set_cell_content(table: TableData, row_id: str, cell_id: str, text: str) -> bool:
    cell = table.get_cell(row_id, cell_id)
    if cell is None:
        return False
    cell.content = text
    return True


def set_cell_style(table: TableData, row_id: str, cell_id: str, **changes) -> bool:
    cell = table.get_cell(row_id, cell_id)
    if cell is None:
        return False
    cell.style = merge_changes(cell.style, changes)
    return True


@dataclass
class CellEdit:
    """Pending in-place edit of one cell; keystrokes only touch `buffer` until commit."""
    element_id: str
    row_id: str
    cell_id: str
    buffer: str

    def commit(self, table: TableData) -> bool:
        return set_cell_content(table, self.row_id, self.cell_id, self.buffer)


def begin_cell_edit(table: TableData, element_id: str, row_id: str, cell_id: str) -> Optional[CellEdit]:
    cell = table.get_cell(row_id, cell_id)
    if cell is None:
        return None
    return CellEdit(element_id=element_id, row_id=row_id, cell_id=cell_id, buffer=cell.content)
