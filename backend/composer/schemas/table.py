# backend/composer/schemas/table.py
from pydantic import Field
from typing import List, Optional

from composer.schemas.primitives import CamelModel, CellStyle, TableStyle, new_id


class Cell(CamelModel):
    id: str = Field(default_factory=lambda: new_id("cell_"))
    content: str = ""
    style: CellStyle = Field(default_factory=CellStyle)


class Row(CamelModel):
    id: str = Field(default_factory=lambda: new_id("row_"))
    cells: List[Cell] = []


class TableData(CamelModel):
    rows: List[Row] = []
    style: TableStyle = Field(default_factory=TableStyle)

    @property
    def column_count(self) -> int:
        return len(self.rows[0].cells) if self.rows else 0

    def is_rectangular(self) -> bool:
        return len({len(row.cells) for row in self.rows}) <= 1

    def get_row(self, row_id: str) -> Optional[Row]:
        return next((row for row in self.rows if row.id == row_id), None)

    def get_cell(self, row_id: str, cell_id: str) -> Optional[Cell]:
        row = self.get_row(row_id)
        if row is None:
            return None
        return next((cell for cell in row.cells if cell.id == cell_id), None)


HEADER_CELL_STYLE = CellStyle(background_color="#f3f4f6", color="#1f2937", font_weight="bold", text_align="center")


def default_table() -> TableData:
    """Header row plus one sample service line, as offered by the "add table" tool."""
    header = Row(
        id=new_id("row_"),
        cells=[
            Cell(content=label, style=HEADER_CELL_STYLE.model_copy())
            for label in ("Serviço", "Quantidade", "Valor")
        ],
    )
    sample = Row(
        id=new_id("row_"),
        cells=[
            Cell(content="Desenvolvimento Web", style=CellStyle(text_align="left")),
            Cell(content="1", style=CellStyle(text_align="center")),
            Cell(content="R$ 2.500,00", style=CellStyle(text_align="right")),
        ],
    )
    return TableData(rows=[header, sample])
