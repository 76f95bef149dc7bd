import random

from composer.editor import table_editing
from composer.schemas import default_table
from composer.schemas.table import TableData


def test_default_table_is_a_header_plus_one_sample_row() -> None:
    table = default_table()
    assert len(table.rows) == 2
    assert table.column_count == 3
    assert [cell.content for cell in table.rows[0].cells] == ["Serviço", "Quantidade", "Valor"]
    assert table.rows[0].cells[0].style.font_weight == "bold"
    assert table.rows[1].cells[2].content == "R$ 2.500,00"


def test_add_row_matches_the_column_count() -> None:
    table = default_table()
    row = table_editing.add_row(table)
    assert len(table.rows) == 3
    assert len(row.cells) == 3
    assert all(cell.content == "" for cell in row.cells)
    assert row.cells[0].style.background_color == "#ffffff"


def test_add_row_to_an_empty_table_uses_three_columns() -> None:
    table = TableData()
    table_editing.add_row(table)
    assert table.column_count == 3


def test_last_row_and_last_column_cannot_be_removed() -> None:
    table = default_table()
    assert table_editing.remove_row(table, table.rows[1].id) is True
    assert table_editing.remove_row(table, table.rows[0].id) is False
    assert len(table.rows) == 1

    assert table_editing.remove_column(table, 0) is True
    assert table_editing.remove_column(table, 0) is True
    assert table_editing.remove_column(table, 0) is False
    assert table.column_count == 1


def test_remove_column_ignores_out_of_range_indexes() -> None:
    table = default_table()
    assert table_editing.remove_column(table, 3) is False
    assert table_editing.remove_column(table, -1) is False
    assert table.column_count == 3


def test_unknown_ids_are_refused() -> None:
    table = default_table()
    assert table_editing.remove_row(table, "row_missing") is False
    assert table_editing.set_cell_content(table, "row_missing", "cell_missing", "x") is False


def test_cell_content_and_style() -> None:
    table = default_table()
    row, cell = table.rows[1], table.rows[1].cells[0]
    assert table_editing.set_cell_content(table, row.id, cell.id, "Consultoria")
    assert table_editing.set_cell_style(table, row.id, cell.id, backgroundColor="#000000", font_weight="bold")
    assert cell.content == "Consultoria"
    assert cell.style.background_color == "#000000"
    assert cell.style.font_weight == "bold"
    assert cell.style.color == "#374151"


def test_cell_edit_buffer_only_touches_the_cell_on_commit() -> None:
    table = default_table()
    row, cell = table.rows[1], table.rows[1].cells[1]
    edit = table_editing.begin_cell_edit(table, "tb", row.id, cell.id)
    assert edit.buffer == "1"
    edit.buffer = "3"
    assert cell.content == "1"
    assert edit.commit(table) is True
    assert cell.content == "3"


def test_tables_stay_rectangular_under_random_edits() -> None:
    rng = random.Random(42)
    table = default_table()
    for _ in range(300):
        operation = rng.choice(["add_row", "remove_row", "add_column", "remove_column"])
        if operation == "add_row":
            table_editing.add_row(table)
        elif operation == "remove_row":
            table_editing.remove_row(table, rng.choice(table.rows).id)
        elif operation == "add_column":
            table_editing.add_column(table)
        else:
            table_editing.remove_column(table, rng.randrange(-1, table.column_count + 1))
        assert table.is_rectangular()
        assert len(table.rows) >= 1
        assert table.column_count >= 1
