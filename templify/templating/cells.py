"""Textual view of openpyxl cells: the text a tag can appear in, and the formula."""

import datetime as dt
from typing import Any

from openpyxl.cell.cell import Cell
from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.formula import ArrayFormula


def iso_timestamp(value: dt.datetime | dt.date) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. ``2024-03-01T00:00:00.000Z``."""
    if not isinstance(value, dt.datetime):
        value = dt.datetime.combine(value, dt.time())
    if value.tzinfo is not None:
        value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def rich_text_plain(value: CellRichText) -> str:
    # runs are either plain str or TextBlock; style is dropped
    return "".join(run if isinstance(run, str) else run.text for run in value)


def is_formula(cell: Cell) -> bool:
    return cell.data_type == "f"


def cell_text(cell: Cell) -> str | None:
    """Text of a cell's value, or None when the cell has nothing to scan.

    Formula cells are handled by :func:`cell_formula` only.
    """
    value: Any = cell.value
    if value is None or is_formula(cell):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, CellRichText):
        return rich_text_plain(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.datetime, dt.date)):
        return iso_timestamp(value)
    if isinstance(value, dt.time):
        return value.isoformat()
    return str(value)


def cell_formula(cell: Cell) -> str | None:
    if not is_formula(cell):
        return None
    value = cell.value
    if isinstance(value, ArrayFormula):
        return value.text
    if isinstance(value, str):
        return value
    return None


def set_cell_formula(cell: Cell, formula: str) -> None:
    value = cell.value
    if isinstance(value, ArrayFormula):
        value.text = formula
        cell.value = value
    else:
        cell.value = formula
