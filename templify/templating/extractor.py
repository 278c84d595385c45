"""Placeholder extraction from uploaded templates."""

import io
import logging

import openpyxl

from templify.core.exceptions import ExtractionError
from templify.core.exceptions import UnsupportedFileTypeError
from templify.templating.cells import cell_formula
from templify.templating.cells import cell_text
from templify.templating.tags import find_tags

logger = logging.getLogger(__name__)


def load_workbook_bytes(content: bytes) -> openpyxl.Workbook:
    """Parse *content* as an .xlsx workbook, keeping formulas and rich text."""
    return openpyxl.load_workbook(io.BytesIO(content), rich_text=True)


def extract_xlsx_placeholders(content: bytes) -> list[str]:
    """Return the distinct tag names found in cell text and formulas of a workbook.

    Sheets are visited in workbook order, cells row by row and left to right
    within a row; names keep the order they were first seen in.

    Raises:
        ExtractionError: if *content* is not a readable workbook.
    """
    try:
        workbook = load_workbook_bytes(content)
    except Exception as e:
        logger.error("Could not read workbook for placeholder extraction: %s", e)
        raise ExtractionError("Failed to extract placeholders from the template.", details=str(e)) from e

    placeholders: dict[str, None] = {}
    for worksheet in workbook.worksheets:
        for row in worksheet.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                for source in (cell_text(cell), cell_formula(cell)):
                    if source:
                        placeholders.update(dict.fromkeys(find_tags(source)))

    logger.debug("Extracted %d placeholder(s) from workbook", len(placeholders))
    return list(placeholders)


def extract_docx_placeholders(content: bytes) -> list[str]:
    """Placeholder extraction for .docx templates is not implemented; always ``[]``."""
    logger.warning(
        "DOCX placeholder extraction is not implemented and returns no placeholders (%d bytes ignored).",
        len(content),
    )
    return []


def extract_placeholders(content: bytes, file_type: str) -> list[str]:
    if file_type == "xlsx":
        return extract_xlsx_placeholders(content)
    if file_type == "docx":
        return extract_docx_placeholders(content)
    raise UnsupportedFileTypeError(
        f"Unsupported template type: {file_type}. Only .docx and .xlsx are supported.",
    )
