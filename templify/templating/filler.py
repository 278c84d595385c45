"""Template filling: tag substitution for .xlsx, docxtpl rendering for .docx."""

import base64
import binascii
import io
import logging
from collections.abc import Mapping
from typing import Any

from docx.shared import Emu
from docxtpl import DocxTemplate
from docxtpl import InlineImage
from openpyxl.worksheet.worksheet import Worksheet

from templify.core.exceptions import DocumentFillError
from templify.core.exceptions import TemplateParseError
from templify.core.exceptions import TemplifyError
from templify.core.exceptions import UnsupportedFileTypeError
from templify.templating.cells import cell_formula
from templify.templating.cells import cell_text
from templify.templating.cells import set_cell_formula
from templify.templating.extractor import load_workbook_bytes
from templify.templating.tags import substitute_tags

logger = logging.getLogger(__name__)

EMU_PER_PIXEL = 9525  # at 96 dpi


def _fill_worksheet(worksheet: Worksheet, values: Mapping[str, Any]) -> int:
    """Substitute tags in every cell of *worksheet*, returns the number of cells changed."""
    changed = 0
    for row in worksheet.iter_rows(min_row=1, max_row=worksheet.max_row):
        for cell in row:
            if cell.value is None:
                continue

            formula = cell_formula(cell)
            if formula is not None:
                new_formula = substitute_tags(formula, values)
                if new_formula != formula:
                    set_cell_formula(cell, new_formula)
                    changed += 1
                continue

            text = cell_text(cell)
            if not text:
                continue
            new_text = substitute_tags(text, values)
            # rich text collapses to a plain string once a tag is replaced
            if new_text != text:
                cell.value = new_text
                # keep it a string cell; the setter would read "=..." as a formula and "#N/A" as an error
                cell.data_type = "s"
                changed += 1
    return changed


def fill_xlsx_template(content: bytes, values: Mapping[str, Any]) -> bytes:
    """Return a copy of the workbook in *content* with known tags replaced.

    Cell values and formulas are substituted independently. Tags missing from
    *values* are left as they are and cells without a replaced tag are not
    touched. Formulas are not recalculated.

    Raises:
        TemplateParseError: if *content* is not a readable workbook.
    """
    try:
        workbook = load_workbook_bytes(content)
    except Exception as e:
        logger.error("Could not read workbook template: %s", e)
        raise TemplateParseError("Failed to read XLSX template.", details=str(e)) from e

    changed = sum(_fill_worksheet(ws, values) for ws in workbook.worksheets)

    buffer = io.BytesIO()
    try:
        workbook.save(buffer)
    except Exception as e:
        logger.exception("Failed to serialize filled workbook")
        raise TemplifyError("Failed to fill XLSX template.", details=str(e)) from e
    logger.info("XLSX template filled (%d cell(s) changed, %d bytes)", changed, buffer.tell())
    return buffer.getvalue()


def _is_image_descriptor(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("_type") == "image"


def _inline_image(tpl: DocxTemplate, descriptor: Mapping[str, Any]) -> InlineImage:
    source = descriptor.get("source")
    if isinstance(source, str):
        try:
            source = base64.b64decode(source, validate=True)
        except binascii.Error as e:
            raise DocumentFillError("Image source is not valid base64.", details=str(e)) from e
    if not isinstance(source, (bytes, bytearray)):
        raise DocumentFillError("Image source is missing.")

    width = descriptor.get("width")
    height = descriptor.get("height")
    return InlineImage(
        tpl,
        image_descriptor=io.BytesIO(source),
        width=Emu(int(width * EMU_PER_PIXEL)) if width else None,
        height=Emu(int(height * EMU_PER_PIXEL)) if height else None,
    )


def fill_docx_template(content: bytes, values: Mapping[str, Any]) -> bytes:
    """Render a .docx template with docxtpl.

    Raises:
        DocumentFillError: on any failure of the rendering engine.
    """
    try:
        tpl = DocxTemplate(io.BytesIO(content))
        context = {key: _inline_image(tpl, value) if _is_image_descriptor(value) else value for key, value in values.items()}
        tpl.render(context)
        buffer = io.BytesIO()
        tpl.save(buffer)
    except DocumentFillError:
        raise
    except Exception as e:
        logger.error("docxtpl failed to render template: %s", e, exc_info=True)
        raise DocumentFillError("Failed to fill DOCX template.", details=str(e)) from e
    logger.info("DOCX template filled (%d bytes)", buffer.tell())
    return buffer.getvalue()


def fill_template(content: bytes, file_type: str, values: Mapping[str, Any]) -> bytes:
    if file_type == "xlsx":
        return fill_xlsx_template(content, values)
    if file_type == "docx":
        return fill_docx_template(content, values)
    raise UnsupportedFileTypeError(
        f"Unsupported template type: {file_type}. Only .docx and .xlsx are supported for generation.",
    )
