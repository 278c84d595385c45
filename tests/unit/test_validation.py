import pytest
from fastapi import HTTPException

from templify.core.config import settings
from templify.core.validation import XLSX_MEDIA_TYPE
from templify.core.validation import content_type_for
from templify.core.validation import sanitize_filename
from templify.core.validation import validate_template_upload


@pytest.fixture
def detected_mime(monkeypatch):
    """Replace libmagic sniffing with a fixed answer."""

    def _set(mime: str) -> None:
        monkeypatch.setattr("templify.core.validation._detect_mime", lambda contents: mime)

    return _set


@pytest.mark.asyncio
async def test_missing_file():
    with pytest.raises(HTTPException) as exc:
        await validate_template_upload(None, b"", "req1")
    assert exc.value.status_code == 400
    assert exc.value.detail == "No file provided or file is invalid."


@pytest.mark.asyncio
async def test_invalid_extension():
    with pytest.raises(HTTPException) as exc:
        await validate_template_upload("bad.txt", b"123", "req2")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid file type. Only .docx and .xlsx are allowed."


@pytest.mark.asyncio
async def test_file_too_large(monkeypatch):
    monkeypatch.setattr(settings, "max_file_size", 10)
    with pytest.raises(HTTPException) as exc:
        await validate_template_upload("big.xlsx", b"0" * 11, "req3")
    assert exc.value.status_code == 413


@pytest.mark.asyncio
async def test_mismatched_mime(detected_mime):
    detected_mime("application/pdf")
    with pytest.raises(HTTPException) as exc:
        await validate_template_upload("sheet.xlsx", b"%PDF-1.4", "req4")
    assert exc.value.status_code == 400
    assert "does not match its extension" in exc.value.detail


@pytest.mark.asyncio
async def test_mime_detection_failure(monkeypatch):
    def _boom(contents):
        raise OSError("libmagic missing")

    monkeypatch.setattr("templify.core.validation._detect_mime", _boom)
    with pytest.raises(HTTPException) as exc:
        await validate_template_upload("sheet.xlsx", b"PK", "req5")
    assert exc.value.status_code == 500


@pytest.mark.asyncio
@pytest.mark.parametrize("mime", [XLSX_MEDIA_TYPE, "application/zip"])
async def test_validate_success(detected_mime, mime):
    detected_mime(mime)
    assert await validate_template_upload("Sheet.XLSX", b"PK\x03\x04", "req6") == "xlsx"


def test_content_type_for():
    assert content_type_for("xlsx") == XLSX_MEDIA_TYPE
    assert content_type_for("Report.DOCX").endswith("wordprocessingml.document")
    assert content_type_for("application/pdf") == "application/pdf"
    assert content_type_for("notes.txt") == "application/octet-stream"


def test_sanitize_filename():
    assert sanitize_filename("my report (v2).xlsx") == "my_report__v2_.xlsx"
