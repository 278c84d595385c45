"""Upload validation for template files: extension, size and content sniffing."""

import asyncio
import logging
import re
from pathlib import Path

from fastapi import HTTPException

from templify.core.config import settings

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

# Allowed template extensions (without the dot) and their content types
ALLOWED_FILE_TYPES: set[str] = {"docx", "xlsx"}
MIME_MAPPING: dict[str, str] = {
    "docx": DOCX_MEDIA_TYPE,
    "xlsx": XLSX_MEDIA_TYPE,
}

# Office Open XML files are zip archives; older libmagic builds stop there.
ZIP_MIME_TYPES: set[str] = {"application/zip", "application/x-zip-compressed"}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def file_type_from_name(filename: str) -> str:
    """Lower-cased extension of *filename* without the dot, or ``""``."""
    return Path(filename).suffix.lower().lstrip(".")


def content_type_for(file_type_or_name: str) -> str:
    """Content type for a file type ("xlsx"), a file name or an explicit MIME type."""
    normalized = file_type_or_name.lower()
    if "/" in normalized:
        return normalized
    file_type = normalized if "." not in normalized else file_type_from_name(normalized)
    return MIME_MAPPING.get(file_type, "application/octet-stream")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def _detect_mime(contents: bytes) -> str:
    import magic  # needs the libmagic system library, loaded on first upload

    return magic.from_buffer(contents, mime=True)


async def validate_template_upload(filename: str | None, contents: bytes, request_id: str) -> str:
    """Validate an uploaded template and return its file type ("docx" or "xlsx").

    Raises:
        HTTPException: 400 for a missing/empty file, unsupported extension or
            content that does not match the extension; 413 when the file is
            larger than ``settings.max_file_size``.
    """
    if not filename or not contents:
        logger.warning("[%s] Rejected empty or unnamed upload", request_id)
        raise HTTPException(status_code=400, detail="No file provided or file is invalid.")

    size = len(contents)
    if size > settings.max_file_size:
        logger.warning(
            "[%s] Rejected file exceeding size limit: %s (%d bytes)",
            request_id,
            filename,
            size,
        )
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds limit of {settings.max_file_size // (1024 * 1024)}MB.",
        )

    file_type = file_type_from_name(filename)
    if file_type not in ALLOWED_FILE_TYPES:
        logger.warning("[%s] Rejected unsupported file type: %s", request_id, filename)
        raise HTTPException(status_code=400, detail="Invalid file type. Only .docx and .xlsx are allowed.")

    try:
        mime = await asyncio.to_thread(_detect_mime, contents)
    except Exception as mime_err:
        logger.error(
            "[%s] Failed to detect MIME type for: %s - %s",
            request_id,
            filename,
            str(mime_err),
        )
        raise HTTPException(
            status_code=500,
            detail=f"Could not analyse the file type of '{filename}'.",
        ) from mime_err

    expected_mime = MIME_MAPPING[file_type]
    if mime != expected_mime and mime not in ZIP_MIME_TYPES:
        logger.warning(
            "[%s] Rejected file with mismatched content type: %s. Expected: %s, Got: %s",
            request_id,
            filename,
            expected_mime,
            mime,
        )
        raise HTTPException(
            status_code=400,
            detail=f"The content of '{filename}' (detected: {mime}) does not match its extension '.{file_type}'.",
        )

    logger.debug(
        "[%s] File validation successful: %s (%d bytes, MIME: %s)",
        request_id,
        filename,
        size,
        mime,
    )
    return file_type
