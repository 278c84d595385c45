"""Template lifecycle: upload with placeholder extraction, listing, generation, deletion.

Storage and metadata clients are blocking, as are openpyxl and docxtpl, so
every call into them is pushed to a worker thread.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any
from uuid import uuid4

from templify.core.exceptions import MetadataError
from templify.core.exceptions import StorageError
from templify.core.exceptions import TemplateNotFoundError
from templify.core.exceptions import UnsupportedFileTypeError
from templify.core.validation import ALLOWED_FILE_TYPES
from templify.core.validation import content_type_for
from templify.core.validation import file_type_from_name
from templify.core.validation import sanitize_filename
from templify.models.template_models import NewTemplate
from templify.models.template_models import TemplateRecord
from templify.services.metadata import TemplateRepository
from templify.services.storage.base import TemplateStorage
from templify.templating import extract_placeholders
from templify.templating import fill_template

logger = logging.getLogger(__name__)

GENERATED_PREFIX = "Generated-"


def template_file_type(template: TemplateRecord) -> str:
    """Stored file type, falling back to the extension of the template name."""
    file_type = template.file_type or file_type_from_name(template.name)
    if file_type not in ALLOWED_FILE_TYPES:
        raise UnsupportedFileTypeError(
            f"Unsupported template type: {file_type}. Only .docx and .xlsx are supported for generation.",
        )
    return file_type


def generated_filename(template: TemplateRecord, extension: str) -> str:
    """``Generated-<name without extension>.<extension>``."""
    stem = Path(template.name).stem or template.name
    return f"{GENERATED_PREFIX}{stem}.{extension}"


class TemplateService:
    def __init__(self, storage: TemplateStorage, repository: TemplateRepository) -> None:
        self.storage = storage
        self.repository = repository

    async def upload(self, owner: str, name: str, filename: str, content: bytes, request_id: str) -> TemplateRecord:
        file_type = file_type_from_name(filename)
        if file_type not in ALLOWED_FILE_TYPES:
            raise UnsupportedFileTypeError("Invalid file type. Only .docx and .xlsx are allowed.")

        placeholders = await asyncio.to_thread(extract_placeholders, content, file_type)
        logger.info("[%s] Found %d placeholder(s) in %s", request_id, len(placeholders), filename)

        storage_path = f"{owner}/{uuid4()}-{sanitize_filename(filename)}"
        stored_path = await asyncio.to_thread(self.storage.upload, storage_path, content, content_type_for(file_type))

        new_template = NewTemplate(
            user_id=owner,
            name=name,
            file_path=stored_path,
            file_size=len(content),
            placeholders=placeholders,
            file_type=file_type,
        )
        try:
            record = await asyncio.to_thread(self.repository.create, new_template)
        except MetadataError:
            logger.error("[%s] Metadata insert failed, removing orphaned file %s", request_id, stored_path)
            try:
                await asyncio.to_thread(self.storage.remove, [stored_path])
            except StorageError as cleanup_err:
                logger.warning("[%s] Could not remove orphaned file %s: %s", request_id, stored_path, cleanup_err.details)
            raise

        logger.info("[%s] Template %s stored at %s", request_id, record.id, stored_path)
        return record

    async def list_templates(self, owner: str) -> list[TemplateRecord]:
        return await asyncio.to_thread(self.repository.list_for_owner, owner)

    async def get_template(self, template_id: str) -> TemplateRecord:
        template = await asyncio.to_thread(self.repository.get, template_id)
        if template is None:
            raise TemplateNotFoundError("Template not found.")
        return template

    async def download(self, template: TemplateRecord) -> bytes:
        return await asyncio.to_thread(self.storage.download, template.file_path)

    async def generate(self, template: TemplateRecord, values: dict[str, Any], request_id: str) -> bytes:
        """Fill *template* with *values* and return the new document.

        The stored template is never modified. Incrementing the use counter is
        best effort: a failure is logged and the document is still returned.
        """
        file_type = template_file_type(template)
        content = await self.download(template)
        generated = await asyncio.to_thread(fill_template, content, file_type, values)
        logger.info("[%s] Generated %s document from template %s (%d bytes)", request_id, file_type, template.id, len(generated))

        try:
            await asyncio.to_thread(self.repository.increment_use_count, template.id)
        except MetadataError as e:
            logger.warning("[%s] Failed to increment use_count for template %s: %s", request_id, template.id, e.details)

        return generated

    async def delete(self, template: TemplateRecord, request_id: str) -> None:
        if template.file_path:
            try:
                await asyncio.to_thread(self.storage.remove, [template.file_path])
            except StorageError as e:
                logger.warning("[%s] Error deleting template from storage (path: %s): %s", request_id, template.file_path, e.details)
        else:
            logger.warning("[%s] Template %s has no file_path. Skipping storage deletion.", request_id, template.id)

        await asyncio.to_thread(self.repository.delete, template.id)
        logger.info("[%s] Template %s deleted", request_id, template.id)
