"""Template metadata kept in a Supabase (PostgREST) table."""

import logging
from typing import Any

from templify.core.exceptions import MetadataError
from templify.core.exceptions import provider_message
from templify.models.template_models import NewTemplate
from templify.models.template_models import TemplateRecord

logger = logging.getLogger(__name__)

LIST_COLUMNS = "id, user_id, name, file_path, file_size, placeholders, upload_date, use_count, file_type"


class TemplateRepository:
    """Blocking CRUD on the templates table. Run calls in a worker thread from async code."""

    def __init__(self, client: Any, table: str = "templates") -> None:
        self._client = client
        self.table = table

    def create(self, template: NewTemplate) -> TemplateRecord:
        try:
            resp = self._client.table(self.table).insert(template.model_dump()).execute()
        except Exception as e:
            logger.error("Failed to insert template metadata for %s: %s", template.file_path, e)
            raise MetadataError("Failed to save template metadata.", details=provider_message(e)) from e
        if not resp.data:
            raise MetadataError("Failed to save template metadata.", details="No row returned by the database.")
        return TemplateRecord.model_validate(resp.data[0])

    def list_for_owner(self, owner: str) -> list[TemplateRecord]:
        try:
            resp = self._client.table(self.table).select(LIST_COLUMNS).eq("user_id", owner).order("upload_date", desc=True).execute()
        except Exception as e:
            logger.error("Failed to fetch templates for user %s: %s", owner, e)
            raise MetadataError("Failed to fetch templates.", details=provider_message(e)) from e
        return [TemplateRecord.model_validate(row) for row in resp.data or []]

    def get(self, template_id: str) -> TemplateRecord | None:
        try:
            resp = self._client.table(self.table).select(LIST_COLUMNS).eq("id", template_id).limit(1).execute()
        except Exception as e:
            logger.error("Failed to fetch template %s: %s", template_id, e)
            raise MetadataError("Failed to fetch template metadata.", details=provider_message(e)) from e
        if not resp.data:
            return None
        return TemplateRecord.model_validate(resp.data[0])

    def delete(self, template_id: str) -> None:
        try:
            self._client.table(self.table).delete().eq("id", template_id).execute()
        except Exception as e:
            logger.error("Failed to delete template metadata %s: %s", template_id, e)
            raise MetadataError("Failed to delete template metadata from database.", details=provider_message(e)) from e

    def increment_use_count(self, template_id: str) -> None:
        try:
            self._client.rpc("increment_template_use_count", {"template_id_param": template_id}).execute()
        except Exception as e:
            raise MetadataError("Failed to increment template use count.", details=provider_message(e)) from e
