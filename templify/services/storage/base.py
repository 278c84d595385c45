"""Object storage interface for template files and the backend factory."""

import logging
from typing import Any
from typing import Protocol

from templify.core.config import Settings

logger = logging.getLogger(__name__)


class TemplateStorage(Protocol):
    """Blocking object storage operations used by the template service."""

    def download(self, path: str) -> bytes: ...

    def upload(self, path: str, content: bytes, content_type: str) -> str: ...

    def remove(self, paths: list[str]) -> None: ...


def create_storage(settings: Settings, supabase_client: Any | None) -> TemplateStorage | None:
    """Build the storage backend selected by ``settings.storage_backend``.

    Returns None (and logs) when the backend is not configured, the same way a
    missing client is reported at startup.
    """
    if settings.storage_backend == "s3":
        from templify.services.storage.s3_service import S3TemplateStorage

        return S3TemplateStorage.from_settings(settings)

    if supabase_client is None:
        logger.error("Supabase client not configured. Template storage is unavailable.")
        return None

    from templify.services.storage.supabase_storage import SupabaseTemplateStorage

    return SupabaseTemplateStorage(supabase_client, settings.templates_bucket)
