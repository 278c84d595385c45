import logging
from typing import Any

from templify.core.exceptions import StorageError
from templify.core.exceptions import provider_message

logger = logging.getLogger(__name__)


class SupabaseTemplateStorage:
    """Template files kept in a Supabase Storage bucket."""

    def __init__(self, client: Any, bucket: str = "templates") -> None:
        self._client = client
        self.bucket = bucket

    def _bucket(self) -> Any:
        return self._client.storage.from_(self.bucket)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            resp = self._bucket().upload(
                path,
                content,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error("Supabase storage upload failed for %s: %s", path, e)
            raise StorageError("Failed to upload template to storage.", details=provider_message(e)) from e
        stored_path = getattr(resp, "path", None) or path
        logger.info("Uploaded %d bytes to %s/%s", len(content), self.bucket, stored_path)
        return stored_path

    def download(self, path: str) -> bytes:
        try:
            data = self._bucket().download(path)
        except Exception as e:
            logger.error("Supabase storage download failed for %s: %s", path, e)
            raise StorageError("Failed to download template file from storage.", details=provider_message(e)) from e
        logger.info("Downloaded %s/%s (%d bytes)", self.bucket, path, len(data))
        return data

    def remove(self, paths: list[str]) -> None:
        try:
            self._bucket().remove(paths)
        except Exception as e:
            logger.error("Supabase storage removal failed for %s: %s", paths, e)
            raise StorageError("Failed to delete template file from storage.", details=provider_message(e)) from e
        logger.info("Removed %d object(s) from %s", len(paths), self.bucket)
