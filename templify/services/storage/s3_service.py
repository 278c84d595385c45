# templify/services/storage/s3_service.py
import io
import logging
from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from templify.core.config import Settings
from templify.core.exceptions import StorageError

logger = logging.getLogger(__name__)


def _client_error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get("Error", {}).get("Message") or str(e)
    return str(e)


class S3TemplateStorage:
    """Template files kept in an S3 bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        self._s3 = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3TemplateStorage | None":
        if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name, settings.aws_region]):
            logger.error("AWS S3 credentials or bucket name/region not configured. Template storage is unavailable.")
            return None
        session = boto3.session.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )
        client = session.client("s3", config=Config(signature_version="s3v4"))
        logger.info("S3 storage initialized for bucket: %s in region: %s", settings.s3_bucket_name, settings.aws_region)
        return cls(client, settings.s3_bucket_name)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        try:
            self._s3.put_object(Bucket=self.bucket, Key=path, Body=content, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error("Error uploading S3 object %s: %s", path, e, exc_info=True)
            raise StorageError("Failed to upload template to storage.", details=_client_error_message(e)) from e
        logger.info("Uploaded S3 object: %s (%d bytes)", path, len(content))
        return path

    def download(self, path: str) -> bytes:
        buf = io.BytesIO()
        try:
            self._s3.download_fileobj(self.bucket, path, buf)
        except (ClientError, BotoCoreError) as e:
            if isinstance(e, ClientError) and e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.warning("File not found in S3: %s/%s", self.bucket, path)
            else:
                logger.exception("Error downloading S3 object %s", path)
            raise StorageError("Failed to download template file from storage.", details=_client_error_message(e)) from e
        logger.info("Successfully downloaded S3 object: %s", path)
        return buf.getvalue()

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            self._s3.delete_objects(Bucket=self.bucket, Delete={"Objects": [{"Key": p} for p in paths]})
        except (ClientError, BotoCoreError) as e:
            logger.error("Error deleting S3 objects %s: %s", paths, e, exc_info=True)
            raise StorageError("Failed to delete template file from storage.", details=_client_error_message(e)) from e
        logger.info("Deleted %d S3 object(s)", len(paths))
