"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        environment: Deployment environment name; "production" enables secure cookies.
        supabase_url: Base URL of the Supabase project.
        supabase_anon_key: Public key used for user sign-in.
        supabase_service_role_key: Service key used for storage and metadata access.
        templates_bucket: Object storage bucket holding template files.
        templates_table: Table holding template metadata.
        storage_backend: Which object storage implementation to use ("supabase" or "s3").
        max_file_size: Upload size limit per template file, in bytes.
        session_secret: Secret used to sign the session cookie.
        session_cookie_name: Name of the session cookie.
        session_max_age: Session cookie lifetime in seconds.
        soffice_binary: LibreOffice executable used for PDF conversion.
        pdf_conversion_timeout: Seconds allowed for a single PDF conversion.
        conversion_work_dir: Directory holding temporary conversion folders.
        cleanup_ttl: Age in seconds after which leftover conversion folders are removed.
        cors_allowed_origins: List of allowed origins for CORS.
    """

    environment: str = Field(default="development")

    supabase_url: str | None = Field(default=None)
    supabase_anon_key: str | None = Field(default=None)
    supabase_service_role_key: str | None = Field(default=None)

    templates_bucket: str = Field(default="templates")
    templates_table: str = Field(default="templates")
    storage_backend: Literal["supabase", "s3"] = Field(default="supabase")
    max_file_size: int = Field(default=10 * 1024 * 1024)

    aws_access_key_id: str | None = Field(default=None)
    aws_secret_access_key: str | None = Field(default=None)
    aws_region: str = Field(default="eu-north-1")
    s3_bucket_name: str | None = Field(default=None)

    session_secret: str | None = Field(default=None)
    session_cookie_name: str = Field(default="__session")
    session_max_age: int = Field(default=60 * 60 * 24 * 30)  # 30 days

    soffice_binary: str = Field(default="soffice")
    pdf_conversion_timeout: float = Field(default=60.0, description="LibreOffice conversion timeout in seconds.")
    conversion_work_dir: Path = Field(default=Path("/tmp/templify-pdf"))
    cleanup_ttl: int = Field(default=900)

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),  # Use a copy of the default list
    )

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of strings representing allowed CORS origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)


settings = Settings()
