from datetime import datetime
from typing import Literal

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator


class TemplateRecord(BaseModel):
    """Metadata row of a stored template."""

    id: str
    user_id: str | None = None
    name: str
    file_path: str
    file_size: int = 0
    placeholders: list[str] = Field(default_factory=list)
    file_type: Literal["docx", "xlsx"] | None = None
    upload_date: datetime | None = None
    use_count: int = 0

    model_config = {"coerce_numbers_to_str": True}

    @field_validator("placeholders", mode="before")
    @classmethod
    def _null_placeholders(cls, v: list[str] | None) -> list[str]:
        return v or []


class NewTemplate(BaseModel):
    """Fields supplied when a template is created; the store fills id, date and counter."""

    user_id: str
    name: str
    file_path: str
    file_size: int
    placeholders: list[str]
    file_type: Literal["docx", "xlsx"]


class CurrentUser(BaseModel):
    """Authenticated user resolved from the session cookie."""

    id: str
    email: str | None = None
