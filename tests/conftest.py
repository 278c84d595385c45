import io
from collections.abc import Callable
from typing import Any

import openpyxl
import pytest
from docx import Document

from templify.core.exceptions import MetadataError
from templify.core.exceptions import StorageError
from templify.models.template_models import NewTemplate
from templify.models.template_models import TemplateRecord

# 1x1 transparent PNG
PNG_1X1_BASE64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


# Fixture factory building an .xlsx in memory from {sheet title: {coordinate: value}}
@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    def _make_xlsx(sheets: dict[str, dict[str, Any]]) -> bytes:
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for title, cells in sheets.items():
            ws = wb.create_sheet(title)
            for coordinate, value in cells.items():
                ws[coordinate] = value
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return _make_xlsx


@pytest.fixture
def make_docx() -> Callable[..., bytes]:
    def _make_docx(*paragraphs: str) -> bytes:
        doc = Document()
        for text in paragraphs:
            doc.add_paragraph(text)
        buf = io.BytesIO()
        doc.save(buf)
        return buf.getvalue()

    return _make_docx


def load_xlsx(content: bytes) -> openpyxl.Workbook:
    return openpyxl.load_workbook(io.BytesIO(content), rich_text=True)


class FakeStorage:
    """In-memory TemplateStorage."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_upload = False
        self.fail_remove = False
        self.removed: list[str] = []

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail_upload:
            raise StorageError("Failed to upload template to storage.", details="bucket offline")
        self.objects[path] = content
        self.content_types[path] = content_type
        return path

    def download(self, path: str) -> bytes:
        if path not in self.objects:
            raise StorageError("Failed to download template file from storage.", details="Object not found")
        return self.objects[path]

    def remove(self, paths: list[str]) -> None:
        if self.fail_remove:
            raise StorageError("Failed to delete template file from storage.", details="bucket offline")
        for path in paths:
            self.removed.append(path)
            self.objects.pop(path, None)


class FakeRepository:
    """In-memory TemplateRepository."""

    def __init__(self) -> None:
        self.records: dict[str, TemplateRecord] = {}
        self.fail_create = False
        self.fail_increment = False
        self._next_id = 1

    def create(self, template: NewTemplate) -> TemplateRecord:
        if self.fail_create:
            raise MetadataError("Failed to save template metadata.", details="duplicate key")
        record = TemplateRecord(id=str(self._next_id), **template.model_dump())
        self._next_id += 1
        self.records[record.id] = record
        return record

    def add(self, **fields: Any) -> TemplateRecord:
        record = TemplateRecord(**fields)
        self.records[record.id] = record
        return record

    def list_for_owner(self, owner: str) -> list[TemplateRecord]:
        return [r for r in self.records.values() if r.user_id == owner]

    def get(self, template_id: str) -> TemplateRecord | None:
        return self.records.get(template_id)

    def delete(self, template_id: str) -> None:
        self.records.pop(template_id, None)

    def increment_use_count(self, template_id: str) -> None:
        if self.fail_increment:
            raise MetadataError("Failed to increment template use count.", details="function does not exist")
        record = self.records[template_id]
        self.records[template_id] = record.model_copy(update={"use_count": record.use_count + 1})


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def read_xlsx() -> Callable[[bytes], openpyxl.Workbook]:
    return load_xlsx


@pytest.fixture
def png_base64() -> str:
    return PNG_1X1_BASE64
