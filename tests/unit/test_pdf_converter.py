import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from templify.core.exceptions import PdfConversionError
from templify.core.exceptions import PdfConversionUnavailableError
from templify.services.pdf_converter import PdfConverter
from templify.services.pdf_converter import pdf_filename


@pytest.fixture
def converter(tmp_path):
    return PdfConverter(binary="soffice", timeout=5, work_dir=tmp_path)


@pytest.fixture
def soffice_on_path(monkeypatch):
    monkeypatch.setattr("templify.services.pdf_converter.shutil.which", lambda binary: "/usr/bin/soffice")


def _fake_soffice(calls, returncode=0, produce_pdf=True, stderr=b""):
    def _run(cmd, **kwargs):
        calls.append(cmd)
        if produce_pdf and "--convert-to" in cmd:
            Path(cmd[-1]).with_suffix(".pdf").write_bytes(b"%PDF-1.7 fake")
        return SimpleNamespace(returncode=returncode, stdout=b"", stderr=stderr)

    return _run


@pytest.mark.asyncio
async def test_convert_returns_pdf_bytes(converter, soffice_on_path, monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr("templify.services.pdf_converter.subprocess.run", _fake_soffice(calls))

    pdf = await converter.convert(b"docx bytes", "Generated-Invoice.docx")

    assert pdf == b"%PDF-1.7 fake"
    cmd = calls[0]
    assert cmd[0] == "/usr/bin/soffice"
    assert "--headless" in cmd
    assert cmd[cmd.index("--convert-to") + 1] == "pdf"
    assert cmd[1].startswith("-env:UserInstallation=file://")
    # the per-call work folder is gone once the conversion returns
    assert list(tmp_path.glob("convert-*")) == []


@pytest.mark.asyncio
async def test_convert_without_libreoffice(converter, monkeypatch):
    monkeypatch.setattr("templify.services.pdf_converter.shutil.which", lambda binary: None)
    with pytest.raises(PdfConversionUnavailableError) as exc:
        await converter.convert(b"x", "a.docx")
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_convert_nonzero_exit(converter, soffice_on_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        "templify.services.pdf_converter.subprocess.run",
        _fake_soffice(calls, returncode=1, produce_pdf=False, stderr=b"source file could not be loaded"),
    )
    with pytest.raises(PdfConversionError) as exc:
        await converter.convert(b"x", "a.docx")
    assert exc.value.message == "PDF conversion failed"
    assert exc.value.details == "source file could not be loaded"


@pytest.mark.asyncio
async def test_convert_timeout(converter, soffice_on_path, monkeypatch):
    def _timeout(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr("templify.services.pdf_converter.subprocess.run", _timeout)
    with pytest.raises(PdfConversionError) as exc:
        await converter.convert(b"x", "a.docx")
    assert "Timed out" in exc.value.details


@pytest.mark.asyncio
async def test_is_available(converter, soffice_on_path, monkeypatch):
    calls = []
    monkeypatch.setattr("templify.services.pdf_converter.subprocess.run", _fake_soffice(calls))
    assert await converter.is_available() is True
    assert calls == [["/usr/bin/soffice", "--version"]]


@pytest.mark.asyncio
async def test_is_not_available_without_binary(converter, monkeypatch):
    monkeypatch.setattr("templify.services.pdf_converter.shutil.which", lambda binary: None)
    assert await converter.is_available() is False


@pytest.mark.parametrize(
    "name, expected",
    [("Generated-Invoice.xlsx", "Generated-Invoice.pdf"), ("report", "report.pdf"), ("", "document.pdf")],
)
def test_pdf_filename(name, expected):
    assert pdf_filename(name) == expected
