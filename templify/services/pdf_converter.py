"""PDF conversion of generated documents through a headless LibreOffice."""

import asyncio
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from templify.core.exceptions import PdfConversionError
from templify.core.exceptions import PdfConversionUnavailableError
from templify.core.validation import sanitize_filename

logger = logging.getLogger(__name__)

WORK_DIR_PREFIX = "convert-"


class PdfConverter:
    """Converts office documents to PDF with ``soffice --headless --convert-to pdf``.

    Each conversion runs in its own temporary directory under *work_dir* with
    its own LibreOffice user profile, so concurrent conversions do not share a
    profile lock.
    """

    def __init__(self, binary: str = "soffice", timeout: float = 60.0, work_dir: Path | None = None) -> None:
        self.binary = binary
        self.timeout = timeout
        self.work_dir = work_dir

    def _executable(self) -> str | None:
        return shutil.which(self.binary)

    def _check_available(self) -> bool:
        executable = self._executable()
        if executable is None:
            logger.warning("LibreOffice binary '%s' not found on PATH", self.binary)
            return False
        try:
            result = subprocess.run(
                [executable, "--version"],
                capture_output=True,
                timeout=min(self.timeout, 15.0),
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("LibreOffice availability check failed: %s", e)
            return False
        return result.returncode == 0

    async def is_available(self) -> bool:
        return await asyncio.to_thread(self._check_available)

    def _convert_sync(self, content: bytes, filename: str) -> bytes:
        executable = self._executable()
        if executable is None:
            raise PdfConversionUnavailableError("PDF conversion service is unavailable")

        if self.work_dir is not None:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=WORK_DIR_PREFIX, dir=self.work_dir) as tmp:
            tmp_path = Path(tmp)
            source = tmp_path / sanitize_filename(Path(filename).name or "document")
            source.write_bytes(content)
            cmd = [
                executable,
                f"-env:UserInstallation={(tmp_path / 'profile').as_uri()}",
                "--headless",
                "--nologo",
                "--nodefault",
                "--nolockcheck",
                "--norestore",
                "--convert-to",
                "pdf",
                "--outdir",
                str(tmp_path),
                str(source),
            ]
            try:
                result = subprocess.run(cmd, capture_output=True, timeout=self.timeout, check=False)
            except subprocess.TimeoutExpired as e:
                logger.error("LibreOffice timed out after %ss converting %s", self.timeout, filename)
                raise PdfConversionError("PDF conversion failed", details=f"Timed out after {self.timeout} seconds") from e
            except OSError as e:
                logger.error("Could not start LibreOffice: %s", e)
                raise PdfConversionError("PDF conversion failed", details=str(e)) from e

            pdf_path = source.with_suffix(".pdf")
            if result.returncode != 0 or not pdf_path.exists():
                stderr = result.stderr.decode(errors="replace").strip()
                logger.error("LibreOffice failed for %s (exit %s): %s", filename, result.returncode, stderr)
                raise PdfConversionError("PDF conversion failed", details=stderr or "PDF not produced by LibreOffice.")

            pdf_bytes = pdf_path.read_bytes()
        logger.info("Converted %s to PDF (%d bytes)", filename, len(pdf_bytes))
        return pdf_bytes

    async def convert(self, content: bytes, filename: str) -> bytes:
        """Convert *content* (named *filename*) to PDF bytes.

        Raises:
            PdfConversionUnavailableError: LibreOffice is not installed.
            PdfConversionError: the conversion failed or timed out.
        """
        return await asyncio.to_thread(self._convert_sync, content, filename)


def pdf_filename(filename: str) -> str:
    return f"{Path(filename).stem or 'document'}.pdf"
