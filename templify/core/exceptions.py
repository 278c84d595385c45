"""Core custom exceptions for the application.

Every error carries a short user-facing message, optional details and the
HTTP status code the API boundary answers with.
"""


class TemplifyError(Exception):
    """Base exception for template-related errors."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class UnsupportedFileTypeError(TemplifyError):
    """File extension/type is neither .docx nor .xlsx."""

    status_code = 400


class ExtractionError(TemplifyError):
    """Uploaded bytes are not a parseable workbook."""

    status_code = 400


class TemplateParseError(TemplifyError):
    """Stored template bytes could not be parsed while filling."""


class DocumentFillError(TemplifyError):
    """The document-render delegate failed."""


class TemplateNotFoundError(TemplifyError):
    status_code = 404


class TemplateAccessDeniedError(TemplifyError):
    status_code = 403


class StorageError(TemplifyError):
    """Object storage reported an error."""


class MetadataError(TemplifyError):
    """Metadata store reported an error."""


class PdfConversionUnavailableError(TemplifyError):
    status_code = 503


class PdfConversionError(TemplifyError):
    """LibreOffice failed or timed out."""


class AuthenticationError(TemplifyError):
    status_code = 401


def provider_message(err: Exception) -> str:
    """Human-readable message of a backend client error, without provider-specific fields."""
    message = getattr(err, "message", None)
    if isinstance(message, str) and message:
        return message
    if err.args and isinstance(err.args[0], dict):
        return str(err.args[0].get("message") or err.args[0])
    return str(err) or err.__class__.__name__
