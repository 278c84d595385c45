import json
import logging
from collections.abc import Callable
from datetime import datetime
from datetime import timezone
from functools import wraps
from typing import Any
from urllib.parse import quote
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import Form
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi import Response
from fastapi import UploadFile
from fastapi.responses import StreamingResponse

from templify.api.dependencies import get_current_user
from templify.api.dependencies import get_pdf_converter
from templify.api.dependencies import get_template_service
from templify.core.exceptions import TemplifyError
from templify.core.security import authorize_template_access
from templify.core.validation import PDF_MEDIA_TYPE
from templify.core.validation import content_type_for
from templify.core.validation import validate_template_upload
from templify.models.template_models import CurrentUser
from templify.services.pdf_converter import PdfConverter
from templify.services.pdf_converter import pdf_filename
from templify.services.templates import TemplateService
from templify.services.templates import generated_filename
from templify.services.templates import template_file_type

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Error Handling Decorator for template endpoints ---
def handle_template_errors(func: Callable) -> Callable:
    """Decorator giving each request an id and turning unexpected errors into a traced 500.

    Domain errors (TemplifyError) and HTTPException pass through untouched and
    are rendered by the application's exception handlers.
    """

    @wraps(func)
    async def wrapper(request: Request, *args: Any, **kwargs: Any) -> Any:
        request_id = str(uuid4())
        request.state.request_id = request_id

        try:
            return await func(request, *args, **kwargs)
        except (TemplifyError, HTTPException):
            raise
        except Exception as e:
            final_request_id = getattr(request.state, "request_id", "unknown")
            logger.error(
                "[%s] Unexpected error in %s: %s",
                final_request_id,
                func.__name__,
                str(e),
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail=f"An unexpected server error occurred (trace: {final_request_id}).",
            ) from e

    return wrapper


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _attachment(content: bytes, filename: str, media_type: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={
            "Content-Disposition": _content_disposition(filename),
            "Content-Length": str(len(content)),
        },
    )


async def _parse_value_mapping(request: Request) -> dict[str, Any]:
    raw_body = await request.body()
    if not raw_body.strip():
        raise HTTPException(status_code=400, detail="Request body is empty. Placeholder data is required.")
    try:
        values = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail="Invalid JSON data for placeholders in request body.") from e
    if not isinstance(values, dict):
        raise HTTPException(status_code=400, detail="Placeholder data must be a valid JSON object.")
    return values


@router.post("/templates/upload", summary="Upload a template and extract its placeholders")
@handle_template_errors
async def upload_template(
    request: Request,
    template_file: UploadFile | None = File(default=None, alias="templateFile"),
    template_name: str | None = Form(default=None, alias="templateName"),
    user: CurrentUser = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> dict[str, Any]:
    """Stores a .docx/.xlsx template and its metadata.

    Raises:
        HTTPException:
            - 400: No file, empty file, unsupported type or unreadable workbook.
            - 401: Not logged in.
            - 413: File larger than the configured limit.
            - 500: Storage or database failure.
    """
    request_id = request.state.request_id
    if template_file is None:
        raise HTTPException(status_code=400, detail="No file provided or file is invalid.")

    contents = await template_file.read()
    filename = template_file.filename
    await validate_template_upload(filename, contents, request_id)

    name = (template_name or "").strip() or filename
    logger.info("[%s] Upload of '%s' (%d bytes) by user %s", request_id, filename, len(contents), user.id)

    record = await service.upload(user.id, name, filename, contents, request_id)
    return {
        "success": True,
        "message": "Template uploaded successfully!",
        "template": record.model_dump(mode="json"),
    }


@router.get("/templates/list", summary="List the current user's templates")
@handle_template_errors
async def list_templates(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> dict[str, Any]:
    templates = await service.list_templates(user.id)
    logger.info("[%s] Listed %d template(s) for user %s", request.state.request_id, len(templates), user.id)
    return {"templates": [t.model_dump(mode="json") for t in templates]}


@router.get("/templates/{template_id}/download", summary="Download a stored template")
@handle_template_errors
async def download_template(
    request: Request,
    template_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> StreamingResponse:
    template = await service.get_template(template_id)
    authorize_template_access(user, template, "download")

    content = await service.download(template)
    media_type = content_type_for(template.file_type or template.name)
    logger.info("[%s] Serving template %s (%d bytes)", request.state.request_id, template_id, len(content))
    return _attachment(content, template.name, media_type)


@router.post("/templates/{template_id}/generate", summary="Fill a template with placeholder values")
@handle_template_errors
async def generate_document(
    request: Request,
    template_id: str,
    output_format: str | None = Query(default=None, alias="format"),
    user: CurrentUser = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> StreamingResponse:
    """Returns the filled document as an attachment named ``Generated-<name>``.

    The JSON body maps tag names to values. With ``?format=pdf`` the filled
    document is converted to PDF before it is returned.

    Raises:
        HTTPException:
            - 400: Body is not a JSON object, or unsupported template type.
            - 403: The template belongs to another user.
            - 404: Unknown template.
            - 500: Storage failure or template could not be filled.
            - 503: PDF requested but LibreOffice is not available.
    """
    request_id = request.state.request_id
    values = await _parse_value_mapping(request)

    template = await service.get_template(template_id)
    authorize_template_access(user, template, "generate a document from")
    file_type = template_file_type(template)
    if output_format not in (None, "", "pdf", file_type):
        raise HTTPException(status_code=400, detail=f"Unsupported output format: {output_format}")

    converter: PdfConverter | None = None
    if output_format == "pdf":
        converter = get_pdf_converter(request)
        if not await converter.is_available():
            raise HTTPException(status_code=503, detail="PDF conversion service is unavailable")

    generated = await service.generate(template, values, request_id)
    filename = generated_filename(template, file_type)

    if converter is not None:
        pdf_bytes = await converter.convert(generated, filename)
        return _attachment(pdf_bytes, pdf_filename(filename), PDF_MEDIA_TYPE)
    return _attachment(generated, filename, content_type_for(file_type))


@router.delete("/templates/{template_id}", status_code=204, summary="Delete a template")
@handle_template_errors
async def delete_template(
    request: Request,
    template_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> Response:
    template = await service.get_template(template_id)
    authorize_template_access(user, template, "delete")
    await service.delete(template, request.state.request_id)
    return Response(status_code=204)


@router.post("/convert-to-pdf", summary="Convert an uploaded office document to PDF")
@handle_template_errors
async def convert_to_pdf(
    request: Request,
    file: UploadFile | None = File(default=None),
    user: CurrentUser = Depends(get_current_user),
    converter: PdfConverter = Depends(get_pdf_converter),
) -> StreamingResponse:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided or file is invalid")
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="No file provided or file is invalid")

    if not await converter.is_available():
        raise HTTPException(status_code=503, detail="PDF conversion service is unavailable")

    logger.info("[%s] PDF conversion of '%s' requested by user %s", request.state.request_id, file.filename, user.id)
    pdf_bytes = await converter.convert(contents, file.filename)
    return _attachment(pdf_bytes, pdf_filename(file.filename), PDF_MEDIA_TYPE)


@router.get("/pdf-service-health", summary="Report whether LibreOffice is available")
async def pdf_service_health(converter: PdfConverter = Depends(get_pdf_converter)) -> dict[str, Any]:
    available = await converter.is_available()
    return {
        "status": "healthy" if available else "unavailable",
        "libreoffice": available,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
