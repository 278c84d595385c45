"""FastAPI dependencies handing out the clients built at startup.

The clients live on ``app.state`` (see ``templify.main``); tests replace these
providers through ``app.dependency_overrides``.
"""

import logging

from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request

from templify.core.exceptions import AuthenticationError
from templify.core.security import session_access_token
from templify.models.template_models import CurrentUser
from templify.services.auth import AuthService
from templify.services.pdf_converter import PdfConverter
from templify.services.templates import TemplateService

logger = logging.getLogger(__name__)


def get_template_service(request: Request) -> TemplateService:
    service = getattr(request.app.state, "template_service", None)
    if service is None:
        logger.error("Template service requested but storage/metadata backends are not configured.")
        raise HTTPException(status_code=503, detail="Template storage is not configured.")
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        logger.error("Auth service requested but Supabase is not configured.")
        raise HTTPException(status_code=503, detail="Authentication backend is not configured.")
    return service


def get_pdf_converter(request: Request) -> PdfConverter:
    converter = getattr(request.app.state, "pdf_converter", None)
    if converter is None:
        raise HTTPException(status_code=503, detail="PDF conversion service is unavailable")
    return converter


async def get_current_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """Resolve the logged-in user from the session cookie.

    Raises:
        AuthenticationError: 401 when there is no session or its token is no longer valid.
    """
    token = session_access_token(request.session)
    if token is None:
        raise AuthenticationError("Not authenticated.")

    user = await auth_service.get_user(token)
    if user is None:
        request.session.clear()
        raise AuthenticationError("Session expired. Please log in again.")
    return user
