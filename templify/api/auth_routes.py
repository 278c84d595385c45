import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Form
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.responses import RedirectResponse

from templify.api.dependencies import get_auth_service
from templify.api.dependencies import get_current_user
from templify.core.exceptions import AuthenticationError
from templify.core.security import store_login
from templify.models.template_models import CurrentUser
from templify.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

LOGIN_REDIRECT = "/dashboard"
MIN_PASSWORD_LENGTH = 6


def _login_error(message: str, target: str, status_code: int, details: str | None = None) -> JSONResponse:
    body: dict[str, Any] = {"error": message, "formErrorTarget": target}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status_code)


@router.post("/login", response_model=None)
async def login(
    request: Request,
    email: str | None = Form(default=None),
    password: str | None = Form(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> RedirectResponse | JSONResponse:
    """Signs the user in and stores the Supabase tokens in the session cookie.

    Validation and credential errors come back as JSON with a
    ``formErrorTarget`` naming the form field to highlight.
    """
    request_id = str(uuid4())
    if not email or "@" not in email or not email.strip():
        return _login_error("Invalid email address.", "email", 400)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return _login_error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", "password", 400)

    try:
        result = await auth_service.sign_in(email.strip(), password)
    except AuthenticationError as e:
        logger.info("[%s] Login rejected for %s", request_id, email)
        return _login_error(e.message or "Invalid login credentials.", "general", 401)
    except Exception as e:
        logger.error("[%s] Login action error: %s", request_id, e, exc_info=True)
        return _login_error("Login failed due to an unexpected server error.", "general", 500, details=str(e))

    store_login(request.session, result.user, result.access_token, result.refresh_token)
    logger.info("[%s] User %s logged in", request_id, result.user.id)
    return RedirectResponse(LOGIN_REDIRECT, status_code=303)


@router.post("/logout")
async def logout(request: Request) -> RedirectResponse:
    request.session.clear()
    return RedirectResponse("/login", status_code=303)


@router.get("/api/me")
async def current_user(user: CurrentUser = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": user.model_dump()}
