import logging
import secrets

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from supabase import create_client

from templify.api.auth_routes import router as auth_router
from templify.api.routes import router
from templify.core.cleanup import cleanup_work_dir
from templify.core.config import settings
from templify.core.exceptions import TemplifyError
from templify.core.logging import setup_logging
from templify.services.auth import AuthService
from templify.services.metadata import TemplateRepository
from templify.services.pdf_converter import PdfConverter
from templify.services.storage.base import create_storage
from templify.services.templates import TemplateService

setup_logging()

app = FastAPI(title="Templify")

logger = logging.getLogger(__name__)


def init_backends(target: FastAPI) -> None:
    """Build the process-wide backend clients once and attach them to ``app.state``.

    A backend that is not configured is logged and left as None; the routes
    that need it answer 503.
    """
    supabase_admin = None
    if settings.supabase_url and settings.supabase_service_role_key:
        supabase_admin = create_client(settings.supabase_url, settings.supabase_service_role_key)
        logger.info("Supabase admin client initialized for %s", settings.supabase_url)
    else:
        logger.error("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not configured. Templates and login will be unavailable.")

    storage = create_storage(settings, supabase_admin)
    target.state.template_service = None
    if storage is not None and supabase_admin is not None:
        repository = TemplateRepository(supabase_admin, settings.templates_table)
        target.state.template_service = TemplateService(storage, repository)

    target.state.auth_service = AuthService.from_settings(settings, supabase_admin) if supabase_admin is not None else None
    target.state.pdf_converter = PdfConverter(
        binary=settings.soffice_binary,
        timeout=settings.pdf_conversion_timeout,
        work_dir=settings.conversion_work_dir,
    )


@app.on_event("startup")
async def startup_event() -> None:
    init_backends(app)
    removed = cleanup_work_dir()
    if removed:
        logger.info("Removed %d stale PDF conversion folder(s)", removed)
    logger.info("Application startup complete")


@app.exception_handler(TemplifyError)
async def templify_exception_handler(_request: Request, exc: TemplifyError) -> JSONResponse:
    logger.error("%s: %s (status: %d, details: %s)", exc.__class__.__name__, exc.message, exc.status_code, exc.details)
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(body, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": jsonable_encoder(exc.errors())},
        status_code=422,
    )


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


session_secret = settings.session_secret
if not session_secret:
    logger.warning("SESSION_SECRET is not set; using a random secret, sessions will not survive a restart.")
    session_secret = secrets.token_urlsafe(32)

app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.is_production,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
app.include_router(auth_router)
