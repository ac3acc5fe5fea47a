"""FastAPI app: nomination intake and admin review endpoints.

Build the application with ``create_app(settings)``; configuration, the
database engine and the blob store are attached to ``app.state`` rather
than held in module globals.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from urllib.parse import quote

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import SessionStore, authenticate, get_session_store, require_admin
from .config import Environment, Settings, get_settings
from .db import build_engine, build_session_maker, create_tables, get_session
from .intake import IntakeRejected, UploadedFile, validate_intake
from .logging_config import setup_logging
from .pipelines.rendering import TemplateUnavailableError, render_nomination_pdf
from .pipelines.submission import SubmissionPersistenceError, SubmissionStorageError, submit_nomination
from .repositories import NominationRepository
from .storage import BlobNotFoundError, BlobStore, BlobStoreError, LocalBlobStore

logger = logging.getLogger(__name__)

CV_FIELD = "cv"
SUMMARY_FIELDS = ("nominator_name", "nominee_name", "category", "cv_reference")


# Pydantic response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class SubmitResponse(BaseModel):
    """Nomination submission response."""
    message: str
    id: str


class LoginRequest(BaseModel):
    """Admin login request."""
    name: str = ""
    password: str = ""


class SuccessResponse(BaseModel):
    success: bool


class NominationSummary(BaseModel):
    """Admin list row."""
    id: str
    nominator_name: str | None = None
    nominee_name: str | None = None
    category: str | None = None
    cv_reference: str | None = None


class NominationDetail(BaseModel):
    """Full nomination record."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    nominator_name: str | None
    nominator_affiliation: str | None
    nominator_address: str | None
    nominator_email: str | None
    nominator_mobile: str | None
    category: str | None
    nominee_name: str | None
    nominee_father: str | None
    nominee_degree: str | None
    nominee_branch: str | None
    nominee_year: int | None
    nominee_qualifications: str | None
    nominee_present_position: str | None
    nominee_past_positions: str | None
    nominee_address: str | None
    nominee_email: str | None
    nominee_mobile: str | None
    nominee_linkedin: str | None
    nominee_other_info: str | None
    assessment_note: str | None
    cv_reference: str | None
    cv_filename: str | None
    cv_content_type: str | None
    created_at: datetime


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def attachment_header(filename: str) -> str:
    """Content-Disposition value that survives non-ASCII filenames."""
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


public_router = APIRouter()
admin_router = APIRouter(prefix="/admin")


@public_router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=request.app.state.settings.version)


@public_router.get("/")
async def root(request: Request):
    """Root endpoint with API info."""
    settings: Settings = request.app.state.settings
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "submit": "/submit",
            "admin_login": "/admin/login",
            "admin_logout": "/admin/logout",
            "nominations": "/admin/nominations",
            "download_cv": "/admin/download/{id}",
            "final_pdf": "/admin/finalpdf/{id}",
        },
    }


@public_router.post("/submit", response_model=SubmitResponse)
async def submit(
    request: Request,
    cv: UploadFile | None = File(None, description="Optional CV file"),
    session: AsyncSession = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Accept a multipart nomination form with an optional CV file part.

    The nomination text fields are read from the form as submitted; only
    the file part is declared.

    This endpoint:
    1. Validates the form fields and file part
    2. Stores the CV, if attached
    3. Persists the nomination

    Returns:
        SubmitResponse with the generated nomination id
    """
    try:
        form = await request.form()
        fields = {key: value for key, value in form.multi_items() if isinstance(value, str)}
        upload = None
        if cv is not None:
            upload = UploadedFile(
                filename=cv.filename or "",
                content=await cv.read(),
                content_type=cv.content_type,
            )

        intake = validate_intake(fields, upload, field_prefix=CV_FIELD)
        nomination_id = await submit_nomination(session, blob_store, intake)

    except (IntakeRejected, SubmissionStorageError, SubmissionPersistenceError):
        # Re-raise to be caught by exception handlers
        raise
    except Exception as e:
        logger.error(f"Unexpected error during submission: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="submission_error", detail="Submission failed").model_dump(),
        )
    finally:
        if cv is not None:
            await cv.close()

    return SubmitResponse(message="Form submitted successfully", id=nomination_id)


@admin_router.post("/login", response_model=SuccessResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
):
    """Verify admin credentials and start a session cookie on success."""
    config = request.app.state.settings.session
    try:
        if not await authenticate(session, payload.name, payload.password):
            logger.info("Rejected admin login")
            return SuccessResponse(success=False)
        token = await store.create(payload.name)
    except SQLAlchemyError as e:
        logger.error(f"Login error: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Internal error"},
        )

    response.set_cookie(
        key=config.cookie_name,
        value=token,
        max_age=config.ttl_hours * 3600,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )
    return SuccessResponse(success=True)


@admin_router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
) -> SuccessResponse:
    """Revoke the current session server-side and clear the cookie."""
    cookie_name = request.app.state.settings.session.cookie_name
    await store.revoke(request.cookies.get(cookie_name))
    response.delete_cookie(cookie_name)
    return SuccessResponse(success=True)


@admin_router.get("/nominations", response_model=list[NominationSummary])
async def list_nominations(
    session: AsyncSession = Depends(get_session),
    admin: str = Depends(require_admin),
) -> list[NominationSummary]:
    """List all nominations with the fields needed for the admin table."""
    try:
        rows = await NominationRepository(session).find(projection=SUMMARY_FIELDS)
    except SQLAlchemyError as e:
        logger.error(f"Fetch nominations error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch nominations",
        )
    return [NominationSummary(**row) for row in rows]


@admin_router.get("/nominations/{nomination_id}", response_model=NominationDetail)
async def get_nomination(
    nomination_id: str,
    session: AsyncSession = Depends(get_session),
    admin: str = Depends(require_admin),
) -> NominationDetail:
    """Fetch a single nomination record."""
    record = await NominationRepository(session).get_by_id(nomination_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Nomination not found",
        )
    return NominationDetail.model_validate(record)


@admin_router.get("/download/{nomination_id}")
async def download_cv(
    nomination_id: str,
    session: AsyncSession = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
    admin: str = Depends(require_admin),
) -> Response:
    """Return the stored CV with its original content type."""
    record = await NominationRepository(session).get_by_id(nomination_id)
    if record is None or not record.cv_reference:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="CV not found")

    try:
        content = await blob_store.get(record.cv_reference)
    except BlobNotFoundError:
        logger.warning(f"CV blob {record.cv_reference} missing for nomination {nomination_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="CV not found")
    except BlobStoreError as e:
        logger.error(f"CV download error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Download error",
        )

    return Response(
        content=content,
        media_type=record.cv_content_type or "application/octet-stream",
        headers={"Content-Disposition": attachment_header(record.cv_filename or record.cv_reference)},
    )


@admin_router.get("/finalpdf/{nomination_id}")
async def final_pdf(
    nomination_id: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    admin: str = Depends(require_admin),
) -> Response:
    """Render the flattened nomination certificate."""
    record = await NominationRepository(session).get_by_id(nomination_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Nomination not found",
        )

    documents = request.app.state.settings.documents
    pdf_bytes = await asyncio.to_thread(
        render_nomination_pdf,
        record,
        documents.template_path,
        timestamp_format=documents.timestamp_format,
    )
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": attachment_header(f"nomination-{record.id}.pdf")},
    )


def _error_handler(status_code: int, error: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"{error}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=error, detail=str(exc)).model_dump(),
        )
    return handler


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Raises:
        pydantic.ValidationError: If settings are not given and required
            configuration is missing from the environment
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown logic."""
        # Startup
        setup_logging(settings.logging)
        if settings.db.create_tables:
            await create_tables(app.state.engine)
        logger.info("Application starting up")

        yield

        # Shutdown
        await app.state.engine.dispose()
        logger.info("Application shutting down")

    # Interactive docs stay off in production
    production = settings.environment == Environment.PRODUCTION
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Award nomination intake and admin review",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        openapi_url=None if production else "/openapi.json",
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings.db)
    app.state.session_maker = build_session_maker(app.state.engine)
    app.state.blob_store = LocalBlobStore(settings.storage.upload_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(IntakeRejected, _error_handler(status.HTTP_400_BAD_REQUEST, "invalid_submission"))
    app.add_exception_handler(SubmissionStorageError, _error_handler(status.HTTP_500_INTERNAL_SERVER_ERROR, "storage_error"))
    app.add_exception_handler(
        SubmissionPersistenceError,
        _error_handler(status.HTTP_500_INTERNAL_SERVER_ERROR, "persistence_error"),
    )
    app.add_exception_handler(
        TemplateUnavailableError,
        _error_handler(status.HTTP_500_INTERNAL_SERVER_ERROR, "pdf_generation_error"),
    )

    app.include_router(public_router)
    app.include_router(admin_router)
    return app
