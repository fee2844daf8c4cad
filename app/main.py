"""
Civic Report Service - FastAPI Application Entry Point

Citizens report municipal issues (roads, water, electricity, safety, ...)
with photos and videos; municipal staff assign and resolve them.

DESIGN PRINCIPLES:
- Business rules live in services, routes only translate HTTP
- Every failure surfaces synchronously with a structured error envelope
- No background jobs, no automatic retries
"""

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.config.firebase import initialize_firestore
from app.core.errors import ReportServiceError, ResponseStatus
from app.core.settings import settings
from app.routes import health, reports

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Municipal issue reporting: submission, triage, assignment and resolution",
    debug=settings.DEBUG
)


@app.exception_handler(ReportServiceError)
async def report_error_handler(request: Request, exc: ReportServiceError):
    """Structured business-rule failures -> error envelope with the mapped HTTP status."""
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status} {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=jsonable_encoder(exc.to_envelope()))


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies, forms and query strings are validation failures (400)."""
    logger.info(f"{request.method} {request.url.path} -> 400 request validation: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({
            "data": exc.errors(),
            "message": "Request validation failed",
            "status": ResponseStatus.VALIDATION_FAILED.value,
            "options": None,
        }),
    )


# Global exception handler to catch ALL other exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"🔥 Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "data": None,
            "message": "Internal Server Error",
            "status": ResponseStatus.INTERNAL_SERVER_ERROR.value,
            "options": None,
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize services on application startup.
    Currently: Firestore connection
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        initialize_firestore()
    except RuntimeError as e:
        logger.warning(f"Firestore initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(reports.router, prefix=settings.API_PREFIX)

# Local media uploads are served by the app itself
if settings.MEDIA_STORAGE_PROVIDER.lower() != "firebase":
    os.makedirs(settings.MEDIA_DIR, exist_ok=True)
    app.mount(settings.MEDIA_URL_PATH, StaticFiles(directory=settings.MEDIA_DIR), name="media")


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
        "reports": f"{settings.API_PREFIX}/reports",
    }
