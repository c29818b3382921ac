"""
FastAPI Application Setup

Main entry point for the NAD Uploader web API.

Responsibility:
    - FastAPI app initialization
    - Router registration (files, enrollments, jobs, results)
    - CORS middleware configuration
    - Global exception handlers
    - Request logging middleware
    - Health check endpoint

Architecture Notes:
    - Part of API Layer (Presentation)
    - Entry point for HTTP server (uvicorn)
    - No business logic - pure HTTP orchestration
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from nad_uploader import __version__
from nad_uploader.api.routers import enrollments, files, jobs, results
from nad_uploader.api.schemas.common import ErrorResponse
from nad_uploader.application.queries.get_job_status import JobNotFoundException
from nad_uploader.domain.shared.exceptions import (
    DomainException,
    ExcelParsingError,
    FileSizeExceededError,
    InvalidEnrollmentCommandError,
    InvalidFileExtensionError,
    MissingRequiredFieldError,
    UploadNotFoundError,
)
from nad_uploader.infrastructure.persistence.redis.connection import (
    close_connections,
    health_check as redis_health_check,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# (status code, error code) per domain exception; subclasses are matched in order
DOMAIN_ERROR_MAPPING = [
    (FileSizeExceededError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "FILE_TOO_LARGE"),
    (ExcelParsingError, status.HTTP_422_UNPROCESSABLE_ENTITY, "EXCEL_PARSING_ERROR"),
    (UploadNotFoundError, status.HTTP_404_NOT_FOUND, "UPLOAD_NOT_FOUND"),
    (InvalidFileExtensionError, status.HTTP_400_BAD_REQUEST, "INVALID_FILE_EXTENSION"),
    (InvalidEnrollmentCommandError, status.HTTP_400_BAD_REQUEST, "INVALID_ENROLLMENT_COMMAND"),
    (MissingRequiredFieldError, status.HTTP_400_BAD_REQUEST, "MISSING_REQUIRED_FIELD"),
]


# ============================================================================
# RESPONSE MODELS
# ============================================================================


class HealthCheckResponse(BaseModel):
    """
    Health check response model.

    Attributes:
        status: "ok" if the endpoint responds
        version: Package version
        timestamp: Unix timestamp of health check
        redis: Whether Redis answered PING (job status depends on it)
    """

    status: str = "ok"
    version: str = __version__
    timestamp: float
    redis: bool


# ============================================================================
# MIDDLEWARE
# ============================================================================


async def request_logging_middleware(request: Request, call_next):
    """
    Log every request with method, path, status code and duration.

    Logging Format:
        INFO: "Incoming request: POST /api/enrollments"
        INFO: "Request completed: POST /api/enrollments - 202 - 0.041s"
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} - "
        f"{response.status_code} - {duration:.3f}s"
    )
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def domain_exception_handler(request: Request, exc: DomainException):
    """
    Convert DomainException subclasses to ErrorResponse JSON.

    Mapping:
        - FileSizeExceededError -> 413 Payload Too Large
        - ExcelParsingError -> 422 Unprocessable Entity
        - UploadNotFoundError -> 404 Not Found
        - Other DomainException -> 400 Bad Request
    """
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "DOMAIN_ERROR"
    for exc_type, mapped_status, mapped_code in DOMAIN_ERROR_MAPPING:
        if isinstance(exc, exc_type):
            status_code, error_code = mapped_status, mapped_code
            break

    error_response = ErrorResponse(
        code=error_code,
        message=str(exc),
        details={"exception_type": exc.__class__.__name__},
    )

    logger.warning(
        f"Domain exception: {exc.__class__.__name__} - {exc.message} - "
        f"Request: {request.method} {request.url.path}"
    )

    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def job_not_found_exception_handler(request: Request, exc: JobNotFoundException):
    """Convert JobNotFoundException to 404 Not Found."""
    error_response = ErrorResponse(
        code="JOB_NOT_FOUND",
        message=str(exc),
        details={"job_id": str(exc.job_id)},
    )

    logger.warning(
        f"Job not found: {exc.job_id} - Request: {request.method} {request.url.path}"
    )

    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response.model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """
    Catch-all for unexpected exceptions -> 500 Internal Server Error.

    Logs the full stack trace.
    """
    error_response = ErrorResponse(
        code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        details={"error": str(exc), "type": exc.__class__.__name__},
    )

    logger.error(
        f"Unexpected error: {exc.__class__.__name__} - {str(exc)} - "
        f"Request: {request.method} {request.url.path}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(),
    )


# ============================================================================
# APP FACTORY
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the Redis connection pool when the server stops."""
    yield
    close_connections()


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Routers: /api/files, /api/enrollments, /api/jobs, /api/results
    Health: GET /health

    Usage:
        >>> app = create_app()
        >>> # uvicorn nad_uploader.api.main:app --reload
    """
    app = FastAPI(
        title="NAD Uploader API",
        version=__version__,
        description=(
            "Bulk enrollment of bank accounts and merchants into NAD. "
            "Upload a workbook, start an enrollment job, poll its progress "
            "and download the result and failed-row CSV reports."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Production: restrict to specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(JobNotFoundException, job_not_found_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(files.router, prefix="/api")
    app.include_router(enrollments.router, prefix="/api")
    app.include_router(jobs.router, prefix="/api")
    app.include_router(results.router, prefix="/api")

    @app.get(
        "/health",
        response_model=HealthCheckResponse,
        status_code=status.HTTP_200_OK,
        summary="Health check endpoint",
        tags=["health"],
    )
    async def health_check() -> HealthCheckResponse:
        """
        Examples:
            >>> curl http://localhost:8000/health
            {"status": "ok", "version": "0.1.0", "timestamp": 1704976800.123, "redis": true}
        """
        return HealthCheckResponse(
            status="ok",
            version=__version__,
            timestamp=time.time(),
            redis=redis_health_check(),
        )

    logger.info("FastAPI application created successfully")
    logger.info("Registered routers: /api/files, /api/enrollments, /api/jobs, /api/results")

    return app


# Usage: uvicorn nad_uploader.api.main:app --reload
app = create_app()
