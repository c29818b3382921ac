"""
API Router for Enrollment Jobs

Responsibility:
    Starts an asynchronous enrollment job for an uploaded workbook.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Returns 202 Accepted: the batch runs in a Celery worker
    - Request body validation errors (bad UUID, unknown kind) -> 422 from FastAPI
    - UploadNotFoundError -> 404 via the global domain handler
    - InvalidEnrollmentCommandError (kind differs from the upload) -> 400
"""

import logging

from fastapi import APIRouter, Depends, status

from nad_uploader.api.schemas.common import ErrorResponse
from nad_uploader.application.commands.start_enrollment import StartEnrollmentCommand
from nad_uploader.application.services.start_enrollment_use_case import (
    StartEnrollmentResult,
    StartEnrollmentUseCase,
)
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/enrollments",
    tags=["enrollments"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Kind differs from upload"},
        404: {"model": ErrorResponse, "description": "Not Found - Unknown file_id"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


async def get_start_enrollment_use_case() -> StartEnrollmentUseCase:
    """Dependency injection for StartEnrollmentUseCase."""
    return StartEnrollmentUseCase(file_storage=FileStorageService())


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=StartEnrollmentResult,
    summary="Start an enrollment job",
    description=(
        "Queue enrollment of every row of an uploaded workbook. Poll "
        "GET /api/jobs/{job_id}/status and download the CSV reports from "
        "GET /api/results/{job_id}/download once completed."
    ),
)
async def start_enrollment(
    command: StartEnrollmentCommand,
    use_case: StartEnrollmentUseCase = Depends(get_start_enrollment_use_case),
) -> StartEnrollmentResult:
    """
    Examples:
        >>> curl -X POST http://localhost:8000/api/enrollments \\
        ...      -H "Content-Type: application/json" \\
        ...      -d '{"file_id": "...", "kind": "accounts", "thread_count": 4}'
        {"job_id": "...", "status": "queued", "kind": "accounts", "thread_count": 4, ...}
    """
    return await use_case.execute(command)
