"""
API Router for Result Downloads

Responsibility:
    Serves the result and failed-row CSV reports of a completed job.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Uses FileStorageService and RedisProgressTracker directly (no query object)
    - 404 when the job is unknown, not completed, or the report is missing
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from fastapi.responses import FileResponse

from nad_uploader.api.schemas.common import ErrorResponse
from nad_uploader.application.models import JobStatus, ResultFileType
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/results",
    tags=["results"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Job or report not found"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


def get_file_storage_service() -> FileStorageService:
    """Dependency injection for FileStorageService."""
    return FileStorageService()


def get_progress_tracker() -> RedisProgressTracker:
    """Dependency injection for RedisProgressTracker."""
    return RedisProgressTracker()


def _not_found(code: str, message: str, **details) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=ErrorResponse(code=code, message=message, details=details).model_dump(),
    )


@router.get(
    "/{job_id}/download",
    status_code=status.HTTP_200_OK,
    response_class=FileResponse,
    summary="Download a CSV report for a completed job",
    description=(
        "file_type=result returns the enrolled rows with their aliases, "
        "file_type=failed returns the rejected rows with the error text."
    ),
    responses={
        200: {
            "description": "CSV report",
            "content": {"text/csv": {"schema": {"type": "string", "format": "binary"}}},
        },
    },
)
async def download_result(
    job_id: UUID = Path(..., description="Job ID from POST /api/enrollments"),
    file_type: ResultFileType = Query(
        default=ResultFileType.RESULT,
        description="'result' (enrolled rows) or 'failed' (rejected rows)",
    ),
    file_storage: FileStorageService = Depends(get_file_storage_service),
    progress_tracker: RedisProgressTracker = Depends(get_progress_tracker),
) -> FileResponse:
    """
    Process Flow:
        1. Verify job exists in Redis
        2. Verify job status is completed
        3. Locate the requested report in the job output directory
        4. Stream it as text/csv

    Examples:
        >>> curl -OJ "http://localhost:8000/api/results/{job_id}/download?file_type=failed"
    """
    job_id_str = str(job_id)
    progress_data = progress_tracker.get_status(job_id_str)

    if not progress_data:
        logger.warning(f"Job not found for download: {job_id_str}")
        raise _not_found(
            "JOB_NOT_FOUND",
            f"Job {job_id} not found or expired",
            job_id=job_id_str,
        )

    job_status = progress_data.get("status")
    if job_status != JobStatus.COMPLETED.value:
        logger.warning(f"Download of non-completed job {job_id_str}: status={job_status}")
        raise _not_found(
            "JOB_NOT_COMPLETED",
            (
                f"Job is not completed yet. Current status: {job_status}. "
                f"Poll GET /api/jobs/{job_id}/status until completed."
            ),
            job_id=job_id_str,
            current_status=job_status,
        )

    report_path = file_storage.get_report_path(job_id, file_type)
    if report_path is None:
        logger.error(f"{file_type.value} report missing for completed job {job_id_str}")
        raise _not_found(
            "RESULT_FILE_NOT_FOUND",
            f"No {file_type.value} report found for job {job_id}",
            job_id=job_id_str,
            file_type=file_type.value,
        )

    logger.info(f"Serving {file_type.value} report for job {job_id_str}: {report_path}")
    return FileResponse(path=report_path, media_type="text/csv", filename=report_path.name)
