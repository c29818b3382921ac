"""
API Router for Job Status

Responsibility:
    Exposes enrollment job progress stored in Redis.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Uses GetJobStatusQueryHandler (CQRS read side)
    - JobNotFoundException -> 404 via the global handler in main.py
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status

from nad_uploader.api.schemas.common import ErrorResponse
from nad_uploader.application.queries.get_job_status import (
    GetJobStatusQuery,
    GetJobStatusQueryHandler,
    JobStatusResult,
)
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Job not found or expired"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


async def get_job_status_query_handler() -> GetJobStatusQueryHandler:
    """Dependency injection for GetJobStatusQueryHandler."""
    return GetJobStatusQueryHandler(progress_tracker=RedisProgressTracker())


@router.get(
    "/{job_id}/status",
    status_code=status.HTTP_200_OK,
    response_model=JobStatusResult,
    summary="Get enrollment job status",
    description=(
        "Returns status, progress percentage and successful/failed counters. "
        "result_ready becomes true when the CSV reports can be downloaded."
    ),
)
async def get_job_status(
    job_id: UUID = Path(..., description="Job ID from POST /api/enrollments"),
    handler: GetJobStatusQueryHandler = Depends(get_job_status_query_handler),
) -> JobStatusResult:
    """
    Examples:
        >>> curl http://localhost:8000/api/jobs/3fa85f64-5717-4562-b3fc-2c963f66afa6/status
        {"job_id": "...", "status": "processing", "progress": 45, "successful": 110, "failed": 3, ...}
    """
    try:
        return await handler.handle(GetJobStatusQuery(job_id=job_id))
    except ValueError as e:
        logger.error(f"Corrupted status for job {job_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=ErrorResponse(
                code="INVALID_JOB_STATUS",
                message=str(e),
                details={"job_id": str(job_id)},
            ).model_dump(),
        )
