"""
GetJobStatusQuery - CQRS Read Query

Query object and handler for reading enrollment job status from Redis.

Responsibility:
    - Query: job_id to look up
    - Handler: reads RedisProgressTracker and maps it to JobStatusResult

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Used by jobs.py and results.py routers
"""

import logging
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from nad_uploader.application.models import JobStatus
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

logger = logging.getLogger(__name__)


class GetJobStatusQuery(BaseModel):
    """
    Query object containing job ID to retrieve status for.

    Attributes:
        job_id: Job identifier returned by POST /api/enrollments
    """

    job_id: UUID = Field(description="Job ID returned when the enrollment was started")


class JobStatusResult(BaseModel):
    """
    Job status DTO, converted to JobStatusResponse by the API Layer.

    Attributes:
        job_id: Job identifier
        status: queued/processing/completed/failed/cancelled
        progress: 0-100
        message: Current step
        kind: accounts or merchants (None if not recorded)
        processed_rows: Rows finished so far
        total_rows: Rows submitted for enrollment
        successful: Rows enrolled so far
        failed: Rows failed so far
        result_ready: True once the CSV reports can be downloaded
        current_step: Stage name (START, ENROLLING, COMPLETE, ...)
        error_details: Job-level errors joined by newlines
        updated_at: Timestamp of the last update
    """

    job_id: UUID
    status: JobStatus
    progress: int = Field(ge=0, le=100)
    message: str
    kind: Optional[str] = None
    processed_rows: int = 0
    total_rows: int = 0
    successful: int = 0
    failed: int = 0
    result_ready: bool = False
    current_step: Optional[str] = None
    error_details: Optional[str] = None
    updated_at: Optional[str] = None


class JobNotFoundException(Exception):
    """
    Raised when job_id is not found in Redis.

    Can happen when the job never existed, its TTL expired, or Redis was
    restarted without persistence.
    """

    def __init__(self, job_id: UUID):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found or expired")


class GetJobStatusQueryHandler:
    """
    Handler executing GetJobStatusQuery against RedisProgressTracker.

    Examples:
        >>> handler = GetJobStatusQueryHandler(RedisProgressTracker())
        >>> result = await handler.handle(GetJobStatusQuery(job_id=job_id))
        >>> print(result.successful, result.failed)
    """

    def __init__(self, progress_tracker: RedisProgressTracker) -> None:
        self.progress_tracker = progress_tracker

    async def handle(self, query: GetJobStatusQuery) -> JobStatusResult:
        """
        Raises:
            JobNotFoundException: If Redis has no progress for the job
            ValueError: If the stored status is not a JobStatus value
        """
        job_id_str = str(query.job_id)
        progress_data = self.progress_tracker.get_status(job_id_str)

        if not progress_data:
            logger.warning(f"Job not found in Redis: {job_id_str}")
            raise JobNotFoundException(query.job_id)

        try:
            status = JobStatus(progress_data["status"])
        except ValueError as e:
            logger.error(f"Invalid status value from Redis: {progress_data['status']}")
            raise ValueError(f"Invalid status in Redis: {progress_data['status']}") from e

        errors = progress_data.get("errors") or []

        return JobStatusResult(
            job_id=query.job_id,
            status=status,
            progress=progress_data.get("progress", 0),
            message=progress_data.get("message", ""),
            kind=progress_data.get("kind"),
            processed_rows=progress_data.get("processed_rows", 0),
            total_rows=progress_data.get("total_rows", 0),
            successful=progress_data.get("successful", 0),
            failed=progress_data.get("failed", 0),
            result_ready=status == JobStatus.COMPLETED,
            current_step=progress_data.get("stage") or None,
            error_details="\n".join(errors) if errors else None,
            updated_at=progress_data.get("last_heartbeat"),
        )
