"""
Start Enrollment Use Case

Responsibility:
    Validates that the uploaded workbook exists and matches the requested
    kind, records the job as queued
    in Redis and dispatches the Celery task.

Architecture Notes:
    - Part of Application Layer (Services)
    - Called by API Layer (enrollments.py router)
    - job_id is generated here and used as the Celery task_id, so the API
      can answer status polls before a worker picks the task up
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel

from nad_uploader.application.commands.start_enrollment import StartEnrollmentCommand
from nad_uploader.application.models import EnrollmentKind, JobStatus
from nad_uploader.application.tasks.enrollment_tasks import process_enrollment_task
from nad_uploader.domain.shared.exceptions import (
    InvalidEnrollmentCommandError,
    UploadNotFoundError,
)
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

logger = logging.getLogger(__name__)


class StartEnrollmentResult(BaseModel):
    """Response DTO for a dispatched enrollment job."""

    job_id: UUID
    status: JobStatus
    kind: EnrollmentKind
    thread_count: int
    message: str


class StartEnrollmentUseCase:
    """
    Use case for starting an enrollment job.

    Examples:
        >>> use_case = StartEnrollmentUseCase(FileStorageService(), RedisProgressTracker())
        >>> result = await use_case.execute(command)
        >>> result.status
        <JobStatus.QUEUED: 'queued'>
    """

    def __init__(
        self,
        file_storage: FileStorageService,
        progress_tracker: Optional[RedisProgressTracker] = None,
    ) -> None:
        self.file_storage = file_storage
        self.progress_tracker = progress_tracker or RedisProgressTracker()

    async def execute(self, command: StartEnrollmentCommand) -> StartEnrollmentResult:
        """
        Dispatch the enrollment job.

        Process Flow:
        1. Verify the upload exists and was declared with the same kind
        2. Generate job_id and mark it queued in Redis
        3. Send process_enrollment_task with task_id=job_id

        Raises:
            UploadNotFoundError: If no workbook is stored under command.file_id
            InvalidEnrollmentCommandError: If the workbook was uploaded as the
                other kind (its columns would be read with the wrong layout)
        """
        file_id = UUID(command.file_id)
        if self.file_storage.get_uploaded_file_path(file_id) is None:
            raise UploadNotFoundError(command.file_id)

        upload_kind = self.file_storage.get_upload_kind(file_id)
        if upload_kind is not None and upload_kind is not command.kind:
            raise InvalidEnrollmentCommandError(
                f"File {command.file_id} was uploaded as {upload_kind.value}, "
                f"cannot enroll it as {command.kind.value}"
            )

        job_id = str(uuid4())
        self.progress_tracker.queue_job(
            job_id,
            kind=command.kind.value,
            message="Job queued, waiting for worker to start processing",
        )

        task_result = process_enrollment_task.apply_async(
            kwargs=command.to_celery_dict(),
            task_id=job_id,
        )
        logger.info(
            f"Enrollment job {task_result.id} queued: {command.kind.value}, "
            f"file {command.file_id}, {command.thread_count} threads"
        )

        return StartEnrollmentResult(
            job_id=UUID(task_result.id),
            status=JobStatus.QUEUED,
            kind=command.kind,
            thread_count=command.thread_count,
            message=(
                f"Enrollment job queued successfully. "
                f"Check status at GET /api/jobs/{task_result.id}/status"
            ),
        )
