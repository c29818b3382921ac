"""
Celery Task for Asynchronous Enrollment

Runs an enrollment batch for an uploaded workbook and publishes progress to
Redis for GET /api/jobs/{job_id}/status.

Responsibility:
    - Locate the uploaded workbook and the job output directory
    - Run EnrollmentBatchProcessor
    - Report progress via self.update_state() and RedisProgressTracker
    - Log each stage with memory usage
    - Store the batch summary or the failure reason

Retry Policy:
    - Errors before any row was submitted (Redis hiccup, temporary I/O error)
      are retried with exponential backoff
    - Input errors (missing upload, unreadable workbook) fail immediately
    - Once rows were submitted the job is never retried: a second run would
      post the same enrollments to NAD again
"""

import logging
import os
import threading
from datetime import datetime
from uuid import UUID

import psutil
from celery import Task
from celery.exceptions import SoftTimeLimitExceeded

from .celery_app import celery_app
from nad_uploader.application.models import EnrollmentKind
from nad_uploader.application.services.enrollment_batch import (
    BatchProgress,
    EnrollmentBatchProcessor,
)
from nad_uploader.config import UploaderSettings
from nad_uploader.domain.shared.exceptions import DomainException, UploadNotFoundError
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)
from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)

logger = logging.getLogger(__name__)

PERMANENT_ERRORS = (DomainException, FileNotFoundError, ValueError)


@celery_app.task(
    bind=True,
    name="process_enrollment",
    max_retries=3,
    retry_backoff=True,
    retry_backoff_max=900,
    soft_time_limit=int(os.getenv("ENROLLMENT_TASK_SOFT_TIME_LIMIT", "3540")),
)
def process_enrollment_task(
    self: Task,
    file_id: str,
    kind: str,
    thread_count: int = 4,
) -> dict:
    """
    Enroll every row of an uploaded workbook.

    Args:
        self: Celery task instance (bind=True gives self.request.id and self.update_state)
        file_id: Upload identifier from POST /api/files/upload
        kind: "accounts" or "merchants"
        thread_count: Worker threads for the batch (clamped by the processor)

    Returns:
        Batch summary:
        {
            "status": "completed",
            "job_id": "...",
            "kind": "accounts",
            "total_rows": 250,
            "submitted": 248,
            "successful": 240,
            "failed": 8,
            "result_file": ".../output/accounts-output_20250115_103000.csv",
            "failed_file": ".../output/failed-ACCOUNT_20250115_103000.csv",
            "processing_time": 42.1,
        }
    """
    job_id = self.request.id
    process = psutil.Process(os.getpid())
    progress_tracker = RedisProgressTracker()
    rows_submitted = False

    def log_with_memory(stage: str, message: str):
        memory_mb = process.memory_info().rss / 1024 / 1024
        logger.info(f"{datetime.now().isoformat()} | {memory_mb:.1f}MB | {stage} | {message}")

    # Progress callbacks arrive from worker threads: publish at most once per
    # percent, in processed order, so the shown progress never goes backwards
    publish_lock = threading.Lock()
    last_published = {"percent": -1, "processed": 0}

    def update_progress(snapshot: BatchProgress):
        with publish_lock:
            if snapshot.processed < last_published["processed"]:
                return
            if snapshot.percent == last_published["percent"] and snapshot.processed < snapshot.total:
                return
            last_published["percent"] = snapshot.percent
            last_published["processed"] = snapshot.processed

            message = (
                f"Progress: {snapshot.percent}% | Successful: {snapshot.successful} | "
                f"Failed: {snapshot.failed}"
            )
            self.update_state(
                state="PROCESSING",
                meta={
                    "progress": snapshot.percent,
                    "message": message,
                    "processed_rows": snapshot.processed,
                    "total_rows": snapshot.total,
                    "successful": snapshot.successful,
                    "failed": snapshot.failed,
                },
            )
            progress_tracker.update_progress(
                job_id=job_id,
                progress=snapshot.percent,
                message=message,
                processed_rows=snapshot.processed,
                total_rows=snapshot.total,
                successful=snapshot.successful,
                failed=snapshot.failed,
                stage="ENROLLING",
                memory_mb=process.memory_info().rss / 1024 / 1024,
                kind=kind,
            )

    try:
        enrollment_kind = EnrollmentKind(kind)
        progress_tracker.start_job(job_id, "Job started - reading workbook", kind=kind)
        log_with_memory("START", f"Job {job_id}: {kind} enrollment of file {file_id}")

        file_storage = FileStorageService()
        workbook_path = file_storage.get_uploaded_file_path(UUID(file_id))
        if workbook_path is None:
            raise UploadNotFoundError(file_id)

        settings = UploaderSettings.from_env()
        processor = EnrollmentBatchProcessor(settings)
        workbook = processor.load(workbook_path)
        log_with_memory(
            "FILE_LOADED",
            f"{len(workbook.rows)} rows to enroll ({workbook.total_rows} data rows)",
        )

        rows_submitted = True
        result = processor.process(
            enrollment_kind,
            workbook,
            thread_count,
            output_dir=file_storage.get_output_dir(UUID(job_id)),
            progress_callback=update_progress,
        )

        summary = result.to_dict()
        progress_tracker.complete_job(job_id, summary)
        log_with_memory(
            "COMPLETE",
            f"Successful enrollments: {result.successful}, "
            f"Failed enrollments: {result.failed}",
        )
        return {"status": "completed", "job_id": job_id, **summary}

    except SoftTimeLimitExceeded:
        logger.warning(f"Job {job_id}: soft time limit exceeded, reports are partial")
        progress_tracker.fail_job(job_id, "Time limit exceeded - CSV reports are partial")
        raise

    except PERMANENT_ERRORS as exc:
        log_with_memory("ERROR", f"Task failed: {exc}")
        progress_tracker.fail_job(job_id, str(exc))
        raise

    except Exception as exc:
        log_with_memory("ERROR", f"Task failed: {exc}")
        progress_tracker.fail_job(job_id, str(exc))
        if rows_submitted:
            raise
        raise self.retry(exc=exc, countdown=min(900, 2 ** (self.request.retries + 1)))
