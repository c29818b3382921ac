"""
Redis Progress Tracker

Stores enrollment job progress in Redis so the API can answer status polls
while a Celery worker is enrolling rows.

Storage Format:
    Redis keys:
    - "progress:{job_id}"          JSON dict with current progress
    - "result:{job_id}"            JSON dict with the batch summary
    - "progress:{job_id}:history"  LIST with the last 10 updates (newest first)

    Progress data structure:
    {
        "status": "processing",        # queued/processing/completed/failed
        "progress": 45,                # 0-100 percentage
        "message": "Enrolling rows",
        "kind": "accounts",
        "processed_rows": 450,
        "total_rows": 1000,
        "successful": 440,
        "failed": 10,
        "stage": "ENROLLING",
        "memory_mb": 92.5,
        "errors": [],
        "last_heartbeat": "2025-01-15T10:30:45.123"
    }

Business Rules:
    - Progress TTL: 1h (REDIS_PROGRESS_TTL), result TTL: 24h (REDIS_RESULT_TTL)
    - Progress and history are written in one pipeline (MULTI/EXEC)

Error Handling:
    - RedisError never propagates out of a write: the data goes to a JSON
      fallback file under FALLBACK_DIR and a warning is logged
    - Reads fall back to that file, then to None/[]
    - A successful Redis write or delete_status removes the fallback file,
      so a stale snapshot never outlives the Redis data
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from nad_uploader.application.models import JobStatus
from nad_uploader.infrastructure.persistence.redis.connection import get_connection_pool

logger = logging.getLogger(__name__)


class RedisProgressTracker:
    """
    Track enrollment job progress using Redis.

    job_id is always handled as a string (Redis keys are strings); callers
    holding a UUID convert with str(job_id).

    Examples:
        >>> tracker = RedisProgressTracker()
        >>> tracker.start_job("job-123", "Reading workbook", total_rows=1000)
        >>> tracker.update_progress("job-123", 50, "Enrolling rows",
        ...                         processed_rows=500, total_rows=1000,
        ...                         successful=490, failed=10)
        >>> tracker.complete_job("job-123", {"successful": 990, "failed": 10})
        >>> tracker.get_status("job-123")["progress"]
        100
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        """
        Args:
            redis_client: Redis client (default: client on the shared pool)
        """
        self.redis: Redis = redis_client or Redis(connection_pool=get_connection_pool())

        self.progress_ttl: int = int(os.getenv("REDIS_PROGRESS_TTL", "3600"))
        self.result_ttl: int = int(os.getenv("REDIS_RESULT_TTL", "86400"))

        self.fallback_dir = Path(os.getenv("FALLBACK_DIR", "/tmp/nad-uploader/fallback"))
        self.fallback_dir.mkdir(parents=True, exist_ok=True)

        self.max_history_entries: int = 10

    # ------------------------------------------------------------------
    # Keys and fallback
    # ------------------------------------------------------------------

    def _get_progress_key(self, job_id: str) -> str:
        return f"progress:{job_id}"

    def _get_result_key(self, job_id: str) -> str:
        return f"result:{job_id}"

    def _get_history_key(self, job_id: str) -> str:
        return f"progress:{job_id}:history"

    def _get_fallback_path(self, job_id: str) -> Path:
        return self.fallback_dir / f"progress_{job_id}.json"

    def _write_fallback(self, job_id: str, data: dict) -> None:
        try:
            fallback_path = self._get_fallback_path(job_id)
            with fallback_path.open("w") as f:
                json.dump(data, f)
            logger.warning(f"Progress data written to fallback file: {fallback_path}")
        except OSError as e:
            logger.error(f"Failed to write fallback file for job {job_id}: {e}")

    def _read_fallback(self, job_id: str) -> Optional[dict]:
        fallback_path = self._get_fallback_path(job_id)
        try:
            if fallback_path.exists():
                with fallback_path.open("r") as f:
                    return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read fallback for {job_id}: {e}")
        return None

    def _discard_fallback(self, job_id: str) -> None:
        fallback_path = self._get_fallback_path(job_id)
        try:
            if fallback_path.exists():
                fallback_path.unlink()
                logger.info(f"Fallback file removed: {fallback_path}")
        except OSError as e:
            logger.error(f"Failed to remove fallback file for job {job_id}: {e}")

    def _store_progress(self, job_id: str, progress_data: dict) -> None:
        """Write progress and push a history entry in one pipeline."""
        history_entry = {
            "timestamp": progress_data["last_heartbeat"],
            "progress": progress_data["progress"],
            "message": progress_data["message"],
            "stage": progress_data["stage"],
            "successful": progress_data["successful"],
            "failed": progress_data["failed"],
        }

        pipe = self.redis.pipeline()
        pipe.setex(
            self._get_progress_key(job_id), self.progress_ttl, json.dumps(progress_data)
        )
        pipe.lpush(self._get_history_key(job_id), json.dumps(history_entry))
        pipe.ltrim(self._get_history_key(job_id), 0, self.max_history_entries - 1)
        pipe.expire(self._get_history_key(job_id), self.progress_ttl)
        pipe.execute()
        self._discard_fallback(job_id)

    @staticmethod
    def _progress_data(
        status: JobStatus,
        progress: int,
        message: str,
        stage: str,
        kind: Optional[str] = None,
        processed_rows: int = 0,
        total_rows: int = 0,
        successful: int = 0,
        failed: int = 0,
        memory_mb: float = 0.0,
        errors: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        return {
            "status": status.value,
            "progress": max(0, min(100, progress)),
            "message": message,
            "kind": kind,
            "processed_rows": processed_rows,
            "total_rows": total_rows,
            "successful": successful,
            "failed": failed,
            "stage": stage,
            "memory_mb": memory_mb,
            "errors": errors or [],
            "last_heartbeat": datetime.now().isoformat(),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def queue_job(self, job_id: str, kind: str, message: str = "Job queued") -> None:
        """Record a job that was dispatched but not yet picked up by a worker."""
        progress_data = self._progress_data(JobStatus.QUEUED, 0, message, "QUEUED", kind=kind)
        try:
            self._store_progress(job_id, progress_data)
            logger.info(f"Job {job_id} queued in Redis")
        except RedisError as e:
            logger.warning(f"Redis error in queue_job for {job_id}: {e}")
            self._write_fallback(job_id, progress_data)

    def start_job(
        self,
        job_id: str,
        message: str = "Job started",
        total_rows: int = 0,
        kind: Optional[str] = None,
    ) -> None:
        """
        Mark job as processing with 0% progress.

        Args:
            job_id: Unique job identifier
            message: Initial status message
            total_rows: Rows to enroll (0 if not known yet)
            kind: "accounts" or "merchants"
        """
        progress_data = self._progress_data(
            JobStatus.PROCESSING, 0, message, "START", kind=kind, total_rows=total_rows
        )
        try:
            self._store_progress(job_id, progress_data)
            logger.info(f"Job {job_id} started in Redis")
        except RedisError as e:
            logger.warning(f"Redis error in start_job for {job_id}: {e}")
            self._write_fallback(job_id, progress_data)

    def update_progress(
        self,
        job_id: str,
        progress: int,
        message: str,
        processed_rows: int = 0,
        total_rows: int = 0,
        successful: int = 0,
        failed: int = 0,
        stage: str = "",
        memory_mb: float = 0.0,
        kind: Optional[str] = None,
    ) -> None:
        """
        Store a progress update and append it to history.

        Args:
            job_id: Unique job identifier
            progress: Percentage 0-100 (clamped)
            message: Human-readable current step
            processed_rows: Rows finished so far
            total_rows: Rows submitted for enrollment
            successful: Rows enrolled so far
            failed: Rows failed so far
            stage: START, READING, ENROLLING, COMPLETE, ...
            memory_mb: Worker memory usage
            kind: "accounts" or "merchants"
        """
        progress_data = self._progress_data(
            JobStatus.PROCESSING,
            progress,
            message,
            stage,
            kind=kind,
            processed_rows=processed_rows,
            total_rows=total_rows,
            successful=successful,
            failed=failed,
            memory_mb=memory_mb,
        )
        try:
            self._store_progress(job_id, progress_data)
            logger.debug(f"Job {job_id} progress: {progress}% - {message}")
        except RedisError as e:
            logger.warning(f"Redis error in update_progress for {job_id}: {e}")
            self._write_fallback(job_id, progress_data)

    def complete_job(self, job_id: str, result: Optional[dict] = None) -> None:
        """
        Mark job as completed and store its summary.

        Counters in the stored progress are taken from the result
        (successful, failed, submitted, kind) so status polls show final numbers.

        Args:
            job_id: Unique job identifier
            result: Batch summary, e.g. {"successful": 990, "failed": 10, ...}
        """
        result = result or {}
        progress_data = self._progress_data(
            JobStatus.COMPLETED,
            100,
            "Enrollment process completed.",
            "COMPLETE",
            kind=result.get("kind"),
            processed_rows=result.get("submitted", 0),
            total_rows=result.get("submitted", 0),
            successful=result.get("successful", 0),
            failed=result.get("failed", 0),
        )
        try:
            pipe = self.redis.pipeline()
            pipe.setex(
                self._get_progress_key(job_id), self.progress_ttl, json.dumps(progress_data)
            )
            pipe.setex(self._get_result_key(job_id), self.result_ttl, json.dumps(result))
            pipe.execute()
            self._discard_fallback(job_id)
            logger.info(f"Job {job_id} marked as completed")
        except RedisError as e:
            logger.warning(f"Redis error in complete_job for {job_id}: {e}")
            self._write_fallback(job_id, {**progress_data, "result": result})

    def fail_job(self, job_id: str, error_message: str) -> None:
        """
        Mark job as failed, keeping the progress and counters reached so far.

        Args:
            job_id: Unique job identifier
            error_message: Error description appended to errors
        """
        current = self.get_status(job_id) or {}
        progress_data = self._progress_data(
            JobStatus.FAILED,
            current.get("progress", 0),
            f"Job failed: {error_message}",
            current.get("stage", ""),
            kind=current.get("kind"),
            processed_rows=current.get("processed_rows", 0),
            total_rows=current.get("total_rows", 0),
            successful=current.get("successful", 0),
            failed=current.get("failed", 0),
            errors=current.get("errors", []) + [error_message],
        )
        try:
            self.redis.setex(
                self._get_progress_key(job_id), self.progress_ttl, json.dumps(progress_data)
            )
            self._discard_fallback(job_id)
            logger.error(f"Job {job_id} marked as failed: {error_message}")
        except RedisError as e:
            logger.warning(f"Redis error in fail_job for {job_id}: {e}")
            self._write_fallback(job_id, progress_data)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_status(self, job_id: str) -> Optional[dict]:
        """Current progress dict, or None if the job is unknown or expired."""
        try:
            data = self.redis.get(self._get_progress_key(job_id))
        except RedisError as e:
            logger.warning(f"Redis error in get_status for {job_id}: {e}")
            return self._read_fallback(job_id)

        if not data:
            return None
        return json.loads(data)

    def get_result(self, job_id: str) -> Optional[dict]:
        """Batch summary stored by complete_job(), or None."""
        try:
            data = self.redis.get(self._get_result_key(job_id))
        except RedisError as e:
            logger.warning(f"Redis error in get_result for {job_id}: {e}")
            fallback = self._read_fallback(job_id)
            return fallback.get("result") if fallback else None

        if not data:
            return None
        return json.loads(data)

    def get_history(self, job_id: str) -> list[dict]:
        """Last 10 progress updates, newest first."""
        try:
            history_data = self.redis.lrange(
                self._get_history_key(job_id), 0, self.max_history_entries - 1
            )
        except RedisError as e:
            logger.warning(f"Redis error in get_history for {job_id}: {e}")
            return []

        return [json.loads(entry) for entry in history_data]

    def delete_status(self, job_id: str) -> None:
        """Delete progress, result and history keys of a job, and its fallback file."""
        try:
            pipe = self.redis.pipeline()
            pipe.delete(self._get_progress_key(job_id))
            pipe.delete(self._get_result_key(job_id))
            pipe.delete(self._get_history_key(job_id))
            pipe.execute()
            logger.info(f"Job {job_id} status deleted from Redis")
        except RedisError as e:
            logger.warning(f"Redis error in delete_status for {job_id}: {e}")
        self._discard_fallback(job_id)
