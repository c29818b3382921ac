"""
Celery application for background enrollment jobs.

Broker and result backend come from the environment (.env is loaded first).

Architecture Note:
- Part of Application Layer (orchestration)
- No business logic - pure infrastructure setup
- Start a worker with:
    celery -A nad_uploader.application.tasks.celery_app worker --loglevel=info
"""

import os
from datetime import datetime

from celery import Celery
from dotenv import load_dotenv

load_dotenv()

celery_app = Celery(
    "nad_uploader",
    broker=os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1"),
    include=["nad_uploader.application.tasks.enrollment_tasks"],
)

celery_app.conf.update(
    task_track_started=True,
    task_time_limit=int(os.environ.get("ENROLLMENT_TASK_TIME_LIMIT", "3600")),
    result_expires=86400,  # keep summaries as long as the Redis results
)


@celery_app.task(name="health_check")
def health_check() -> dict:
    """
    Verify the worker, broker and result backend round trip.

    Example:
        >>> health_check.delay().get(timeout=5)
        {'status': 'ok', 'message': 'Celery worker is healthy', ...}
    """
    return {
        "status": "ok",
        "message": "Celery worker is healthy",
        "timestamp": datetime.now().isoformat(),
        "worker": (
            celery_app.current_task.request.hostname
            if celery_app.current_task
            else "unknown"
        ),
    }
