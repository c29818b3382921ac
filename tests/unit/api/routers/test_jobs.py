"""
Tests for the job status router (GET /api/jobs/{job_id}/status).

Covers:
- Status of a running and a completed job
- Unknown job (404 via global handler)
- Corrupted status data (500)
- Path validation
"""

from unittest.mock import MagicMock

import pytest
from fastapi import status

from nad_uploader.api.main import app
from nad_uploader.api.routers.jobs import get_job_status_query_handler
from nad_uploader.application.queries.get_job_status import GetJobStatusQueryHandler


@pytest.fixture
def progress_tracker():
    tracker = MagicMock()
    app.dependency_overrides[get_job_status_query_handler] = lambda: GetJobStatusQueryHandler(
        progress_tracker=tracker
    )
    return tracker


def test_get_job_status_processing(client, progress_tracker, sample_job_id):
    """
    Test status of a running job.

    Verifies:
    - 200 OK
    - Counters and stage mapped from Redis data
    - result_ready false until completed
    """
    progress_tracker.get_status.return_value = {
        "status": "processing",
        "progress": 45,
        "message": "Progress: 45% | Successful: 40 | Failed: 5",
        "kind": "accounts",
        "processed_rows": 45,
        "total_rows": 100,
        "successful": 40,
        "failed": 5,
        "stage": "ENROLLING",
    }

    response = client.get(f"/api/jobs/{sample_job_id}/status")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["job_id"] == sample_job_id
    assert data["status"] == "processing"
    assert data["progress"] == 45
    assert data["successful"] == 40
    assert data["failed"] == 5
    assert data["current_step"] == "ENROLLING"
    assert data["result_ready"] is False


def test_get_job_status_completed(client, progress_tracker, sample_job_id):
    progress_tracker.get_status.return_value = {
        "status": "completed",
        "progress": 100,
        "message": "Enrollment process completed.",
    }

    response = client.get(f"/api/jobs/{sample_job_id}/status")

    assert response.json()["result_ready"] is True


def test_get_job_status_not_found(client, progress_tracker, sample_job_id):
    progress_tracker.get_status.return_value = None

    response = client.get(f"/api/jobs/{sample_job_id}/status")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["code"] == "JOB_NOT_FOUND"
    assert data["details"]["job_id"] == sample_job_id


def test_get_job_status_corrupted(client, progress_tracker, sample_job_id):
    progress_tracker.get_status.return_value = {"status": "exploded", "progress": 0, "message": ""}

    response = client.get(f"/api/jobs/{sample_job_id}/status")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"]["code"] == "INVALID_JOB_STATUS"


def test_get_job_status_invalid_uuid(client, progress_tracker):
    response = client.get("/api/jobs/not-a-uuid/status")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    progress_tracker.get_status.assert_not_called()
