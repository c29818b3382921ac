"""
Tests for RedisProgressTracker.

Covers:
- Job lifecycle (queue, start, update, complete, fail)
- History tracking (last 10 updates)
- TTL configuration
- Atomic operations (MULTI/EXEC)
- Error recovery with fallback file
- Fallback file cleanup after Redis recovers and on delete
"""

import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import RedisError

from nad_uploader.infrastructure.persistence.redis.progress_tracker import (
    RedisProgressTracker,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def mock_redis():
    """Create mock Redis client for testing."""
    redis_mock = MagicMock()
    redis_mock.ping.return_value = True
    redis_mock.pipeline.return_value = redis_mock  # Pipeline returns itself
    redis_mock.execute.return_value = [True, True, True, True]
    redis_mock.get.return_value = None
    return redis_mock


@pytest.fixture
def tracker(mock_redis, tmp_path, monkeypatch):
    """RedisProgressTracker with mocked Redis and a temp fallback directory."""
    monkeypatch.setenv("FALLBACK_DIR", str(tmp_path / "fallback"))
    return RedisProgressTracker(redis_client=mock_redis)


@pytest.fixture
def job_id():
    return "3fa85f64-5717-4562-b3fc-2c963f66afa6"


def stored_progress(mock_redis, call_index=0):
    key, ttl, data_json = mock_redis.setex.call_args_list[call_index][0]
    return key, ttl, json.loads(data_json)


# ============================================================================
# HAPPY PATH TESTS - Keys
# ============================================================================


def test_keys(tracker, job_id):
    assert tracker._get_progress_key(job_id) == f"progress:{job_id}"
    assert tracker._get_result_key(job_id) == f"result:{job_id}"
    assert tracker._get_history_key(job_id) == f"progress:{job_id}:history"


# ============================================================================
# HAPPY PATH TESTS - Writes
# ============================================================================


def test_queue_job_stores_queued_status(tracker, mock_redis, job_id):
    tracker.queue_job(job_id, kind="accounts", message="Job queued")

    key, ttl, data = stored_progress(mock_redis)
    assert key == f"progress:{job_id}"
    assert ttl == tracker.progress_ttl
    assert data["status"] == "queued"
    assert data["kind"] == "accounts"
    assert data["progress"] == 0


def test_start_job_uses_pipeline_and_history(tracker, mock_redis, job_id):
    """
    Test start_job writes progress and history atomically.

    Verifies:
    - pipeline() + execute() used once
    - History pushed, trimmed to 10 entries and given a TTL
    """
    tracker.start_job(job_id, "Reading workbook", total_rows=250, kind="merchants")

    mock_redis.pipeline.assert_called_once()
    mock_redis.execute.assert_called_once()

    _, _, data = stored_progress(mock_redis)
    assert data["status"] == "processing"
    assert data["stage"] == "START"
    assert data["total_rows"] == 250
    assert data["kind"] == "merchants"
    assert "last_heartbeat" in data

    history_key, history_json = mock_redis.lpush.call_args[0]
    assert history_key == f"progress:{job_id}:history"
    assert json.loads(history_json)["message"] == "Reading workbook"
    mock_redis.ltrim.assert_called_once_with(f"progress:{job_id}:history", 0, 9)
    mock_redis.expire.assert_called_once_with(f"progress:{job_id}:history", tracker.progress_ttl)


def test_update_progress_stores_counters(tracker, mock_redis, job_id):
    tracker.update_progress(
        job_id,
        progress=45,
        message="Progress: 45% | Successful: 40 | Failed: 5",
        processed_rows=45,
        total_rows=100,
        successful=40,
        failed=5,
        stage="ENROLLING",
    )

    _, _, data = stored_progress(mock_redis)
    assert data["progress"] == 45
    assert data["processed_rows"] == 45
    assert data["successful"] == 40
    assert data["failed"] == 5


@pytest.mark.parametrize("progress,expected", [(-5, 0), (150, 100)])
def test_update_progress_clamps_percentage(tracker, mock_redis, job_id, progress, expected):
    tracker.update_progress(job_id, progress=progress, message="x")

    _, _, data = stored_progress(mock_redis)
    assert data["progress"] == expected


def test_complete_job_stores_progress_and_result(tracker, mock_redis, job_id):
    result = {"kind": "accounts", "submitted": 10, "successful": 8, "failed": 2}

    tracker.complete_job(job_id, result)

    _, _, data = stored_progress(mock_redis, 0)
    assert data["status"] == "completed"
    assert data["progress"] == 100
    assert data["message"] == "Enrollment process completed."
    assert data["successful"] == 8
    assert data["failed"] == 2
    assert data["total_rows"] == 10

    result_key, ttl, result_json = mock_redis.setex.call_args_list[1][0]
    assert result_key == f"result:{job_id}"
    assert ttl == tracker.result_ttl
    assert json.loads(result_json) == result


def test_fail_job_keeps_counters(tracker, mock_redis, job_id):
    mock_redis.get.return_value = json.dumps(
        {"progress": 30, "stage": "ENROLLING", "kind": "accounts", "successful": 3, "failed": 0, "errors": []}
    )

    tracker.fail_job(job_id, "Worker lost")

    _, _, data = stored_progress(mock_redis)
    assert data["status"] == "failed"
    assert data["progress"] == 30
    assert data["successful"] == 3
    assert data["errors"] == ["Worker lost"]
    assert data["message"] == "Job failed: Worker lost"


def test_fail_job_unknown_job(tracker, mock_redis, job_id):
    tracker.fail_job(job_id, "Upload missing")

    _, _, data = stored_progress(mock_redis)
    assert data["status"] == "failed"
    assert data["progress"] == 0


# ============================================================================
# HAPPY PATH TESTS - Reads
# ============================================================================


def test_get_status_returns_dict(tracker, mock_redis, job_id):
    mock_redis.get.return_value = json.dumps({"status": "processing", "progress": 10})

    assert tracker.get_status(job_id) == {"status": "processing", "progress": 10}
    mock_redis.get.assert_called_with(f"progress:{job_id}")


def test_get_status_unknown_job(tracker, job_id):
    assert tracker.get_status(job_id) is None


def test_get_history_newest_first(tracker, mock_redis, job_id):
    mock_redis.lrange.return_value = [json.dumps({"progress": 20}), json.dumps({"progress": 10})]

    history = tracker.get_history(job_id)

    assert [entry["progress"] for entry in history] == [20, 10]


def test_delete_status_removes_all_keys(tracker, mock_redis, job_id):
    tracker.delete_status(job_id)

    deleted = [c[0][0] for c in mock_redis.delete.call_args_list]
    assert deleted == [f"progress:{job_id}", f"result:{job_id}", f"progress:{job_id}:history"]


# ============================================================================
# ERROR RECOVERY TESTS
# ============================================================================


def test_write_falls_back_to_file_on_redis_error(tracker, mock_redis, job_id):
    mock_redis.execute.side_effect = RedisError("connection lost")

    tracker.start_job(job_id, "Reading workbook", kind="accounts")

    fallback = json.loads(tracker._get_fallback_path(job_id).read_text())
    assert fallback["status"] == "processing"
    assert fallback["kind"] == "accounts"


def test_get_status_reads_fallback_on_redis_error(tracker, mock_redis, job_id):
    mock_redis.execute.side_effect = RedisError("connection lost")
    tracker.queue_job(job_id, kind="merchants")
    mock_redis.get.side_effect = RedisError("connection lost")

    status = tracker.get_status(job_id)

    assert status["status"] == "queued"


def test_get_result_reads_fallback_on_redis_error(tracker, mock_redis, job_id):
    mock_redis.execute.side_effect = RedisError("connection lost")
    tracker.complete_job(job_id, {"successful": 1, "failed": 0})
    mock_redis.get.side_effect = RedisError("connection lost")

    assert tracker.get_result(job_id) == {"successful": 1, "failed": 0}


def test_get_history_returns_empty_on_redis_error(tracker, mock_redis, job_id):
    mock_redis.lrange.side_effect = RedisError("connection lost")

    assert tracker.get_history(job_id) == []


def test_successful_write_removes_stale_fallback(tracker, mock_redis, job_id):
    """
    Test that a fallback snapshot is dropped once Redis accepts writes again.

    Verifies:
    - Fallback file written while Redis is down
    - Next successful write deletes it
    """
    mock_redis.execute.side_effect = RedisError("connection lost")
    tracker.start_job(job_id, "Reading workbook", kind="accounts")
    assert tracker._get_fallback_path(job_id).exists()

    mock_redis.execute.side_effect = None
    tracker.update_progress(job_id, 50, "Halfway", processed_rows=5, total_rows=10)

    assert not tracker._get_fallback_path(job_id).exists()


def test_fail_job_removes_stale_fallback(tracker, mock_redis, job_id):
    mock_redis.execute.side_effect = RedisError("connection lost")
    tracker.queue_job(job_id, kind="accounts")

    tracker.fail_job(job_id, "Worker lost")

    assert not tracker._get_fallback_path(job_id).exists()


@pytest.mark.parametrize("redis_down", [False, True])
def test_delete_status_removes_fallback(tracker, mock_redis, job_id, redis_down):
    mock_redis.execute.side_effect = RedisError("connection lost")
    tracker.queue_job(job_id, kind="merchants")
    if not redis_down:
        mock_redis.execute.side_effect = None

    tracker.delete_status(job_id)

    assert not tracker._get_fallback_path(job_id).exists()
