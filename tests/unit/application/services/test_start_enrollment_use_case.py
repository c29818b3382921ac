"""
Tests for StartEnrollmentUseCase.

Covers:
- Job dispatch (queued status, Celery task_id = job_id)
- Unknown upload
- Kind mismatch between upload and enrollment
"""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest

from nad_uploader.application.commands.start_enrollment import StartEnrollmentCommand
from nad_uploader.application.models import EnrollmentKind, JobStatus
from nad_uploader.application.services.start_enrollment_use_case import StartEnrollmentUseCase
from nad_uploader.domain.shared.exceptions import (
    InvalidEnrollmentCommandError,
    UploadNotFoundError,
)

FILE_ID = "a3bb189e-8bf9-3888-9912-ace4e6543002"
TASK_PATH = "nad_uploader.application.services.start_enrollment_use_case.process_enrollment_task"


@pytest.fixture
def file_storage():
    storage = MagicMock()
    storage.get_uploaded_file_path.return_value = "/tmp/nad-uploader/uploads/x/ACCOUNTS.xlsx"
    storage.get_upload_kind.return_value = EnrollmentKind.ACCOUNTS
    return storage


@pytest.fixture
def progress_tracker():
    return MagicMock()


@pytest.fixture
def command():
    return StartEnrollmentCommand(file_id=FILE_ID, kind="accounts", thread_count=5)


@pytest.mark.asyncio
async def test_execute_dispatches_task(file_storage, progress_tracker, command):
    """
    Test successful dispatch.

    Verifies:
    - Job recorded as queued before dispatch
    - Celery task gets the command arguments and task_id = job_id
    - Result echoes kind and thread count
    """
    use_case = StartEnrollmentUseCase(file_storage, progress_tracker)

    with patch(TASK_PATH) as task:
        task.apply_async.side_effect = lambda kwargs, task_id: MagicMock(id=task_id)
        result = await use_case.execute(command)

    job_id = str(result.job_id)
    progress_tracker.queue_job.assert_called_once()
    assert progress_tracker.queue_job.call_args[0][0] == job_id
    assert progress_tracker.queue_job.call_args.kwargs["kind"] == "accounts"

    task.apply_async.assert_called_once_with(
        kwargs={"file_id": FILE_ID, "kind": "accounts", "thread_count": 5},
        task_id=job_id,
    )
    assert result.status is JobStatus.QUEUED
    assert result.kind is EnrollmentKind.ACCOUNTS
    assert result.thread_count == 5
    assert job_id in result.message
    file_storage.get_uploaded_file_path.assert_called_once_with(UUID(FILE_ID))


@pytest.mark.asyncio
async def test_execute_unknown_upload(file_storage, progress_tracker, command):
    file_storage.get_uploaded_file_path.return_value = None
    use_case = StartEnrollmentUseCase(file_storage, progress_tracker)

    with patch(TASK_PATH) as task:
        with pytest.raises(UploadNotFoundError):
            await use_case.execute(command)

    task.apply_async.assert_not_called()
    progress_tracker.queue_job.assert_not_called()


@pytest.mark.asyncio
async def test_execute_kind_mismatch(file_storage, progress_tracker, command):
    """
    Test starting an accounts job on a workbook uploaded as merchants.

    Verifies:
    - InvalidEnrollmentCommandError raised
    - Nothing queued or dispatched
    """
    file_storage.get_upload_kind.return_value = EnrollmentKind.MERCHANTS
    use_case = StartEnrollmentUseCase(file_storage, progress_tracker)

    with patch(TASK_PATH) as task:
        with pytest.raises(InvalidEnrollmentCommandError) as exc_info:
            await use_case.execute(command)

    assert "uploaded as merchants" in exc_info.value.message
    task.apply_async.assert_not_called()
    progress_tracker.queue_job.assert_not_called()


@pytest.mark.asyncio
async def test_execute_without_recorded_kind(file_storage, progress_tracker, command):
    file_storage.get_upload_kind.return_value = None
    use_case = StartEnrollmentUseCase(file_storage, progress_tracker)

    with patch(TASK_PATH) as task:
        task.apply_async.side_effect = lambda kwargs, task_id: MagicMock(id=task_id)
        result = await use_case.execute(command)

    assert result.status is JobStatus.QUEUED
    task.apply_async.assert_called_once()
