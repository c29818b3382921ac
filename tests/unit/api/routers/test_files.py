"""
Tests for the file upload router (POST /api/files/upload).

Covers:
- Successful upload (201, metadata, preview, kind)
- Validation errors surfaced through the global handlers
- Real storage with a generated workbook
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import status

from nad_uploader.api.main import app
from nad_uploader.api.routers.files import get_file_upload_use_case
from nad_uploader.application.models import EnrollmentKind
from nad_uploader.application.services.file_upload_use_case import (
    FileUploadResult,
    FileUploadUseCase,
)
from nad_uploader.domain.shared.exceptions import (
    ExcelParsingError,
    FileSizeExceededError,
    InvalidFileExtensionError,
)
from nad_uploader.infrastructure.file_storage.file_storage_service import FileStorageService

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def upload_use_case(sample_file_id):
    use_case = AsyncMock()
    use_case.execute.return_value = FileUploadResult(
        file_id=sample_file_id,
        filename="Merchants.xlsx",
        size_mb=0.01,
        sheets_count=1,
        rows_count=2,
        columns_count=10,
        upload_time="2025-01-15T10:30:00",
        preview=[{"AC_DESC": "Salem Grocery"}],
        kind=EnrollmentKind.MERCHANTS,
    )
    app.dependency_overrides[get_file_upload_use_case] = lambda: use_case
    return use_case


def post_file(client, filename="Merchants.xlsx", content=b"xlsx-bytes", **params):
    return client.post(
        "/api/files/upload",
        params=params,
        files={"file": (filename, content, XLSX_TYPE)},
    )


# ============================================================================
# HAPPY PATH TESTS
# ============================================================================


def test_upload_file_success(client, upload_use_case, sample_file_id):
    """
    Test successful upload.

    Verifies:
    - 201 Created
    - Use case receives bytes, filename and kind
    - Response carries metadata, preview and next-step hint
    """
    response = post_file(client, kind="merchants")

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["file_id"] == sample_file_id
    assert data["kind"] == "merchants"
    assert data["rows_count"] == 2
    assert data["preview"] == [{"AC_DESC": "Salem Grocery"}]
    assert "POST /api/enrollments" in data["message"]

    upload_use_case.execute.assert_awaited_once_with(
        file_data=b"xlsx-bytes",
        filename="Merchants.xlsx",
        kind=EnrollmentKind.MERCHANTS,
    )


def test_upload_file_defaults_to_accounts(client, upload_use_case):
    post_file(client)

    assert upload_use_case.execute.call_args.kwargs["kind"] is EnrollmentKind.ACCOUNTS


def test_upload_file_with_real_storage(client, tmp_path, make_workbook, account_rows):
    storage = FileStorageService(base_dir=str(tmp_path / "storage"))
    app.dependency_overrides[get_file_upload_use_case] = lambda: FileUploadUseCase(storage)
    content = make_workbook("source.xlsx", account_rows).read_bytes()

    response = post_file(client, filename="ACCOUNTS.xlsx", content=content)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["rows_count"] == 3
    assert data["columns_count"] == 6
    assert len(data["preview"]) == 3


# ============================================================================
# ERROR HANDLING TESTS
# ============================================================================


@pytest.mark.parametrize(
    "error,expected_status,expected_code",
    [
        (InvalidFileExtensionError("accounts.csv", [".xlsx"]), 400, "INVALID_FILE_EXTENSION"),
        (FileSizeExceededError(15 * 1024 * 1024, 10 * 1024 * 1024), 413, "FILE_TOO_LARGE"),
        (ExcelParsingError("Cannot parse Excel file"), 422, "EXCEL_PARSING_ERROR"),
    ],
)
def test_upload_file_domain_errors(client, upload_use_case, error, expected_status, expected_code):
    upload_use_case.execute.side_effect = error

    response = post_file(client)

    assert response.status_code == expected_status
    assert response.json()["code"] == expected_code


def test_upload_file_invalid_kind(client, upload_use_case):
    response = post_file(client, kind="vendors")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    upload_use_case.execute.assert_not_called()


def test_upload_file_missing_file(client, upload_use_case):
    response = client.post("/api/files/upload")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
