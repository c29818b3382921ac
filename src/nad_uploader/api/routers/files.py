"""
API Router for File Upload

Responsibility:
    HTTP interface for uploading enrollment workbooks. Thin layer that
    delegates to FileUploadUseCase via dependency injection.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Returns 201 Created for successful uploads
    - Domain errors (extension, size, parsing) are turned into ErrorResponse
      bodies by the global handlers in main.py
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from pydantic import BaseModel, Field

from nad_uploader.api.schemas.common import ErrorResponse
from nad_uploader.application.models import EnrollmentKind
from nad_uploader.application.services.file_upload_use_case import FileUploadUseCase
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)

logger = logging.getLogger(__name__)


class UploadFileResponse(BaseModel):
    """
    Response model for successful file upload.

    Attributes:
        file_id: Pass to POST /api/enrollments
        filename: Stored filename
        kind: Enrollment kind declared for the workbook
        size_mb: File size in megabytes
        sheets_count: Sheets in the workbook (only the first is enrolled)
        rows_count: Data rows in the first sheet
        columns_count: Columns in the first sheet
        upload_time: ISO timestamp
        preview: First 5 data rows
        message: Next-step hint
    """

    file_id: str
    filename: str
    kind: EnrollmentKind
    size_mb: float
    sheets_count: int
    rows_count: int
    columns_count: int
    upload_time: str
    preview: list[dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None


router = APIRouter(
    prefix="/files",
    tags=["files"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Invalid file extension"},
        413: {"model": ErrorResponse, "description": "Payload Too Large - File size exceeds limit"},
        422: {"model": ErrorResponse, "description": "Unprocessable Entity - File cannot be parsed as Excel"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


async def get_file_upload_use_case() -> FileUploadUseCase:
    """Dependency injection for FileUploadUseCase."""
    return FileUploadUseCase(file_storage=FileStorageService())


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadFileResponse,
    summary="Upload an enrollment workbook",
    description=(
        "Upload an .xlsx workbook of accounts or merchants. Returns file_id, "
        "metadata and a preview of the first 5 rows. Use file_id in "
        "POST /api/enrollments."
    ),
)
async def upload_file(
    file: UploadFile = File(..., description="Enrollment workbook (.xlsx)"),
    kind: EnrollmentKind = Query(
        default=EnrollmentKind.ACCOUNTS,
        description="Workbook layout: 'accounts' or 'merchants'",
    ),
    use_case: FileUploadUseCase = Depends(get_file_upload_use_case),
) -> UploadFileResponse:
    """
    Process Flow:
        1. Read multipart upload into memory
        2. Delegate to FileUploadUseCase
        3. Convert FileUploadResult to UploadFileResponse

    Examples:
        >>> curl -X POST "http://localhost:8000/api/files/upload?kind=merchants" \\
        ...      -F "file=@Merchants.xlsx"
    """
    file_data = await file.read()
    logger.info(f"Upload received: {file.filename} ({len(file_data)} bytes, {kind.value})")

    result = await use_case.execute(file_data=file_data, filename=file.filename, kind=kind)

    return UploadFileResponse(
        file_id=result.file_id,
        filename=result.filename,
        kind=result.kind,
        size_mb=result.size_mb,
        sheets_count=result.sheets_count,
        rows_count=result.rows_count,
        columns_count=result.columns_count,
        upload_time=result.upload_time,
        preview=result.preview,
        message="File uploaded successfully. Use file_id in POST /api/enrollments.",
    )
