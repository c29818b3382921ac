"""
File Upload Use Case

Responsibility:
    Stores an uploaded enrollment workbook and describes it back to the user
    (size, rows, preview) so they can check it before starting a job.

Architecture Notes:
    - Part of Application Layer (Services)
    - Uses FileStorageService from Infrastructure Layer
    - Called by API Layer (files.py router)
    - Generates file_id (UUID4) for uploaded files

Error Handling:
    Exceptions from FileStorageService propagate to the API Layer:
    - InvalidFileExtensionError -> HTTP 400
    - FileSizeExceededError -> HTTP 413
    - ExcelParsingError -> HTTP 422
"""

import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from nad_uploader.application.models import EnrollmentKind
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)

logger = logging.getLogger(__name__)


class FileUploadResult(BaseModel):
    """
    Result of file upload operation.

    Attributes:
        file_id: Identifier to pass to POST /api/enrollments
        filename: Stored filename
        size_mb: File size in megabytes (2 decimal places)
        sheets_count: Number of sheets (only the first one is enrolled)
        rows_count: Data rows in the first sheet
        columns_count: Columns in the first sheet
        upload_time: Upload timestamp in ISO format
        preview: First 5 data rows
        kind: Enrollment kind declared at upload
    """

    file_id: str
    filename: str
    size_mb: float = Field(ge=0.0)
    sheets_count: int = Field(ge=1)
    rows_count: int = Field(ge=0)
    columns_count: int = Field(ge=0)
    upload_time: str
    preview: list[dict[str, Any]] = Field(default_factory=list)
    kind: EnrollmentKind

    class Config:
        json_schema_extra = {
            "example": {
                "file_id": "a3bb189e-8bf9-3888-9912-ace4e6543002",
                "filename": "ACCOUNTS.xlsx",
                "size_mb": 0.04,
                "sheets_count": 1,
                "rows_count": 250,
                "columns_count": 6,
                "upload_time": "2025-01-15T10:30:00.123456",
                "preview": [
                    {
                        "NATIONAL_ID": "119850012345",
                        "PHONE": "218912345678",
                        "PASSPORT": None,
                        "ACCOUNT_NAME": "Ali Salem",
                        "ACCOUNT_NO": "0012345",
                        "IBAN": "LY83002048000020100120361",
                    }
                ],
                "kind": "accounts",
            }
        }


class FileUploadUseCase:
    """
    Use case for uploading enrollment workbooks.

    Examples:
        >>> use_case = FileUploadUseCase(file_storage=FileStorageService())
        >>> result = await use_case.execute(data, "ACCOUNTS.xlsx", EnrollmentKind.ACCOUNTS)
        >>> result.rows_count
        250
    """

    def __init__(self, file_storage: FileStorageService) -> None:
        self.file_storage = file_storage

    async def execute(
        self,
        file_data: bytes,
        filename: str,
        kind: EnrollmentKind = EnrollmentKind.ACCOUNTS,
    ) -> FileUploadResult:
        """
        Store the workbook and extract metadata and preview.

        Process Flow:
        1. Generate file_id
        2. Save file and its declared kind to uploads/{file_id}/
        3. Extract metadata (sheets, rows, columns, size)
        4. Extract preview (first 5 rows)

        A workbook that cannot be parsed is removed again before the
        ExcelParsingError propagates.
        """
        file_id = uuid4()
        upload_time = datetime.now().isoformat()

        file_path = await self.file_storage.save_uploaded_file(
            file_id=file_id, file_data=file_data, filename=filename, kind=kind
        )

        try:
            metadata = await self.file_storage.extract_file_metadata(file_path)
            preview = await self.file_storage.extract_file_preview(file_path, rows=5)
        except Exception:
            self.file_storage.delete_upload(file_id)
            raise

        logger.info(
            f"Upload {file_id}: {metadata['filename']} ({kind.value}), "
            f"{metadata['rows_count']} rows"
        )

        return FileUploadResult(
            file_id=str(file_id),
            filename=metadata["filename"],
            size_mb=metadata["size_mb"],
            sheets_count=metadata["sheets_count"],
            rows_count=metadata["rows_count"],
            columns_count=metadata["columns_count"],
            upload_time=upload_time,
            preview=preview,
            kind=kind,
        )
