"""
File Storage Service

Manages uploaded workbooks and the CSV reports produced by enrollment jobs.

Responsibility:
    - Upload validation (extension, size) and storage
    - Upload metadata and preview (delegated to ExcelReaderService)
    - Job output directories for CSV reports
    - Report lookup for downloads
    - Manual cleanup of uploads and job directories

Storage Layout:
    {base_dir}/uploads/{file_id}/{original_filename}
    {base_dir}/uploads/{file_id}/.kind (kind declared at upload)
    {base_dir}/{job_id}/output/{result report}.csv
    {base_dir}/{job_id}/output/failed-{KIND}_{timestamp}.csv

Architecture Notes:
    - Infrastructure Layer (file system operations)
    - Used by FileUploadUseCase, StartEnrollmentUseCase, the Celery task
      and the results router
    - Local file system only
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional
from uuid import UUID

from nad_uploader.application.models import EnrollmentKind, ResultFileType
from nad_uploader.domain.shared.exceptions import (
    FileSizeExceededError,
    InvalidFileExtensionError,
)
from nad_uploader.infrastructure.file_storage.excel_reader import ExcelReaderService

logger = logging.getLogger(__name__)

FAILED_REPORT_PREFIX = "failed-"
UPLOAD_KIND_FILE = ".kind"


class FileStorageService:
    """
    Local file storage for NAD Uploader.

    Configuration:
        - Base directory: /tmp/nad-uploader (from env: TEMP_DIR)
        - Max upload size: 10MB (from env: MAX_FILE_SIZE_MB)
        - Allowed extensions: .xlsx (from env: ALLOWED_EXTENSIONS)

    Examples:
        >>> storage = FileStorageService()
        >>> path = await storage.save_uploaded_file(file_id, data, "ACCOUNTS.xlsx")
        >>> storage.get_uploaded_file_path(file_id)
        PosixPath('/tmp/nad-uploader/uploads/3fa85f64-.../ACCOUNTS.xlsx')
    """

    def __init__(
        self,
        base_dir: Optional[str] = None,
        max_size_mb: Optional[int] = None,
        allowed_extensions: Optional[list[str]] = None,
        excel_reader: Optional[ExcelReaderService] = None,
    ) -> None:
        """
        Initialize file storage service with configuration.

        Args:
            base_dir: Base directory for files (default from env: TEMP_DIR)
            max_size_mb: Max file size in MB (default from env: MAX_FILE_SIZE_MB)
            allowed_extensions: List of allowed file extensions (default from env)
            excel_reader: Reader used for metadata and previews

        Raises:
            OSError: If base directory cannot be created
        """
        self.base_dir = Path(base_dir or os.getenv("TEMP_DIR", "/tmp/nad-uploader"))
        self.max_size_mb = max_size_mb or int(os.getenv("MAX_FILE_SIZE_MB", "10"))
        self.max_size_bytes = self.max_size_mb * 1024 * 1024

        extensions_str = os.getenv("ALLOWED_EXTENSIONS", ".xlsx")
        self.allowed_extensions = allowed_extensions or [
            ext.strip() for ext in extensions_str.split(",") if ext.strip()
        ]

        self.excel_reader = excel_reader or ExcelReaderService(max_size_mb=self.max_size_mb)

        self.base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_extension(self, filename: str) -> bool:
        """
        Examples:
            >>> service._validate_extension("ACCOUNTS.xlsx")
            True
            >>> service._validate_extension("accounts.csv")
            False
        """
        return any(filename.lower().endswith(ext) for ext in self.allowed_extensions)

    def _validate_size(self, file_data: bytes) -> bool:
        return len(file_data) <= self.max_size_bytes

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _get_job_dir(self, job_id: UUID) -> Path:
        return self.base_dir / str(job_id)

    def _get_upload_dir(self, file_id: UUID) -> Path:
        return self.base_dir / "uploads" / str(file_id)

    def _ensure_directory_exists(self, dir_path: Path) -> None:
        dir_path.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def save_uploaded_file(
        self,
        file_id: UUID,
        file_data: bytes,
        filename: str,
        kind: Optional[EnrollmentKind] = None,
    ) -> Path:
        """
        Validate and store an uploaded workbook.

        Args:
            file_id: Identifier generated by FileUploadUseCase
            file_data: Raw file bytes
            filename: Original filename (only its base name is kept)
            kind: Workbook layout declared by the uploader, checked when the
                enrollment is started

        Returns:
            Path to the stored workbook

        Raises:
            InvalidFileExtensionError: If the extension is not allowed
            FileSizeExceededError: If file_data exceeds max_size_bytes
            OSError: If the file cannot be written
        """
        safe_name = Path(filename or "").name
        if not safe_name or not self._validate_extension(safe_name):
            raise InvalidFileExtensionError(filename or "", self.allowed_extensions)

        if not self._validate_size(file_data):
            raise FileSizeExceededError(len(file_data), self.max_size_bytes)

        upload_dir = self._get_upload_dir(file_id)
        self._ensure_directory_exists(upload_dir)

        file_path = upload_dir / safe_name
        file_path.write_bytes(file_data)
        os.chmod(file_path, 0o644)
        if kind is not None:
            (upload_dir / UPLOAD_KIND_FILE).write_text(kind.value, encoding="utf-8")

        logger.info(f"Uploaded file saved: {file_path} ({len(file_data)} bytes)")
        return file_path

    def get_uploaded_file_path(self, file_id: UUID) -> Optional[Path]:
        """Path of the workbook stored under file_id, or None if there is none."""
        upload_dir = self._get_upload_dir(file_id)
        if not upload_dir.is_dir():
            return None

        for candidate in sorted(upload_dir.iterdir()):
            if candidate.is_file() and self._validate_extension(candidate.name):
                return candidate
        return None

    def get_upload_kind(self, file_id: UUID) -> Optional[EnrollmentKind]:
        """Kind declared when file_id was uploaded, or None if none was recorded."""
        kind_file = self._get_upload_dir(file_id) / UPLOAD_KIND_FILE
        if not kind_file.is_file():
            return None
        return EnrollmentKind(kind_file.read_text(encoding="utf-8").strip())

    async def extract_file_metadata(self, file_path: Path) -> dict:
        """
        Metadata shown to the user after upload.

        Returns:
            {
                "filename": "ACCOUNTS.xlsx",
                "size_mb": 0.02,
                "sheets_count": 1,
                "rows_count": 250,      # data rows of the first sheet
                "columns_count": 6,
            }

        Raises:
            ExcelParsingError: If the workbook cannot be parsed
        """
        stats = self.excel_reader.read_sheet_stats(file_path)
        size_bytes = file_path.stat().st_size
        return {
            "filename": file_path.name,
            "size_mb": round(size_bytes / (1024 * 1024), 2),
            "sheets_count": stats["sheets_count"],
            "rows_count": stats["rows_count"],
            "columns_count": stats["columns_count"],
        }

    async def extract_file_preview(self, file_path: Path, rows: int = 5) -> list[dict]:
        return self.excel_reader.read_preview(file_path, rows=rows)

    def delete_upload(self, file_id: UUID) -> None:
        upload_dir = self._get_upload_dir(file_id)
        if upload_dir.exists():
            shutil.rmtree(upload_dir)
            logger.info(f"Deleted upload {file_id}")

    # ------------------------------------------------------------------
    # Job reports
    # ------------------------------------------------------------------

    def get_output_dir(self, job_id: UUID) -> Path:
        """Create (if needed) and return {base_dir}/{job_id}/output."""
        output_dir = self._get_job_dir(job_id) / "output"
        self._ensure_directory_exists(output_dir)
        return output_dir

    def get_report_path(self, job_id: UUID, file_type: ResultFileType) -> Optional[Path]:
        """
        Locate a CSV report of a job.

        The failed-rows report is the one prefixed with "failed-"; any other
        CSV in the output directory is the result report.

        Returns:
            Path to the report, or None if the job produced no such file
        """
        output_dir = self._get_job_dir(job_id) / "output"
        if not output_dir.is_dir():
            return None

        for candidate in sorted(output_dir.glob("*.csv")):
            is_failed = candidate.name.startswith(FAILED_REPORT_PREFIX)
            if is_failed == (file_type == ResultFileType.FAILED):
                return candidate
        return None

    def report_exists(self, job_id: UUID, file_type: ResultFileType) -> bool:
        return self.get_report_path(job_id, file_type) is not None

    def cleanup_job(self, job_id: UUID) -> None:
        """Delete the job directory and all its reports (idempotent)."""
        job_dir = self._get_job_dir(job_id)
        if job_dir.exists():
            shutil.rmtree(job_dir)
            logger.info(f"Cleaned up job directory: {job_dir}")
        else:
            logger.debug(f"Job directory already removed: {job_dir}")
