"""
File Storage Infrastructure

Workbook reading, CSV report writing and local file management.
"""

from nad_uploader.infrastructure.file_storage.csv_writer import (
    FAILED_HEADER,
    SUCCESS_HEADER,
    CsvOutcomeWriter,
)
from nad_uploader.infrastructure.file_storage.excel_reader import (
    ExcelReaderService,
    WorkbookRows,
)
from nad_uploader.infrastructure.file_storage.file_storage_service import (
    FileStorageService,
)

__all__ = [
    "CsvOutcomeWriter",
    "ExcelReaderService",
    "FAILED_HEADER",
    "FileStorageService",
    "SUCCESS_HEADER",
    "WorkbookRows",
]
