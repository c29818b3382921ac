"""
Excel Reader Service

Reads enrollment workbooks.

Responsibility:
    - Read the first sheet of an .xlsx workbook row by row (openpyxl)
    - Skip the header row and rows with no content
    - Report total data rows (including blank ones) for progress and logs
    - Build small previews and sheet statistics for uploads (Polars)
    - Validate file existence and size limits

Architecture Notes:
    - Infrastructure Layer (depends on openpyxl and Polars)
    - Enrollment reads use openpyxl with values_only so cell positions and
      raw values survive untouched; Polars infers a header and column
      dtypes, which is right for previews but would shift or coerce cells
    - Preview loading tries the default Polars engine, then openpyxl
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import polars as pl
from openpyxl import load_workbook

from nad_uploader.domain.enrollment.row_mapping import cell_text, is_row_empty
from nad_uploader.domain.shared.exceptions import (
    ExcelParsingError,
    FileSizeExceededError,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkbookRows:
    """
    Data rows read from the first sheet of a workbook.

    Attributes:
        total_rows: Rows below the header, blank rows included
        rows: (excel_row_number, cell_values) for every non-empty row
        skipped_rows: Number of blank rows that were left out
        sheet_name: Title of the sheet that was read
    """

    total_rows: int
    rows: list[tuple[int, tuple[Any, ...]]] = field(default_factory=list)
    skipped_rows: int = 0
    sheet_name: str = ""


class ExcelReaderService:
    """
    Service for reading enrollment workbooks.

    Usage Patterns:
    1. Enrollment: read_rows() feeds the batch processor
    2. Upload: read_preview() and read_sheet_stats() describe an uploaded file

    Examples:
        >>> reader = ExcelReaderService()
        >>> workbook = reader.read_rows(Path("ACCOUNTS.xlsx"))
        >>> print(f"Number of accounts in the file: {workbook.total_rows}")
        >>> for row_number, cells in workbook.rows:
        ...     enrollment = map_account_row(cells)
    """

    def __init__(self, max_size_mb: Optional[int] = None) -> None:
        """
        Args:
            max_size_mb: Max workbook size in MB (default from env: MAX_FILE_SIZE_MB or 10)
        """
        self.max_size_bytes = (
            (max_size_mb or int(os.getenv("MAX_FILE_SIZE_MB", "10"))) * 1024 * 1024
        )

    def _validate_file_size(self, file_path: Path) -> None:
        """
        Validate that the workbook exists and is within the size limit.

        Raises:
            FileNotFoundError: If file doesn't exist
            FileSizeExceededError: If file size > max_size_bytes
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size_bytes = file_path.stat().st_size
        if file_size_bytes > self.max_size_bytes:
            raise FileSizeExceededError(file_size_bytes, self.max_size_bytes)

    def read_rows(self, file_path: Path) -> WorkbookRows:
        """
        Read every data row of the first sheet.

        Row 1 is the header. Rows 2..last are returned with their Excel row
        number; rows where every cell is blank are counted in total_rows but
        not returned.

        Args:
            file_path: Path to .xlsx workbook

        Returns:
            WorkbookRows with non-empty rows in sheet order

        Raises:
            FileNotFoundError: If file doesn't exist
            FileSizeExceededError: If workbook is too large
            ExcelParsingError: If openpyxl cannot open or read the workbook
        """
        file_path = Path(file_path)
        self._validate_file_size(file_path)

        try:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except Exception as e:
            raise ExcelParsingError(
                message=f"Cannot open workbook: {e}",
                file_path=str(file_path),
                original_error=e,
            ) from e

        try:
            sheet = workbook.worksheets[0]
            result = WorkbookRows(total_rows=0, sheet_name=sheet.title)

            for row_number, values in enumerate(
                sheet.iter_rows(min_row=2, values_only=True), start=2
            ):
                result.total_rows = row_number - 1
                if is_row_empty(values):
                    result.skipped_rows += 1
                    continue
                result.rows.append((row_number, tuple(values)))

        except Exception as e:
            raise ExcelParsingError(
                message=f"Cannot read workbook rows: {e}",
                file_path=str(file_path),
                original_error=e,
            ) from e

        finally:
            workbook.close()

        logger.info(
            f"Read {len(result.rows)} rows from {file_path.name} "
            f"(sheet '{result.sheet_name}', {result.total_rows} data rows, "
            f"{result.skipped_rows} blank)"
        )
        return result

    def _load_dataframe(self, file_path: Path) -> pl.DataFrame:
        """
        Load the first sheet into a Polars DataFrame.

        Tries the default engine first and falls back to openpyxl.

        Raises:
            ExcelParsingError: If neither engine can parse the file
        """
        df: Optional[pl.DataFrame] = None
        last_error: Optional[Exception] = None

        try:
            df = pl.read_excel(source=file_path, sheet_id=1)
        except Exception as e:
            last_error = e
            try:
                df = pl.read_excel(source=file_path, sheet_id=1, engine="openpyxl")
            except Exception as fallback_error:
                last_error = fallback_error

        if df is None:
            raise ExcelParsingError(
                message="Cannot parse Excel file (tried default and openpyxl engines)",
                file_path=str(file_path),
                original_error=last_error,
            )

        return df

    def read_preview(self, file_path: Path, rows: int = 5) -> list[dict[str, Any]]:
        """
        First data rows of the first sheet as JSON-friendly dicts.

        Values are normalized to text the same way enrollment reads them,
        so the preview shows what will actually be sent.
        """
        df = self._load_dataframe(Path(file_path))
        return [
            {column: cell_text(value) for column, value in record.items()}
            for record in df.head(rows).to_dicts()
        ]

    def read_sheet_stats(self, file_path: Path) -> dict[str, Any]:
        """
        Sheet count, data row count and column names of a workbook.

        Returns:
            {"sheets_count": int, "rows_count": int, "columns_count": int, "columns": [...]}
        """
        file_path = Path(file_path)
        df = self._load_dataframe(file_path)

        try:
            workbook = load_workbook(file_path, read_only=True)
            sheets_count = len(workbook.sheetnames)
            workbook.close()
        except Exception as e:
            raise ExcelParsingError(
                message=f"Cannot open workbook: {e}",
                file_path=str(file_path),
                original_error=e,
            ) from e

        return {
            "sheets_count": sheets_count,
            "rows_count": df.height,
            "columns_count": df.width,
            "columns": df.columns,
        }
