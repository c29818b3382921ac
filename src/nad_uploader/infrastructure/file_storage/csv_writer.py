"""
CSV Outcome Writer

Appends enrollment outcomes to a CSV report, one record per row.

Responsibility:
    - Create/truncate the report and write its header
    - Append records safely from many worker threads
    - Quote every field (IBANs and aliases must stay text in Excel)

Error Handling:
    - OSError on write is logged and swallowed: losing a report line must
      not abort the rest of the batch. The outcome is still counted.
"""

import csv
import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

SUCCESS_HEADER = ("IBAN", "Alias/Response")
FAILED_HEADER = ("IBAN", "Error")


class CsvOutcomeWriter:
    """
    Thread-safe CSV report writer.

    Examples:
        >>> writer = CsvOutcomeWriter(Path("failed-ACCOUNT_20250115_103000.csv"), FAILED_HEADER)
        >>> writer.initialize()
        >>> writer.append(["LY83002048000020100120361", "Required field is missing or empty."])
    """

    def __init__(
        self,
        path: Path,
        header: Sequence[str],
        lock: Optional[threading.Lock] = None,
    ) -> None:
        """
        Args:
            path: Report file path
            header: Column names written by initialize()
            lock: Lock to serialize appends (pass a shared lock to order
                writes across several reports)
        """
        self.path = Path(path)
        self.header = list(header)
        self._lock = lock or threading.Lock()
        self.records_written = 0

    def initialize(self) -> None:
        """Create (or truncate) the report and write the header row."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", newline="", encoding="utf-8") as f:
                csv.writer(f, quoting=csv.QUOTE_ALL).writerow(self.header)
            logger.debug(f"Initialized report {self.path}")
        except OSError as e:
            logger.error(f"Error initializing output file {self.path}: {e}")

    def append(self, record: Sequence[Optional[str]]) -> bool:
        """
        Append one record.

        Returns:
            True if the record was written, False if the write failed
        """
        row = ["" if value is None else str(value) for value in record]
        with self._lock:
            try:
                with self.path.open("a", newline="", encoding="utf-8") as f:
                    csv.writer(f, quoting=csv.QUOTE_ALL).writerow(row)
                self.records_written += 1
                return True
            except OSError as e:
                logger.error(f"Error writing to {self.path.name}: {e}")
                return False
