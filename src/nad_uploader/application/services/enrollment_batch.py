"""
Enrollment Batch Processor

Enrolls every row of a workbook concurrently and records each outcome in
the CSV reports.

Responsibility:
    - Initialize the result and failed-rows reports
    - Fan rows out to a bounded thread pool
    - Map, submit and record each row
    - Keep success/failure counters and report progress

Process Flow:
    1. load(): read non-empty rows of the first sheet
    2. process(): create reports, submit rows to ThreadPoolExecutor
    3. per row: map -> POST -> append (iban, alias) to the result report,
       or (iban, error) to the failed report
    4. wait for every row, return BatchResult
    5. if the wait is interrupted, queued rows are cancelled before re-raising

Business Rules:
    - Thread count clamped to 1..NAD_MAX_THREADS (max 10)
    - A row that cannot be mapped is failed with IBAN "IBAN not available"
    - Row failures never stop the batch
    - Counters and report appends happen under one lock, so the number of
      report lines always matches the counters

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Shared by the console runner (cli.py) and the Celery task
    - No HTTP or spreadsheet details here: delegated to NadApiClient,
      ExcelReaderService and CsvOutcomeWriter
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import requests

from nad_uploader.application.models import EnrollmentKind
from nad_uploader.config import UploaderSettings, clamp_thread_count, make_timestamp
from nad_uploader.domain.enrollment.constants import IBAN_NOT_AVAILABLE
from nad_uploader.domain.enrollment.entities import EnrollmentOutcome
from nad_uploader.domain.enrollment.row_mapping import map_account_row, map_merchant_row
from nad_uploader.domain.shared.exceptions import DomainException
from nad_uploader.infrastructure.file_storage.csv_writer import (
    FAILED_HEADER,
    SUCCESS_HEADER,
    CsvOutcomeWriter,
)
from nad_uploader.infrastructure.file_storage.excel_reader import (
    ExcelReaderService,
    WorkbookRows,
)
from nad_uploader.infrastructure.http.nad_client import NadApiClient

logger = logging.getLogger(__name__)

ROW_MAPPERS = {
    EnrollmentKind.ACCOUNTS: map_account_row,
    EnrollmentKind.MERCHANTS: map_merchant_row,
}


@dataclass(frozen=True)
class BatchProgress:
    """
    Snapshot passed to progress callbacks after every finished row.

    Attributes:
        processed: Rows finished so far
        total: Rows submitted in this batch
        successful: Rows enrolled so far
        failed: Rows failed so far
    """

    processed: int
    total: int
    successful: int
    failed: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.processed * 100 / self.total)


ProgressCallback = Callable[[BatchProgress], None]


@dataclass
class BatchResult:
    """
    Summary of a finished batch.

    Attributes:
        kind: accounts or merchants
        total_rows: Data rows below the header (blank rows included)
        submitted: Non-empty rows sent through the pipeline
        successful: Rows enrolled
        failed: Rows failed (mapping, rejection or network error)
        result_file: Path of the result report
        failed_file: Path of the failed-rows report
        processing_time: Seconds spent in process()
    """

    kind: EnrollmentKind
    total_rows: int
    submitted: int
    successful: int
    failed: int
    result_file: str
    failed_file: str
    processing_time: float

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class EnrollmentBatchProcessor:
    """
    Runs one enrollment batch.

    Examples:
        >>> settings = UploaderSettings.from_env()
        >>> processor = EnrollmentBatchProcessor(settings)
        >>> result = processor.run(
        ...     EnrollmentKind.ACCOUNTS,
        ...     Path("ACCOUNTS.xlsx"),
        ...     thread_count=4,
        ...     progress_callback=lambda p: print(f"{p.percent}%"),
        ... )
        >>> print(result.successful, result.failed)
    """

    def __init__(
        self,
        settings: UploaderSettings,
        client: Optional[NadApiClient] = None,
        excel_reader: Optional[ExcelReaderService] = None,
    ) -> None:
        """
        Args:
            settings: Endpoints, token, report names and HTTP tuning
            client: NAD client (default: built from settings and closed after each batch)
            excel_reader: Workbook reader (default: ExcelReaderService())
        """
        self.settings = settings
        self._client = client
        self._owns_client = client is None
        self.excel_reader = excel_reader or ExcelReaderService()

        self._lock = threading.Lock()
        self._successful = 0
        self._failed = 0
        self._processed = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, workbook_path: Path) -> WorkbookRows:
        """Read the non-empty data rows of the workbook's first sheet."""
        return self.excel_reader.read_rows(Path(workbook_path))

    def run(
        self,
        kind: EnrollmentKind,
        workbook_path: Path,
        thread_count: int,
        output_dir: Path = Path("."),
        timestamp: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """load() then process()."""
        workbook = self.load(workbook_path)
        return self.process(
            kind,
            workbook,
            thread_count,
            output_dir=output_dir,
            timestamp=timestamp,
            progress_callback=progress_callback,
        )

    def process(
        self,
        kind: EnrollmentKind,
        workbook: WorkbookRows,
        thread_count: int,
        output_dir: Path = Path("."),
        timestamp: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        """
        Enroll every row of an already loaded workbook.

        Args:
            kind: accounts or merchants (selects endpoint, mapper, report names)
            workbook: Rows from load()
            thread_count: Requested worker threads (clamped)
            output_dir: Directory for the CSV reports
            timestamp: yyyyMMdd_HHmmss suffix (default: now)
            progress_callback: Called after every finished row

        Returns:
            BatchResult with counters and report paths
        """
        start_time = time.time()
        timestamp = timestamp or make_timestamp()
        workers = clamp_thread_count(thread_count, self.settings.max_threads)
        url = self.settings.endpoint_for(kind)
        mapper = ROW_MAPPERS[kind]

        output_dir = Path(output_dir)
        result_writer = CsvOutcomeWriter(
            output_dir / self.settings.result_filename_for(kind, timestamp), SUCCESS_HEADER
        )
        failed_writer = CsvOutcomeWriter(
            output_dir / self.settings.failed_filename_for(kind, timestamp), FAILED_HEADER
        )
        result_writer.initialize()
        failed_writer.initialize()

        self._reset_counters()
        submitted = len(workbook.rows)
        client = self._client or NadApiClient(
            token=self.settings.api_token,
            timeout=self.settings.http_timeout,
            retries=self.settings.http_retries,
            backoff=self.settings.http_backoff,
        )

        logger.info(
            f"Enrolling {submitted} {kind.value} rows with {workers} threads -> {url}"
        )

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"nad-{kind.value}")
        futures = []
        try:
            futures = [
                executor.submit(
                    self._process_row,
                    client,
                    mapper,
                    url,
                    row_number,
                    cells,
                    result_writer,
                    failed_writer,
                    submitted,
                    progress_callback,
                )
                for row_number, cells in workbook.rows
            ]
            for future in as_completed(futures):
                future.result()
        except BaseException:
            # Interrupted (time limit, Ctrl-C): rows not yet started are never sent
            cancelled = sum(future.cancel() for future in futures)
            executor.shutdown(wait=False, cancel_futures=True)
            logger.warning(f"Batch interrupted, {cancelled} queued rows were not submitted")
            raise
        else:
            executor.shutdown(wait=True)
        finally:
            if self._owns_client:
                client.close()

        result = BatchResult(
            kind=kind,
            total_rows=workbook.total_rows,
            submitted=submitted,
            successful=self._successful,
            failed=self._failed,
            result_file=str(result_writer.path),
            failed_file=str(failed_writer.path),
            processing_time=time.time() - start_time,
        )
        logger.info(
            f"Batch finished: {result.successful} successful, {result.failed} failed "
            f"in {result.processing_time:.1f}s"
        )
        return result

    # ------------------------------------------------------------------
    # Row pipeline
    # ------------------------------------------------------------------

    def _reset_counters(self) -> None:
        with self._lock:
            self._successful = 0
            self._failed = 0
            self._processed = 0

    def enroll_row(
        self,
        client: NadApiClient,
        mapper: Callable[[Sequence[Any]], Any],
        url: str,
        row_number: int,
        cells: Sequence[Any],
    ) -> EnrollmentOutcome:
        """
        Map and submit one row.

        Never raises for row-level problems: mapping errors, NAD rejections and
        network failures all become failed outcomes.
        """
        try:
            enrollment = mapper(cells)
        except DomainException as e:
            logger.debug(f"Row {row_number}: cannot map row: {e.message}")
            return EnrollmentOutcome(row_number, IBAN_NOT_AVAILABLE, False, error=e.message)

        try:
            alias = client.enroll(url, enrollment.to_payload())
        except DomainException as e:
            logger.debug(f"Row {row_number}: rejected: {e.message}")
            return EnrollmentOutcome(row_number, enrollment.iban, False, error=e.message)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Row {row_number}: request failed: {e}")
            return EnrollmentOutcome(row_number, enrollment.iban, False, error=str(e))

        return EnrollmentOutcome(row_number, enrollment.iban, True, alias=alias)

    def _process_row(
        self,
        client: NadApiClient,
        mapper: Callable[[Sequence[Any]], Any],
        url: str,
        row_number: int,
        cells: Sequence[Any],
        result_writer: CsvOutcomeWriter,
        failed_writer: CsvOutcomeWriter,
        total: int,
        progress_callback: Optional[ProgressCallback],
    ) -> EnrollmentOutcome:
        try:
            outcome = self.enroll_row(client, mapper, url, row_number, cells)
        except Exception as e:
            # Unexpected errors are recorded like any failed row
            logger.exception(f"Row {row_number}: unexpected error")
            outcome = EnrollmentOutcome(row_number, IBAN_NOT_AVAILABLE, False, error=str(e))

        with self._lock:
            if outcome.success:
                self._successful += 1
                result_writer.append(outcome.to_csv_row())
            else:
                self._failed += 1
                failed_writer.append(outcome.to_csv_row())
            self._processed += 1
            snapshot = BatchProgress(
                processed=self._processed,
                total=total,
                successful=self._successful,
                failed=self._failed,
            )

        if progress_callback is not None:
            try:
                progress_callback(snapshot)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        return outcome
