"""
Interactive console for bulk enrollment.

Walks the operator through confirmation, thread count, operation and
workbook selection, then enrolls every row and prints live progress.
Every prompt can be answered up front with a flag for unattended runs.

Usage:
    nad-uploader
    nad-uploader --yes --threads 8 --kind merchants --file Merchants.xlsx
"""

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from nad_uploader.application.models import EnrollmentKind
from nad_uploader.application.services.enrollment_batch import (
    BatchProgress,
    BatchResult,
    EnrollmentBatchProcessor,
)
from nad_uploader.config import MAX_THREADS, MIN_THREADS, UploaderSettings, clamp_thread_count
from nad_uploader.domain.shared.exceptions import DomainException
from nad_uploader.infrastructure.file_storage.excel_reader import ExcelReaderService

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]

MENU_CHOICES = {"1": EnrollmentKind.ACCOUNTS, "2": EnrollmentKind.MERCHANTS}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="nad-uploader",
        description="Bulk-enroll bank customers and merchants into NAD",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive session
  nad-uploader

  # Unattended merchant enrollment with 8 threads
  nad-uploader --yes --threads 8 --kind merchants --file Merchants.xlsx

  # Write the CSV reports to another directory
  nad-uploader --kind accounts --output-dir reports/
        """,
    )

    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help=f"Worker threads, clamped to {MIN_THREADS}-{MAX_THREADS} (default: prompt)",
    )

    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in EnrollmentKind],
        default=None,
        help="Operation: accounts or merchants (default: prompt)",
    )

    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Workbook to enroll (default: prompt, ACCOUNTS.xlsx or Merchants.xlsx)",
    )

    parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt",
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for the result and failed CSV reports (default: current directory)",
    )

    parser.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        metavar="MB",
        help="Largest workbook accepted in MB (default: MAX_FILE_SIZE_MB or 10)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def print_banner(settings: UploaderSettings) -> None:
    print("Welcome to the NAD Uploader!")
    print(
        "This tool will help you bulk-enroll your bank customers and merchants "
        "into the NAD system."
    )
    print("Please ensure that the base URLs and token are correctly set in the properties file.")
    print(f"Accounts Base URL: {settings.accounts_url}")
    print(f"Merchants Base URL: {settings.merchants_url}")


def confirm(input_fn: InputFn, message: str) -> bool:
    return input_fn(message).strip().lower() == "yes"


def prompt_thread_count(input_fn: InputFn) -> int:
    while True:
        answer = input_fn(f"Enter the number of threads to use ({MIN_THREADS}-{MAX_THREADS}): ")
        try:
            return clamp_thread_count(int(answer.strip()))
        except ValueError:
            print("Please enter a whole number.")


def prompt_kind(input_fn: InputFn) -> EnrollmentKind:
    while True:
        print("Choose operation:")
        print("1. Enroll Accounts")
        print("2. Enroll Merchants")
        choice = input_fn("Enter your choice (1 or 2): ").strip()
        if choice in MENU_CHOICES:
            return MENU_CHOICES[choice]
        print("Invalid choice. Please try again.")


def prompt_file_name(input_fn: InputFn, kind: EnrollmentKind) -> str:
    default = kind.default_workbook
    answer = input_fn(f"Enter the file name ({default}): ").strip()
    return answer or default


def make_progress_printer() -> Callable[[BatchProgress], None]:
    """Progress callback rewriting one console line; safe to call from worker threads."""
    lock = threading.Lock()

    def print_progress(progress: BatchProgress) -> None:
        with lock:
            sys.stdout.write(
                f"\rProgress: {progress.percent}% | Successful: {progress.successful} | "
                f"Failed: {progress.failed}"
            )
            sys.stdout.flush()

    return print_progress


def print_summary(result: BatchResult) -> None:
    print("\nEnrollment process completed.")
    print(f"Successful enrollments: {result.successful}")
    print(f"Failed enrollments: {result.failed}")


def run_console(
    args: argparse.Namespace,
    settings: Optional[UploaderSettings] = None,
    processor: Optional[EnrollmentBatchProcessor] = None,
    input_fn: InputFn = input,
) -> int:
    """
    Run one enrollment session.

    Returns:
        Process exit code: 0 after a batch (even with failed rows), 1 when the
        workbook is missing, too large or unreadable, 0 when the operator declines.
    """
    settings = settings or UploaderSettings.from_env()
    processor = processor or EnrollmentBatchProcessor(
        settings, excel_reader=ExcelReaderService(max_size_mb=args.max_file_size)
    )

    print_banner(settings)
    if not args.yes and not confirm(input_fn, "Do you want to continue? (yes/no): "):
        return 0

    if args.threads is not None:
        thread_count = clamp_thread_count(args.threads)
    else:
        thread_count = prompt_thread_count(input_fn)

    while True:
        kind = EnrollmentKind(args.kind) if args.kind else prompt_kind(input_fn)
        file_name = args.file or prompt_file_name(input_fn, kind)
        if Path(file_name).exists():
            break

        print(f"Error: File {file_name} does not exist.")
        print(f"Please place the {kind.value} file at: {Path.cwd()}")
        if args.file:
            return 1

    try:
        workbook = processor.load(Path(file_name))
    except DomainException as e:
        print(f"Error: {e.message}")
        return 1

    print(f"Number of {kind.value} in the file: {workbook.total_rows}")
    logger.info(f"Starting {kind.value} enrollment of {file_name} with {thread_count} threads")

    result = processor.process(
        kind,
        workbook,
        thread_count,
        output_dir=args.output_dir,
        progress_callback=make_progress_printer(),
    )

    print_summary(result)
    logger.info(f"Reports: {result.result_file}, {result.failed_file}")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        exit_code = run_console(args)
    except (EOFError, KeyboardInterrupt):
        print("\nAborted.")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
