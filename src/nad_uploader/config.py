"""
Uploader Configuration

Settings for the NAD endpoints, API token, CSV report names and HTTP
behaviour, read from environment variables (a .env file is loaded first
when present).

Environment Variables:
    NAD_ACCOUNTS_URL       Accounts enrollment endpoint
    NAD_MERCHANTS_URL      Merchants enrollment endpoint
    NAD_API_TOKEN          Bearer token sent with every request
    OUTPUT_ACCOUNTS_FILE   Accounts result CSV name (default accounts-output.csv)
    OUTPUT_MERCHANTS_FILE  Merchants result CSV name (default merchants-output.csv)
    NAD_HTTP_TIMEOUT       Request timeout in seconds (default 30)
    NAD_HTTP_RETRIES       Attempts per request on network errors (default 3)
    NAD_HTTP_BACKOFF       Base retry delay in seconds (default 0.5)
    NAD_MAX_THREADS        Upper bound for worker threads (default 10)

Examples:
    >>> settings = UploaderSettings.from_env()
    >>> settings.endpoint_for(EnrollmentKind.ACCOUNTS)
    'https://nad.example.ly/api/v1/accounts'
    >>> settings.result_filename_for(EnrollmentKind.ACCOUNTS, "20250101_120000")
    'accounts-output_20250101_120000.csv'
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from nad_uploader.application.models import EnrollmentKind

logger = logging.getLogger(__name__)

MIN_THREADS = 1
MAX_THREADS = 10
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def clamp_thread_count(thread_count: int, upper: int = MAX_THREADS) -> int:
    """
    Clamp requested worker threads to the allowed range.

    Examples:
        >>> clamp_thread_count(0)
        1
        >>> clamp_thread_count(25)
        10
    """
    return min(upper, max(MIN_THREADS, thread_count))


def make_timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp used in report file names, e.g. 20250115_103000."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def timestamped_filename(filename: str, timestamp: str) -> str:
    """
    Insert ``_{timestamp}`` before the .csv extension.

    Names without a .csv extension get the timestamp appended.
    """
    if filename.lower().endswith(".csv"):
        return f"{filename[:-4]}_{timestamp}{filename[-4:]}"
    return f"{filename}_{timestamp}"


@dataclass(frozen=True)
class UploaderSettings:
    accounts_url: str
    merchants_url: str
    api_token: str
    accounts_output_file: str = "accounts-output.csv"
    merchants_output_file: str = "merchants-output.csv"
    http_timeout: float = 30.0
    http_retries: int = 3
    http_backoff: float = 0.5
    max_threads: int = MAX_THREADS

    @classmethod
    def from_env(cls) -> "UploaderSettings":
        """
        Build settings from the process environment.

        Loads ``.env`` from the working directory first (existing variables
        win). Missing endpoint URLs or token are logged, not raised, so the
        console runner can still show its banner.
        """
        load_dotenv()

        settings = cls(
            accounts_url=os.getenv("NAD_ACCOUNTS_URL", ""),
            merchants_url=os.getenv("NAD_MERCHANTS_URL", ""),
            api_token=os.getenv("NAD_API_TOKEN", ""),
            accounts_output_file=os.getenv("OUTPUT_ACCOUNTS_FILE", "accounts-output.csv"),
            merchants_output_file=os.getenv("OUTPUT_MERCHANTS_FILE", "merchants-output.csv"),
            http_timeout=float(os.getenv("NAD_HTTP_TIMEOUT", "30")),
            http_retries=int(os.getenv("NAD_HTTP_RETRIES", "3")),
            http_backoff=float(os.getenv("NAD_HTTP_BACKOFF", "0.5")),
            max_threads=clamp_thread_count(int(os.getenv("NAD_MAX_THREADS", str(MAX_THREADS)))),
        )

        for name, value in (
            ("NAD_ACCOUNTS_URL", settings.accounts_url),
            ("NAD_MERCHANTS_URL", settings.merchants_url),
            ("NAD_API_TOKEN", settings.api_token),
        ):
            if not value:
                logger.warning(f"{name} is not set")

        return settings

    def endpoint_for(self, kind: EnrollmentKind) -> str:
        return self.accounts_url if kind is EnrollmentKind.ACCOUNTS else self.merchants_url

    def result_filename_for(self, kind: EnrollmentKind, timestamp: str) -> str:
        base = (
            self.accounts_output_file
            if kind is EnrollmentKind.ACCOUNTS
            else self.merchants_output_file
        )
        return timestamped_filename(base, timestamp)

    def failed_filename_for(self, kind: EnrollmentKind, timestamp: str) -> str:
        return f"{kind.failed_file_prefix}{timestamp}.csv"
