"""
Shared Application Models

Responsibility:
    Enums shared by commands, queries, services, tasks and the API Layer.
    Kept in one module to avoid circular imports between them.

Contains:
    - JobStatus: Enum for job lifecycle states
    - EnrollmentKind: Which NAD enrollment a workbook feeds (accounts/merchants)
    - ResultFileType: Which CSV report of a job to download
"""

from enum import Enum


class JobStatus(str, Enum):
    """
    Status of an asynchronous enrollment job.

    Attributes:
        QUEUED: Job accepted and waiting in Celery queue
        PROCESSING: Worker is enrolling rows
        COMPLETED: All rows processed, CSV reports available
        FAILED: Job aborted (unreadable workbook, missing upload, ...)
        CANCELLED: Job cancelled by user or system

    Usage:
        >>> from nad_uploader.application.models import JobStatus
        >>> JobStatus.PROCESSING.value
        'processing'
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EnrollmentKind(str, Enum):
    """
    Kind of enrollment a workbook contains.

    Each kind has its own NAD endpoint, column layout, default workbook name
    and failed-rows report prefix.

    Usage:
        >>> EnrollmentKind("merchants").default_workbook
        'Merchants.xlsx'
        >>> EnrollmentKind.ACCOUNTS.failed_file_prefix
        'failed-ACCOUNT_'
    """

    ACCOUNTS = "accounts"
    MERCHANTS = "merchants"

    @property
    def default_workbook(self) -> str:
        return "ACCOUNTS.xlsx" if self is EnrollmentKind.ACCOUNTS else "Merchants.xlsx"

    @property
    def failed_file_prefix(self) -> str:
        return "failed-ACCOUNT_" if self is EnrollmentKind.ACCOUNTS else "failed-MERCHANT_"


class ResultFileType(str, Enum):
    """CSV reports produced by an enrollment job."""

    RESULT = "result"
    FAILED = "failed"
