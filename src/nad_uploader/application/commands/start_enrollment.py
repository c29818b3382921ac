"""
StartEnrollmentCommand - CQRS Write Command

Everything needed to start an enrollment job for an uploaded workbook.

Responsibility:
    - Validate file_id format and enrollment kind
    - Clamp the requested thread count to 1..10
    - Serialize arguments for the Celery task queue

Architecture Notes:
    - Part of Application Layer (orchestration)
    - Built by the enrollments router, executed by StartEnrollmentUseCase
    - Does NOT check that the upload exists (use case responsibility)
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from nad_uploader.application.models import EnrollmentKind
from nad_uploader.config import MAX_THREADS, MIN_THREADS, clamp_thread_count


class StartEnrollmentCommand(BaseModel):
    """
    Command to enroll every row of an uploaded workbook.

    Attributes:
        file_id: UUID returned by POST /api/files/upload
        kind: accounts or merchants
        thread_count: Worker threads (out-of-range values are clamped, not rejected)

    Examples:
        >>> command = StartEnrollmentCommand(
        ...     file_id="a3bb189e-8bf9-3888-9912-ace4e6543002",
        ...     kind="merchants",
        ...     thread_count=25,
        ... )
        >>> command.thread_count
        10
    """

    file_id: str = Field(description="UUID of uploaded workbook as string")
    kind: EnrollmentKind = Field(description="Enrollment kind: accounts or merchants")
    thread_count: int = Field(
        default=4,
        description=f"Worker threads, clamped to {MIN_THREADS}-{MAX_THREADS}",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "file_id": "a3bb189e-8bf9-3888-9912-ace4e6543002",
                "kind": "accounts",
                "thread_count": 4,
            }
        }

    @field_validator("file_id")
    @classmethod
    def validate_file_id_format(cls, value: str) -> str:
        try:
            UUID(value)
        except ValueError as e:
            raise ValueError(f"file_id must be valid UUID format, got '{value}'") from e
        return value

    @field_validator("thread_count")
    @classmethod
    def clamp_threads(cls, value: int) -> int:
        return clamp_thread_count(value)

    def to_celery_dict(self) -> dict[str, Any]:
        """Plain-JSON arguments for process_enrollment_task."""
        return {
            "file_id": self.file_id,
            "kind": self.kind.value,
            "thread_count": self.thread_count,
        }
