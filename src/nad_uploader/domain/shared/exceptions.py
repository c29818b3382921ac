"""
Domain Layer Exceptions

Exception hierarchy shared by every layer of NAD Uploader.
All enrollment-specific errors inherit from DomainException.

Responsibility:
    - Base exception class for domain errors
    - Row-level enrollment failures (missing cells, rejected requests)
    - Input file failures (size, parsing)
    - Command validation failures

Architecture Notes:
    - Part of Shared Domain (used across all subdomains)
    - API Layer maps these to HTTP status codes in main.py
    - Batch processing records row-level errors instead of propagating them
"""

from typing import Any, Optional


class DomainException(Exception):
    """
    Base exception for all domain layer errors.

    Root of the domain exception hierarchy. Application and API layers
    catch this type to handle every domain failure in one place.

    Examples:
        >>> raise DomainException("Business rule violation")

        >>> try:
        ...     mapper(cells)
        ... except DomainException as e:
        ...     logger.error(f"Domain error: {e}")
    """

    def __init__(self, message: str) -> None:
        """
        Initialize domain exception with error message.

        Args:
            message: Human-readable error description
        """
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.__class__.__name__}: {self.message}"

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{self.__class__.__name__}(message={self.message!r})"


class MissingRequiredFieldError(DomainException):
    """
    Raised when a required spreadsheet cell is missing or blank.

    The message is fixed so failed-row reports stay identical regardless of
    which column was empty; the column index is kept as an attribute.

    Examples:
        >>> raise MissingRequiredFieldError(column_index=5)
    """

    DEFAULT_MESSAGE = "Required field is missing or empty."

    def __init__(self, column_index: Optional[int] = None) -> None:
        self.column_index = column_index
        super().__init__(self.DEFAULT_MESSAGE)


class EnrollmentRejectedError(DomainException):
    """
    Raised when the NAD API does not accept an enrollment request.

    Covers non-2xx responses and 2xx responses without an alias in
    ``data.alias``. The raw response body is preserved because it is
    what ends up in the failed-rows CSV.

    Examples:
        >>> raise EnrollmentRejectedError(409, '{"error": "IBAN already enrolled"}')
    """

    def __init__(self, status_code: int, body: Any = None, message: Optional[str] = None) -> None:
        """
        Initialize rejection error.

        Args:
            status_code: HTTP status code returned by NAD
            body: Response body (decoded JSON or raw text)
            message: Optional explicit message (defaults to the body text)
        """
        self.status_code = status_code
        self.body = body
        super().__init__(message if message is not None else str(body))


class FileSizeExceededError(DomainException):
    """
    Raised when an uploaded workbook exceeds the configured size limit.

    Examples:
        >>> raise FileSizeExceededError(15728640, 10485760)
    """

    def __init__(self, file_size: int, max_size: int) -> None:
        self.file_size = file_size
        self.max_size = max_size
        super().__init__(
            f"File size {file_size / (1024 * 1024):.2f}MB exceeds "
            f"limit of {max_size / (1024 * 1024):.0f}MB"
        )


class InvalidFileExtensionError(DomainException):
    """Raised when an uploaded file is not an accepted workbook format."""

    def __init__(self, filename: str, allowed_extensions: list[str]) -> None:
        self.filename = filename
        self.allowed_extensions = allowed_extensions
        super().__init__(
            f"Invalid file extension: {filename}. "
            f"Allowed: {', '.join(allowed_extensions)}"
        )


class ExcelParsingError(DomainException):
    """
    Raised when a workbook cannot be opened or read.

    Examples:
        >>> raise ExcelParsingError("File is not a zip file", file_path="ACCOUNTS.xlsx")
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.file_path = file_path
        self.original_error = original_error
        super().__init__(message)


class UploadNotFoundError(DomainException):
    """Raised when an enrollment is requested for a file_id with no stored upload."""

    def __init__(self, file_id: str) -> None:
        self.file_id = file_id
        super().__init__(f"Uploaded file {file_id} not found in storage")


class InvalidEnrollmentCommandError(DomainException):
    """
    Raised when a StartEnrollmentCommand fails business validation.

    Also raised when the workbook was uploaded as the other enrollment kind.

    Examples:
        >>> raise InvalidEnrollmentCommandError("Unknown enrollment kind: 'vendors'")
    """
