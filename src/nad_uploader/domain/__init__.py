"""
Domain Layer - Core Business Logic

Enrollment entities, workbook row mapping, and the exception hierarchy.
Framework-independent: no Redis, HTTP or file system access here.

Subdomains:
    - enrollment: account and merchant enrollment requests
    - shared: cross-subdomain concepts (exceptions)

Usage:
    >>> from nad_uploader.domain import map_account_row, DomainException
"""

from nad_uploader.domain.enrollment.entities import (
    AccountDetails,
    AccountEnrollment,
    EnrollmentOutcome,
    MerchantDetails,
    MerchantEnrollment,
)
from nad_uploader.domain.enrollment.row_mapping import (
    is_row_empty,
    map_account_row,
    map_merchant_row,
)
from nad_uploader.domain.shared.exceptions import DomainException

__all__ = [
    "AccountDetails",
    "AccountEnrollment",
    "EnrollmentOutcome",
    "MerchantDetails",
    "MerchantEnrollment",
    "is_row_empty",
    "map_account_row",
    "map_merchant_row",
    "DomainException",
]
