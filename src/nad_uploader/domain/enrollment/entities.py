"""
Enrollment Entities

Dataclasses describing one NAD enrollment request and how it serializes
into the JSON body the NAD API expects.

Responsibility:
    - Hold the values read from a single workbook row
    - Produce the camelCase request payload (to_payload)
    - Expose the IBAN used to label outcomes in CSV reports

Architecture Notes:
    - Part of Domain Layer (no I/O, no framework imports)
    - Built by row_mapping.py, consumed by the batch processor
    - Optional values stay None and serialize as JSON null
"""

from dataclasses import dataclass
from typing import Any, Optional

from nad_uploader.domain.enrollment.constants import DEFAULT_MERCHANT_ADDRESS


@dataclass(frozen=True)
class AccountDetails:
    """Bank account block shared by account and merchant enrollments."""

    name: str
    number: str
    iban: str

    def to_payload(self) -> dict[str, Any]:
        return {"name": self.name, "number": self.number, "iban": self.iban}


@dataclass(frozen=True)
class MerchantDetails:
    """
    Merchant block of a merchant enrollment.

    Attributes:
        name: Merchant display name (AC_DESC column)
        mcc: Merchant category code
        trade_license_number: Trade licence, None when the cell is blank
        email: Contact email, None when the cell is blank
        address: Always "Libya" for workbook imports
    """

    name: str
    mcc: str
    trade_license_number: Optional[str] = None
    email: Optional[str] = None
    address: str = DEFAULT_MERCHANT_ADDRESS

    def to_payload(self) -> dict[str, Any]:
        return {
            "tradeLicenseNumber": self.trade_license_number,
            "name": self.name,
            "email": self.email,
            "mcc": self.mcc,
            "address": self.address,
        }


@dataclass(frozen=True)
class AccountEnrollment:
    """
    Enrollment of a customer account.

    Examples:
        >>> enrollment = AccountEnrollment(
        ...     national_id="119850012345",
        ...     phone_number="218912345678",
        ...     passport_number=None,
        ...     account=AccountDetails("Ali Salem", "0012345", "LY83002048000020100120361"),
        ... )
        >>> enrollment.to_payload()["account"]["iban"]
        'LY83002048000020100120361'
    """

    national_id: str
    phone_number: str
    account: AccountDetails
    passport_number: Optional[str] = None

    @property
    def iban(self) -> str:
        return self.account.iban

    def to_payload(self) -> dict[str, Any]:
        return {
            "nationalId": self.national_id,
            "phoneNumber": self.phone_number,
            "passportNumber": self.passport_number,
            "account": self.account.to_payload(),
        }


@dataclass(frozen=True)
class MerchantEnrollment:
    """
    Enrollment of a merchant together with its settlement account.

    Unlike accounts, the merchant phone number is optional.
    """

    national_id: str
    merchant: MerchantDetails
    account: AccountDetails
    phone_number: Optional[str] = None
    passport_number: Optional[str] = None

    @property
    def iban(self) -> str:
        return self.account.iban

    def to_payload(self) -> dict[str, Any]:
        return {
            "nationalId": self.national_id,
            "phoneNumber": self.phone_number,
            "passportNumber": self.passport_number,
            "merchant": self.merchant.to_payload(),
            "account": self.account.to_payload(),
        }


@dataclass
class EnrollmentOutcome:
    """
    Result of enrolling one workbook row.

    Attributes:
        row_number: 1-based Excel row number (header is row 1)
        iban: IBAN of the row, or "IBAN not available" when mapping failed
        success: True when NAD returned an alias
        alias: Alias returned by NAD (success only)
        error: Error text recorded in the failed CSV (failure only)
    """

    row_number: int
    iban: str
    success: bool
    alias: Optional[str] = None
    error: Optional[str] = None

    def to_csv_row(self) -> list[str]:
        if self.success:
            return [self.iban, self.alias or ""]
        return [self.iban, self.error or ""]
