"""
Workbook Row Mapping

Turns the raw cell values of one workbook row into an enrollment entity.

Responsibility:
    - Normalize cell values to trimmed strings
    - Enforce required vs optional columns
    - Detect rows with no content at all

Business Rules:
    - A cell is blank when it is missing, None, or whitespace-only text
    - Blank required cell -> MissingRequiredFieldError
    - Blank optional cell -> None
    - Whole-number numeric cells lose their ".0" (Excel stores phone
      numbers and national ids typed as numbers as floats)

Examples:
    >>> cells = ("119850012345", "218912345678", None, "Ali Salem", "0012345", "LY83...")
    >>> enrollment = map_account_row(cells)
    >>> enrollment.passport_number is None
    True
"""

from datetime import date, datetime
from typing import Any, Optional, Sequence

from nad_uploader.domain.enrollment.constants import (
    ACCOUNT_IBAN_COL,
    ACCOUNT_NAME_COL,
    ACCOUNT_NATIONAL_ID_COL,
    ACCOUNT_NUMBER_COL,
    ACCOUNT_PASSPORT_COL,
    ACCOUNT_PHONE_COL,
    MERCHANT_ACCOUNT_NUMBER_COL,
    MERCHANT_DESC_COL,
    MERCHANT_EMAIL_COL,
    MERCHANT_IBAN_COL,
    MERCHANT_MCC_COL,
    MERCHANT_MOBILE_COL,
    MERCHANT_NATIONAL_ID_COL,
    MERCHANT_PASSPORT_COL,
    MERCHANT_TRADE_LICENSE_COL,
)
from nad_uploader.domain.enrollment.entities import (
    AccountDetails,
    AccountEnrollment,
    MerchantDetails,
    MerchantEnrollment,
)
from nad_uploader.domain.shared.exceptions import MissingRequiredFieldError


def cell_text(value: Any) -> Optional[str]:
    """
    Normalize a raw cell value to trimmed text.

    Args:
        value: Value as returned by openpyxl (str, int, float, bool, datetime or None)

    Returns:
        Trimmed string, or None when the cell is blank

    Examples:
        >>> cell_text("  LY83 ")
        'LY83'
        >>> cell_text(912345678.0)
        '912345678'
        >>> cell_text("   ") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, bool):
        text = str(value).upper()
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (datetime, date)):
        text = value.isoformat()
    else:
        text = str(value)
    text = text.strip()
    return text or None


def is_row_empty(cells: Sequence[Any]) -> bool:
    """True when every cell of the row is blank."""
    return all(cell_text(value) is None for value in cells)


def _cell(cells: Sequence[Any], index: int) -> Any:
    # Trailing empty cells may be absent from short rows
    return cells[index] if index < len(cells) else None


def required_value(cells: Sequence[Any], index: int) -> str:
    text = cell_text(_cell(cells, index))
    if text is None:
        raise MissingRequiredFieldError(column_index=index)
    return text


def optional_value(cells: Sequence[Any], index: int) -> Optional[str]:
    return cell_text(_cell(cells, index))


def map_account_row(cells: Sequence[Any]) -> AccountEnrollment:
    """
    Build an AccountEnrollment from an accounts workbook row.

    Args:
        cells: Cell values of the row, in column order

    Returns:
        AccountEnrollment ready to be posted

    Raises:
        MissingRequiredFieldError: If national id, phone, account name,
            account number or IBAN is blank
    """
    return AccountEnrollment(
        national_id=required_value(cells, ACCOUNT_NATIONAL_ID_COL),
        phone_number=required_value(cells, ACCOUNT_PHONE_COL),
        passport_number=optional_value(cells, ACCOUNT_PASSPORT_COL),
        account=AccountDetails(
            name=required_value(cells, ACCOUNT_NAME_COL),
            number=required_value(cells, ACCOUNT_NUMBER_COL),
            iban=required_value(cells, ACCOUNT_IBAN_COL),
        ),
    )


def map_merchant_row(cells: Sequence[Any]) -> MerchantEnrollment:
    """
    Build a MerchantEnrollment from a merchants workbook row.

    AC_DESC is used both as the merchant name and as the account name.

    Args:
        cells: Cell values of the row, in column order

    Returns:
        MerchantEnrollment ready to be posted

    Raises:
        MissingRequiredFieldError: If AC_DESC, IBAN, NATIONAL_ID, MCC or
            Account_no is blank
    """
    description = required_value(cells, MERCHANT_DESC_COL)
    return MerchantEnrollment(
        national_id=required_value(cells, MERCHANT_NATIONAL_ID_COL),
        phone_number=optional_value(cells, MERCHANT_MOBILE_COL),
        passport_number=optional_value(cells, MERCHANT_PASSPORT_COL),
        merchant=MerchantDetails(
            name=description,
            mcc=required_value(cells, MERCHANT_MCC_COL),
            trade_license_number=optional_value(cells, MERCHANT_TRADE_LICENSE_COL),
            email=optional_value(cells, MERCHANT_EMAIL_COL),
        ),
        account=AccountDetails(
            name=description,
            number=required_value(cells, MERCHANT_ACCOUNT_NUMBER_COL),
            iban=required_value(cells, MERCHANT_IBAN_COL),
        ),
    )
