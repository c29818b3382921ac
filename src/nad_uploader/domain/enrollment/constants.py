"""
Enrollment Sheet Layout

Column positions of the accounts and merchants workbooks, plus the fixed
values the NAD enrollment payload needs. Positions are 0-based indexes into
a sheet row; the first row of every sheet is the header and is never enrolled.

Business Context:
    Accounts workbook (one customer account per row):
        A national id | B phone | C passport (optional) | D account name |
        E account number | F IBAN

    Merchants workbook (core banking export, columns by header name):
        A AC_DESC | B IBAN | C NATIONAL_ID | D PASSPORT_NO | E MOBILE_NUMBER |
        F EMAIL | G MCC | H Trade_lic | I (unused) | J Account_no
"""

from typing import Final


# ============================================================================
# ACCOUNTS LAYOUT
# ============================================================================

ACCOUNT_NATIONAL_ID_COL: Final[int] = 0
ACCOUNT_PHONE_COL: Final[int] = 1
ACCOUNT_PASSPORT_COL: Final[int] = 2  # optional
ACCOUNT_NAME_COL: Final[int] = 3
ACCOUNT_NUMBER_COL: Final[int] = 4
ACCOUNT_IBAN_COL: Final[int] = 5


# ============================================================================
# MERCHANTS LAYOUT
# ============================================================================

MERCHANT_DESC_COL: Final[int] = 0  # AC_DESC, merchant name and account name
MERCHANT_IBAN_COL: Final[int] = 1
MERCHANT_NATIONAL_ID_COL: Final[int] = 2
MERCHANT_PASSPORT_COL: Final[int] = 3  # optional
MERCHANT_MOBILE_COL: Final[int] = 4  # optional
MERCHANT_EMAIL_COL: Final[int] = 5  # optional
MERCHANT_MCC_COL: Final[int] = 6
MERCHANT_TRADE_LICENSE_COL: Final[int] = 7  # optional
MERCHANT_ACCOUNT_NUMBER_COL: Final[int] = 9


# ============================================================================
# PAYLOAD DEFAULTS
# ============================================================================

DEFAULT_MERCHANT_ADDRESS: Final[str] = "Libya"

# Placeholder written to the failed CSV when a row cannot be mapped
IBAN_NOT_AVAILABLE: Final[str] = "IBAN not available"
