"""
Pytest Configuration and Shared Fixtures

Fixtures:
    - make_workbook: writes an .xlsx workbook with openpyxl into tmp_path
    - account_rows / merchant_rows: sample sheet contents
    - settings: UploaderSettings pointing at fake NAD endpoints

Usage:
    def test_something(make_workbook, account_rows):
        path = make_workbook("ACCOUNTS.xlsx", account_rows)
"""

import logging
from pathlib import Path
from typing import Any, Callable, Sequence

import pytest
from openpyxl import Workbook

from nad_uploader.config import UploaderSettings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

ACCOUNT_HEADER = ["NATIONAL_ID", "PHONE", "PASSPORT", "ACCOUNT_NAME", "ACCOUNT_NO", "IBAN"]

MERCHANT_HEADER = [
    "AC_DESC",
    "IBAN",
    "NATIONAL_ID",
    "PASSPORT",
    "MOBILE",
    "EMAIL",
    "MCC",
    "TRADE_LICENSE",
    "BRANCH",
    "Account_no",
]


@pytest.fixture
def make_workbook(tmp_path) -> Callable[..., Path]:
    """
    Factory writing a single-sheet workbook.

    Rows are written from row 1 (header) downwards; a None row leaves the
    Excel row blank.
    """

    def _make(
        filename: str,
        rows: Sequence[Sequence[Any]],
        header: Sequence[str] = ACCOUNT_HEADER,
    ) -> Path:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Sheet1"
        sheet.append(list(header))
        for row in rows:
            if row is None:
                sheet.append([])
            else:
                sheet.append(list(row))
        path = tmp_path / filename
        workbook.save(path)
        return path

    return _make


@pytest.fixture
def merchant_header():
    return list(MERCHANT_HEADER)


@pytest.fixture
def account_rows():
    """Three valid account rows."""
    return [
        ["119850012345", "218912345678", None, "Ali Salem", "0012345", "LY83002048000020100120361"],
        ["119900054321", "218923456789", "P1234567", "Mona Ahmed", "0054321", "LY38021001000000123456789"],
        ["120010098765", "218934567890", None, "Omar Khaled", "0098765", "LY29002100000000987654321"],
    ]


@pytest.fixture
def merchant_rows():
    """Two valid merchant rows."""
    return [
        [
            "Salem Grocery",
            "LY83002048000020100120361",
            "119850012345",
            None,
            "218912345678",
            "shop@example.ly",
            "5411",
            "TL-2020-001",
            "Tripoli",
            "0012345",
        ],
        [
            "Benghazi Pharmacy",
            "LY38021001000000123456789",
            "119900054321",
            "P1234567",
            None,
            None,
            "5912",
            None,
            "Benghazi",
            "0054321",
        ],
    ]


@pytest.fixture
def settings():
    """UploaderSettings with fake endpoints and fast HTTP settings."""
    return UploaderSettings(
        accounts_url="https://nad.example.ly/api/v1/accounts/enroll",
        merchants_url="https://nad.example.ly/api/v1/merchants/enroll",
        api_token="test-token",
        http_retries=1,
        http_backoff=0,
    )
