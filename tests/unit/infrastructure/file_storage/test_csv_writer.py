"""
Tests for CsvOutcomeWriter.

Covers header initialization, quoting, concurrent appends and write errors.
"""

import csv
import threading
from unittest.mock import patch

from nad_uploader.infrastructure.file_storage.csv_writer import (
    FAILED_HEADER,
    SUCCESS_HEADER,
    CsvOutcomeWriter,
)


def read_lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_initialize_writes_quoted_header(tmp_path):
    writer = CsvOutcomeWriter(tmp_path / "accounts-output.csv", SUCCESS_HEADER)

    writer.initialize()

    assert read_lines(writer.path) == ['"IBAN","Alias/Response"']


def test_initialize_creates_parent_directory(tmp_path):
    writer = CsvOutcomeWriter(tmp_path / "job" / "output" / "failed.csv", FAILED_HEADER)

    writer.initialize()

    assert writer.path.exists()


def test_initialize_truncates_existing_report(tmp_path):
    path = tmp_path / "failed.csv"
    path.write_text("old content\n")

    CsvOutcomeWriter(path, FAILED_HEADER).initialize()

    assert read_lines(path) == ['"IBAN","Error"']


def test_append_quotes_values_and_blanks_none(tmp_path):
    writer = CsvOutcomeWriter(tmp_path / "failed.csv", FAILED_HEADER)
    writer.initialize()

    assert writer.append(["LY83", '{"error": "IBAN, already enrolled"}'])
    assert writer.append(["LY38", None])

    with writer.path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert rows == [
        ["IBAN", "Error"],
        ["LY83", '{"error": "IBAN, already enrolled"}'],
        ["LY38", ""],
    ]
    assert writer.records_written == 2


def test_concurrent_appends_keep_whole_lines(tmp_path):
    """
    Test that appends from many threads never interleave.

    Verifies:
    - Every record ends up as one complete CSV row
    - records_written matches the number of appends
    """
    writer = CsvOutcomeWriter(tmp_path / "accounts-output.csv", SUCCESS_HEADER)
    writer.initialize()

    def worker(offset):
        for i in range(50):
            writer.append([f"LY{offset:02d}{i:04d}", f"alias-{offset}-{i}"])

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    with writer.path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert len(rows) == 1 + 8 * 50
    assert all(len(row) == 2 for row in rows)
    assert writer.records_written == 400


def test_append_failure_returns_false(tmp_path, caplog):
    writer = CsvOutcomeWriter(tmp_path / "failed.csv", FAILED_HEADER)

    with patch("pathlib.Path.open", side_effect=PermissionError("read-only")):
        assert writer.append(["LY83", "error"]) is False

    assert writer.records_written == 0
    assert "Error writing to failed.csv" in caplog.text


def test_initialize_failure_is_logged(tmp_path, caplog):
    writer = CsvOutcomeWriter(tmp_path / "failed.csv", FAILED_HEADER)

    with patch("pathlib.Path.open", side_effect=PermissionError("read-only")):
        writer.initialize()

    assert "Error initializing output file" in caplog.text
