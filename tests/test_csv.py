import csv
import os
import tempfile

import pytest

from domain.errors import ValidationError
from domain.records import SpendRecord
from utils.csv_utils import export_filename, export_spends_to_csv, spends_to_csv_text


def _spends():
    return [
        SpendRecord(purpose="Groceries", amount=250, method="hand", date="2025-01-03"),
        SpendRecord(purpose='Cab, "airport"', amount=120.5, method="gpay", date="2025-01-09"),
    ]


def test_csv_text_layout():
    lines = spends_to_csv_text(_spends()).splitlines()
    assert lines[0] == '"Date","Purpose","Amount","Payment Method"'
    assert lines[1] == '"2025-01-03","Groceries","250.00","Hand"'
    assert lines[2] == '"2025-01-09","Cab, ""airport""","120.50","GPay"'
    assert lines[3] == '"","TOTAL","370.50",""'
    assert len(lines) == 4


def test_csv_text_parses_back():
    rows = list(csv.reader(spends_to_csv_text(_spends()).splitlines()))
    assert rows[2] == ["2025-01-09", 'Cab, "airport"', "120.50", "GPay"]
    assert rows[-1] == ["", "TOTAL", "370.50", ""]


def test_empty_export_rejected():
    with pytest.raises(ValidationError, match="No records to export"):
        spends_to_csv_text([])


def test_export_writes_named_file():
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = export_spends_to_csv(_spends(), "January 2025", os.path.join(tmp_dir, "out"))

        assert os.path.basename(path) == "expenses-January-2025.csv"
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["Date", "Purpose", "Amount", "Payment Method"]
        assert rows[-1] == ["", "TOTAL", "370.50", ""]


def test_empty_export_writes_nothing():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with pytest.raises(ValidationError):
            export_spends_to_csv([], "January 2025", tmp_dir)
        assert os.listdir(tmp_dir) == []


@pytest.mark.parametrize(
    "label, ext, expected",
    [
        ("January 2025", "csv", "expenses-January-2025.csv"),
        ("2025-01", ".pdf", "expenses-2025-01.pdf"),
        ("../etc/passwd", "csv", "expenses-..-etc-passwd.csv"),
        ("", "xlsx", "expenses-all.xlsx"),
    ],
)
def test_export_filename(label, ext, expected):
    assert export_filename(label, ext) == expected
