import os
import tempfile
from datetime import datetime

import pytest
from openpyxl import load_workbook

from domain.errors import ValidationError
from domain.records import SpendRecord
from utils.excel_utils import export_spends_to_xlsx


def _spends():
    return [
        SpendRecord(purpose="Groceries", amount=250, method="hand", date="2025-01-03"),
        SpendRecord(purpose="Cab", amount=120.5, method="gpay", date="2025-01-09"),
    ]


def test_xlsx_rows_match_csv_layout():
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = export_spends_to_xlsx(_spends(), "January 2025", tmp_dir)
        assert os.path.basename(path) == "expenses-January-2025.xlsx"

        wb = load_workbook(path, data_only=True)
        try:
            ws = wb["Expenses"]
            rows = [[cell.value for cell in row] for row in ws.iter_rows()]
            assert rows[0] == ["Date", "Purpose", "Amount", "Payment Method"]
            assert rows[1] == [datetime(2025, 1, 3), "Groceries", 250, "Hand"]
            assert rows[2][1:] == ["Cab", 120.5, "GPay"]
            assert rows[3][1:3] == ["TOTAL", 370.5]
            assert len(rows) == 4

            summary = {row[0].value: row[1].value for row in wb["Summary"].iter_rows()}
            assert summary["Period"] == "January 2025"
            assert summary["Total Expenses"] == 370.5
            assert summary["Hand"] == 250
            assert summary["GPay"] == 120.5
            assert summary["Records"] == 2
        finally:
            wb.close()


def test_empty_export_rejected():
    with tempfile.TemporaryDirectory() as tmp_dir:
        with pytest.raises(ValidationError, match="No records to export"):
            export_spends_to_xlsx([], "January 2025", tmp_dir)
