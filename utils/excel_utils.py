import logging
import os
from collections.abc import Iterable

from openpyxl import Workbook
from openpyxl.styles import Font

from domain.balance import totals_by_method
from domain.records import PaymentMethod, SpendRecord
from utils.csv_utils import export_filename, export_total, require_records

logger = logging.getLogger(__name__)


def export_spends_to_xlsx(
    spends: Iterable[SpendRecord], period_label: str, directory: str
) -> str:
    """Write `expenses-<label>.xlsx` with an Expenses sheet and a Summary sheet."""
    records = require_records(spends)
    total = export_total(records)

    wb = Workbook()
    ws = wb.active
    ws.title = "Expenses"
    ws.append(["Date", "Purpose", "Amount", "Payment Method"])
    for spend in records:
        ws.append([spend.date, spend.purpose, spend.amount, spend.method.label])
    ws.append(["", "TOTAL", total, ""])

    bold = Font(bold=True)
    for cell in ws[1]:
        cell.font = bold
    for cell in ws[ws.max_row]:
        cell.font = bold
    for row in ws.iter_rows(min_row=2, min_col=1, max_col=1):
        row[0].number_format = "yyyy-mm-dd"
    for row in ws.iter_rows(min_row=2, min_col=3, max_col=3):
        row[0].number_format = "0.00"
    ws.column_dimensions["A"].width = 12
    ws.column_dimensions["B"].width = 40
    ws.column_dimensions["C"].width = 12
    ws.column_dimensions["D"].width = 16

    by_method = totals_by_method(records)
    summary_ws = wb.create_sheet("Summary")
    summary_ws.append(["Period", period_label])
    summary_ws.append(["Total Expenses", total])
    summary_ws.append([PaymentMethod.HAND.label, by_method[PaymentMethod.HAND]])
    summary_ws.append([PaymentMethod.GPAY.label, by_method[PaymentMethod.GPAY]])
    summary_ws.append(["Records", len(records)])

    os.makedirs(directory, exist_ok=True)
    filepath = os.path.join(directory, export_filename(period_label, "xlsx"))
    try:
        wb.save(filepath)
    finally:
        wb.close()
    logger.info("XLSX export written to %s rows=%s", filepath, len(records))
    return filepath
