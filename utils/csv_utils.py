import csv
import io
import logging
import os
import re
from collections.abc import Iterable

from domain.errors import ValidationError
from domain.records import SpendRecord

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Date", "Purpose", "Amount", "Payment Method"]
NO_RECORDS_MESSAGE = "No records to export"

_UNSAFE_LABEL_CHARS = re.compile(r"[^\w.-]+")


def export_filename(period_label: str, ext: str) -> str:
    """`expenses-<label>.<ext>`, with the label made safe for a file name."""
    label = _UNSAFE_LABEL_CHARS.sub("-", str(period_label or "").strip()).strip("-")
    return f"expenses-{label or 'all'}.{ext.lstrip('.')}"


def require_records(spends: Iterable[SpendRecord]) -> list[SpendRecord]:
    records = list(spends)
    if not records:
        raise ValidationError(NO_RECORDS_MESSAGE)
    return records


def export_total(spends: Iterable[SpendRecord]) -> float:
    return round(sum(spend.amount for spend in spends), 2)


def spend_rows(spends: list[SpendRecord]) -> list[list[str]]:
    """Header, one row per spend, then the TOTAL row; all cells as text."""
    rows = [list(EXPORT_HEADERS)]
    for spend in spends:
        rows.append(
            [
                spend.date.isoformat(),
                spend.purpose,
                f"{spend.amount:.2f}",
                spend.method.label,
            ]
        )
    rows.append(["", "TOTAL", f"{export_total(spends):.2f}", ""])
    return rows


def spends_to_csv_text(spends: Iterable[SpendRecord]) -> str:
    records = require_records(spends)
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(spend_rows(records))
    return buf.getvalue()


def export_spends_to_csv(
    spends: Iterable[SpendRecord], period_label: str, directory: str
) -> str:
    """Write `expenses-<label>.csv` into `directory` and return its path."""
    text = spends_to_csv_text(spends)
    os.makedirs(directory, exist_ok=True)
    filepath = os.path.join(directory, export_filename(period_label, "csv"))
    with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
        csvfile.write(text)
    logger.info("CSV export written to %s", filepath)
    return filepath
