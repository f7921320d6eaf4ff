import logging
import os
from collections.abc import Iterable
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain.balance import totals_by_method
from domain.records import PaymentMethod, SpendRecord
from utils.csv_utils import export_filename, export_total, require_records

logger = logging.getLogger(__name__)

REPORT_TITLE = "ExpenseWise"
TABLE_HEADERS = ["Date", "Purpose", "Amount", "Method"]

BRAND = colors.Color(89 / 255, 68 / 255, 48 / 255)
STRIPE = colors.Color(245 / 255, 240 / 255, 235 / 255)

MARGIN = 40
FOOTER_Y = 28

_FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/DejaVuSans.ttf",
    "DejaVuSans.ttf",
]


def _register_unicode_font() -> str | None:
    """Register a TTF font with the rupee glyph and return its name.

    Returns None when no candidate is found; callers then use Helvetica
    and spell the currency as "Rs.".
    """
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    candidates = list(_FONT_CANDIDATES)
    if windir:
        candidates.insert(0, os.path.join(windir, "Fonts", "DejaVuSans.ttf"))

    for path in candidates:
        if not os.path.exists(path):
            continue
        name = os.path.splitext(os.path.basename(path))[0]
        if name in pdfmetrics.getRegisteredFontNames():
            return name
        try:
            pdfmetrics.registerFont(TTFont(name, path))
        except (TTFError, OSError):
            logger.debug("Failed to register font %s at %s", name, path, exc_info=True)
            continue
        logger.debug("Registered font %s from %s", name, path)
        return name

    logger.warning("No Unicode TTF font found; falling back to Helvetica")
    return None


def format_inr(value: float) -> str:
    """2-decimal amount with Indian digit grouping (12,34,567.50)."""
    whole, frac = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    sign = "-" if value < 0 else ""
    return f"{sign}{whole}.{frac}"


def _numbered_canvas(footer_prefix: str, font_name: str):
    """Canvas class that stamps `<prefix> | Page i of n` once n is known."""

    class NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            page_count = len(self._saved_page_states)
            for page_number, state in enumerate(self._saved_page_states, start=1):
                self.__dict__.update(state)
                self.setFont(font_name, 8)
                self.setFillColor(colors.grey)
                self.drawString(
                    MARGIN, FOOTER_Y, f"{footer_prefix} | Page {page_number} of {page_count}"
                )
                super().showPage()
            super().save()

    return NumberedCanvas


def export_spends_to_pdf(
    spends: Iterable[SpendRecord],
    period_label: str,
    directory: str,
    generated_at: datetime | None = None,
) -> str:
    """Write `expenses-<label>.pdf` into `directory` and return its path."""
    records = require_records(spends)
    generated_at = generated_at or datetime.now()

    unicode_font = _register_unicode_font()
    font_name = unicode_font or "Helvetica"
    bold_font = unicode_font or "Helvetica-Bold"
    currency = "₹" if unicode_font else "Rs. "

    def money(value: float) -> str:
        return f"{currency}{format_inr(value)}"

    total = export_total(records)
    by_method = totals_by_method(records)

    title_style = ParagraphStyle(
        "ReportTitle", fontName=bold_font, fontSize=20, leading=24, textColor=BRAND
    )
    subtitle_style = ParagraphStyle(
        "ReportSubtitle", fontName=font_name, fontSize=14, leading=18, textColor=colors.dimgrey
    )
    summary_style = ParagraphStyle(
        "ReportSummary", fontName=font_name, fontSize=11, leading=15, textColor=colors.black
    )

    elems = [
        Paragraph(REPORT_TITLE, title_style),
        Spacer(1, 4),
        Paragraph(f"Monthly Expense Report - {escape(period_label)}", subtitle_style),
        Spacer(1, 10),
        Paragraph(f"Total Expenses: {money(total)}", summary_style),
        Paragraph(
            f"Hand: {money(by_method[PaymentMethod.HAND])}  |  "
            f"GPay: {money(by_method[PaymentMethod.GPAY])}",
            summary_style,
        ),
        Spacer(1, 12),
    ]

    cell_style = ParagraphStyle("Cell", fontName=font_name, fontSize=10, leading=12)
    data = [list(TABLE_HEADERS)]
    for spend in records:
        data.append(
            [
                spend.date.strftime("%b %d, %Y"),
                Paragraph(escape(spend.purpose), cell_style),
                money(spend.amount),
                spend.method.label,
            ]
        )
    data.append(["", "Total", money(total), ""])

    available_width = A4[0] - 2 * MARGIN
    col_widths = [
        available_width * 0.20,
        available_width * 0.45,
        available_width * 0.20,
        available_width * 0.15,
    ]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    style = TableStyle(
        [
            ("FONT", (0, 0), (-1, -1), font_name),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("BACKGROUND", (0, 0), (-1, 0), BRAND),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONT", (0, 0), (-1, 0), bold_font),
            ("BACKGROUND", (0, -1), (-1, -1), BRAND),
            ("TEXTCOLOR", (0, -1), (-1, -1), colors.white),
            ("FONT", (0, -1), (-1, -1), bold_font),
            ("ALIGN", (2, 0), (2, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ]
    )
    for row in range(2, len(data) - 1, 2):
        style.add("BACKGROUND", (0, row), (-1, row), STRIPE)
    table.setStyle(style)
    elems.append(table)

    os.makedirs(directory, exist_ok=True)
    filepath = os.path.join(directory, export_filename(period_label, "pdf"))
    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN + 10,
        title=f"{REPORT_TITLE} - {period_label}",
    )
    footer_prefix = f"Generated on {generated_at.strftime('%b %d, %Y %H:%M')}"
    doc.build(elems, canvasmaker=_numbered_canvas(footer_prefix, font_name))
    logger.info("PDF export written to %s rows=%s", filepath, len(records))
    return filepath
