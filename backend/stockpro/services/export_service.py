# Overview: Renders finalized report statistics as PDF (reportlab) and Excel (openpyxl) files.

"""
Report exports.

The exporters are presentation only: they render Statistics exactly as the
aggregator finalized them (top products and categories already ordered) and
never re-sort or re-aggregate.

Any failure inside an encoder is raised as ExportError; no partial file is
ever returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..time_utils import format_br_date, utcnow
from .aggregation import Statistics


logger = logging.getLogger(__name__)

PDF_MIMETYPE = "application/pdf"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FOOTER_TEXT = "StockPro - Stock Management System"


class ExportError(Exception):
    """Raised when a report file cannot be produced."""


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mimetype: str
    content: bytes


def format_brl(cents: int) -> str:
    """12345 -> 'R$ 123,45'; thousands separated with '.'."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}R$ {whole:,}".replace(",", ".") + f",{frac:02d}"


def report_filename(generated_at: datetime, extension: str) -> str:
    return f"StockPro_Report_{generated_at.strftime('%d-%m-%Y')}.{extension}"


def _summary_rows(stats: Statistics) -> list[list[str]]:
    return [
        ["Total revenue", format_brl(stats.total_revenue_cents)],
        ["Total purchases", format_brl(stats.total_cost_of_goods_cents)],
        ["Net profit", format_brl(stats.net_profit_cents)],
        ["Sales", str(stats.sale_count)],
        ["Items sold", str(stats.units_sold)],
        ["Profit margin", f"{stats.profit_margin_pct:.1f}%"],
    ]


# -----------------------------
# PDF
# -----------------------------

_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2563eb")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("FONTSIZE", (0, 0), (-1, -1), 10),
    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
])


def _draw_footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawCentredString(A4[0] / 2.0, 20, f"{FOOTER_TEXT} | Page {doc.page}")
    canvas.restoreState()


def _build_pdf(stats: Statistics, generated_at: datetime) -> bytes:
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph("<b>StockPro Report</b>", styles["Title"]))
    story.append(Paragraph(f"Generated at: {generated_at.strftime('%d/%m/%Y %H:%M')}", styles["Normal"]))
    if stats.period_label:
        story.append(Paragraph(f"Period: {stats.period_label}", styles["Normal"]))
    story.append(Spacer(1, 15))

    story.append(Paragraph("<b>Summary</b>", styles["Heading3"]))
    summary = Table([["Metric", "Value"]] + _summary_rows(stats), colWidths=[220, 160])
    summary.setStyle(_TABLE_STYLE)
    story.append(summary)
    story.append(Spacer(1, 20))

    if stats.top_products:
        story.append(Paragraph("<b>Top products</b>", styles["Heading3"]))
        data = [["#", "Product", "Quantity", "Revenue"]]
        for rank, item in enumerate(stats.top_products, start=1):
            data.append([str(rank), item.name, str(item.quantity), format_brl(item.revenue_cents)])
        table = Table(data, colWidths=[30, 230, 70, 100])
        table.setStyle(_TABLE_STYLE)
        story.append(table)
        story.append(Spacer(1, 20))

    if stats.revenue_by_category:
        story.append(Paragraph("<b>Revenue by category</b>", styles["Heading3"]))
        data = [["Category", "Revenue"]]
        for category, revenue in stats.revenue_by_category.items():
            data.append([category or "-", format_brl(revenue)])
        table = Table(data, colWidths=[260, 120])
        table.setStyle(_TABLE_STYLE)
        story.append(table)

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title="StockPro Report")
    doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buffer.getvalue()


def export_pdf(stats: Statistics, generated_at: datetime | None = None) -> ExportFile:
    generated_at = generated_at or utcnow()
    try:
        content = _build_pdf(stats, generated_at)
    except Exception as exc:
        logger.exception("PDF export failed")
        raise ExportError("Could not generate PDF report") from exc
    return ExportFile(report_filename(generated_at, "pdf"), PDF_MIMETYPE, content)


# -----------------------------
# EXCEL
# -----------------------------

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="2563EB", end_color="2563EB", fill_type="solid")


def _add_sheet(wb: Workbook, title: str, header: list[str], rows: list[list]) -> None:
    ws = wb.create_sheet(title=title)
    ws.append(header)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
    for row in rows:
        ws.append(row)
    for idx, name in enumerate(header):
        letter = ws.cell(row=1, column=idx + 1).column_letter
        ws.column_dimensions[letter].width = max(12, len(name) + 4)


def _build_workbook(stats: Statistics, products, movements, generated_at: datetime) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)

    summary_rows = [["Generated at", generated_at.strftime("%d/%m/%Y %H:%M")]]
    if stats.period_label:
        summary_rows.append(["Period", stats.period_label])
    summary_rows.extend(_summary_rows(stats))
    _add_sheet(wb, "Summary", ["Metric", "Value"], summary_rows)

    if stats.top_products:
        _add_sheet(
            wb,
            "Top Products",
            ["Rank", "Code", "Product", "Quantity", "Revenue"],
            [
                [rank, item.code, item.name, item.quantity, format_brl(item.revenue_cents)]
                for rank, item in enumerate(stats.top_products, start=1)
            ],
        )

    if stats.revenue_by_category:
        _add_sheet(
            wb,
            "Categories",
            ["Category", "Revenue"],
            [[category, format_brl(revenue)] for category, revenue in stats.revenue_by_category.items()],
        )

    _add_sheet(
        wb,
        "Products",
        ["Code", "Name", "Category", "Quantity", "Cost price", "Sale price", "Active"],
        [
            [
                p.code, p.name, p.category, p.quantity_on_hand,
                format_brl(p.cost_price_cents), format_brl(p.sale_price_cents),
                "Yes" if p.is_active else "No",
            ]
            for p in products
        ],
    )

    _add_sheet(
        wb,
        "Movements",
        ["Date", "Direction", "Code", "Product", "Quantity", "Unit price", "Total", "Note"],
        [
            [
                format_br_date(m.occurred_at), m.direction, m.product_code, m.product_name,
                m.quantity, format_brl(m.unit_price_cents), format_brl(m.total_price_cents), m.note or "",
            ]
            for m in movements
        ],
    )

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_excel(
    stats: Statistics,
    products,
    movements,
    generated_at: datetime | None = None,
) -> ExportFile:
    generated_at = generated_at or utcnow()
    try:
        content = _build_workbook(stats, products, movements, generated_at)
    except Exception as exc:
        logger.exception("Excel export failed")
        raise ExportError("Could not generate Excel report") from exc
    return ExportFile(report_filename(generated_at, "xlsx"), XLSX_MIMETYPE, content)
