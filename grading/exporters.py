import csv
import io
from typing import List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from grading.config import RESULT_COLUMNS
from grading.schemas import ResultRow

CSV_MEDIA_TYPE = "text/csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

SHEET_TITLE = "Results"
PDF_TITLE = "Exam Results"
PDF_MARGIN = 30
PDF_LEADING = 16
PDF_FONT = "Helvetica"
PDF_FONT_SIZE = 12
PDF_TEXT_WIDTH = A4[0] - 2 * PDF_MARGIN


def _values(row: ResultRow) -> List:
    data = row.as_export_dict()
    return [data[column] for column in RESULT_COLUMNS]


def render_csv(rows: Sequence[ResultRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(RESULT_COLUMNS)
    for row in rows:
        writer.writerow(["" if v is None else v for v in _values(row)])
    return buffer.getvalue()


def render_xlsx(rows: Sequence[ResultRow]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(RESULT_COLUMNS)
    header_font = Font(bold=True)
    for col in range(1, len(RESULT_COLUMNS) + 1):
        ws.cell(row=1, column=col).font = header_font
        ws.column_dimensions[get_column_letter(col)].width = 20
    ws.freeze_panes = "A2"

    for row in rows:
        ws.append(_values(row))

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def format_pdf_line(row: ResultRow) -> str:
    return (
        f"{row.name or ''} | {row.email} | class: {row.class_name or '-'} | "
        f"score: {row.correct}/{row.total} ({row.percent}%)"
    )


def _hard_split(word: str, max_width: float) -> List[str]:
    pieces, current = [], ""
    for ch in word:
        if current and stringWidth(current + ch, PDF_FONT, PDF_FONT_SIZE) > max_width:
            pieces.append(current)
            current = ""
        current += ch
    pieces.append(current)
    return pieces


def wrap_pdf_line(row: ResultRow, max_width: float = PDF_TEXT_WIDTH) -> List[str]:
    """Split a result line on spaces so no piece runs past the right margin."""
    lines = []
    for line in simpleSplit(format_pdf_line(row), PDF_FONT, PDF_FONT_SIZE, max_width):
        if stringWidth(line, PDF_FONT, PDF_FONT_SIZE) > max_width:
            # a single token wider than the page, e.g. a very long email
            lines.extend(_hard_split(line, max_width))
        else:
            lines.append(line)
    return lines


def render_pdf(rows: Sequence[ResultRow]) -> bytes:
    buffer = io.BytesIO()
    width, height = A4
    c = canvas.Canvas(buffer, pagesize=A4, pageCompression=0)
    c.setTitle(PDF_TITLE)

    y = height - PDF_MARGIN - 16
    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(width / 2, y, PDF_TITLE)
    y -= PDF_LEADING * 2

    c.setFont(PDF_FONT, PDF_FONT_SIZE)
    for row in rows:
        for line in wrap_pdf_line(row):
            if y < PDF_MARGIN:
                c.showPage()
                c.setFont(PDF_FONT, PDF_FONT_SIZE)
                y = height - PDF_MARGIN - PDF_FONT_SIZE
            c.drawString(PDF_MARGIN, y, line)
            y -= PDF_LEADING

    c.showPage()
    c.save()
    return buffer.getvalue()
