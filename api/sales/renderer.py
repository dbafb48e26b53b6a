"""
PDF rendering of a laid-out sales report.
"""
import io
from typing import Sequence

from reportlab.lib.colors import HexColor, black
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from api.sales.layout import ColumnSpec, ReportLayout, TableBand, TextLine

CELL_PADDING = 2
SHADE_COLOR = HexColor("#f2f2f2")
NOTICE_COLOR = HexColor("#7f8c8d")
FOOTER_COLOR = HexColor("#95a5a6")

# style -> (font, size, color)
TEXT_STYLES = {
    "title": ("Helvetica-Bold", 20, black),
    "meta": ("Helvetica", 12, black),
    "notice": ("Helvetica", 14, NOTICE_COLOR),
    "summary_title": ("Helvetica-Bold", 11, black),
    "summary": ("Helvetica", 10, black),
    "footer": ("Helvetica", 10, FOOTER_COLOR),
}
HEADER_FONT = ("Helvetica-Bold", 10)
ROW_FONT = ("Helvetica", 9)


def fit_text(text: str, width: float, font: str, size: float) -> str:
    """Truncate text with an ellipsis so that it fits the given width."""
    if stringWidth(text, font, size) <= width:
        return text
    ellipsis = "..."
    while text and stringWidth(text + ellipsis, font, size) > width:
        text = text[:-1]
    return text + ellipsis if text else ""


class ReportRenderer:
    """Draws a ReportLayout onto a reportlab canvas."""

    def __init__(self, layout: ReportLayout, title: str = "Reporte de ventas"):
        self.layout = layout
        self.geometry = layout.geometry
        self.title = title

    def _baseline(self, top: float, height: float, size: float) -> float:
        # Offsets are measured from the top of the page; PDF origin is bottom-left.
        return self.geometry.height - top - height + (height - size) / 2 + 1

    def _draw_line(self, pdf: canvas.Canvas, line: TextLine) -> None:
        font, size, color = TEXT_STYLES.get(line.style, TEXT_STYLES["meta"])
        pdf.setFont(font, size)
        pdf.setFillColor(color)
        baseline = self._baseline(line.y, line.height, size)

        if line.align == "center":
            pdf.drawCentredString(self.geometry.width / 2, baseline, line.text)
        else:
            x = line.x if line.x is not None else self.geometry.margin_left
            pdf.drawString(x, baseline, line.text)

    def _draw_band(self, pdf: canvas.Canvas, band: TableBand, columns: Sequence[ColumnSpec]) -> None:
        left = self.geometry.margin_left
        bottom = self.geometry.height - band.y - band.height

        if band.shaded:
            pdf.setFillColor(SHADE_COLOR)
            pdf.rect(left, bottom, self.geometry.table_width, band.height, stroke=0, fill=1)

        font, size = HEADER_FONT if band.header else ROW_FONT
        pdf.setFont(font, size)
        pdf.setFillColor(black)
        baseline = self._baseline(band.y, band.height, size)

        x = left
        for column, text in zip(columns, band.cells):
            text = fit_text(text, column.width - 2 * CELL_PADDING, font, size)
            if column.align == "right":
                pdf.drawRightString(x + column.width - CELL_PADDING, baseline, text)
            elif column.align == "center":
                pdf.drawCentredString(x + column.width / 2, baseline, text)
            else:
                pdf.drawString(x + CELL_PADDING, baseline, text)
            x += column.width

        if band.header:
            pdf.setStrokeColor(black)
            pdf.line(left, bottom, left + self.geometry.table_width, bottom)

    def render(self) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(self.geometry.width, self.geometry.height))
        pdf.setTitle(self.title)

        for index, page in enumerate(self.layout.pages):
            if index:
                pdf.showPage()
            for element in page.elements:
                if isinstance(element, TableBand):
                    self._draw_band(pdf, element, self.layout.columns)
                else:
                    self._draw_line(pdf, element)

        pdf.save()
        return buffer.getvalue()


def render_report_pdf(layout: ReportLayout, title: str = "Reporte de ventas") -> bytes:
    """Render the layout and return the PDF document as bytes."""
    return ReportRenderer(layout, title=title).render()

