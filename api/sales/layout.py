"""
Page layout of the sales report.

The layout is computed as plain data (pages holding positioned text lines and
table bands) so it can be inspected without a PDF backend. Vertical offsets
are measured from the top of the page; the renderer converts them to PDF
coordinates.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

import pytz
from reportlab.lib.pagesizes import A4

from api.common.utils import as_amount, as_quantity, format_currency
from api.sales.aggregator import SalesTotals, count_units
from api.sales.constants import NOT_AVAILABLE
from api.sales.filters import effective_sale_date

REPORT_TITLE = "REPORTE DE VENTAS"
EMPTY_NOTICE = "No se encontraron ventas para el período seleccionado"
SUMMARY_TITLE = "RESUMEN FINAL"

TITLE_HEIGHT = 30
META_LINE_HEIGHT = 16
META_GAP = 14
SUMMARY_GAP = 20
SUMMARY_LINE_HEIGHT = 15
SUMMARY_WIDTH = 155
FOOTER_GAP = 30
FOOTER_HEIGHT = 14
NOTICE_HEIGHT = 20


@dataclass(frozen=True)
class PageGeometry:
    """A4 page in points. Rows never extend below ``printable_bottom``."""
    width: float = A4[0]
    height: float = A4[1]
    margin_left: float = 40
    margin_top: float = 40
    margin_bottom: float = 90
    row_height: float = 20
    header_height: float = 20

    @property
    def table_width(self) -> float:
        return self.width - 2 * self.margin_left

    @property
    def printable_bottom(self) -> float:
        return self.height - self.margin_bottom


@dataclass(frozen=True)
class ReportRow:
    """One table row: a line item together with the fields of its sale."""
    sale_date: str
    customer: str
    product: str
    quantity: int
    unit_price: float
    subtotal: float
    payment_method: str


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    width: float
    extract: Callable[[ReportRow], str]
    align: str = "left"


ITEMIZED_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Fecha", 60, lambda row: row.sale_date),
    ColumnSpec("Cliente", 95, lambda row: row.customer),
    ColumnSpec("Producto", 125, lambda row: row.product),
    ColumnSpec("Cant.", 40, lambda row: str(row.quantity), "right"),
    ColumnSpec("P. Unit.", 70, lambda row: format_currency(row.unit_price), "right"),
    ColumnSpec("Subtotal", 70, lambda row: format_currency(row.subtotal), "right"),
    ColumnSpec("Pago", 55, lambda row: row.payment_method),
)

SALE_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Fecha", 70, lambda row: row.sale_date),
    ColumnSpec("Cliente", 100, lambda row: row.customer),
    ColumnSpec("Productos", 150, lambda row: row.product),
    ColumnSpec("Cant.", 60, lambda row: str(row.quantity), "right"),
    ColumnSpec("Total", 80, lambda row: format_currency(row.subtotal), "right"),
    ColumnSpec("Pago", 55, lambda row: row.payment_method),
)


@dataclass(frozen=True)
class TextLine:
    y: float
    height: float
    text: str
    style: str
    align: str = "left"
    x: Optional[float] = None


@dataclass(frozen=True)
class TableBand:
    y: float
    height: float
    cells: Tuple[str, ...]
    header: bool = False
    shaded: bool = False
    row_number: Optional[int] = None


@dataclass
class LayoutPage:
    number: int
    elements: List[Any] = field(default_factory=list)

    @property
    def rows(self) -> List[TableBand]:
        return [element for element in self.elements if isinstance(element, TableBand) and not element.header]

    @property
    def header_bands(self) -> List[TableBand]:
        return [element for element in self.elements if isinstance(element, TableBand) and element.header]

    @property
    def lines(self) -> List[TextLine]:
        return [element for element in self.elements if isinstance(element, TextLine)]


@dataclass(frozen=True)
class ReportMetadata:
    seller_name: str
    seller_code: str
    generated_at: datetime
    timezone_name: str = "America/Bogota"
    period_label: Optional[str] = None

    @property
    def tz(self):
        return pytz.timezone(self.timezone_name)


@dataclass
class ReportLayout:
    geometry: PageGeometry
    columns: Sequence[ColumnSpec]
    pages: List[LayoutPage]

    @property
    def rows(self) -> List[TableBand]:
        return [row for page in self.pages for row in page.rows]

    @property
    def lines(self) -> List[TextLine]:
        return [line for page in self.pages for line in page.lines]


@dataclass
class LayoutCursor:
    """
    Running position of the layout: current page, vertical offset and the
    number of table rows emitted so far across all pages.
    """
    geometry: PageGeometry
    pages: List[LayoutPage] = field(default_factory=list)
    y: float = 0
    row_counter: int = 0

    @classmethod
    def start(cls, geometry: PageGeometry) -> "LayoutCursor":
        cursor = cls(geometry=geometry)
        cursor.new_page()
        return cursor

    @property
    def page(self) -> LayoutPage:
        return self.pages[-1]

    def fits(self, height: float) -> bool:
        return self.y + height <= self.geometry.printable_bottom

    def new_page(self) -> None:
        self.pages.append(LayoutPage(number=len(self.pages) + 1))
        self.y = self.geometry.margin_top

    def place(self, element: Any) -> None:
        self.page.elements.append(element)
        self.y += element.height


def format_report_date(value: Optional[datetime], tz) -> str:
    if value is None:
        return NOT_AVAILABLE
    return value.astimezone(tz).strftime("%d/%m/%Y")


def format_report_time(value: datetime) -> str:
    """12-hour clock in the es-CO style, e.g. "03:45 p. m."."""
    suffix = "a. m." if value.hour < 12 else "p. m."
    return f"{value:%I:%M} {suffix}"


def _sale_fields(sale: Mapping[str, Any], tz, now: datetime) -> Tuple[str, str, str]:
    sale_date = effective_sale_date(sale) or now
    customer = sale.get("customerName") or NOT_AVAILABLE
    payment_method = sale.get("paymentMethod") or NOT_AVAILABLE
    return format_report_date(sale_date, tz), str(customer), str(payment_method)


def itemized_rows(sales: Iterable[Mapping[str, Any]], tz, now: datetime) -> List[ReportRow]:
    """
    One row per line item. A sale without a usable item list still yields one
    row so the sale remains visible in the report.
    """
    rows = []
    for sale in sales:
        sale_date, customer, payment_method = _sale_fields(sale, tz, now)
        items = sale.get("items")
        items = [item for item in items if isinstance(item, Mapping)] if isinstance(items, list) else []

        if not items:
            rows.append(ReportRow(sale_date, customer, NOT_AVAILABLE, 0, 0.0,
                                  as_amount(sale.get("total")), payment_method))
            continue

        for item in items:
            quantity = as_quantity(item.get("quantity"))
            unit_price = as_amount(item.get("price"))
            rows.append(ReportRow(
                sale_date=sale_date,
                customer=customer,
                product=str(item.get("name") or NOT_AVAILABLE),
                quantity=quantity,
                unit_price=unit_price,
                subtotal=quantity * unit_price,
                payment_method=payment_method
            ))
    return rows


def sale_rows(sales: Iterable[Mapping[str, Any]], tz, now: datetime) -> List[ReportRow]:
    """One row per sale with the product names joined."""
    rows = []
    for sale in sales:
        sale_date, customer, payment_method = _sale_fields(sale, tz, now)
        items = sale.get("items") if isinstance(sale.get("items"), list) else []
        names = [str(item.get("name")) for item in items if isinstance(item, Mapping) and item.get("name")]
        rows.append(ReportRow(
            sale_date=sale_date,
            customer=customer,
            product=", ".join(names) or NOT_AVAILABLE,
            quantity=count_units(sale),
            unit_price=0.0,
            subtotal=as_amount(sale.get("total")),
            payment_method=payment_method
        ))
    return rows


def layout_metadata(cursor: LayoutCursor, metadata: ReportMetadata) -> None:
    cursor.place(TextLine(cursor.y, TITLE_HEIGHT, REPORT_TITLE, "title", align="center"))
    cursor.place(TextLine(cursor.y, META_LINE_HEIGHT, f"Vendedor: {metadata.seller_name}", "meta"))
    cursor.place(TextLine(cursor.y, META_LINE_HEIGHT, f"Código: {metadata.seller_code}", "meta"))
    if metadata.period_label:
        cursor.place(TextLine(cursor.y, META_LINE_HEIGHT, metadata.period_label, "meta"))
    cursor.y += META_GAP


def layout_header_band(cursor: LayoutCursor, columns: Sequence[ColumnSpec]) -> None:
    labels = tuple(column.label for column in columns)
    cursor.place(TableBand(cursor.y, cursor.geometry.header_height, labels, header=True))


def layout_table(cursor: LayoutCursor, columns: Sequence[ColumnSpec], rows: Iterable[ReportRow]) -> None:
    """
    Lay out the table rows, breaking pages when a row would cross the
    printable bottom and repeating the header band on every new page.
    Shading alternates on the global row counter, so it continues
    unchanged across page breaks.
    """
    row_height = cursor.geometry.row_height
    layout_header_band(cursor, columns)

    for row in rows:
        if not cursor.fits(row_height):
            cursor.new_page()
            layout_header_band(cursor, columns)

        cells = tuple(column.extract(row) for column in columns)
        cursor.place(TableBand(
            cursor.y, row_height, cells,
            shaded=cursor.row_counter % 2 == 0,
            row_number=cursor.row_counter
        ))
        cursor.row_counter += 1


def layout_summary(cursor: LayoutCursor, totals: SalesTotals) -> None:
    lines = [
        (SUMMARY_TITLE, "summary_title"),
        (f"Total ventas: {format_currency(totals.total_revenue)}", "summary"),
        (f"Ventas realizadas: {totals.sale_count}", "summary"),
        (f"Productos vendidos: {totals.total_units}", "summary"),
    ]
    block_height = SUMMARY_GAP + SUMMARY_LINE_HEIGHT * len(lines)
    if not cursor.fits(block_height):
        cursor.new_page()
    else:
        cursor.y += SUMMARY_GAP

    x = cursor.geometry.margin_left + cursor.geometry.table_width - SUMMARY_WIDTH
    for text, style in lines:
        cursor.place(TextLine(cursor.y, SUMMARY_LINE_HEIGHT, text, style, x=x))


def layout_footer(cursor: LayoutCursor, metadata: ReportMetadata) -> None:
    local_time = metadata.generated_at.astimezone(metadata.tz)
    text = f"Reporte generado el {local_time:%d/%m/%Y} a las {format_report_time(local_time)}"
    if not cursor.fits(FOOTER_GAP + FOOTER_HEIGHT):
        cursor.new_page()
    else:
        cursor.y += FOOTER_GAP
    cursor.place(TextLine(cursor.y, FOOTER_HEIGHT, text, "footer", align="center"))


def layout_sales_report(
    sales: Sequence[Mapping[str, Any]],
    metadata: ReportMetadata,
    totals: SalesTotals,
    geometry: Optional[PageGeometry] = None,
    itemized: bool = True
) -> ReportLayout:
    """
    Lay out the full report.

    Args:
        sales: Sales sorted by sale date, newest first
        metadata: Seller details, period label and generation time
        totals: Aggregated figures for the summary block
        geometry: Page geometry; A4 with the default margins if omitted
        itemized: One row per line item when True, one row per sale otherwise

    Returns:
        ReportLayout with at least one page. An empty sale list produces only
        the metadata and a notice.
    """
    geometry = geometry or PageGeometry()
    columns = ITEMIZED_COLUMNS if itemized else SALE_COLUMNS
    cursor = LayoutCursor.start(geometry)

    layout_metadata(cursor, metadata)

    if not sales:
        cursor.place(TextLine(cursor.y, NOTICE_HEIGHT, EMPTY_NOTICE, "notice", align="center"))
        return ReportLayout(geometry=geometry, columns=columns, pages=cursor.pages)

    build_rows = itemized_rows if itemized else sale_rows
    rows = build_rows(sales, metadata.tz, metadata.generated_at)

    layout_table(cursor, columns, rows)
    layout_summary(cursor, totals)
    layout_footer(cursor, metadata)

    return ReportLayout(geometry=geometry, columns=columns, pages=cursor.pages)
