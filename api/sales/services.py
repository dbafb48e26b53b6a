"""
This module contains the business logic for sales-related operations.
"""
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytz

from api.common.config import REPORT_TIMEZONE
from api.common.errors import AuthorizationError, NotFoundError, ValidationError
from api.common.logger import get_logger
from api.common.schemas import parse_datetime_value
from api.common.utils import as_amount
from api.sales import repository
from api.sales.aggregator import summarize_sales
from api.sales.constants import NOT_SPECIFIED
from api.sales.filters import build_sale_filter
from api.sales.layout import ReportMetadata, layout_sales_report
from api.sales.renderer import render_report_pdf
from api.sales.schemas import (
    SaleCreate, SaleCreatedData, SaleCreateResponse, SaleMode, SaleRecord, SalesListResponse
)

logger = get_logger(__name__)

DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
FILENAME_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass(frozen=True)
class SalesReport:
    filename: str
    content: bytes


async def list_sales(
    seller_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    customer_name: Optional[str] = None,
    payment_method: Optional[str] = None
) -> SalesListResponse:
    """
    List the seller's sales matching the filters, newest first, with a summary.

    Raises:
        ValidationError: If a date bound is invalid
    """
    sale_filter = build_sale_filter(
        seller_id,
        start_date=start_date,
        end_date=end_date,
        customer_name=customer_name,
        payment_method=payment_method
    )
    records = await repository.find_sales(sale_filter)
    totals = summarize_sales(records)
    records = await repository.expand_products(records)

    return SalesListResponse(
        success=True,
        data=[SaleRecord.model_validate(record) for record in records],
        summary=totals.to_summary()
    )


def period_label(start_date: Optional[str], end_date: Optional[str]) -> Optional[str]:
    if not start_date and not end_date:
        return None
    return f"Período: {start_date or 'Inicio'} - {end_date or 'Actual'}"


def report_filename(seller_code: Optional[str], generated_at: datetime, tz) -> str:
    code = FILENAME_UNSAFE.sub("_", seller_code.strip()) if seller_code and seller_code.strip() else "sin_codigo"
    return f"reporte_ventas_{code}_{generated_at.astimezone(tz).date().isoformat()}.pdf"


async def build_sales_report(
    seller_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
    itemized: bool = True
) -> SalesReport:
    """
    Build the PDF report of the seller's sales in a date range.

    Args:
        seller_id: The authenticated seller
        start_date: Inclusive start date (YYYY, YYYY-MM or YYYY-MM-DD)
        end_date: Inclusive end date (YYYY, YYYY-MM or YYYY-MM-DD)
        now: Generation time; defaults to the current UTC time
        itemized: One table row per line item when True

    Returns:
        SalesReport with the download file name and the document bytes

    Raises:
        ValidationError: If a date bound is invalid
    """
    sale_filter = build_sale_filter(seller_id, start_date=start_date, end_date=end_date)
    records = await repository.find_sales(sale_filter)
    seller = await repository.get_seller(seller_id) or {}

    now = now or datetime.now(timezone.utc)
    metadata = ReportMetadata(
        seller_name=seller.get("name") or NOT_SPECIFIED,
        seller_code=seller.get("code") or NOT_SPECIFIED,
        generated_at=now,
        timezone_name=REPORT_TIMEZONE,
        period_label=period_label(start_date, end_date)
    )

    layout = layout_sales_report(records, metadata, summarize_sales(records), itemized=itemized)
    content = render_report_pdf(layout)
    logger.info("Report for seller %s: %d sales, %d pages", seller_id, len(records), len(layout.pages))

    return SalesReport(
        filename=report_filename(seller.get("code"), now, pytz.timezone(REPORT_TIMEZONE)),
        content=content
    )


def normalize_sale_date(value: Optional[str]) -> Optional[datetime]:
    """
    Convert the submitted sale date to a UTC timestamp.

    A date without a time is anchored at 12:00 UTC so that it shows as the
    same calendar day in any timezone within twelve hours of UTC.

    Raises:
        ValidationError: If the value is not a date or ISO timestamp
    """
    if not value:
        return None

    if DATE_ONLY_PATTERN.match(value):
        try:
            day = datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            day = None
        if day is not None:
            return day.replace(hour=12, tzinfo=timezone.utc)
    else:
        parsed = parse_datetime_value(value)
        if parsed is not None:
            return parsed

    raise ValidationError("Formato de fecha de venta inválido", field="saleDate")


def _normalize_name(name: Any) -> str:
    return name.strip().lower() if isinstance(name, str) else ""


def _check_required(payload: SaleCreate) -> None:
    name_field = "sellerName" if payload.mode == SaleMode.PROXY else "customerName"
    required = {
        name_field: getattr(payload, name_field),
        "products": payload.products,
        "quantity": payload.quantity,
        "totalPrice": payload.totalPrice,
    }
    missing = [field for field, value in required.items() if value is None]
    if missing:
        raise ValidationError("Faltan campos requeridos", details={"missing": missing})

    if payload.quantity <= 0:
        raise ValidationError("La cantidad debe ser un número entero positivo", field="quantity")
    if not math.isfinite(payload.totalPrice):
        raise ValidationError("El precio total debe ser un número válido", field="totalPrice")
    if payload.totalPrice < 0:
        raise ValidationError("El precio total no puede ser negativo", field="totalPrice")


async def resolve_catalog_items(products: str, quantity: int) -> List[Dict[str, Any]]:
    """
    Resolve comma-separated product names against the catalog.

    Raises:
        ValidationError: If no product name is given
        NotFoundError: Naming the first product that does not exist
    """
    names = [name.strip() for name in products.split(",") if name.strip()]
    if not names:
        raise ValidationError("Faltan campos requeridos", details={"missing": ["products"]})

    items = []
    for name in names:
        product = await repository.find_product_by_name(name)
        if product is None:
            raise NotFoundError(f"Producto no encontrado: {name}", field="products")
        items.append({
            "productId": product["id"],
            "name": product.get("name") or name,
            "quantity": quantity,
            "price": as_amount(product.get("price")),
        })
    return items


async def resolve_proxy_owner(caller_id: str, seller_name: str) -> Dict[str, Any]:
    """
    Find the seller a proxy sale is entered for: the caller or one of the
    sellers reporting to them, matched by trimmed, case-insensitive name.

    Raises:
        AuthorizationError: If the name matches neither
    """
    wanted = _normalize_name(seller_name)

    caller = await repository.get_seller(caller_id)
    if caller and _normalize_name(caller.get("name")) == wanted:
        return caller

    for subordinate in await repository.list_subordinates(caller_id):
        if _normalize_name(subordinate.get("name")) == wanted:
            return subordinate

    logger.warning("Seller %s tried to register a sale for %r", caller_id, seller_name)
    raise AuthorizationError(
        "No autorizado para registrar ventas a nombre de este vendedor",
        field="sellerName"
    )


async def resolve_referring_code(payload: SaleCreate) -> Optional[str]:
    if not payload.has_referring_seller:
        return None

    if payload.mode == SaleMode.CATALOG:
        return payload.sellerCode

    if not payload.sellerCode:
        raise ValidationError("Faltan campos requeridos", details={"missing": ["sellerCode"]})

    referrer = await repository.find_seller_by_code(payload.sellerCode)
    if referrer is None:
        raise NotFoundError(
            f"Código de vendedor no encontrado: {payload.sellerCode}",
            field="sellerCode",
            status_code=403
        )
    return referrer.get("code") or payload.sellerCode


async def record_sale(caller_id: str, payload: SaleCreate, now: Optional[datetime] = None) -> SaleCreateResponse:
    """
    Validate and store a new sale.

    Every lookup happens before the single write, so a failed request never
    leaves a partial record behind.

    Args:
        caller_id: The authenticated seller
        payload: The submitted sale
        now: Creation time; defaults to the current UTC time

    Raises:
        ValidationError: Missing fields, bad quantity, price or date
        NotFoundError: Unknown product (400) or referring seller code (403)
        AuthorizationError: Proxy sale for a seller outside the caller's team
    """
    _check_required(payload)
    now = now or datetime.now(timezone.utc)
    sale_date = normalize_sale_date(payload.saleDate)

    if payload.mode == SaleMode.PROXY:
        owner = await resolve_proxy_owner(caller_id, payload.sellerName)
        owner_id = owner.get("id") or caller_id
        items = [{
            "productId": None,
            "name": payload.products,
            "quantity": payload.quantity,
            "price": payload.totalPrice / payload.quantity,
        }]
        sale_date = sale_date or now
    else:
        owner_id = caller_id
        items = await resolve_catalog_items(payload.products, payload.quantity)

    seller_code = await resolve_referring_code(payload)

    total = float(payload.totalPrice)
    computed_total = sum(item["quantity"] * item["price"] for item in items)
    if abs(computed_total - total) > 0.005:
        logger.warning("Sale total %.2f differs from item sum %.2f; storing the submitted total",
                       total, computed_total)

    sale_data = {
        "sellerId": owner_id,
        "registeredBy": caller_id,
        "mode": payload.mode.value,
        "customerName": payload.customerName or NOT_SPECIFIED,
        "customerPhone": payload.customerPhone,
        "address": payload.delivery_address,
        "items": items,
        "total": total,
        "paymentMethod": payload.paymentMethod,
        "notes": payload.notes,
        "saleDate": sale_date,
        "sellerCode": seller_code,
        "createdAt": now,
    }

    sale_id = await repository.save_sale(sale_data)
    logger.info("Sale %s recorded for seller %s", sale_id, owner_id)

    return SaleCreateResponse.ok(SaleCreatedData(id=sale_id), message="Venta registrada correctamente")
