"""
Translation of request filter parameters into a sale predicate.
"""
import calendar
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, Mapping, Optional

from api.common.errors import ValidationError
from api.common.schemas import parse_datetime_value

BOUND_LABELS = {
    "startDate": "inicio",
    "endDate": "fin",
}


def parse_filter_date(date_str: Optional[str], is_end_date: bool = False,
                      field: str = "startDate") -> Optional[datetime]:
    """
    Parse a filter bound and return it as a UTC datetime:
    - "2025" -> January 1, 2025 00:00:00 (start) or December 31, 2025 23:59:59.999999 (end)
    - "2025-07" -> July 1, 2025 00:00:00 (start) or July 31, 2025 23:59:59.999999 (end)
    - "2025-07-16" -> July 16, 2025 00:00:00 (start) or July 16, 2025 23:59:59.999999 (end)

    Args:
        date_str: The date string to parse
        is_end_date: If True, returns end of period; if False, returns start of period
        field: Name of the request parameter, reported when parsing fails

    Raises:
        ValidationError: If the value is not a valid calendar date
    """
    if date_str is None:
        return None

    date_str = date_str.strip()
    if not date_str:
        return None

    try:
        # Year only (e.g., "2025")
        if len(date_str) == 4 and date_str.isdigit():
            year = int(date_str)
            day = datetime(year, 12, 31) if is_end_date else datetime(year, 1, 1)

        # Year-Month (e.g., "2025-07")
        elif len(date_str) == 7 and date_str.count('-') == 1:
            year, month = map(int, date_str.split('-'))
            if is_end_date:
                last_day = calendar.monthrange(year, month)[1]
                day = datetime(year, month, last_day)
            else:
                day = datetime(year, month, 1)

        # Full date (e.g., "2025-07-16")
        elif len(date_str) == 10 and date_str.count('-') == 2:
            day = datetime.strptime(date_str, "%Y-%m-%d")

        else:
            raise ValueError(date_str)
    except ValueError:
        raise ValidationError(
            f"Formato de fecha de {BOUND_LABELS.get(field, field)} inválido (Use AAAA-MM-DD)",
            field=field
        )

    day_time = time.max if is_end_date else time.min
    return datetime.combine(day.date(), day_time, tzinfo=timezone.utc)


def effective_sale_date(record: Mapping[str, Any]) -> Optional[datetime]:
    """Sale date of a stored record, falling back to its creation timestamp."""
    return parse_datetime_value(record.get("saleDate")) or parse_datetime_value(record.get("createdAt"))


@dataclass(frozen=True)
class SaleFilter:
    """
    Predicate over stored sales.

    The seller scope is applied by the store as a query constraint; the
    remaining constraints are evaluated in memory by ``matches``.
    """
    seller_id: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None

    @property
    def has_date_range(self) -> bool:
        return self.start is not None or self.end is not None

    def matches(self, record: Mapping[str, Any]) -> bool:
        if record.get("sellerId") != self.seller_id:
            return False

        if self.has_date_range:
            sale_date = effective_sale_date(record)
            if sale_date is None:
                return False
            if self.start and sale_date < self.start:
                return False
            if self.end and sale_date > self.end:
                return False

        if self.customer_name:
            customer_name = record.get("customerName") or ""
            if not isinstance(customer_name, str) or self.customer_name.lower() not in customer_name.lower():
                return False

        if self.payment_method and record.get("paymentMethod") != self.payment_method:
            return False

        return True


def build_sale_filter(
    seller_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    customer_name: Optional[str] = None,
    payment_method: Optional[str] = None
) -> SaleFilter:
    """
    Build the predicate for a listing or report request.

    Args:
        seller_id: The authenticated seller; only their sales are visible
        start_date: Inclusive start bound (from 00:00:00 of that day)
        end_date: Inclusive end bound (through 23:59:59.999 of that day)
        customer_name: Case-insensitive substring of the customer name
        payment_method: Exact payment method

    Raises:
        ValidationError: If either bound is not a valid date
    """
    if not seller_id:
        raise ValidationError("Vendedor no especificado")

    return SaleFilter(
        seller_id=seller_id,
        start=parse_filter_date(start_date, field="startDate"),
        end=parse_filter_date(end_date, is_end_date=True, field="endDate"),
        customer_name=customer_name.strip() if customer_name and customer_name.strip() else None,
        payment_method=payment_method.strip() if payment_method and payment_method.strip() else None
    )
