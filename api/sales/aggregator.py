"""
Summary statistics over a set of sales.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from api.common.utils import as_amount, as_quantity
from api.sales.schemas import SalesSummary


@dataclass(frozen=True)
class SalesTotals:
    """Revenue, sale count and units sold. Totals can be merged with ``+``."""
    total_revenue: float = 0.0
    sale_count: int = 0
    total_units: int = 0

    def __add__(self, other: "SalesTotals") -> "SalesTotals":
        return SalesTotals(
            total_revenue=self.total_revenue + other.total_revenue,
            sale_count=self.sale_count + other.sale_count,
            total_units=self.total_units + other.total_units
        )

    def to_summary(self) -> SalesSummary:
        return SalesSummary(
            totalVentas=self.total_revenue,
            cantidadVentas=self.sale_count,
            totalProductos=self.total_units
        )


def count_units(record: Mapping[str, Any]) -> int:
    """Units sold in one sale; a missing or malformed item list counts as 0."""
    items = record.get("items")
    if not isinstance(items, list):
        return 0
    return sum(as_quantity(item.get("quantity")) for item in items if isinstance(item, Mapping))


def summarize_sales(records: Iterable[Mapping[str, Any]]) -> SalesTotals:
    """
    Aggregate a filtered set of sales.

    Args:
        records: Raw sale documents

    Returns:
        SalesTotals with the revenue (missing totals count as 0), the number of
        sales and the units sold
    """
    totals = SalesTotals()
    for record in records:
        totals = totals + SalesTotals(
            total_revenue=as_amount(record.get("total")),
            sale_count=1,
            total_units=count_units(record)
        )
    return totals
