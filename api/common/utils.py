"""
Common utility functions shared across the application.
"""
import math
from decimal import Decimal, InvalidOperation
from typing import Any


def as_amount(value: Any) -> float:
    """
    Convert a stored currency amount to float.

    Missing or malformed values count as 0 so that a single bad document
    cannot break a listing or a report.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        amount = float(value)
        return amount if math.isfinite(amount) else 0.0
    if isinstance(value, str):
        try:
            amount = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return 0.0
        return amount if math.isfinite(amount) else 0.0
    return 0.0


def as_quantity(value: Any) -> int:
    """Convert a stored quantity to int, treating missing or malformed values as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    amount = as_amount(value)
    return int(amount) if amount == int(amount) else 0


def format_currency(value: Any) -> str:
    """
    Format an amount as Colombian pesos without decimals, e.g. "$ 1.250.000".
    """
    amount = round(as_amount(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}$ {abs(amount):,}".replace(",", ".")
