"""
This module defines the Pydantic models used for sales management.
These models are used for request and response validation and serialization.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union, Any

from pydantic import BaseModel, Field, field_validator

from api.common.schemas import ApiResponse, parse_datetime_value
from api.common.utils import as_amount, as_quantity
from api.sales.constants import DEFAULT_ADDRESS, TRUTHY_FLAGS


class SaleMode(str, Enum):
    """How the products of a new sale are resolved."""
    CATALOG = "catalog"
    PROXY = "proxy"


class ProductInfo(BaseModel):
    """Product document expanded into a line item."""
    id: str
    name: str
    price: float = 0

    @field_validator('name', mode='before')
    @classmethod
    def default_name(cls, value):
        return "" if value is None else str(value)

    @field_validator('price', mode='before')
    @classmethod
    def coerce_price(cls, value):
        return as_amount(value)


class LineItem(BaseModel):
    """One product line within a sale."""
    productId: Optional[str] = None
    name: str = ""
    quantity: int = 0
    price: float = 0
    product: Optional[ProductInfo] = None

    @field_validator('productId', mode='before')
    @classmethod
    def stringify_product_id(cls, value):
        return None if value is None else str(value)

    @field_validator('name', mode='before')
    @classmethod
    def default_name(cls, value):
        return "" if value is None else str(value)

    @field_validator('quantity', mode='before')
    @classmethod
    def coerce_quantity(cls, value):
        return as_quantity(value)

    @field_validator('price', mode='before')
    @classmethod
    def coerce_price(cls, value):
        return as_amount(value)


class SaleRecord(BaseModel):
    """A stored sale as returned by the listing endpoint."""
    id: str
    sellerId: Optional[str] = None
    customerName: Optional[str] = None
    customerPhone: Optional[str] = None
    address: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list)
    total: float = 0
    paymentMethod: Optional[str] = None
    notes: Optional[str] = None
    saleDate: Optional[datetime] = None
    sellerCode: Optional[str] = None
    createdAt: Optional[datetime] = None

    @field_validator('sellerId', 'customerName', 'customerPhone', 'address', 'paymentMethod',
                     'notes', 'sellerCode', mode='before')
    @classmethod
    def stringify_text(cls, value):
        """Stored scalars of another type (e.g. a numeric phone) are listed as text."""
        return None if value is None else str(value)

    @field_validator('items', mode='before')
    @classmethod
    def drop_malformed_items(cls, value):
        """Absent or malformed item collections are listed as empty."""
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator('total', mode='before')
    @classmethod
    def coerce_total(cls, value):
        return as_amount(value)

    @field_validator('saleDate', 'createdAt', mode='before')
    @classmethod
    def parse_timestamp(cls, value):
        return parse_datetime_value(value)


class SalesSummary(BaseModel):
    """Aggregate figures over a filtered set of sales."""
    totalVentas: float = 0
    cantidadVentas: int = 0
    totalProductos: int = 0


class SalesListResponse(ApiResponse[List[SaleRecord]]):
    """Response model for the sales listing."""
    summary: SalesSummary = Field(default_factory=SalesSummary)


class SaleCreate(BaseModel):
    """
    Request body for recording a sale.

    Required fields are checked by the service so that missing values produce
    a single Spanish error message listing all of them.
    """
    mode: SaleMode = SaleMode.CATALOG
    customerName: Optional[str] = None
    sellerName: Optional[str] = None
    customerPhone: Optional[str] = None
    products: Optional[str] = None
    quantity: Optional[int] = None
    totalPrice: Optional[float] = None
    paymentMethod: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None
    saleDate: Optional[str] = None
    hasSeller: Union[bool, str, None] = False
    sellerCode: Optional[str] = None

    @field_validator('customerName', 'sellerName', 'customerPhone', 'products', 'paymentMethod',
                     'notes', 'address', 'saleDate', 'sellerCode', mode='before')
    @classmethod
    def blank_to_none(cls, value: Any):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator('quantity', 'totalPrice', mode='before')
    @classmethod
    def blank_number_to_none(cls, value: Any):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_referring_seller(self) -> bool:
        if isinstance(self.hasSeller, bool):
            return self.hasSeller
        if self.hasSeller is None:
            return False
        return self.hasSeller.strip().lower() in TRUTHY_FLAGS

    @property
    def delivery_address(self) -> str:
        return self.address or DEFAULT_ADDRESS


class SaleCreatedData(BaseModel):
    id: str


class SaleCreateResponse(ApiResponse[SaleCreatedData]):
    """Response model for a recorded sale."""
    pass
