"""
Firestore access for sales, products and sellers.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from firebase_admin import firestore

from api.common.logger import get_logger
from api.common.schemas import parse_datetime_value
from api.sales.constants import PRODUCTS_COLLECTION, SALES_COLLECTION, SELLERS_COLLECTION
from api.sales.filters import SaleFilter

logger = get_logger(__name__)


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def _with_id(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data.setdefault("id", doc.id)
    return data


def sort_by_sale_date(records: List[Dict[str, Any]], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Sort newest first; sales without a sale date sort as if made now."""
    now = now or datetime.now(timezone.utc)
    return sorted(
        records,
        key=lambda record: parse_datetime_value(record.get("saleDate")) or now,
        reverse=True
    )


async def find_sales(sale_filter: SaleFilter) -> List[Dict[str, Any]]:
    """
    Fetch the seller's sales matching the filter, newest first.

    Only the seller scope is sent to Firestore; the other constraints are
    applied in memory to avoid composite index requirements.
    """
    db = get_firestore_client()
    query = db.collection(SALES_COLLECTION).where("sellerId", "==", sale_filter.seller_id)

    records = [_with_id(doc) for doc in query.stream()]
    matched = [record for record in records if sale_filter.matches(record)]
    logger.debug("Seller %s: %d sales, %d after filtering", sale_filter.seller_id, len(records), len(matched))

    return sort_by_sale_date(matched)


def _product_id(item: Any) -> Optional[str]:
    if isinstance(item, dict) and isinstance(item.get("productId"), str) and item["productId"]:
        return item["productId"]
    return None


async def expand_products(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Attach the referenced product documents to each line item as ``product``.
    Items whose product no longer exists are left unexpanded.
    """
    product_ids = {
        _product_id(item)
        for record in records
        if isinstance(record.get("items"), list)
        for item in record["items"]
    }
    product_ids.discard(None)
    if not product_ids:
        return records

    db = get_firestore_client()
    products = {}
    for product_id in product_ids:
        doc = db.collection(PRODUCTS_COLLECTION).document(product_id).get()
        if doc.exists:
            data = doc.to_dict() or {}
            products[product_id] = {
                "id": doc.id,
                "name": data.get("name", ""),
                "price": data.get("price", 0),
            }

    expanded = []
    for record in records:
        items = record.get("items")
        if isinstance(items, list):
            record = {
                **record,
                "items": [
                    {**item, "product": products.get(_product_id(item))} if isinstance(item, dict) else item
                    for item in items
                ]
            }
        expanded.append(record)
    return expanded


async def find_product_by_name(name: str) -> Optional[Dict[str, Any]]:
    """Case-insensitive exact match on the product name."""
    wanted = name.strip().lower()
    db = get_firestore_client()
    for doc in db.collection(PRODUCTS_COLLECTION).stream():
        data = doc.to_dict() or {}
        product_name = data.get("name")
        if isinstance(product_name, str) and product_name.strip().lower() == wanted:
            return _with_id(doc)
    return None


async def get_seller(seller_id: str) -> Optional[Dict[str, Any]]:
    db = get_firestore_client()
    doc = db.collection(SELLERS_COLLECTION).document(seller_id).get()
    if not doc.exists:
        return None
    return _with_id(doc)


async def find_seller_by_code(code: str) -> Optional[Dict[str, Any]]:
    db = get_firestore_client()
    docs = db.collection(SELLERS_COLLECTION).where("code", "==", code.strip()).limit(1).stream()
    for doc in docs:
        return _with_id(doc)
    return None


async def list_subordinates(seller_id: str) -> List[Dict[str, Any]]:
    """Sellers whose supervisor (``jefe``) is the given seller."""
    db = get_firestore_client()
    docs = db.collection(SELLERS_COLLECTION).where("jefe", "==", seller_id).stream()
    return [_with_id(doc) for doc in docs]


async def save_sale(sale_data: Dict[str, Any]) -> str:
    """Persist a new sale and return its document id."""
    db = get_firestore_client()
    doc_ref = db.collection(SALES_COLLECTION).document()
    doc_ref.set({**sale_data, "id": doc_ref.id})
    return doc_ref.id
