"""
Order contracts.

Orders are created by the checkout flow and stored outside this package (the
order store). The reconciler only ever changes `status`.

Stored record shape (camelCase, amounts in cents):
    {
        "transactionId": "...", "amount": "1250", "status": "SUBMITTED",
        "createdAt": "2024-05-01T09:30:00+00:00", "receiptUrl": "...",
        "orderId": "<provider order id>", "merchantId": "...",
        "coffeeShopData": {...}, "items": [{"name": ..., "price": 450, ...}]
    }
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interfaces import CoffeeShop, OrderStatus, POSProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderItem:
    id: str
    name: str
    quantity: int
    price: float                         # dollars, modifiers included
    customizations: Optional[str] = None
    selected_size_id: Optional[str] = None
    selected_modifier_ids_by_list: Optional[Dict[str, List[str]]] = None


@dataclass(frozen=True)
class Order:
    id: str
    date: datetime
    coffee_shop: CoffeeShop
    items: List[OrderItem]
    total_amount: float
    transaction_id: str
    status: OrderStatus
    receipt_url: Optional[str] = None
    pos_order_id: Optional[str] = None   # provider-native order id, used for status polling
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def with_status(self, status: OrderStatus) -> "Order":
        return replace(self, status=status)


def parse_order_status(raw: Any, default: OrderStatus = OrderStatus.AUTHORIZED) -> OrderStatus:
    if raw is None:
        return default
    value = str(raw).strip()
    for candidate in (value, value.upper()):
        try:
            return OrderStatus(candidate)
        except ValueError:
            continue
    logger.warning("Unknown order status %r, using %s", raw, default.value)
    return default


def _cents_to_dollars(value: Any) -> float:
    try:
        return round(float(value) / 100.0, 2)
    except (TypeError, ValueError):
        return 0.0


def _parse_date(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable order date %r", value)
    return datetime.now(timezone.utc)


def _float_or_zero(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def shop_from_record(data: Optional[Dict[str, Any]], merchant_id: Optional[str]) -> CoffeeShop:
    if not data:
        return CoffeeShop(
            id="unknown",
            name="Unknown Coffee Shop",
            merchant_id=merchant_id or "unknown",
            pos_type=POSProvider.SQUARE,
        )
    try:
        pos_type = POSProvider(str(data.get("posType", "square")).lower())
    except ValueError:
        pos_type = POSProvider.SQUARE
    return CoffeeShop(
        id=str(data.get("id", "unknown")),
        name=str(data.get("name", "")),
        merchant_id=str(data.get("merchantId") or merchant_id or "unknown"),
        pos_type=pos_type,
        address=str(data.get("address", "")),
        latitude=_float_or_zero(data.get("latitude")),
        longitude=_float_or_zero(data.get("longitude")),
        phone=str(data.get("phone", "")),
        website=str(data.get("website", "")),
        description=str(data.get("description", "")),
        image_name=str(data.get("imageName", "")),
        stamp_name=str(data.get("stampName", "")),
    )


def order_from_record(record: Dict[str, Any]) -> Order:
    """Decode a stored order record. Raises KeyError when transactionId is missing."""
    transaction_id = str(record["transactionId"])
    shop = shop_from_record(record.get("coffeeShopData"), record.get("merchantId"))

    items = [
        OrderItem(
            id=str(raw.get("id") or raw.get("name", "")),
            name=str(raw.get("name", "")),
            quantity=int(raw.get("quantity", 1)),
            price=_cents_to_dollars(raw.get("price", 0)),
            customizations=raw.get("customizations"),
            selected_size_id=raw.get("selectedSizeId"),
            selected_modifier_ids_by_list=raw.get("selectedModifierIdsByList"),
        )
        for raw in record.get("items") or []
    ]

    known = {
        "transactionId", "amount", "status", "createdAt", "receiptUrl", "orderId",
        "merchantId", "coffeeShopData", "items",
    }
    return Order(
        id=transaction_id,
        date=_parse_date(record.get("createdAt")),
        coffee_shop=shop,
        items=items,
        total_amount=_cents_to_dollars(record.get("amount", 0)),
        transaction_id=transaction_id,
        status=parse_order_status(record.get("status")),
        receipt_url=record.get("receiptUrl"),
        pos_order_id=record.get("orderId"),
        extra={k: v for k, v in record.items() if k not in known},
    )

