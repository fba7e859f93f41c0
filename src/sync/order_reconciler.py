"""
Order status reconciliation.

Polls the POS provider for every stored order that carries a provider order
id and writes back any status change. A failure for one order is logged and
recorded in the report; the remaining orders are still processed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from src.database.orders import OrderStore
from src.integrations.contracts.interfaces import CatalogAdapter, POSProvider

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    checked: int = 0
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"checked": self.checked, "updated": list(self.updated), "failed": list(self.failed)}


class OrderStatusReconciler:
    def __init__(self, store: OrderStore, adapter_for: Callable[[POSProvider], CatalogAdapter]) -> None:
        self.store = store
        self._adapter_for = adapter_for

    async def reconcile(self) -> ReconciliationReport:
        report = ReconciliationReport()
        orders = await self.store.list_orders()
        logger.info("Starting order status sync for %d orders", len(orders))

        for order in orders:
            if not order.pos_order_id:
                continue
            report.checked += 1
            shop = order.coffee_shop
            try:
                adapter = self._adapter_for(shop.pos_type)
                status = await adapter.fetch_order_status(order.pos_order_id, shop.merchant_id)
                if status != order.status:
                    await self.store.update_status(order.id, status)
                    report.updated.append(order.id)
                    logger.info(
                        "Order %s at %s: %s -> %s", order.id, shop.name, order.status.value, status.value
                    )
            except Exception as exc:
                report.failed.append(order.id)
                logger.error("Failed to sync status for order %s at %s: %s", order.id, shop.name, exc)

        logger.info(
            "Order status sync completed: checked=%d updated=%d failed=%d",
            report.checked, len(report.updated), len(report.failed),
        )
        return report
