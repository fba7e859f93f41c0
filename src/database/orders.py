"""
Order stores.

The reconciler reads orders and writes back status changes through the
OrderStore protocol. Two implementations:
- InMemoryOrderStore: tests and local development
- JsonFileOrderStore: a JSON list of stored order records on disk
"""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol, Union

from src.integrations.contracts.interfaces import OrderStatus
from src.integrations.contracts.orders import Order, order_from_record

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    async def list_orders(self) -> List[Order]:
        ...

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        ...


class InMemoryOrderStore:
    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: Dict[str, Order] = {order.id: order for order in orders}

    async def list_orders(self) -> List[Order]:
        return list(self._orders.values())

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        order = self._orders.get(order_id)
        if order is None:
            raise KeyError(order_id)
        self._orders[order_id] = order.with_status(status)

    def get(self, order_id: str) -> Order:
        return self._orders[order_id]


class JsonFileOrderStore:
    """Order records kept as a JSON array; records that fail to decode are skipped with a warning."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def list_orders(self) -> List[Order]:
        records = await asyncio.to_thread(self._read_records)
        orders = []
        for record in records:
            try:
                orders.append(order_from_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping undecodable order record: %s", exc)
        return orders

    async def update_status(self, order_id: str, status: OrderStatus) -> None:
        # only the status field changes; every other entry and key is written back as read
        async with self._lock:
            entries = await asyncio.to_thread(self._read_entries)
            for entry in entries:
                if isinstance(entry, dict) and str(entry.get("transactionId")) == order_id:
                    entry["status"] = status.value
                    break
            else:
                raise KeyError(order_id)
            await asyncio.to_thread(self._write_entries, entries)

    def _read_records(self) -> List[dict]:
        return [r for r in self._read_entries() if isinstance(r, dict)]

    def _read_entries(self) -> List[Any]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Order file {self.path} must contain a JSON list")
        return data

    def _write_entries(self, entries: List[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=str(self.path.parent), suffix=".tmp"
        ) as tmp:
            json.dump(entries, tmp, indent=2)
            tmp_path = Path(tmp.name)
        tmp_path.replace(self.path)
