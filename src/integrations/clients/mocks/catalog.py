"""
Mock Catalog Client.

Purpose:
- Development/test stand-in for the Square and Clover adapters
- Does NOT make any network calls
- Serves a canned menu (or per-shop menus registered by the caller) and
  scripted order statuses

Behavior guidelines:
- fetch_menu(shop) returns the shop's registered menu, else the default menu
- fail_next(exc) makes the next call raise exc (for error-path testing)

Swap:
Replace with clients/real_http/* by setting `adapters: real` in
config/sync_config.yml.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List, Optional

from src.integrations.contracts.interfaces import (
    BusinessHoursInfo,
    BusinessHoursPeriod,
    CatalogAdapter,
    CoffeeShop,
    MenuCategory,
    MenuItem,
    MenuItemModifier,
    MenuItemModifierList,
    MenuItemVariation,
    OrderStatus,
    POSProvider,
)

logger = logging.getLogger(__name__)


def default_menu() -> List[MenuCategory]:
    milk = MenuItemModifierList(
        id="mock-milk",
        name="Milk",
        selection_type="SINGLE",
        min_selections=0,
        max_selections=1,
        modifiers=[
            MenuItemModifier(id="mock-milk-whole", name="Whole", price=0.0, is_default=True),
            MenuItemModifier(id="mock-milk-oat", name="Oat", price=0.75),
        ],
    )
    return [
        MenuCategory(
            name="Coffee",
            items=[
                MenuItem(
                    id="mock-latte",
                    name="Latte",
                    price=4.5,
                    variations=[
                        MenuItemVariation(id="mock-latte-12", name="12 oz", price=4.5, ordinal=0),
                        MenuItemVariation(id="mock-latte-16", name="16 oz", price=5.25, ordinal=1),
                    ],
                    customizations=["milk"],
                    modifier_lists=[milk],
                ),
                MenuItem(id="mock-drip", name="Drip Coffee", price=2.75, modifier_lists=[]),
            ],
        ),
        MenuCategory(name="Pastries", items=[MenuItem(id="mock-croissant", name="Croissant", price=3.25)]),
    ]


class MockCatalogAdapter(CatalogAdapter):
    def __init__(
        self,
        provider: POSProvider = POSProvider.SQUARE,
        menus: Optional[Dict[str, List[MenuCategory]]] = None,
        order_statuses: Optional[Dict[str, OrderStatus]] = None,
    ) -> None:
        self._provider = provider
        self.menus: Dict[str, List[MenuCategory]] = dict(menus or {})
        self.order_statuses: Dict[str, OrderStatus] = dict(order_statuses or {})
        self.menu_calls: List[str] = []
        self.order_calls: List[str] = []
        self._failures: Deque[Exception] = deque()

    @property
    def provider(self) -> POSProvider:
        return self._provider

    def fail_next(self, exc: Exception) -> None:
        self._failures.append(exc)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.popleft()

    async def fetch_menu(self, shop: CoffeeShop) -> List[MenuCategory]:
        self.menu_calls.append(shop.id)
        self._maybe_fail()
        logger.info("Mock menu served for shop=%s", shop.id)
        return self.menus.get(shop.id, default_menu())

    async def fetch_order_status(self, order_id: str, merchant_id: str) -> OrderStatus:
        self.order_calls.append(order_id)
        self._maybe_fail()
        return self.order_statuses.get(order_id, OrderStatus.SUBMITTED)

    async def fetch_business_hours(self, shop: CoffeeShop) -> Optional[BusinessHoursInfo]:
        self._maybe_fail()
        weekday = [BusinessHoursPeriod(start_time="07:00", end_time="18:00")]
        return BusinessHoursInfo(weekly_hours={day: list(weekday) for day in ("MON", "TUE", "WED", "THU", "FRI")})
