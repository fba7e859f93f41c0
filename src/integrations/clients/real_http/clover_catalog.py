"""
Clover Catalog HTTP Client.

Purpose:
- Fetches categories, items and modifier groups for a Clover merchant
  (concurrently) and normalizes them into List[MenuCategory]
- Maps Clover order/payment state to OrderStatus
- Reads opening hours

Implementation notes:
- Items carry expanded category/modifier-group references; groups carry
  their modifiers
- Hidden items are dropped; unavailable modifiers stay in the list with
  is_available=False
- Clover has no size variations; item price is the base price
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from src.integrations.clients.real_http.credentials import CredentialBroker
from src.integrations.clients.real_http.http import ensure_http_url, request_json
from src.integrations.contracts.clover import (
    CloverCategoriesResponse,
    CloverCategory,
    CloverItem,
    CloverItemsResponse,
    CloverModifierGroup,
    CloverModifierGroupsResponse,
    CloverOpeningHours,
    CloverOpeningHoursResponse,
    CloverOrder,
)
from src.integrations.contracts.interfaces import (
    BusinessHoursInfo,
    BusinessHoursPeriod,
    CatalogAdapter,
    CoffeeShop,
    Credentials,
    MenuCategory,
    MenuItem,
    MenuItemModifier,
    MenuItemModifierList,
    OrderStatus,
    POSProvider,
)
from src.integrations.policy.menu_normalization import (
    assemble_menu,
    extract_customization_types,
    format_hhmm,
    parse_wire_model,
)
from src.integrations.policy.response_wrappers import minor_units_to_amount

logger = logging.getLogger(__name__)

DEFAULT_CLOVER_BASE_URL = "https://sandbox.dev.clover.com/v3"

_CLOVER_DAYS = (
    ("sunday", "SUN"),
    ("monday", "MON"),
    ("tuesday", "TUE"),
    ("wednesday", "WED"),
    ("thursday", "THU"),
    ("friday", "FRI"),
    ("saturday", "SAT"),
)


def build_clover_menu(
    categories: List[CloverCategory],
    items: List[CloverItem],
    modifier_groups: List[CloverModifierGroup],
) -> List[MenuCategory]:
    group_mapping = {group.id: _modifier_list(group) for group in modifier_groups}

    visible = []
    for item in items:
        if item.hidden is True:
            continue
        lists = [group_mapping[g] for g in item.modifier_group_ids() if g in group_mapping]
        visible.append(
            (
                item.category_ids(),
                MenuItem(
                    id=item.id,
                    name=item.name,
                    price=minor_units_to_amount(item.price),
                    variations=None,
                    customizations=extract_customization_types(lists),
                    image_url=None,
                    modifier_lists=lists,
                ),
            )
        )

    return assemble_menu([(c.id, c.name) for c in categories], visible)


def _modifier_list(group: CloverModifierGroup) -> MenuItemModifierList:
    max_allowed = group.maxAllowed if group.maxAllowed is not None else 1
    return MenuItemModifierList(
        id=group.id,
        name=group.name,
        selection_type="MULTIPLE" if max_allowed > 1 else "SINGLE",
        min_selections=group.minRequired if group.minRequired is not None else 0,
        max_selections=max_allowed,
        modifiers=[
            MenuItemModifier(
                id=m.id,
                name=m.name,
                price=minor_units_to_amount(m.price),
                is_default=False,
                is_available=m.available is not False,
            )
            for m in (group.modifiers.as_list() if group.modifiers else [])
        ],
    )


def map_clover_order_status(order: CloverOrder) -> OrderStatus:
    state = (order.state or "").lower()
    if state == "locked":
        return OrderStatus.IN_PROGRESS
    if state == "paid":
        payment_state = (order.paymentState or "").upper()
        if payment_state == "PAID":
            return OrderStatus.COMPLETED
        if payment_state == "PARTIALLY_PAID":
            return OrderStatus.IN_PROGRESS
        if payment_state in ("REFUNDED", "PARTIALLY_REFUNDED"):
            return OrderStatus.CANCELLED
        return OrderStatus.READY
    # "open" and anything unrecognized
    return OrderStatus.SUBMITTED


def clover_business_hours(entries: List[CloverOpeningHours]) -> BusinessHoursInfo:
    weekly: Dict[str, List[BusinessHoursPeriod]] = {}
    for entry in entries:
        for attr, day_key in _CLOVER_DAYS:
            slots = getattr(entry, attr)
            periods = [
                BusinessHoursPeriod(
                    start_time=format_hhmm(*divmod(slot.start, 100)),
                    end_time=format_hhmm(*divmod(slot.end, 100)),
                )
                for slot in (slots.as_list() if slots else [])
            ]
            if periods:
                weekly[day_key] = periods
    return BusinessHoursInfo(weekly_hours=weekly)


class CloverCatalogAdapter(CatalogAdapter):
    def __init__(
        self,
        broker: CredentialBroker,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.broker = broker
        self.base_url = base_url or os.getenv("CLOVER_API_BASE_URL", DEFAULT_CLOVER_BASE_URL)
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def provider(self) -> POSProvider:
        return POSProvider.CLOVER

    async def fetch_menu(self, shop: CoffeeShop) -> List[MenuCategory]:
        logger.info("Clover menu fetch for shop=%s merchant=%s", shop.id, shop.merchant_id)
        credentials = await self.broker.get_credentials(shop.merchant_id, POSProvider.CLOVER)

        categories_raw, items_raw, groups_raw = await asyncio.gather(
            self._get(credentials, "categories"),
            self._get(credentials, "items", params={"expand": "categories,modifierGroups"}),
            self._get(credentials, "modifier_groups", params={"expand": "modifiers"}),
        )
        categories = parse_wire_model(CloverCategoriesResponse, categories_raw, "Clover categories").as_list()
        items = parse_wire_model(CloverItemsResponse, items_raw, "Clover items").as_list()
        groups = parse_wire_model(CloverModifierGroupsResponse, groups_raw, "Clover modifier groups").as_list()

        menu = build_clover_menu(categories, items, groups)
        logger.info(
            "Clover menu for shop=%s: %d categories, %d items, %d modifier groups -> %d menu categories",
            shop.id, len(categories), len(items), len(groups), len(menu),
        )
        return menu

    async def fetch_order_status(self, order_id: str, merchant_id: str) -> OrderStatus:
        credentials = await self.broker.get_credentials(merchant_id, POSProvider.CLOVER)
        data = await self._get(credentials, f"orders/{order_id}")
        return map_clover_order_status(parse_wire_model(CloverOrder, data, "Clover order"))

    async def fetch_business_hours(self, shop: CoffeeShop) -> Optional[BusinessHoursInfo]:
        credentials = await self.broker.get_credentials(shop.merchant_id, POSProvider.CLOVER)
        data = await self._get(credentials, "opening_hours")
        entries = parse_wire_model(CloverOpeningHoursResponse, data, "Clover opening hours").as_list()
        if not entries:
            return None
        return clover_business_hours(entries)

    async def _get(self, credentials: Credentials, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        base_url = ensure_http_url(self.base_url, "CLOVER_API_BASE_URL")
        return await request_json(
            "GET",
            f"{base_url}/merchants/{credentials.merchant_id}/{path}",
            headers={
                "Authorization": f"Bearer {credentials.access_token}",
                "Accept": "application/json",
            },
            params=params,
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
        )
