"""
Square Catalog HTTP Client.

Purpose:
- Fetches a merchant's catalog from Square (catalog/search) and normalizes the
  flat object list into List[MenuCategory]
- Looks up order state for the reconciler
- Reads business hours from the merchant's first location

Implementation notes:
- Square returns ITEM, CATEGORY, IMAGE and MODIFIER_LIST objects side by side;
  items reference the others by id
- Money is in cents on the wire and converted here, nowhere else
- Deleted/archived objects and modifier lists disabled or hidden for the item
  are dropped

Important:
- Credentials come from the CredentialBroker on every call
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from src.integrations.clients.real_http.credentials import CredentialBroker
from src.integrations.clients.real_http.http import ensure_http_url, request_json
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
    MenuItemVariation,
    OrderStatus,
    POSProvider,
)
from src.integrations.contracts.square import (
    SquareBusinessHours,
    SquareCatalogObject,
    SquareCatalogSearchResponse,
    SquareItemData,
    SquareItemVariation,
    SquareLocationResponse,
    SquareLocationsResponse,
    SquareOrder,
    SquareOrderResponse,
)
from src.integrations.errors import IntegrationResponseError
from src.integrations.policy.menu_normalization import (
    assemble_menu,
    extract_customization_types,
    parse_wire_model,
)
from src.integrations.policy.response_wrappers import minor_units_to_amount

logger = logging.getLogger(__name__)

DEFAULT_SQUARE_BASE_URL = "https://connect.squareup.com/v2"
CATALOG_OBJECT_TYPES = ["ITEM", "CATEGORY", "IMAGE", "MODIFIER_LIST"]


# ---------------------------------------------------------------------------
# Catalog builder
# ---------------------------------------------------------------------------

class SquareCatalogBuilder:
    """Pure transformation from Square catalog objects to the normalized menu."""

    def build_menu_categories(self, objects: List[SquareCatalogObject]) -> List[MenuCategory]:
        live = [o for o in objects if not o.is_deleted]
        categories = [(o.id, o.category_data.name) for o in live if o.type == "CATEGORY" and o.category_data]
        images = {
            o.id: o.image_data.url
            for o in live
            if o.type == "IMAGE" and o.image_data and o.image_data.url
        }
        modifier_lists = {
            o.id: self._base_modifier_list(o)
            for o in live
            if o.type == "MODIFIER_LIST" and o.modifier_list_data
        }

        items = []
        for obj in live:
            if obj.type != "ITEM" or obj.item_data is None or obj.item_data.is_archived:
                continue
            item = self._make_menu_item(obj.id, obj.item_data, images, modifier_lists)
            items.append((obj.item_data.category_ids(), item))

        return assemble_menu(categories, items)

    def _make_menu_item(
        self,
        item_id: str,
        item_data: SquareItemData,
        images: Dict[str, str],
        modifier_lists: Dict[str, MenuItemModifierList],
    ) -> MenuItem:
        variations = self._variations(item_data.variations)
        item_modifier_lists = self._item_modifier_lists(item_data, modifier_lists)
        image_url = images.get(item_data.image_ids[0]) if item_data.image_ids else None

        return MenuItem(
            id=item_id,
            name=item_data.name,
            price=variations[0].price if variations else 0.0,
            variations=variations or None,
            customizations=extract_customization_types(item_modifier_lists),
            image_url=image_url,
            modifier_lists=item_modifier_lists,
        )

    @staticmethod
    def _variations(raw: Optional[List[SquareItemVariation]]) -> List[MenuItemVariation]:
        variations = []
        for variation in raw or []:
            data = variation.item_variation_data
            if variation.is_deleted or data is None:
                continue
            variations.append(
                MenuItemVariation(
                    id=variation.id,
                    name=data.name or "Size",
                    price=minor_units_to_amount(data.price_money.amount if data.price_money else None),
                    ordinal=data.ordinal or 0,
                )
            )
        return sorted(variations, key=lambda v: v.ordinal)

    @staticmethod
    def _base_modifier_list(obj: SquareCatalogObject) -> MenuItemModifierList:
        data = obj.modifier_list_data
        modifiers = []
        for modifier in data.modifiers or []:
            if modifier.is_deleted or modifier.modifier_data is None:
                continue
            mdata = modifier.modifier_data
            modifiers.append(
                MenuItemModifier(
                    id=modifier.id,
                    name=mdata.name,
                    price=minor_units_to_amount(mdata.price_money.amount if mdata.price_money else None),
                    is_default=bool(mdata.on_by_default),
                )
            )
        return MenuItemModifierList(
            id=obj.id,
            name=data.name,
            selection_type=data.selection_type or "SINGLE",
            min_selections=0,
            max_selections=1,
            modifiers=modifiers,
        )

    @staticmethod
    def _item_modifier_lists(
        item_data: SquareItemData,
        modifier_lists: Dict[str, MenuItemModifierList],
    ) -> List[MenuItemModifierList]:
        result = []
        for info in item_data.modifier_list_info or []:
            if info.enabled is False or info.hidden_from_customer is True:
                continue
            base = modifier_lists.get(info.modifier_list_id)
            if base is None:
                continue
            # item-level bounds override the list defaults
            result.append(
                MenuItemModifierList(
                    id=base.id,
                    name=base.name,
                    selection_type=base.selection_type,
                    min_selections=max(0, info.min_selected_modifiers if info.min_selected_modifiers is not None else 0),
                    max_selections=info.max_selected_modifiers if info.max_selected_modifiers is not None else 1,
                    modifiers=base.modifiers,
                )
            )
        return result


# ---------------------------------------------------------------------------
# Order status / business hours mapping
# ---------------------------------------------------------------------------

_SQUARE_ORDER_STATES = {
    "OPEN": OrderStatus.IN_PROGRESS,
    "COMPLETED": OrderStatus.COMPLETED,
    "CANCELED": OrderStatus.CANCELLED,
    "DRAFT": OrderStatus.SUBMITTED,
}

_SQUARE_PICKUP_STATES = {
    "PROPOSED": OrderStatus.SUBMITTED,
    "RESERVED": OrderStatus.IN_PROGRESS,
    "PREPARED": OrderStatus.READY,
    "FULFILLED": OrderStatus.COMPLETED,
    "CANCELED": OrderStatus.CANCELLED,
}


def map_square_order_status(order: SquareOrder) -> OrderStatus:
    status = _SQUARE_ORDER_STATES.get(order.state.upper(), OrderStatus.SUBMITTED)
    if status is OrderStatus.IN_PROGRESS:
        # an open order is refined by its first pickup fulfillment
        for fulfillment in order.fulfillments or []:
            if fulfillment.type == "PICKUP":
                return _SQUARE_PICKUP_STATES.get(fulfillment.state.upper(), OrderStatus.IN_PROGRESS)
    return status


def square_business_hours(hours: SquareBusinessHours) -> BusinessHoursInfo:
    weekly: Dict[str, List[BusinessHoursPeriod]] = {}
    for period in hours.periods or []:
        weekly.setdefault(period.day_of_week.upper(), []).append(
            BusinessHoursPeriod(
                start_time=(period.start_local_time or "")[:5],
                end_time=(period.end_local_time or "")[:5],
            )
        )
    return BusinessHoursInfo(weekly_hours=weekly)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class SquareCatalogAdapter(CatalogAdapter):
    def __init__(
        self,
        broker: CredentialBroker,
        base_url: Optional[str] = None,
        timeout_seconds: float = 20.0,
        max_pages: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        builder: Optional[SquareCatalogBuilder] = None,
    ) -> None:
        self.broker = broker
        self.base_url = base_url or os.getenv("SQUARE_API_BASE_URL", DEFAULT_SQUARE_BASE_URL)
        self.timeout_seconds = timeout_seconds
        self.max_pages = max_pages
        self.builder = builder or SquareCatalogBuilder()
        self._transport = transport

    @property
    def provider(self) -> POSProvider:
        return POSProvider.SQUARE

    async def fetch_menu(self, shop: CoffeeShop) -> List[MenuCategory]:
        logger.info("Square menu fetch for shop=%s merchant=%s", shop.id, shop.merchant_id)
        credentials = await self.broker.get_credentials(shop.merchant_id, POSProvider.SQUARE)
        objects = await self._search_catalog(credentials)
        categories = self.builder.build_menu_categories(objects)
        logger.info(
            "Square menu for shop=%s: %d objects -> %d categories", shop.id, len(objects), len(categories)
        )
        return categories

    async def fetch_order_status(self, order_id: str, merchant_id: str) -> OrderStatus:
        credentials = await self.broker.get_credentials(merchant_id, POSProvider.SQUARE)
        data = await self._send("GET", f"orders/{order_id}", credentials)
        response = parse_wire_model(SquareOrderResponse, data, "Square order")
        if response.order is None:
            raise IntegrationResponseError(f"Square order {order_id} not found in response.", payload=data)
        return map_square_order_status(response.order)

    async def fetch_business_hours(self, shop: CoffeeShop) -> Optional[BusinessHoursInfo]:
        credentials = await self.broker.get_credentials(shop.merchant_id, POSProvider.SQUARE)
        listing = parse_wire_model(
            SquareLocationsResponse, await self._send("GET", "locations", credentials), "Square locations"
        )
        locations = listing.locations or []
        if not locations:
            logger.info("No Square locations for shop=%s", shop.id)
            return None

        detail = parse_wire_model(
            SquareLocationResponse,
            await self._send("GET", f"locations/{locations[0].id}", credentials),
            "Square location",
        )
        if detail.location is None or detail.location.business_hours is None:
            return None
        return square_business_hours(detail.location.business_hours)

    async def _search_catalog(self, credentials: Credentials) -> List[SquareCatalogObject]:
        # related objects repeat on every page that references them
        objects: Dict[str, SquareCatalogObject] = {}
        cursor: Optional[str] = None
        for _ in range(self.max_pages):
            body: Dict[str, Any] = {"object_types": CATALOG_OBJECT_TYPES, "include_related_objects": True}
            if cursor:
                body["cursor"] = cursor
            data = await self._send("POST", "catalog/search", credentials, json_body=body)
            page = parse_wire_model(SquareCatalogSearchResponse, data, "Square catalog")
            for obj in page.combined_objects():
                objects.setdefault(obj.id, obj)
            cursor = page.cursor
            if not cursor:
                break
        else:
            logger.warning("Square catalog still paginated after %d pages; using partial result", self.max_pages)
        return list(objects.values())

    async def _send(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        base_url = ensure_http_url(self.base_url, "SQUARE_API_BASE_URL")
        headers = {
            "Authorization": f"Bearer {credentials.access_token}",
            "Accept": "application/json",
        }
        if json_body is not None:
            headers["Content-Type"] = "application/json"
        return await request_json(
            method,
            f"{base_url}/{path}",
            headers=headers,
            json_body=json_body,
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
        )
