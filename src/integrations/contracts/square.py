"""
Square wire contracts.

Response shapes for the Square Connect v2 endpoints the catalog adapter uses:
- POST catalog/search (flat object list with cross references by id)
- GET orders/{order_id}
- GET locations, GET locations/{location_id}

Only the fields the adapter reads are declared; everything else is ignored.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SquareMoney(BaseModel):
    amount: int
    currency: str = "USD"


class SquareItemCategory(BaseModel):
    id: str
    ordinal: Optional[int] = None


class SquareItemVariationData(BaseModel):
    name: Optional[str] = None
    pricing_type: Optional[str] = None
    price_money: Optional[SquareMoney] = None
    ordinal: Optional[int] = None


class SquareItemVariation(BaseModel):
    id: str
    type: str = "ITEM_VARIATION"
    is_deleted: bool = False
    item_variation_data: Optional[SquareItemVariationData] = None


class SquareModifierListInfo(BaseModel):
    modifier_list_id: str
    min_selected_modifiers: Optional[int] = None
    max_selected_modifiers: Optional[int] = None
    enabled: Optional[bool] = None
    hidden_from_customer: Optional[bool] = None


class SquareItemData(BaseModel):
    name: str
    description: Optional[str] = None
    categories: Optional[List[SquareItemCategory]] = None
    category_id: Optional[str] = None
    variations: Optional[List[SquareItemVariation]] = None
    image_ids: Optional[List[str]] = None
    modifier_list_info: Optional[List[SquareModifierListInfo]] = None
    is_archived: Optional[bool] = None

    def category_ids(self) -> List[str]:
        ids = [c.id for c in self.categories or []]
        if self.category_id and self.category_id not in ids:
            ids.append(self.category_id)
        return ids


class SquareCategoryData(BaseModel):
    name: str


class SquareImageData(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None
    caption: Optional[str] = None


class SquareModifierData(BaseModel):
    name: str
    price_money: Optional[SquareMoney] = None
    ordinal: Optional[int] = None
    modifier_list_id: Optional[str] = None
    on_by_default: Optional[bool] = None


class SquareModifier(BaseModel):
    id: str
    type: str = "MODIFIER"
    is_deleted: bool = False
    modifier_data: Optional[SquareModifierData] = None


class SquareModifierListData(BaseModel):
    name: str
    ordinal: Optional[int] = None
    selection_type: Optional[str] = None
    modifiers: Optional[List[SquareModifier]] = None


class SquareCatalogObject(BaseModel):
    id: str
    type: str
    is_deleted: bool = False
    category_data: Optional[SquareCategoryData] = None
    item_data: Optional[SquareItemData] = None
    image_data: Optional[SquareImageData] = None
    modifier_list_data: Optional[SquareModifierListData] = None


class SquareCatalogSearchResponse(BaseModel):
    objects: Optional[List[SquareCatalogObject]] = None
    related_objects: Optional[List[SquareCatalogObject]] = None
    cursor: Optional[str] = None

    def combined_objects(self) -> List[SquareCatalogObject]:
        return list(self.objects or []) + list(self.related_objects or [])


class SquareOrderFulfillment(BaseModel):
    uid: Optional[str] = None
    type: str
    state: str


class SquareOrder(BaseModel):
    id: str
    location_id: Optional[str] = None
    state: str
    fulfillments: Optional[List[SquareOrderFulfillment]] = None


class SquareOrderResponse(BaseModel):
    order: Optional[SquareOrder] = None


class SquareBusinessHoursPeriod(BaseModel):
    day_of_week: str
    start_local_time: Optional[str] = None
    end_local_time: Optional[str] = None


class SquareBusinessHours(BaseModel):
    periods: Optional[List[SquareBusinessHoursPeriod]] = None


class SquareLocation(BaseModel):
    id: str
    name: Optional[str] = None
    business_hours: Optional[SquareBusinessHours] = None


class SquareLocationResponse(BaseModel):
    location: Optional[SquareLocation] = None


class SquareLocationsResponse(BaseModel):
    locations: Optional[List[SquareLocation]] = None
