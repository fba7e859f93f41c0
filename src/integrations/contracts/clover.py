"""
Clover wire contracts.

Clover wraps every collection in {"elements": [...]}, including expanded
relations (item.categories, item.modifierGroups, group.modifiers).
"""

from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class CloverElements(BaseModel, Generic[T]):
    elements: Optional[List[T]] = None

    def as_list(self) -> List[T]:
        return list(self.elements or [])


class CloverRef(BaseModel):
    id: str
    name: Optional[str] = None


class CloverCategory(BaseModel):
    id: str
    name: str
    sortOrder: Optional[int] = None


class CloverModifier(BaseModel):
    id: str
    name: str
    price: Optional[int] = None          # cents
    available: Optional[bool] = None


class CloverModifierGroup(BaseModel):
    id: str
    name: str
    showByDefault: Optional[bool] = None
    alternateName: Optional[str] = None
    minRequired: Optional[int] = None
    maxAllowed: Optional[int] = None
    modifiers: Optional[CloverElements[CloverModifier]] = None


class CloverItem(BaseModel):
    id: str
    name: str
    price: Optional[int] = None          # cents
    priceType: Optional[str] = None
    hidden: Optional[bool] = None
    categories: Optional[CloverElements[CloverRef]] = None
    modifierGroups: Optional[CloverElements[CloverRef]] = None

    def category_ids(self) -> List[str]:
        return [c.id for c in self.categories.as_list()] if self.categories else []

    def modifier_group_ids(self) -> List[str]:
        return [g.id for g in self.modifierGroups.as_list()] if self.modifierGroups else []


class CloverOrder(BaseModel):
    id: str
    state: Optional[str] = None
    paymentState: Optional[str] = None
    total: Optional[int] = None


class CloverTimeSlot(BaseModel):
    start: int                           # HHMM, e.g. 930 = 09:30
    end: int


class CloverOpeningHours(BaseModel):
    id: str
    name: Optional[str] = None
    sunday: Optional[CloverElements[CloverTimeSlot]] = None
    monday: Optional[CloverElements[CloverTimeSlot]] = None
    tuesday: Optional[CloverElements[CloverTimeSlot]] = None
    wednesday: Optional[CloverElements[CloverTimeSlot]] = None
    thursday: Optional[CloverElements[CloverTimeSlot]] = None
    friday: Optional[CloverElements[CloverTimeSlot]] = None
    saturday: Optional[CloverElements[CloverTimeSlot]] = None


CloverCategoriesResponse = CloverElements[CloverCategory]
CloverItemsResponse = CloverElements[CloverItem]
CloverModifierGroupsResponse = CloverElements[CloverModifierGroup]
CloverOpeningHoursResponse = CloverElements[CloverOpeningHours]
