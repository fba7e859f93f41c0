from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class POSProvider(str, Enum):
    SQUARE = "square"
    CLOVER = "clover"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class OrderStatus(str, Enum):
    AUTHORIZED = "AUTHORIZED"      # payment authorized, awaiting confirmation
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    # Legacy values kept so old records still decode; no status mapping produces them.
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    ACTIVE = "active"


# ---------------------------------------------------------------------------
# Shops and credentials
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CoffeeShop:
    id: str
    name: str
    merchant_id: str
    pos_type: POSProvider
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    phone: str = ""
    website: str = ""
    description: str = ""
    image_name: str = ""
    stamp_name: str = ""

    @property
    def is_valid(self) -> bool:
        return (
            bool(self.id and self.name and self.merchant_id)
            and -90 <= self.latitude <= 90
            and -180 <= self.longitude <= 180
        )


@dataclass(frozen=True)
class Credentials:
    provider: POSProvider
    access_token: str
    merchant_id: str
    refresh_token: Optional[str] = None      # Square only
    location_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"Credentials(provider={self.provider.value!r}, merchant_id={self.merchant_id!r})"


# ---------------------------------------------------------------------------
# Normalized menu
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MenuItemModifier:
    id: str
    name: str
    price: float                         # dollars
    is_default: bool = False
    is_available: bool = True


@dataclass(frozen=True)
class MenuItemModifierList:
    id: str
    name: str
    selection_type: str                  # SINGLE / MULTIPLE
    min_selections: int
    max_selections: int
    modifiers: List[MenuItemModifier] = field(default_factory=list)

    @property
    def is_single_selection(self) -> bool:
        return self.selection_type.upper() == "SINGLE"

    @property
    def default_modifiers(self) -> List[MenuItemModifier]:
        return [m for m in self.modifiers if m.is_default]


@dataclass(frozen=True)
class MenuItemVariation:
    id: str
    name: str
    price: float
    ordinal: int = 0


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: float                         # price of the first variation when there are any
    variations: Optional[List[MenuItemVariation]] = None
    customizations: Optional[List[str]] = None
    image_url: Optional[str] = None
    modifier_lists: Optional[List[MenuItemModifierList]] = None

    @property
    def has_size_variations(self) -> bool:
        return bool(self.variations) and len(self.variations) > 1

    @property
    def has_modifiers(self) -> bool:
        return bool(self.modifier_lists)


@dataclass(frozen=True)
class MenuCategory:
    name: str
    items: List[MenuItem] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Business hours
# ---------------------------------------------------------------------------

WEEKDAY_KEYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


@dataclass(frozen=True)
class BusinessHoursPeriod:
    start_time: str                      # HH:MM, local time
    end_time: str


@dataclass(frozen=True)
class BusinessHoursInfo:
    weekly_hours: Dict[str, List[BusinessHoursPeriod]] = field(default_factory=dict)

    def is_open_at(self, moment: datetime) -> bool:
        day_key = WEEKDAY_KEYS[moment.weekday()]
        current = moment.strftime("%H:%M")
        for period in self.weekly_hours.get(day_key, []):
            if period.start_time > period.end_time:
                # spans midnight, e.g. 22:00-02:00
                if current >= period.start_time or current <= period.end_time:
                    return True
            elif period.start_time <= current <= period.end_time:
                return True
        return False

    @property
    def is_currently_open(self) -> bool:
        return self.is_open_at(datetime.now())


# ---------------------------------------------------------------------------
# Abstract catalog adapter
# ---------------------------------------------------------------------------

class CatalogAdapter(ABC):
    """Every POS catalog client must implement this interface."""

    @property
    @abstractmethod
    def provider(self) -> POSProvider:
        """Return the provider enum value."""

    @abstractmethod
    async def fetch_menu(self, shop: CoffeeShop) -> List[MenuCategory]:
        """Fetch and normalize the shop's catalog."""

    @abstractmethod
    async def fetch_order_status(self, order_id: str, merchant_id: str) -> OrderStatus:
        """Look up a provider-native order and map its state."""

    @abstractmethod
    async def fetch_business_hours(self, shop: CoffeeShop) -> Optional[BusinessHoursInfo]:
        """Return the shop's weekly opening hours, or None when the provider has none."""
