"""
Integrations layer.
This package contains all code used to communicate with external systems:
- the credential-issuing backend (per-merchant POS access tokens)
- Square catalog / orders / locations APIs
- Clover catalog / orders / opening hours APIs

Key rule:
- Menu sync and order reconciliation MUST NOT call POS APIs directly.
- They go through a CatalogAdapter (under src/integrations/clients).
- We use MOCK clients during development and REAL_HTTP clients otherwise.

Switching implementations:
- The selection of mock vs real clients happens in ONE place
  (src/integrations/clients/factory.py, driven by config/sync_config.yml).
"""

from .contracts.interfaces import (
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
from .contracts.menus import CachedMenu, menu_to_json
from .contracts.orders import Order, OrderItem, order_from_record
from .errors import (
    AuthorizationError,
    ConfigurationError,
    HTTPStatusError,
    IntegrationError,
    IntegrationResponseError,
    TransportError,
)

__all__ = [
    # interfaces
    "BusinessHoursInfo", "BusinessHoursPeriod", "CatalogAdapter", "CoffeeShop",
    "Credentials", "MenuCategory", "MenuItem", "MenuItemModifier",
    "MenuItemModifierList", "MenuItemVariation", "OrderStatus", "POSProvider",
    # menus
    "CachedMenu", "menu_to_json",
    # orders
    "Order", "OrderItem", "order_from_record",
    # errors
    "AuthorizationError", "ConfigurationError", "HTTPStatusError",
    "IntegrationError", "IntegrationResponseError", "TransportError",
]
