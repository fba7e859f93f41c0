"""
Catalog adapter selection.

The adapter for a shop is picked once, from its POS type, when the shop list
is loaded. Real vs mock clients are chosen here and nowhere else.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import httpx

from src.integrations.clients.mocks.catalog import MockCatalogAdapter
from src.integrations.clients.real_http.clover_catalog import CloverCatalogAdapter
from src.integrations.clients.real_http.credentials import CredentialBroker
from src.integrations.clients.real_http.square_catalog import SquareCatalogAdapter
from src.integrations.contracts.interfaces import CatalogAdapter, CoffeeShop, POSProvider
from src.utils.sync_config_loader import SyncConfig

logger = logging.getLogger(__name__)


def build_adapters(
    config: SyncConfig,
    broker: CredentialBroker,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[POSProvider, CatalogAdapter]:
    if config.adapters == "mock":
        logger.info("Using mock catalog adapters")
        return {provider: MockCatalogAdapter(provider=provider) for provider in POSProvider}

    return {
        POSProvider.SQUARE: SquareCatalogAdapter(
            broker,
            base_url=config.square.base_url,
            timeout_seconds=config.square.timeout_seconds,
            max_pages=config.square.max_catalog_pages,
            transport=transport,
        ),
        POSProvider.CLOVER: CloverCatalogAdapter(
            broker,
            base_url=config.clover.base_url,
            timeout_seconds=config.clover.timeout_seconds,
            transport=transport,
        ),
    }


class AdapterRegistry:
    """Maps shop ids to the adapter chosen for them at load time."""

    def __init__(self, adapters: Mapping[POSProvider, CatalogAdapter]) -> None:
        self._by_provider = dict(adapters)
        self._by_shop: Dict[str, CatalogAdapter] = {}

    def register(self, shop: CoffeeShop) -> CatalogAdapter:
        adapter = self._by_provider[shop.pos_type]
        self._by_shop[shop.id] = adapter
        return adapter

    def for_shop(self, shop: CoffeeShop) -> CatalogAdapter:
        adapter = self._by_shop.get(shop.id)
        if adapter is None:
            adapter = self.register(shop)
        return adapter

    def for_provider(self, provider: POSProvider) -> CatalogAdapter:
        return self._by_provider[provider]
