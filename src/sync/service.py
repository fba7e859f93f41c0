"""
Wiring for the menu sync stack.

build_sync_service() is the single place where config turns into objects:
credential cache and broker, per-provider adapters, disk cache, synchronizer,
order store and reconciler. The API and scripts both start from here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import httpx

from src.database.menu_cache import MenuDiskCache
from src.database.orders import JsonFileOrderStore, OrderStore
from src.database.shops import index_by_id, load_coffee_shops
from src.error_handler import ErrorHandler
from src.integrations.clients.factory import AdapterRegistry, build_adapters
from src.integrations.clients.real_http.credentials import CredentialBroker, CredentialCache
from src.integrations.contracts.interfaces import CoffeeShop
from src.sync.menu_synchronizer import MenuSynchronizer
from src.sync.order_reconciler import OrderStatusReconciler
from src.utils.sync_config_loader import SyncConfig

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


def resolve_path(value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else PROJECT_ROOT / path


@dataclass
class SyncService:
    shops: Dict[str, CoffeeShop]
    broker: CredentialBroker
    registry: AdapterRegistry
    synchronizer: MenuSynchronizer
    reconciler: OrderStatusReconciler
    error_handler: ErrorHandler

    def get_shop(self, shop_id: str) -> Optional[CoffeeShop]:
        return self.shops.get(shop_id)

    def list_shops(self) -> List[CoffeeShop]:
        return list(self.shops.values())


def build_sync_service(
    config: SyncConfig,
    shops: Optional[List[CoffeeShop]] = None,
    order_store: Optional[OrderStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SyncService:
    if shops is None:
        shops = load_coffee_shops(resolve_path(config.sync.shops_file))
    if order_store is None:
        order_store = JsonFileOrderStore(resolve_path(config.sync.orders_file))

    broker = CredentialBroker(
        base_url=config.credentials.base_url,
        cache=CredentialCache(ttl_seconds=config.credentials.ttl_seconds),
        timeout_seconds=config.credentials.timeout_seconds,
        transport=transport,
    )
    registry = AdapterRegistry(build_adapters(config, broker, transport=transport))
    for shop in shops:
        registry.register(shop)

    error_handler = ErrorHandler()
    synchronizer = MenuSynchronizer(
        adapter_for=registry.for_shop,
        disk_cache=MenuDiskCache(resolve_path(config.cache.dir)),
        broker=broker,
        menu_ttl_seconds=config.cache.menu_ttl_seconds,
        error_handler=error_handler,
        retry_on_auth_error=config.sync.retry_on_auth_error,
    )
    reconciler = OrderStatusReconciler(order_store, registry.for_provider)

    logger.info("Sync service ready: %d shops, adapters=%s", len(shops), config.adapters)
    return SyncService(
        shops=index_by_id(shops),
        broker=broker,
        registry=registry,
        synchronizer=synchronizer,
        reconciler=reconciler,
        error_handler=error_handler,
    )
