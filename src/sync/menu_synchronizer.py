"""
Menu synchronization for coffee shops.

For every shop the synchronizer serves the best menu it has (memory, then
disk, then network) and keeps a per-shop state of:
- categories: the menu currently shown
- is_loading: a foreground fetch is in flight
- error_message: why the last foreground fetch failed

Background ("silent") refreshes replace the menu only when they succeed.
A failed background refresh is logged and remembered in
last_refresh_error(), but the shown menu and error message are untouched.

Each shop's state is an immutable MenuSyncState replaced as a whole under
that shop's asyncio.Lock, so readers always see a consistent snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set

from src.database.menu_cache import MenuDiskCache
from src.error_handler import ErrorHandler
from src.integrations.clients.real_http.credentials import CredentialBroker
from src.integrations.contracts.interfaces import CatalogAdapter, CoffeeShop, MenuCategory
from src.integrations.contracts.menus import count_items
from src.integrations.errors import AuthorizationError

logger = logging.getLogger(__name__)

DEFAULT_MENU_TTL_SECONDS = 30 * 60


@dataclass(frozen=True)
class MenuSyncState:
    categories: List[MenuCategory] = field(default_factory=list)
    is_loading: bool = False
    error_message: Optional[str] = None
    updated_at: Optional[float] = None


class MenuSynchronizer:
    def __init__(
        self,
        adapter_for: Callable[[CoffeeShop], CatalogAdapter],
        disk_cache: MenuDiskCache,
        broker: Optional[CredentialBroker] = None,
        menu_ttl_seconds: float = DEFAULT_MENU_TTL_SECONDS,
        error_handler: Optional[ErrorHandler] = None,
        retry_on_auth_error: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._adapter_for = adapter_for
        self.disk_cache = disk_cache
        self.broker = broker
        self.menu_ttl_seconds = menu_ttl_seconds
        self.error_handler = error_handler or ErrorHandler()
        self.retry_on_auth_error = retry_on_auth_error
        self._clock = clock

        self._states: Dict[str, MenuSyncState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._refresh_tasks: Dict[str, asyncio.Task] = {}
        self._refresh_errors: Dict[str, Exception] = {}
        self._background: Set[asyncio.Task] = set()

    # --- reads ----------------------------------------------------------------

    def snapshot(self, shop: CoffeeShop) -> MenuSyncState:
        return self._states.get(shop.id, MenuSyncState())

    def get_menu_categories(self, shop: CoffeeShop) -> List[MenuCategory]:
        return list(self.snapshot(shop).categories)

    def is_loading(self, shop: CoffeeShop) -> bool:
        return self.snapshot(shop).is_loading

    def get_error_message(self, shop: CoffeeShop) -> Optional[str]:
        return self.snapshot(shop).error_message

    def last_refresh_error(self, shop: CoffeeShop) -> Optional[Exception]:
        return self._refresh_errors.get(shop.id)

    # --- writes ---------------------------------------------------------------

    async def clear_error(self, shop: CoffeeShop) -> None:
        async with self._lock(shop):
            self._set(shop, error_message=None)

    async def prime_menu(self, shop: CoffeeShop) -> MenuSyncState:
        """Show a menu as fast as possible: memory, then disk, then network."""
        if self.snapshot(shop).categories:
            logger.debug("Menu memory hit for shop=%s", shop.id)
            self._schedule_refresh(shop)
            return self.snapshot(shop)

        cached = await self.disk_cache.load(shop.id)
        if cached is not None:
            logger.info("Menu disk hit for shop=%s (%d items)", shop.id, count_items(cached.categories))
            async with self._lock(shop):
                self._set(
                    shop,
                    categories=list(cached.categories),
                    is_loading=False,
                    error_message=None,
                    updated_at=cached.timestamp,
                )
            if cached.is_stale(self._clock(), self.menu_ttl_seconds):
                logger.info("Cached menu for shop=%s is stale; refreshing in background", shop.id)
                self._schedule_refresh(shop)
            return self.snapshot(shop)

        return await self.fetch_menu_data(shop)

    async def fetch_menu_data(self, shop: CoffeeShop) -> MenuSyncState:
        async with self._lock(shop):
            self._set(shop, is_loading=True, error_message=None)

        try:
            categories = await self._fetch(shop)
        except Exception as exc:
            logger.error("Menu fetch failed for shop=%s (%s): %s", shop.id, shop.name, exc)
            message = self.error_handler.user_message(exc)
            async with self._lock(shop):
                self._set(shop, is_loading=False, error_message=message)
            return self.snapshot(shop)

        async with self._lock(shop):
            self._set(shop, categories=categories, is_loading=False, error_message=None, updated_at=self._clock())
        await self._persist(shop, categories)
        return self.snapshot(shop)

    async def refresh_menu_data(self, shop: CoffeeShop) -> MenuSyncState:
        return await self.fetch_menu_data(shop)

    async def wait_for_background_refreshes(self) -> None:
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # --- internals ------------------------------------------------------------

    def _lock(self, shop: CoffeeShop) -> asyncio.Lock:
        lock = self._locks.get(shop.id)
        if lock is None:
            lock = self._locks[shop.id] = asyncio.Lock()
        return lock

    def _set(self, shop: CoffeeShop, **changes) -> None:
        self._states[shop.id] = replace(self.snapshot(shop), **changes)

    async def _fetch(self, shop: CoffeeShop) -> List[MenuCategory]:
        adapter = self._adapter_for(shop)
        try:
            return await adapter.fetch_menu(shop)
        except AuthorizationError:
            if not (self.retry_on_auth_error and self.broker is not None):
                raise
            logger.warning(
                "Authorization rejected for shop=%s merchant=%s; refreshing credentials and retrying once",
                shop.id, shop.merchant_id,
            )
            self.broker.invalidate(shop.merchant_id, shop.pos_type)
            return await adapter.fetch_menu(shop)

    async def _persist(self, shop: CoffeeShop, categories: List[MenuCategory]) -> None:
        try:
            await self.disk_cache.save(shop.id, categories)
        except OSError as exc:
            logger.warning("Could not write menu cache for shop=%s: %s", shop.id, exc)

    def _schedule_refresh(self, shop: CoffeeShop) -> None:
        running = self._refresh_tasks.get(shop.id)
        if running is not None and not running.done():
            return
        task = asyncio.create_task(self._refresh_silently(shop))
        self._refresh_tasks[shop.id] = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_silently(self, shop: CoffeeShop) -> None:
        try:
            categories = await self._fetch(shop)
        except Exception as exc:
            self._refresh_errors[shop.id] = exc
            logger.warning("Silent refresh failed for shop=%s: %s", shop.id, exc)
            return

        self._refresh_errors.pop(shop.id, None)
        async with self._lock(shop):
            self._set(shop, categories=categories, error_message=None, updated_at=self._clock())
        await self._persist(shop, categories)
        logger.info("Silent refresh updated shop=%s (%d items)", shop.id, count_items(categories))
