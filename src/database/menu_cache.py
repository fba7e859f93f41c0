"""
On-disk menu cache.

One JSON file per shop under the cache directory:
    {cache_dir}/menu_cache_{shop_id}.json

Writes go to a temp file in the same directory followed by a rename, so a
reader never sees a half-written file. Anything that cannot be read or decoded
is reported as a miss; the caller then fetches from the network.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional, Union

from src.integrations.contracts.interfaces import MenuCategory
from src.integrations.contracts.menus import CachedMenu, decode_cached_menu, encode_cached_menu

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = "data/menu_cache"
FILE_PREFIX = "menu_cache_"


class MenuDiskCache:
    def __init__(
        self,
        cache_dir: Union[str, Path, None] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir or os.getenv("SIPLOCAL_MENU_CACHE_DIR", DEFAULT_CACHE_DIR))
        self._clock = clock

    def path_for(self, shop_id: str) -> Path:
        return self.cache_dir / f"{FILE_PREFIX}{shop_id}.json"

    # --- async API used by the synchronizer ---------------------------------

    async def save(self, shop_id: str, categories: List[MenuCategory]) -> CachedMenu:
        cached = CachedMenu(categories=list(categories), timestamp=self._clock())
        await asyncio.to_thread(self._write, shop_id, encode_cached_menu(cached))
        return cached

    async def load(self, shop_id: str) -> Optional[CachedMenu]:
        return await asyncio.to_thread(self.load_sync, shop_id)

    async def clear(self, shop_id: str) -> None:
        await asyncio.to_thread(self._remove, self.path_for(shop_id))

    async def clear_all(self) -> int:
        return await asyncio.to_thread(self._remove_all)

    # --- blocking helpers ---------------------------------------------------

    def load_sync(self, shop_id: str) -> Optional[CachedMenu]:
        path = self.path_for(shop_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read menu cache %s: %s", path, exc)
            return None

        try:
            return decode_cached_menu(raw)
        except ValueError as exc:
            logger.warning("Ignoring corrupt menu cache %s: %s", path, exc)
            return None

    def _write(self, shop_id: str, payload: bytes) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(shop_id)
        with tempfile.NamedTemporaryFile("wb", delete=False, dir=str(self.cache_dir), suffix=".tmp") as tmp:
            tmp.write(payload)
            tmp_path = Path(tmp.name)
        try:
            os.replace(tmp_path, target)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Menu cache written for shop=%s (%d bytes)", shop_id, len(payload))

    @staticmethod
    def _remove(path: Path) -> None:
        path.unlink(missing_ok=True)

    def _remove_all(self) -> int:
        if not self.cache_dir.exists():
            return 0
        removed = 0
        for path in self.cache_dir.glob(f"{FILE_PREFIX}*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.info("Cleared %d cached menus from %s", removed, self.cache_dir)
        return removed
