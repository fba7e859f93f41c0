"""
Menu contracts.

Defines the on-disk unit of the menu cache and the helpers used to encode and
decode it. Both the Square and Clover adapters produce List[MenuCategory]; the
synchronizer persists that list wrapped in a CachedMenu.

Disk layout (one file per shop):
    {"categories": [...], "timestamp": <epoch seconds>}
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from pydantic import TypeAdapter, ValidationError

from .interfaces import MenuCategory


@dataclass(frozen=True)
class CachedMenu:
    categories: List[MenuCategory] = field(default_factory=list)
    timestamp: float = 0.0               # epoch seconds

    def is_stale(self, now: float, ttl_seconds: float) -> bool:
        return now - self.timestamp > ttl_seconds


_CACHED_MENU_ADAPTER = TypeAdapter(CachedMenu)


def cached_menu_to_dict(cached: CachedMenu) -> Dict[str, Any]:
    return asdict(cached)


def encode_cached_menu(cached: CachedMenu) -> bytes:
    return json.dumps(cached_menu_to_dict(cached), sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode_cached_menu(raw: bytes) -> CachedMenu:
    """
    Decode a cached menu file.

    Raises:
        ValueError: the bytes are not JSON or do not match the CachedMenu shape
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cached menu is not valid JSON: {exc}") from exc
    try:
        return _CACHED_MENU_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise ValueError(f"Cached menu does not match schema: {exc}") from exc


def menu_to_json(categories: List[MenuCategory]) -> str:
    """Stable JSON rendering of a normalized menu (used for comparisons and the API)."""
    return json.dumps([asdict(c) for c in categories], sort_keys=True, separators=(",", ":"))


def count_items(categories: List[MenuCategory]) -> int:
    return sum(len(c.items) for c in categories)
