"""
Provider-agnostic pieces of catalog normalization.

Both adapters turn their provider payload into (category list, item list with
category ids) and hand it to assemble_menu(), so category grouping, the
"Other" bucket and ordering behave the same for every provider.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.integrations.contracts.interfaces import MenuCategory, MenuItem, MenuItemModifierList
from src.integrations.errors import IntegrationResponseError

logger = logging.getLogger(__name__)

UNCATEGORIZED_NAME = "Other"

M = TypeVar("M", bound=BaseModel)


def parse_wire_model(model_type: Type[M], data: Any, label: str) -> M:
    """Validate a provider response body against its wire contract."""
    if not isinstance(data, dict):
        raise IntegrationResponseError(f"{label} response is not a JSON object.")
    try:
        return model_type.model_validate(data)
    except ValidationError as exc:
        logger.error("%s response failed validation: %s", label, exc)
        raise IntegrationResponseError(f"{label} response validation failed: {exc}", payload=data) from exc


def assemble_menu(
    categories: Sequence[Tuple[str, str]],
    items: Sequence[Tuple[List[str], MenuItem]],
) -> List[MenuCategory]:
    """
    Group items under their categories.

    Args:
        categories: (category_id, name) pairs, in provider order
        items: (category_ids, item) pairs, already filtered for visibility

    Items listed under several categories appear in each. Items matching no
    known category go to an "Other" category. Empty categories are dropped and
    the result is sorted by name (stable for equal names).
    """
    placed = set()
    menu: List[MenuCategory] = []

    for category_id, name in categories:
        members = [item for ids, item in items if category_id in ids]
        placed.update(item.id for item in members)
        if members:
            menu.append(MenuCategory(name=name, items=members))

    leftovers = [item for _, item in items if item.id not in placed]
    if leftovers:
        menu.append(MenuCategory(name=UNCATEGORIZED_NAME, items=leftovers))

    return sorted(menu, key=lambda c: c.name)


def extract_customization_types(modifier_lists: Iterable[MenuItemModifierList]) -> Optional[List[str]]:
    """Legacy coarse tags (size/ice/milk/sugar/other) derived from modifier list names."""
    tags: List[str] = []
    for modifier_list in modifier_lists:
        name = modifier_list.name.lower()
        if "size" in name:
            tags.append("size")
        elif "ice" in name:
            tags.append("ice")
        elif "milk" in name:
            tags.append("milk")
        elif "sugar" in name or "sweet" in name:
            tags.append("sugar")
        else:
            tags.append("other")
    return tags or None


def format_hhmm(hours: int, minutes: int) -> str:
    return f"{hours:02d}:{minutes:02d}"
