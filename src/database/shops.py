"""
Coffee shop directory.

Shops are loaded once from a JSON list (camelCase keys, same shape the mobile
app bundles). Entries that fail validation are dropped with a warning so one
bad row does not hide the rest of the directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Union

from pydantic import BaseModel, ValidationError

from src.integrations.contracts.interfaces import CoffeeShop, POSProvider

logger = logging.getLogger(__name__)


class CoffeeShopRecord(BaseModel):
    id: str
    name: str
    merchantId: str
    posType: POSProvider
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    phone: str = ""
    website: str = ""
    description: str = ""
    imageName: str = ""
    stampName: str = ""

    def to_shop(self) -> CoffeeShop:
        return CoffeeShop(
            id=self.id,
            name=self.name,
            merchant_id=self.merchantId,
            pos_type=self.posType,
            address=self.address,
            latitude=self.latitude,
            longitude=self.longitude,
            phone=self.phone,
            website=self.website,
            description=self.description,
            image_name=self.imageName,
            stamp_name=self.stampName,
        )


def load_coffee_shops(path: Union[str, Path]) -> List[CoffeeShop]:
    """
    Load and validate the shop directory.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: the file is not a JSON list
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Coffee shop file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Coffee shop file {path} must contain a JSON list")

    shops: List[CoffeeShop] = []
    for index, raw in enumerate(data):
        try:
            shop = CoffeeShopRecord.model_validate(raw).to_shop()
        except ValidationError as exc:
            logger.warning("Skipping coffee shop #%d: %s", index, exc)
            continue
        if not shop.is_valid:
            logger.warning("Skipping invalid coffee shop id=%s", shop.id)
            continue
        shops.append(shop)

    if len(shops) != len(data):
        logger.warning("Filtered out %d invalid coffee shops", len(data) - len(shops))
    logger.info("Loaded %d valid coffee shops", len(shops))
    return shops


def index_by_id(shops: List[CoffeeShop]) -> Dict[str, CoffeeShop]:
    return {shop.id: shop for shop in shops}
