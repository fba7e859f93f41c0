"""
Sync configuration loader (credential service, POS endpoints, cache, sync behavior).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class CredentialsConfig(BaseModel):
    base_url: str = ""
    ttl_seconds: float = Field(default=1800.0, gt=0)
    timeout_seconds: float = Field(default=15.0, gt=0)


class SquareConfig(BaseModel):
    base_url: str = "https://connect.squareup.com/v2"
    timeout_seconds: float = Field(default=20.0, gt=0)
    max_catalog_pages: int = Field(default=20, ge=1, le=500)


class CloverConfig(BaseModel):
    base_url: str = "https://sandbox.dev.clover.com/v3"
    timeout_seconds: float = Field(default=20.0, gt=0)


class CacheConfig(BaseModel):
    dir: str = "data/menu_cache"
    menu_ttl_seconds: float = Field(default=1800.0, ge=0)


class SyncSettings(BaseModel):
    retry_on_auth_error: bool = True
    shops_file: str = "data/coffee_shops.json"
    orders_file: str = "data/orders.json"


class SyncConfig(BaseModel):
    adapters: Literal["real", "mock"] = "real"
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    square: SquareConfig = Field(default_factory=SquareConfig)
    clover: CloverConfig = Field(default_factory=CloverConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    sync: SyncSettings = Field(default_factory=SyncSettings)


def _apply_env_overrides(cfg: SyncConfig) -> SyncConfig:
    overrides = {
        ("credentials", "base_url"): os.getenv("SIPLOCAL_CREDENTIALS_URL"),
        ("cache", "dir"): os.getenv("SIPLOCAL_MENU_CACHE_DIR"),
        ("square", "base_url"): os.getenv("SQUARE_API_BASE_URL"),
        ("clover", "base_url"): os.getenv("CLOVER_API_BASE_URL"),
    }
    for (section, key), value in overrides.items():
        if value:
            setattr(getattr(cfg, section), key, value)
    return cfg


def load_sync_config(config_path: Optional[Path] = None) -> SyncConfig:
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "sync_config.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"Sync config file not found: {config_path}")

    load_dotenv()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        cfg = SyncConfig(**data)
    except ValidationError as e:
        logger.error("Sync config validation failed: %s", e)
        raise

    cfg = _apply_env_overrides(cfg)
    logger.info("Successfully loaded sync config from %s", config_path)
    return cfg
