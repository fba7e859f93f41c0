"""
API key guard for the menu sync API.

API_KEYS holds a comma-separated list of accepted keys, sent by clients in the
X-API-KEY header. With no keys configured the API is open (local development).
Health and docs routes are always public.
"""

import hmac
import logging
import os
from typing import List, Optional

from fastapi import Header, HTTPException, Request, status

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/health", "/docs", "/docs/oauth2-redirect", "/openapi.json", "/redoc"})


def configured_api_keys() -> List[str]:
    return [k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()]


def key_is_accepted(candidate: Optional[str], accepted: List[str]) -> bool:
    candidate = (candidate or "").strip()
    if not candidate:
        return False
    matches = [hmac.compare_digest(candidate, key) for key in accepted]
    return any(matches)


async def api_key_protection(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
) -> None:
    if request.url.path in PUBLIC_PATHS:
        return

    accepted = configured_api_keys()
    if not accepted:
        return

    if not key_is_accepted(x_api_key, accepted):
        logger.info("Rejected request to %s: missing or unknown API key", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
