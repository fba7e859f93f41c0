"""
Credential Broker.

Purpose:
- Fetches short-lived POS credentials (access token + merchant id) from the
  credential-issuing backend
- Caches them per (merchant_id, provider) for a fixed TTL (30 minutes by default)

Usage:
- Constructed once at startup (see src/sync/service.py) and injected into both
  catalog adapters
- Adapters call get_credentials() before every provider request; they never
  keep credentials themselves

Important:
- Credentials are never written to disk or logged
- An expired entry is evicted when read; a failed refetch does not bring it back
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import httpx

from src.integrations.clients.real_http.http import ensure_http_url, request_json
from src.integrations.contracts.interfaces import Credentials, POSProvider
from src.integrations.policy.response_wrappers import (
    normalize_clover_credentials,
    normalize_square_tokens,
)
from src.utils.rw_lock import ReadWriteLock

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIAL_TTL_SECONDS = 30 * 60

CacheKey = Tuple[str, POSProvider]


@dataclass(frozen=True)
class CacheEntry:
    credentials: Credentials
    fetched_at: float


class CredentialCache:
    """In-memory credential cache; shared reads, exclusive writes."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CREDENTIAL_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = ReadWriteLock()

    def get(self, merchant_id: str, provider: POSProvider) -> Optional[Credentials]:
        key = (merchant_id, provider)
        with self._lock.read_locked():
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.fetched_at < self.ttl_seconds:
                return entry.credentials

        with self._lock.write_locked():
            # another writer may have refreshed the entry meanwhile
            current = self._entries.get(key)
            if current is not None and self._clock() - current.fetched_at < self.ttl_seconds:
                return current.credentials
            if current is not None:
                del self._entries[key]
                logger.info("Evicted expired credentials for merchant=%s provider=%s", merchant_id, provider.value)
        return None

    def put(self, merchant_id: str, provider: POSProvider, credentials: Credentials) -> None:
        with self._lock.write_locked():
            self._entries[(merchant_id, provider)] = CacheEntry(credentials, self._clock())

    def invalidate(self, merchant_id: str, provider: POSProvider) -> None:
        with self._lock.write_locked():
            self._entries.pop((merchant_id, provider), None)

    def clear(self) -> None:
        with self._lock.write_locked():
            self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock.read_locked():
            return key in self._entries

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)


class CredentialBroker:
    ENDPOINTS = {
        POSProvider.SQUARE: "getMerchantTokens",
        POSProvider.CLOVER: "getCloverCredentials",
    }

    _PARSERS = {
        POSProvider.SQUARE: normalize_square_tokens,
        POSProvider.CLOVER: normalize_clover_credentials,
    }

    def __init__(
        self,
        base_url: Optional[str] = None,
        cache: Optional[CredentialCache] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url if base_url is not None else os.getenv("SIPLOCAL_CREDENTIALS_URL", "")
        self.cache = cache if cache is not None else CredentialCache()
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def get_credentials(self, merchant_id: str, provider: POSProvider) -> Credentials:
        cached = self.cache.get(merchant_id, provider)
        if cached is not None:
            logger.debug("Credential cache hit merchant=%s provider=%s", merchant_id, provider.value)
            return cached

        credentials = await self._fetch(merchant_id, provider)
        self.cache.put(merchant_id, provider, credentials)
        return credentials

    def invalidate(self, merchant_id: str, provider: POSProvider) -> None:
        self.cache.invalidate(merchant_id, provider)

    async def _fetch(self, merchant_id: str, provider: POSProvider) -> Credentials:
        base_url = ensure_http_url(self.base_url, "SIPLOCAL_CREDENTIALS_URL")
        url = f"{base_url}/{self.ENDPOINTS[provider]}"

        logger.info("Fetching %s credentials for merchant=%s", provider.value, merchant_id)
        data = await request_json(
            "POST",
            url,
            headers={"Content-Type": "application/json"},
            json_body={"merchantId": merchant_id},
            timeout_seconds=self.timeout_seconds,
            transport=self._transport,
            auth_errors=False,
            require_200=True,
        )
        credentials = self._PARSERS[provider](data)
        logger.info("Received %s credentials for merchant=%s", provider.value, credentials.merchant_id)
        return credentials
