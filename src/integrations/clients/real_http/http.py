"""
Shared JSON-over-HTTP helper for the real clients.

Maps httpx failures onto the integration error taxonomy so every real client
raises the same error kinds.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from src.integrations.errors import (
    AuthorizationError,
    ConfigurationError,
    HTTPStatusError,
    IntegrationResponseError,
    TransportError,
)
from src.integrations.policy.response_wrappers import extract_error_detail

logger = logging.getLogger(__name__)


def ensure_http_url(url: Optional[str], setting: str) -> str:
    """Return the URL without a trailing slash, or raise ConfigurationError."""
    if not url:
        raise ConfigurationError(f"{setting} is not configured.")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"{setting} is not a valid URL: {url!r}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"{setting} must be an absolute http(s) URL: {url!r}")
    return url.rstrip("/")


async def request_json(
    method: str,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    json_body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, str]] = None,
    timeout_seconds: float = 20.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    auth_errors: bool = True,
    require_200: bool = False,
) -> Any:
    """
    Send a request and return the decoded JSON body.

    Raises:
        ConfigurationError: the URL cannot be used
        TransportError: the request never got an answer
        AuthorizationError: 401/403 when auth_errors is set
        HTTPStatusError: any other non-2xx (or non-200 with require_200)
        IntegrationResponseError: the body is not JSON
    """
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
            response = await client.request(method, url, headers=headers, json=json_body, params=params)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
        raise ConfigurationError(f"Invalid request URL {url!r}: {exc}") from exc
    except httpx.RequestError as exc:
        logger.error("Request error calling %s %s: %s", method, url, exc)
        raise TransportError(f"Network error: {exc}", url=url) from exc

    status = response.status_code
    ok = status == 200 if require_200 else 200 <= status < 300
    if not ok:
        detail = extract_error_detail(_safe_json(response))
        logger.error("HTTP %s from %s %s: %s", status, method, url, detail or response.text[:200])
        if auth_errors and status in (401, 403):
            raise AuthorizationError(status, url=url, detail=detail)
        raise HTTPStatusError(status, url=url, detail=detail)

    try:
        return response.json()
    except ValueError as exc:
        logger.error("Non-JSON body from %s %s", method, url)
        raise IntegrationResponseError(f"Response from {url} is not valid JSON.") from exc


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
