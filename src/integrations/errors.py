"""
Integration error taxonomy.

Every failure raised by the credential broker or a catalog adapter is one of
these. Callers decide what to do with them:
- ConfigurationError: programmer/config mistake, never retried
- TransportError: network unreachable, retryable by the user
- HTTPStatusError: non-2xx answer, carries the status code
- IntegrationResponseError: body is missing fields or has the wrong shape
- AuthorizationError: provider rejected the credentials (401/403); a caller
  may evict the cached credentials and retry once
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class IntegrationError(Exception):
    """Base class for every error raised by the integrations layer."""


class ConfigurationError(IntegrationError, ValueError):
    pass


class TransportError(IntegrationError):
    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class HTTPStatusError(IntegrationError):
    def __init__(self, status_code: int, *, url: Optional[str] = None, detail: Optional[str] = None) -> None:
        message = f"HTTP error: {status_code}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.detail = detail


class AuthorizationError(HTTPStatusError):
    pass


class IntegrationResponseError(IntegrationError, ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}
