"""Error handling helpers for menu sync and the API."""
from typing import Any, Dict
import logging

from src.integrations.errors import (
    AuthorizationError,
    ConfigurationError,
    HTTPStatusError,
    IntegrationError,
    IntegrationResponseError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ErrorHandler:
    def user_message(self, exc: Exception) -> str:
        """Short message shown next to a shop's menu when loading failed."""
        if isinstance(exc, TransportError):
            return "Network error: could not reach the menu service. Please check your connection and try again."
        if isinstance(exc, AuthorizationError):
            return "This coffee shop's menu is temporarily unavailable (authorization failed)."
        if isinstance(exc, HTTPStatusError):
            return f"The menu service returned an error ({exc.status_code}). Please try again later."
        if isinstance(exc, IntegrationResponseError):
            return "The menu service returned an unexpected response. Please try again later."
        if isinstance(exc, ConfigurationError):
            return "Menu service is not configured correctly."
        return str(exc) or "An unexpected error occurred while loading the menu."

    def error_code(self, exc: Exception) -> str:
        if isinstance(exc, IntegrationError):
            return type(exc).__name__
        return "InternalError"

    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        if isinstance(exc, IntegrationError):
            logger.warning("Integration failure: %s", exc)
        else:
            logger.error("Unhandled exception in menu sync: %s", exc, exc_info=True)
        metadata: Dict[str, Any] = {"error": self.error_code(exc), "context": context or {}}
        if isinstance(exc, HTTPStatusError):
            metadata["status_code"] = exc.status_code
        return {
            "message": self.user_message(exc),
            "metadata": metadata,
        }
