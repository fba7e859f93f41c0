from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.integrations.contracts.interfaces import Credentials, POSProvider
from src.integrations.errors import IntegrationResponseError

logger = logging.getLogger(__name__)


class _NonEmptyStrings(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    @field_validator("*")
    @classmethod
    def _not_blank(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value


class SquareTokensModel(_NonEmptyStrings):
    oauth_token: str
    merchantId: str
    refreshToken: str


class CloverCredentialsModel(_NonEmptyStrings):
    accessToken: str
    merchantId: str


def normalize_square_tokens(raw: Any) -> Credentials:
    """Parse `{"tokens": {"oauth_token", "merchantId", "refreshToken"}}`."""
    tokens = _nested_object(raw, "tokens")
    model = _build_model(SquareTokensModel, tokens)
    return Credentials(
        provider=POSProvider.SQUARE,
        access_token=model.oauth_token,
        merchant_id=model.merchantId,
        refresh_token=model.refreshToken,
    )


def normalize_clover_credentials(raw: Any) -> Credentials:
    """Parse `{"credentials": {"accessToken", "merchantId"}}`."""
    credentials = _nested_object(raw, "credentials")
    model = _build_model(CloverCredentialsModel, credentials)
    return Credentials(
        provider=POSProvider.CLOVER,
        access_token=model.accessToken,
        merchant_id=model.merchantId,
    )


def minor_units_to_amount(value: Any) -> float:
    """Convert an integer amount in cents to dollars. Missing amounts count as zero."""
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise IntegrationResponseError(f"Invalid money amount: {value!r}")
    return round(value / 100.0, 2)


def extract_error_detail(body: Any) -> Optional[str]:
    """Pull a human-readable message out of a Square (`errors[0].detail`) or Clover (`message`) error body."""
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        detail = errors[0].get("detail") or errors[0].get("code")
        if detail:
            return str(detail)
    message = body.get("message") or body.get("error")
    return str(message) if message else None


def _nested_object(raw: Any, key: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise IntegrationResponseError("Credential response is not a JSON object.")
    nested = raw.get(key)
    if not isinstance(nested, dict):
        logger.error("Credential response has no '%s' object; keys=%s", key, sorted(raw.keys()))
        raise IntegrationResponseError(f"Missing '{key}' object in credential response.", payload=raw)
    return nested


def _build_model(model_type, payload: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        missing = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        logger.error("Credential response failed validation; bad fields=%s", missing)
        raise IntegrationResponseError(
            f"Response validation failed for fields: {', '.join(missing)}",
            payload={"keys": sorted(payload.keys())},
        ) from exc
