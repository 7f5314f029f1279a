"""Client wrapper for the Claude Messages API used as the vision inference service."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from battle_analyzer.core.config import AnthropicSettings
from battle_analyzer.core.errors import (
    MissingCredentialError,
    UpstreamError,
    UpstreamRateLimitedError,
    UpstreamUnauthorizedError,
)

_MESSAGES_PATH = "/v1/messages"

logger = logging.getLogger(__name__)


class ClaudeClient:
    """Send multi-modal message lists upstream with the server-held credential.

    Exactly one HTTP call is made per ``create_message``; retries are left to
    callers so a failed attempt is never double-counted against the quota.
    """

    def __init__(
        self,
        settings: AnthropicSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def has_credential(self) -> bool:
        return bool(self._settings.api_key)

    @property
    def default_max_tokens(self) -> int:
        return self._settings.max_tokens

    async def create_message(
        self,
        *,
        messages: list[dict[str, Any]],
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """Forward ``messages`` and return the decoded reply object."""
        if not self.has_credential:
            raise MissingCredentialError()

        body = {
            "model": self._settings.model,
            "max_tokens": max_tokens or self._settings.max_tokens,
            "messages": messages,
        }
        headers = {
            "content-type": "application/json",
            "x-api-key": self._settings.api_key or "",
            "anthropic-version": self._settings.version,
        }

        try:
            async with httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(_MESSAGES_PATH, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning(
                "Inference call timed out after %.0fs.", self._settings.timeout_seconds
            )
            raise UpstreamError("Inference service timed out.") from exc
        except httpx.HTTPError as exc:
            logger.warning("Inference call failed before a response: %s", exc.__class__.__name__)
            raise UpstreamError("Could not reach the inference service.") from exc

        payload = _decode_json(response)
        if response.is_success:
            if not isinstance(payload, dict):
                raise UpstreamError(
                    "Inference service returned an unexpected payload.",
                    status_code=502,
                )
            return payload

        message = _error_message(payload) or f"API error: {response.status_code}"
        logger.warning(
            "Inference service responded with %d: %s", response.status_code, message
        )
        if response.status_code in (401, 403):
            raise UpstreamUnauthorizedError(message, status_code=response.status_code)
        if response.status_code == 429:
            raise UpstreamRateLimitedError(
                message, retry_after=_retry_after(response.headers.get("retry-after"))
            )
        raise UpstreamError(message, status_code=response.status_code)


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(payload: Any) -> Optional[str]:
    """Pull ``error.message`` out of an upstream error body when present."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error:
        return error
    return None


def _retry_after(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        seconds = float(raw.strip())
    except ValueError:
        return None
    # "inf" and "nan" parse as floats but are not usable delays.
    if not math.isfinite(seconds):
        return None
    return max(0, int(seconds))


__all__ = ["ClaudeClient"]
