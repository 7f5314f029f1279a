"""Quota-governed proxy in front of the inference service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from battle_analyzer.clients.claude import ClaudeClient
from battle_analyzer.core.errors import (
    DailyLimitExceededError,
    MissingCredentialError,
    RateLimitedError,
)
from battle_analyzer.services.quota import QuotaDenialReason, QuotaGovernor

logger = logging.getLogger(__name__)


class InferenceTransport(Protocol):
    """Anything that can carry a message list to the inference service.

    Implementations return the upstream reply augmented with ``usage_info``
    and raise :class:`AnalyzerError` subclasses on failure.
    """

    async def send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        ...


class InferenceProxy:
    """Admit, forward, and account for one upstream call per invocation."""

    def __init__(self, client: ClaudeClient, governor: QuotaGovernor) -> None:
        self._client = client
        self._governor = governor

    @property
    def governor(self) -> QuotaGovernor:
        return self._governor

    async def send(
        self,
        client_id: str,
        messages: list[dict[str, Any]],
        *,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """Forward ``messages`` on behalf of ``client_id``.

        Raises ``RateLimitedError``/``DailyLimitExceededError`` before any
        upstream call is made, ``MissingCredentialError`` when the server is
        misconfigured, and ``UpstreamError`` subclasses for upstream failures.
        Only successful calls consume the daily budget.
        """
        if not self._client.has_credential:
            logger.error("Upstream credential is not configured; refusing analyze call.")
            raise MissingCredentialError()

        decision = self._governor.admit(client_id)
        if not decision.allowed:
            if decision.reason is QuotaDenialReason.RATE_LIMITED:
                raise RateLimitedError(retry_after=decision.retry_after_seconds)
            raise DailyLimitExceededError(daily_limit=self._governor.daily_limit)

        try:
            reply = await self._client.create_message(
                messages=messages, max_tokens=max_tokens
            )
        except BaseException:
            # Upstream failures and cancellation both free the reservation.
            self._governor.release()
            raise

        usage = self._governor.commit()
        return {**reply, "usage_info": usage.as_dict()}

    def bind(self, client_id: str) -> "BoundInferenceProxy":
        """Return a transport that sends on behalf of ``client_id``."""
        return BoundInferenceProxy(self, client_id)


@dataclass(frozen=True, slots=True)
class BoundInferenceProxy:
    """In-process transport used by the analysis services."""

    proxy: InferenceProxy
    client_id: str

    async def send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        return await self.proxy.send(self.client_id, messages, max_tokens=max_tokens)


__all__ = ["BoundInferenceProxy", "InferenceProxy", "InferenceTransport"]
