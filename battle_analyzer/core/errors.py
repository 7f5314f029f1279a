"""
Error taxonomy shared by the proxy endpoints and the analysis services.

Every error carries a short human-readable message and the HTTP status the
proxy answers with. Quota errors additionally expose machine-readable retry
timing where it is known.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional


class AnalyzerError(RuntimeError):
    """Base class for failures surfaced to callers of the analysis pipeline."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body returned by the proxy."""
        return {"error": self.message}


class QuotaError(AnalyzerError):
    """Raised when the quota governor refuses to admit a request."""

    status_code = HTTPStatus.TOO_MANY_REQUESTS


class RateLimitedError(QuotaError):
    """Per-client window is full; retry after ``retry_after`` seconds."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please wait a minute before trying again.",
        *,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload


class DailyLimitExceededError(QuotaError):
    """Global daily budget is spent until the next UTC calendar day."""

    reset_time = "midnight UTC"

    def __init__(
        self,
        message: str = "Daily limit reached. Please try again tomorrow.",
        *,
        daily_limit: int,
    ) -> None:
        super().__init__(message)
        self.daily_limit = daily_limit

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["dailyLimit"] = self.daily_limit
        payload["resetTime"] = self.reset_time
        return payload


class MissingCredentialError(AnalyzerError):
    """The server has no upstream credential configured."""

    def __init__(self, message: str = "API key not configured") -> None:
        super().__init__(message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)


class UpstreamError(AnalyzerError):
    """Opaque failure reported by (or while reaching) the inference service."""


class UpstreamUnauthorizedError(UpstreamError):
    """The inference service rejected the server credential."""

    status_code = HTTPStatus.UNAUTHORIZED


class UpstreamRateLimitedError(UpstreamError):
    """The inference service itself asked us to slow down."""

    status_code = HTTPStatus.TOO_MANY_REQUESTS

    def __init__(self, message: str, *, retry_after: Optional[int] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        return payload


__all__ = [
    "AnalyzerError",
    "DailyLimitExceededError",
    "MissingCredentialError",
    "QuotaError",
    "RateLimitedError",
    "UpstreamError",
    "UpstreamRateLimitedError",
    "UpstreamUnauthorizedError",
]
