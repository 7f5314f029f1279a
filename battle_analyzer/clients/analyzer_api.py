"""HTTP client for a deployed analysis proxy."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from battle_analyzer.core.errors import (
    DailyLimitExceededError,
    MissingCredentialError,
    RateLimitedError,
    UpstreamError,
    UpstreamUnauthorizedError,
)


class AnalyzerApiClient:
    """Talk to ``/api/analyze`` and ``/api/usage`` on a running proxy.

    Implements the same ``send`` contract as the in-process proxy so the
    analysis and insight services can run against either.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def send(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"messages": messages}
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        response = await self._request("POST", "/api/analyze", json=body)
        payload = _decode_json(response)
        if response.is_success and isinstance(payload, dict):
            return payload
        raise _error_from_response(response, payload)

    async def fetch_usage(self) -> dict[str, Any]:
        response = await self._request("GET", "/api/usage")
        payload = _decode_json(response)
        if response.is_success and isinstance(payload, dict):
            return payload
        raise _error_from_response(response, payload)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamError("Analysis proxy timed out.") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Could not reach the analysis proxy: {exc}") from exc


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_from_response(response: httpx.Response, payload: Any) -> Exception:
    body = payload if isinstance(payload, dict) else {}
    message = str(body.get("error") or f"API error: {response.status_code}")
    status = response.status_code

    if status == 429:
        if "dailyLimit" in body:
            return DailyLimitExceededError(message, daily_limit=int(body["dailyLimit"]))
        retry_after = body.get("retryAfter")
        return RateLimitedError(
            message, retry_after=int(retry_after) if retry_after is not None else None
        )
    if status in (401, 403):
        return UpstreamUnauthorizedError(message, status_code=status)
    if status == 500 and message == MissingCredentialError().message:
        return MissingCredentialError(message)
    if response.is_success:
        return UpstreamError("Analysis proxy returned an unexpected payload.", status_code=502)
    return UpstreamError(message, status_code=status)


__all__ = ["AnalyzerApiClient"]
