try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from battle_analyzer.core.config import QuotaSettings
from battle_analyzer.core.errors import (
    DailyLimitExceededError,
    MissingCredentialError,
    RateLimitedError,
    UpstreamError,
)
from battle_analyzer.services import InferenceProxy, InMemoryQuotaGovernor

MESSAGES = [{"role": "user", "content": "analyze"}]


class StubClaudeClient:
    def __init__(self, *, reply=None, error: Exception | None = None, has_credential: bool = True):
        self.reply = reply or {"content": [{"type": "text", "text": "{}"}]}
        self.error = error
        self.has_credential = has_credential
        self.calls: list[dict] = []

    async def create_message(self, *, messages, max_tokens=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.reply


def _governor(*, daily_limit: int = 50, max_requests: int = 5) -> InMemoryQuotaGovernor:
    return InMemoryQuotaGovernor(
        QuotaSettings(
            DAILY_LIMIT=daily_limit,
            RATE_LIMIT_MAX_REQUESTS=max_requests,
            RATE_LIMIT_WINDOW_SECONDS=60,
        )
    )


@pytest.mark.asyncio
async def test_successful_call_returns_reply_with_usage_info():
    client = StubClaudeClient(reply={"id": "msg_1", "content": []})
    proxy = InferenceProxy(client, _governor(daily_limit=10))

    reply = await proxy.send("10.0.0.1", MESSAGES, max_tokens=2048)

    assert reply["id"] == "msg_1"
    assert reply["usage_info"] == {"requests_today": 1, "daily_limit": 10, "remaining": 9}
    assert client.calls == [{"messages": MESSAGES, "max_tokens": 2048}]


@pytest.mark.asyncio
async def test_rate_limited_client_is_rejected_before_upstream():
    client = StubClaudeClient()
    proxy = InferenceProxy(client, _governor(max_requests=1))

    await proxy.send("10.0.0.1", MESSAGES)
    with pytest.raises(RateLimitedError) as excinfo:
        await proxy.send("10.0.0.1", MESSAGES)

    payload = excinfo.value.to_payload()
    assert excinfo.value.status_code == 429
    assert payload["error"].startswith("Rate limit exceeded")
    assert 1 <= payload["retryAfter"] <= 60
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_daily_limit_rejection_payload():
    client = StubClaudeClient()
    proxy = InferenceProxy(client, _governor(daily_limit=1))

    await proxy.send("a", MESSAGES)
    with pytest.raises(DailyLimitExceededError) as excinfo:
        await proxy.send("b", MESSAGES)

    assert excinfo.value.to_payload() == {
        "error": "Daily limit reached. Please try again tomorrow.",
        "dailyLimit": 1,
        "resetTime": "midnight UTC",
    }


@pytest.mark.asyncio
async def test_upstream_failure_releases_the_reservation():
    client = StubClaudeClient(error=UpstreamError("Overloaded", status_code=529))
    governor = _governor(daily_limit=1)
    proxy = InferenceProxy(client, governor)

    with pytest.raises(UpstreamError):
        await proxy.send("a", MESSAGES)

    assert governor.snapshot().requests_today == 0
    client.error = None
    reply = await proxy.send("a", MESSAGES)
    assert reply["usage_info"]["remaining"] == 0


@pytest.mark.asyncio
async def test_missing_credential_does_not_touch_quota():
    client = StubClaudeClient(has_credential=False)
    governor = _governor(max_requests=1)
    proxy = InferenceProxy(client, governor)

    for _ in range(3):
        with pytest.raises(MissingCredentialError):
            await proxy.send("a", MESSAGES)

    assert client.calls == []
    assert governor.admit("a").allowed


@pytest.mark.asyncio
async def test_bound_proxy_sends_on_behalf_of_client():
    client = StubClaudeClient()
    proxy = InferenceProxy(client, _governor(max_requests=1))
    bound = proxy.bind("player-1")

    await bound.send(MESSAGES, max_tokens=100)

    with pytest.raises(RateLimitedError):
        await proxy.send("player-1", MESSAGES)
    assert proxy.governor.snapshot().requests_today == 1
