try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest

from battle_analyzer.clients.claude import ClaudeClient
from battle_analyzer.core.config import AnthropicSettings
from battle_analyzer.core.errors import (
    MissingCredentialError,
    UpstreamError,
    UpstreamRateLimitedError,
    UpstreamUnauthorizedError,
)

MESSAGES = [{"role": "user", "content": "hello"}]


def _settings(**overrides) -> AnthropicSettings:
    values = {
        "api_key": "sk-test",
        "base_url": "https://inference.test",
        "model": "claude-test",
        "max_tokens": 4096,
    }
    values.update(overrides)
    return AnthropicSettings(**values)


@pytest.mark.asyncio
async def test_create_message_sends_credential_and_defaults():
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"content": [{"type": "text", "text": "{}"}], "stop_reason": "end_turn"}
        )

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))

    reply = await client.create_message(messages=MESSAGES)

    assert reply["stop_reason"] == "end_turn"
    assert captured["url"] == "https://inference.test/v1/messages"
    assert captured["headers"]["x-api-key"] == "sk-test"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    assert captured["body"] == {"model": "claude-test", "max_tokens": 4096, "messages": MESSAGES}


@pytest.mark.asyncio
async def test_create_message_honours_explicit_max_tokens():
    seen: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content)["max_tokens"])
        return httpx.Response(200, json={"content": []})

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))
    await client.create_message(messages=MESSAGES, max_tokens=512)

    assert seen == [512]


@pytest.mark.asyncio
async def test_missing_credential_raises_without_calling_upstream():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        raise AssertionError("upstream must not be called")

    client = ClaudeClient(_settings(api_key=""), transport=httpx.MockTransport(handler))

    assert not client.has_credential
    with pytest.raises(MissingCredentialError) as excinfo:
        await client.create_message(messages=MESSAGES)
    assert excinfo.value.status_code == 500
    assert excinfo.value.to_payload() == {"error": "API key not configured"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "body", "headers", "error_type", "message"),
    [
        (
            401,
            {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}},
            {},
            UpstreamUnauthorizedError,
            "invalid x-api-key",
        ),
        (
            429,
            {"error": {"message": "Number of requests has exceeded your rate limit"}},
            {"retry-after": "30"},
            UpstreamRateLimitedError,
            "Number of requests has exceeded your rate limit",
        ),
        (
            529,
            {"error": {"message": "Overloaded"}},
            {},
            UpstreamError,
            "Overloaded",
        ),
        (500, None, {}, UpstreamError, "API error: 500"),
    ],
)
async def test_upstream_errors_are_mapped(status, body, headers, error_type, message):
    def handler(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status, content=b"<html>oops</html>", headers=headers)
        return httpx.Response(status, json=body, headers=headers)

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(error_type) as excinfo:
        await client.create_message(messages=MESSAGES)

    assert excinfo.value.status_code == status
    assert excinfo.value.message == message
    if status == 429:
        assert excinfo.value.to_payload()["retryAfter"] == 30


@pytest.mark.asyncio
async def test_timeout_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as excinfo:
        await client.create_message(messages=MESSAGES)
    assert excinfo.value.status_code == 500
    assert "timed out" in excinfo.value.message


@pytest.mark.asyncio
async def test_non_object_success_payload_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "object"])

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError) as excinfo:
        await client.create_message(messages=MESSAGES)
    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("12", 12),
        ("2.9", 2),
        ("-5", 0),
        ("inf", None),
        ("-inf", None),
        ("nan", None),
        ("Wed, 21 Oct 2026 07:28:00 GMT", None),
    ],
)
async def test_retry_after_header_is_parsed_defensively(header, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429, json={"error": {"message": "slow down"}}, headers={"retry-after": header}
        )

    client = ClaudeClient(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamRateLimitedError) as excinfo:
        await client.create_message(messages=MESSAGES)

    assert excinfo.value.retry_after == expected
    assert excinfo.value.to_payload().get("retryAfter") == expected
