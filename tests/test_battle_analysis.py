try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import pytest

from battle_analyzer.core.errors import RateLimitedError
from battle_analyzer.schemas import HistoryEntry
from battle_analyzer.services import BattleAnalyzer, ImagePayload

RESULT = {
    "battleType": "PVP",
    "outcome": "Victory",
    "player": {"name": "Ace", "power": "52M"},
    "opponent": {"name": "Raider", "power": "50M"},
    "troops": {"player": {"total": 1000}, "opponent": {"total": 1000}},
    "damage": {"dealt": {"total": 2_000_000}, "received": {"total": 1_000_000}},
    "casualties": {"player": {"killed": 100}, "opponent": {"killed": 200}},
}


class StubTransport:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def send(self, messages, *, max_tokens=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return {
            "content": [{"type": "text", "text": self.text}],
            "usage_info": {"requests_today": 2, "daily_limit": 50, "remaining": 48},
        }


@pytest.mark.asyncio
async def test_single_screenshot_report():
    transport = StubTransport(text=json.dumps(RESULT))
    analyzer = BattleAnalyzer(transport, max_tokens=4096)

    report = await analyzer.analyze([ImagePayload(data=b"img", media_type="image/png")])

    content = transport.calls[0]["messages"][0]["content"]
    assert [part["type"] for part in content] == ["image", "text"]
    assert transport.calls[0]["max_tokens"] == 4096

    assert report.analysis.outcome == "Victory"
    assert report.stats.kill_ratio == 2
    assert report.stats.power_difference == 2_000_000
    # 30 (kills) + 30 (damage) + 40 (troops)
    assert (report.grade.band, report.grade.score) == ("S", 100)
    assert report.history_entry.opponent == "Raider"
    assert report.history_entry.damage_dealt == 2_000_000
    assert report.history_entry.enemy_killed == 200
    assert report.usage.remaining == 48


@pytest.mark.asyncio
async def test_combined_screenshots_are_sent_in_one_call():
    transport = StubTransport(text=json.dumps({**RESULT, "screenshotsAnalyzed": 2}))
    analyzer = BattleAnalyzer(transport)

    report = await analyzer.analyze(
        [ImagePayload(data=b"overview"), ImagePayload(data=b"details", media_type="image/webp")]
    )

    assert len(transport.calls) == 1
    content = transport.calls[0]["messages"][0]["content"]
    assert [part["type"] for part in content] == ["image", "image", "text"]
    assert "2 screenshot(s)" in content[-1]["text"]
    assert report.analysis.screenshots_analyzed == 2
    assert report.history_entry.screenshot_count == 2


@pytest.mark.asyncio
async def test_unparsable_reply_still_produces_a_report():
    transport = StubTransport(text="The image is too blurry to read.")

    report = await BattleAnalyzer(transport).analyze([ImagePayload(data=b"img")])

    assert report.analysis.parse_error is True
    assert report.analysis.raw_response == "The image is too blurry to read."
    assert report.grade.band == "F"
    assert report.history_entry.outcome == "Unknown"

    payload = report.to_payload()
    assert payload["analysis"]["parseError"] is True
    assert "analysis" not in payload["history_entry"]
    assert payload["usage_info"] == {"requests_today": 2, "daily_limit": 50, "remaining": 48}


@pytest.mark.asyncio
async def test_quota_errors_propagate():
    transport = StubTransport(error=RateLimitedError(retry_after=12))

    with pytest.raises(RateLimitedError):
        await BattleAnalyzer(transport).analyze([ImagePayload(data=b"img")])


@pytest.mark.asyncio
async def test_report_compares_with_previous_battle():
    transport = StubTransport(text=json.dumps(RESULT))
    previous = HistoryEntry(
        outcome="Defeat", damage_dealt=1_500_000, damage_received=900_000, enemy_killed=250
    )

    report = await BattleAnalyzer(transport).analyze([ImagePayload(data=b"img")], previous=previous)

    assert report.comparison.as_dict() == {
        "damage_dealt_diff": 500_000,
        "damage_received_diff": 100_000,
        "kills_diff": -50,
        "outcome_change": True,
        "improvement": True,
    }
    assert report.to_payload()["comparison"]["kills_diff"] == -50


@pytest.mark.asyncio
async def test_report_without_previous_has_no_comparison():
    report = await BattleAnalyzer(StubTransport(text=json.dumps(RESULT))).analyze(
        [ImagePayload(data=b"img")]
    )

    assert report.comparison is None
    assert report.to_payload()["comparison"] is None
