"""Trend insights over a player's battle history.

With two or more battles the inference service is asked for a narrative
report grounded in the game's combat mechanics. Fewer battles, or any failure
along that path (quota, upstream, unparsable reply), fall back to
:func:`generate_basic_insights`, a local computation producing the same
report shape, so callers always receive a report.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from battle_analyzer.core.errors import AnalyzerError
from battle_analyzer.schemas import HistoryEntry, InsightReport

from .inference_proxy import InferenceTransport
from .request_builder import build_insights_request
from .response_parser import extract_json_object, reply_text, usage_from_reply
from .stats import ratio_or_numerator

logger = logging.getLogger(__name__)

MIN_HISTORY_FOR_AI = 2
RECENT_WINDOW = 5
TREND_MARGIN = 10.0


def _trend(recent_rate: float, overall_rate: float) -> str:
    if recent_rate > overall_rate + TREND_MARGIN:
        return "Improving"
    if recent_rate < overall_rate - TREND_MARGIN:
        return "Declining"
    return "Stable"


def _rating(win_rate: float) -> str:
    if win_rate >= 70:
        return "Excellent"
    if win_rate >= 55:
        return "Good"
    if win_rate < 40:
        return "Needs Improvement"
    return "Average"


def generate_basic_insights(history: Sequence[HistoryEntry]) -> InsightReport:
    """Heuristic report computed locally from outcomes and damage totals."""
    total = len(history)
    wins = sum(1 for entry in history if entry.is_victory)
    win_rate = round(wins / total * 100, 1) if total else 0.0

    damage_dealt = sum(entry.damage_dealt for entry in history)
    damage_received = sum(entry.damage_received for entry in history)
    damage_efficiency = round(ratio_or_numerator(damage_dealt, damage_received), 2)

    recent = history[:RECENT_WINDOW]
    recent_wins = sum(1 for entry in recent if entry.is_victory)
    recent_rate = recent_wins / len(recent) * 100 if recent else 0.0

    trend = _trend(recent_rate, win_rate)
    rating = _rating(win_rate)

    if trend == "Improving":
        trend_sentence = "Your performance is improving!"
    elif trend == "Declining":
        trend_sentence = "Recent performance shows room for improvement."
    else:
        trend_sentence = "Your performance is consistent."

    return InsightReport.model_validate(
        {
            "overallPerformance": {
                "rating": rating,
                "winRate": win_rate,
                "averageDamageEfficiency": damage_efficiency,
                "trend": trend,
            },
            "strengths": (
                ["Maintaining positive win rate"]
                if total >= 3 and win_rate >= 50
                else ["Keep analyzing more battles for insights"]
            ),
            "weaknesses": (
                ["Taking more damage than dealing - consider defensive improvements"]
                if damage_efficiency < 1
                else ["Continue tracking battles for pattern analysis"]
            ),
            "patterns": {
                "bestPerformingTroopType": "Analyze more battles to determine",
                "worstPerformingTroopType": "Analyze more battles to determine",
                "optimalBattleType": "PVP",
                "riskyOpponents": ["Higher power opponents"],
            },
            "recommendations": [
                {
                    "priority": "High",
                    "category": "Strategy",
                    "suggestion": "Upload more battle screenshots for detailed pattern analysis",
                }
            ],
            "nextBattleTips": [
                "Review your troop composition before engaging",
                "Check opponent power level before attacking",
            ],
            "heroAnalysis": {
                "mostEffectiveHero": "Upload more battles to analyze",
                "heroRecommendations": "Include hero details in screenshots for analysis",
            },
            "summary": (
                f"You have a {win_rate:.1f}% win rate across {total} battles. "
                f"{trend_sentence}"
            ),
            "source": "heuristic",
        }
    )


class InsightGenerator:
    """Produce an :class:`InsightReport` for a newest-first battle history."""

    def __init__(
        self,
        transport: Optional[InferenceTransport] = None,
        *,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._transport = transport
        self._max_tokens = max_tokens

    async def generate_insights(self, history: Sequence[HistoryEntry]) -> InsightReport:
        entries = list(history)
        if len(entries) < MIN_HISTORY_FOR_AI or self._transport is None:
            return generate_basic_insights(entries)

        report = await self._ai_insights(entries)
        if report is None:
            return generate_basic_insights(entries)
        return report

    async def _ai_insights(self, entries: list[HistoryEntry]) -> Optional[InsightReport]:
        request = build_insights_request(entries, max_tokens=self._max_tokens)
        try:
            reply = await self._transport.send(
                request.to_messages(), max_tokens=request.max_tokens
            )
        except AnalyzerError as exc:
            logger.warning(
                "Insight request failed (%s: %s); using heuristic report.",
                exc.__class__.__name__,
                exc.message,
            )
            return None

        payload = extract_json_object(reply_text(reply))
        if payload is None:
            logger.warning("Insight reply held no JSON object; using heuristic report.")
            return None

        payload["source"] = "ai"
        payload.pop("_usage", None)
        payload.pop("usage", None)
        usage = usage_from_reply(reply)
        if usage is not None:
            payload["_usage"] = usage.model_dump()
        try:
            return InsightReport.model_validate(payload)
        except ValidationError as exc:
            logger.warning(
                "Insight reply did not match the report schema (%d errors); "
                "using heuristic report.",
                exc.error_count(),
            )
            return None


__all__ = ["InsightGenerator", "generate_basic_insights"]
