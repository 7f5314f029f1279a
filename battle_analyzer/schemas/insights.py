"""
Pydantic models for trend insights computed from a battle history.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BeforeValidator, Field

from .battle import CamelModel, Count, LooseText, TextList, UsageInfo


def _dict_or_empty(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text_or(default: str):
    def _coerce(value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            return default
        return str(value)

    return BeforeValidator(_coerce)


def _recommendation_item(value: Any) -> Any:
    if isinstance(value, str):
        return {"suggestion": value}
    return value


class OverallPerformance(CamelModel):
    rating: Annotated[str, _text_or("Average")] = "Average"
    win_rate: Count = 0
    average_damage_efficiency: Count = 0
    trend: Annotated[str, _text_or("Stable")] = "Stable"


class Recommendation(CamelModel):
    priority: LooseText = None
    category: LooseText = None
    suggestion: LooseText = None
    reasoning: LooseText = None


class InsightReport(CamelModel):
    """Narrative and structured recommendations for a player's history.

    ``source`` tells callers whether the report came from the inference
    service (``"ai"``) or from the local heuristic (``"heuristic"``); both
    share this shape.
    """

    overall_performance: OverallPerformance
    strengths: TextList = Field(default_factory=list)
    weaknesses: TextList = Field(default_factory=list)
    patterns: Annotated[dict[str, Any], BeforeValidator(_dict_or_empty)] = Field(
        default_factory=dict
    )
    recommendations: list[
        Annotated[Recommendation, BeforeValidator(_recommendation_item)]
    ] = Field(default_factory=list)
    counter_strategy: Optional[dict[str, Any]] = None
    next_battle_tips: TextList = Field(default_factory=list)
    hero_analysis: Annotated[dict[str, Any], BeforeValidator(_dict_or_empty)] = Field(
        default_factory=dict
    )
    morale_and_buffs: Optional[dict[str, Any]] = None
    summary: Annotated[str, _text_or("")] = ""
    source: Literal["ai", "heuristic"] = "heuristic"
    usage: Optional[UsageInfo] = Field(None, alias="_usage")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["InsightReport", "OverallPerformance", "Recommendation"]
