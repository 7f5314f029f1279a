"""Build multi-modal inference requests from screenshots and battle history."""

from __future__ import annotations

import base64
import enum
import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from battle_analyzer.schemas import HistoryEntry

from . import prompts

DEFAULT_MEDIA_TYPE = "image/jpeg"
SUPPORTED_MEDIA_TYPES: frozenset[str] = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp"}
)
_MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}

INSIGHT_HISTORY_LIMIT = 20


def normalize_media_type(declared: Optional[str]) -> str:
    """Map a declared MIME type onto the supported image subtypes.

    Unknown or missing values become JPEG rather than being rejected; the
    inference service decides whether the bytes are actually usable.
    """
    if not declared:
        return DEFAULT_MEDIA_TYPE
    cleaned = declared.split(";", 1)[0].strip().lower()
    cleaned = _MEDIA_TYPE_ALIASES.get(cleaned, cleaned)
    if cleaned in SUPPORTED_MEDIA_TYPES:
        return cleaned
    return DEFAULT_MEDIA_TYPE


class AnalysisMode(str, enum.Enum):
    SINGLE = "single"
    COMBINED = "combined"
    INSIGHTS = "insights"


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """Screenshot bytes plus their (normalized) media type."""

    data: bytes
    media_type: str = DEFAULT_MEDIA_TYPE
    filename: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "media_type", normalize_media_type(self.media_type))

    def to_content_part(self) -> dict[str, Any]:
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": base64.b64encode(self.data).decode("ascii"),
            },
        }


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """Immutable request ready to hand to an inference transport."""

    images: tuple[ImagePayload, ...]
    mode: AnalysisMode
    instruction: str
    max_tokens: Optional[int] = None

    def to_messages(self) -> list[dict[str, Any]]:
        """Render a single user turn: every image first, then the instruction."""
        if not self.images:
            return [{"role": "user", "content": self.instruction}]
        content: list[dict[str, Any]] = [image.to_content_part() for image in self.images]
        content.append({"type": "text", "text": self.instruction})
        return [{"role": "user", "content": content}]


def build_analysis_request(
    images: Sequence[ImagePayload],
    mode: AnalysisMode | str,
    *,
    max_tokens: Optional[int] = None,
) -> AnalysisRequest:
    """Create the screenshot analysis request for ``mode``.

    ``single`` takes exactly one image; ``combined`` takes one or more images
    of the same battle and asks the service to merge them.
    """
    mode = AnalysisMode(mode)
    payloads = tuple(images)
    if not payloads:
        raise ValueError("At least one screenshot is required.")

    if mode is AnalysisMode.SINGLE:
        if len(payloads) != 1:
            raise ValueError(
                f"Single analysis takes exactly one screenshot, got {len(payloads)}."
            )
        instruction = prompts.single_screenshot_prompt()
    elif mode is AnalysisMode.COMBINED:
        instruction = prompts.combined_screenshots_prompt(len(payloads))
    else:
        raise ValueError("Insight requests are built with build_insights_request.")

    return AnalysisRequest(
        images=payloads,
        mode=mode,
        instruction=instruction,
        max_tokens=max_tokens,
    )


def summarize_history_entry(entry: HistoryEntry) -> dict[str, Any]:
    """Project a history entry onto the fields the insight prompt needs."""
    analysis = entry.analysis
    opponent_power = analysis.opponent.power if analysis and analysis.opponent else None
    player_killed = None
    if analysis and analysis.casualties and analysis.casualties.player:
        player_killed = analysis.casualties.player.killed
    troops = (
        analysis.troops.model_dump(mode="json", by_alias=True, exclude_none=True)
        if analysis and analysis.troops
        else None
    )
    heroes = (
        [hero.model_dump(mode="json", by_alias=True, exclude_none=True) for hero in analysis.heroes]
        if analysis
        else None
    )
    return {
        "date": entry.date.isoformat(),
        "outcome": entry.outcome,
        "opponent": entry.opponent,
        "opponentPower": opponent_power,
        "battleType": entry.battle_type,
        "damageDealt": entry.damage_dealt,
        "damageReceived": entry.damage_received,
        "enemyKilled": entry.enemy_killed,
        "playerKilled": player_killed,
        "troops": troops,
        "heroes": heroes,
    }


def build_insights_request(
    history: Iterable[HistoryEntry],
    *,
    max_tokens: Optional[int] = None,
) -> AnalysisRequest:
    """Create the text-only trend analysis request for the newest entries.

    ``history`` is expected newest first; only the first
    ``INSIGHT_HISTORY_LIMIT`` entries are summarized.
    """
    summary = [summarize_history_entry(entry) for entry in list(history)[:INSIGHT_HISTORY_LIMIT]]
    instruction = prompts.insights_prompt(json.dumps(summary, indent=2))
    return AnalysisRequest(
        images=(),
        mode=AnalysisMode.INSIGHTS,
        instruction=instruction,
        max_tokens=max_tokens,
    )


__all__ = [
    "AnalysisMode",
    "AnalysisRequest",
    "DEFAULT_MEDIA_TYPE",
    "INSIGHT_HISTORY_LIMIT",
    "ImagePayload",
    "SUPPORTED_MEDIA_TYPES",
    "build_analysis_request",
    "build_insights_request",
    "normalize_media_type",
    "summarize_history_entry",
]
