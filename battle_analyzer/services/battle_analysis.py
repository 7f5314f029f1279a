"""Screenshot analysis: build, send, parse, then score the parsed result."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from battle_analyzer.schemas import AnalysisResult, HistoryEntry, UsageInfo

from .grading import Grade, grade
from .inference_proxy import InferenceTransport
from .request_builder import (
    AnalysisMode,
    AnalysisRequest,
    ImagePayload,
    build_analysis_request,
)
from .response_parser import parse_analysis_reply, reply_text, usage_from_reply
from .stats import BattleComparison, DerivedStats, compare_battles, compute_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BattleReport:
    """Everything the caller needs to display and store one analysed battle."""

    analysis: AnalysisResult
    stats: DerivedStats
    grade: Grade
    history_entry: HistoryEntry
    comparison: Optional[BattleComparison] = None

    @property
    def usage(self) -> Optional[UsageInfo]:
        return self.analysis.usage

    def to_payload(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis.to_payload(),
            "stats": self.stats.rounded().as_dict(),
            "grade": self.grade.as_dict(),
            "history_entry": self.history_entry.model_dump(
                mode="json", by_alias=True, exclude={"analysis"}
            ),
            "comparison": self.comparison.as_dict() if self.comparison else None,
            "usage_info": self.usage.model_dump() if self.usage else None,
        }


class BattleAnalyzer:
    """Run screenshot analyses through an inference transport.

    Errors from the transport (quota, credential, upstream) propagate to the
    caller; an unparsable reply does not, it yields a fallback result.
    """

    def __init__(
        self,
        transport: InferenceTransport,
        *,
        max_tokens: Optional[int] = None,
    ) -> None:
        self._transport = transport
        self._max_tokens = max_tokens

    async def analyze_screenshot(self, image: ImagePayload) -> AnalysisResult:
        request = build_analysis_request([image], AnalysisMode.SINGLE, max_tokens=self._max_tokens)
        return await self._run(request)

    async def analyze_combined_screenshots(
        self, images: Sequence[ImagePayload]
    ) -> AnalysisResult:
        request = build_analysis_request(
            images, AnalysisMode.COMBINED, max_tokens=self._max_tokens
        )
        return await self._run(request)

    async def analyze(
        self,
        images: Sequence[ImagePayload],
        *,
        previous: Optional[HistoryEntry] = None,
    ) -> BattleReport:
        """Analyse one or more screenshots of the same battle and score it.

        When ``previous`` is given the report also compares this battle with it.
        """
        if len(images) == 1:
            result = await self.analyze_screenshot(images[0])
        else:
            result = await self.analyze_combined_screenshots(images)

        stats = compute_stats(result)
        entry = HistoryEntry.from_result(result, screenshot_count=len(images))
        return BattleReport(
            analysis=result,
            stats=stats,
            grade=grade(stats),
            history_entry=entry,
            comparison=compare_battles(entry, previous) if previous is not None else None,
        )

    async def _run(self, request: AnalysisRequest) -> AnalysisResult:
        logger.info(
            "Sending %s analysis with %d screenshot(s).",
            request.mode.value,
            len(request.images),
        )
        reply = await self._transport.send(request.to_messages(), max_tokens=request.max_tokens)
        return parse_analysis_reply(reply_text(reply), usage=usage_from_reply(reply))


__all__ = ["BattleAnalyzer", "BattleReport"]
