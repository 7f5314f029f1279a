"""Service layer exports."""

from .battle_analysis import BattleAnalyzer, BattleReport
from .grading import Grade, grade, score_stats
from .inference_proxy import BoundInferenceProxy, InferenceProxy, InferenceTransport
from .insights import InsightGenerator, generate_basic_insights
from .quota import (
    AdmissionDecision,
    InMemoryQuotaGovernor,
    QuotaDenialReason,
    QuotaGovernor,
    UsageSnapshot,
)
from .request_builder import (
    AnalysisMode,
    AnalysisRequest,
    ImagePayload,
    build_analysis_request,
    build_insights_request,
    normalize_media_type,
)
from .response_parser import extract_json_object, parse_analysis_reply, reply_text
from .stats import (
    BattleComparison,
    DerivedStats,
    HistorySummary,
    compare_battles,
    compute_stats,
    summarize_history,
)

__all__ = [
    "AdmissionDecision",
    "AnalysisMode",
    "AnalysisRequest",
    "BattleAnalyzer",
    "BattleComparison",
    "BattleReport",
    "BoundInferenceProxy",
    "DerivedStats",
    "Grade",
    "HistorySummary",
    "ImagePayload",
    "InMemoryQuotaGovernor",
    "InferenceProxy",
    "InferenceTransport",
    "InsightGenerator",
    "QuotaDenialReason",
    "QuotaGovernor",
    "UsageSnapshot",
    "build_analysis_request",
    "build_insights_request",
    "compare_battles",
    "compute_stats",
    "extract_json_object",
    "generate_basic_insights",
    "grade",
    "normalize_media_type",
    "parse_analysis_reply",
    "reply_text",
    "score_stats",
    "summarize_history",
]
