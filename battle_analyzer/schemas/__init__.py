"""Public schema exports."""

from .battle import (
    AnalysisResult,
    Casualties,
    Combatant,
    Damage,
    DamageBreakdown,
    Hero,
    HistoryEntry,
    Resources,
    SideCasualties,
    SideTroops,
    Troops,
    UnitTroops,
    UsageInfo,
)
from .insights import InsightReport, OverallPerformance, Recommendation
from .proxy import (
    AnalyzeProxyRequest,
    BattleAnalysisRequest,
    BattleReportResponse,
    GradePayload,
    InsightsRequest,
    ProxyMessage,
    ScreenshotUpload,
)

__all__ = [
    "AnalysisResult",
    "AnalyzeProxyRequest",
    "BattleAnalysisRequest",
    "BattleReportResponse",
    "Casualties",
    "Combatant",
    "Damage",
    "DamageBreakdown",
    "GradePayload",
    "Hero",
    "HistoryEntry",
    "InsightReport",
    "InsightsRequest",
    "OverallPerformance",
    "ProxyMessage",
    "Recommendation",
    "Resources",
    "ScreenshotUpload",
    "SideCasualties",
    "SideTroops",
    "Troops",
    "UnitTroops",
    "UsageInfo",
]
