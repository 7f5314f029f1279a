"""
FastAPI routes for the battle analysis proxy.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response

from battle_analyzer.core.config import AppSettings
from battle_analyzer.dependencies import (
    get_app_settings,
    get_client_id,
    get_inference_proxy,
    get_quota_governor,
)
from battle_analyzer.schemas import (
    AnalyzeProxyRequest,
    BattleAnalysisRequest,
    BattleReportResponse,
    InsightsRequest,
)
from battle_analyzer.services import (
    BattleAnalyzer,
    ImagePayload,
    InferenceProxy,
    InsightGenerator,
    QuotaGovernor,
    summarize_history,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
}

USAGE_NOTE = (
    "Counters are kept in memory per server instance and reset on restart; "
    "treat them as approximate."
)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.options("/analyze", status_code=HTTPStatus.OK)
async def analyze_preflight() -> Response:
    return Response(
        status_code=HTTPStatus.OK,
        headers={**_PREFLIGHT_HEADERS, "Access-Control-Allow-Methods": "POST, OPTIONS"},
    )


@router.post("/analyze", status_code=HTTPStatus.OK)
async def analyze(
    payload: AnalyzeProxyRequest,
    proxy: Annotated[InferenceProxy, Depends(get_inference_proxy)],
    client_id: Annotated[str, Depends(get_client_id)],
) -> dict[str, Any]:
    """Forward a multi-modal message list upstream under the quota rules.

    Returns the upstream reply unchanged plus ``usage_info``; quota,
    credential and upstream failures are rendered by the app's error handlers.
    """
    messages = [message.model_dump() for message in payload.messages]
    return await proxy.send(client_id, messages, max_tokens=payload.max_tokens)


@router.options("/usage", status_code=HTTPStatus.OK)
async def usage_preflight() -> Response:
    return Response(
        status_code=HTTPStatus.OK,
        headers={**_PREFLIGHT_HEADERS, "Access-Control-Allow-Methods": "GET, OPTIONS"},
    )


@router.get("/usage", status_code=HTTPStatus.OK)
async def usage(
    governor: Annotated[QuotaGovernor, Depends(get_quota_governor)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict[str, Any]:
    """Report configured limits and this instance's view of today's usage."""
    snapshot = governor.snapshot()
    return {
        "daily_limit": snapshot.daily_limit,
        "rate_limit": {
            "requests_per_minute": settings.quota.rate_limit_max_requests,
            "window_seconds": settings.quota.rate_limit_window_seconds,
        },
        "requests_today": snapshot.requests_today,
        "remaining": snapshot.remaining,
        "note": USAGE_NOTE,
    }


@router.post(
    "/battles/analyze",
    response_model=BattleReportResponse,
    status_code=HTTPStatus.OK,
)
async def analyze_battle(
    payload: BattleAnalysisRequest,
    proxy: Annotated[InferenceProxy, Depends(get_inference_proxy)],
    client_id: Annotated[str, Depends(get_client_id)],
) -> dict[str, Any]:
    """Analyse one battle from one or more screenshots and score it."""
    images = [
        ImagePayload(
            data=upload.decode(),
            media_type=upload.mime_type,
            filename=upload.filename,
        )
        for upload in payload.screenshots
    ]
    analyzer = BattleAnalyzer(proxy.bind(client_id))
    report = await analyzer.analyze(images, previous=payload.previous)
    logger.info(
        "Battle analysed for %s: grade %s from %d screenshot(s).",
        client_id,
        report.grade.band,
        len(images),
    )
    return report.to_payload()


@router.post("/insights", status_code=HTTPStatus.OK)
async def battle_insights(
    payload: InsightsRequest,
    proxy: Annotated[InferenceProxy, Depends(get_inference_proxy)],
    client_id: Annotated[str, Depends(get_client_id)],
) -> dict[str, Any]:
    """Trend report over the supplied history; degrades to local heuristics.

    The report is accompanied by plain counters over the same history.
    """
    generator = InsightGenerator(proxy.bind(client_id))
    report = await generator.generate_insights(payload.history)
    return {
        **report.to_payload(),
        "historySummary": summarize_history(payload.history).as_dict(),
    }


__all__ = ["router"]
