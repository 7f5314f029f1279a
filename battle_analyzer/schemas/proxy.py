"""
Pydantic models for the HTTP surface of the analysis proxy.
"""

import base64
import binascii
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .battle import HistoryEntry, UsageInfo


class ProxyMessage(BaseModel):
    """One entry of the upstream multi-modal message list."""

    role: Literal["user", "assistant"]
    content: Union[str, list[dict[str, Any]]] = Field(
        ...,
        description=(
            "Plain text, or content parts such as "
            '{"type": "image", "source": {...}} and {"type": "text", "text": ...}.'
        ),
    )

    @field_validator("content")
    @classmethod
    def _require_typed_parts(
        cls, value: Union[str, list[dict[str, Any]]]
    ) -> Union[str, list[dict[str, Any]]]:
        if isinstance(value, list):
            if not value:
                raise ValueError("content must not be empty")
            for part in value:
                if not isinstance(part.get("type"), str):
                    raise ValueError("every content part needs a type")
        return value


class AnalyzeProxyRequest(BaseModel):
    """Body accepted by ``POST /api/analyze``."""

    messages: list[ProxyMessage] = Field(..., min_length=1)
    max_tokens: Optional[int] = Field(None, ge=1)


class ScreenshotUpload(BaseModel):
    """Screenshot supplied as base64 in a JSON body."""

    filename: Optional[str] = Field(None, description="Original file name, if known.")
    mime_type: Optional[str] = Field(
        None, description="Declared MIME type; unsupported values fall back to JPEG."
    )
    file_b64: str = Field(..., description="Base64-encoded image bytes.")

    @field_validator("file_b64")
    @classmethod
    def _validate_base64(cls, value: str) -> str:
        if "," in value and value.lstrip().startswith("data:"):
            value = value.split(",", 1)[1]
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("file_b64 must be valid base64") from exc
        if not decoded:
            raise ValueError("file_b64 must not be empty")
        return value

    def decode(self) -> bytes:
        return base64.b64decode(self.file_b64)


class BattleAnalysisRequest(BaseModel):
    """Body accepted by ``POST /api/battles/analyze``."""

    screenshots: list[ScreenshotUpload] = Field(..., min_length=1)
    previous: Optional[HistoryEntry] = Field(
        None, description="Most recent earlier battle to compare the new one against."
    )


class InsightsRequest(BaseModel):
    """Body accepted by ``POST /api/insights``; newest entries first."""

    history: list[HistoryEntry] = Field(default_factory=list)


class GradePayload(BaseModel):
    band: str
    label: str
    score: int
    color: str


class BattleReportResponse(BaseModel):
    """Parsed analysis plus derived numbers for one battle."""

    analysis: dict[str, Any]
    stats: dict[str, Union[int, float]]
    grade: GradePayload
    history_entry: dict[str, Any]
    comparison: Optional[dict[str, Any]] = None
    usage_info: Optional[UsageInfo] = None


__all__ = [
    "AnalyzeProxyRequest",
    "BattleAnalysisRequest",
    "BattleReportResponse",
    "GradePayload",
    "InsightsRequest",
    "ProxyMessage",
    "ScreenshotUpload",
]
