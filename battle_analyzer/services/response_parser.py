"""Recover structured objects from free-text inference replies.

Replies are supposed to be a bare JSON object but regularly come wrapped in
prose or code fences, or are not JSON at all. Parsing therefore runs in two
stages: a brace-balancing scan proposes candidate spans, then each candidate
is decoded strictly and the first success wins. A reply with no decodable
object yields a fallback result instead of an exception.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from battle_analyzer.schemas import AnalysisResult, UsageInfo

logger = logging.getLogger(__name__)

_RESERVED_KEYS = (
    "_usage",
    "usage",
    "parseError",
    "parse_error",
    "rawResponse",
    "raw_response",
)


def iter_json_candidates(text: str) -> Iterator[str]:
    """Yield the top-level balanced ``{...}`` spans, left to right.

    Spans never overlap: after a span closes the scan resumes past its closing
    brace, so fragments nested inside a malformed object are never offered.
    An opening brace that is never closed ends the scan. Braces inside JSON
    string literals (including escaped quotes) do not affect the balance.
    """
    length = len(text)
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, length):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break
        else:
            return
        start = text.find("{", index + 1)


def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Return the first candidate span that decodes to a JSON object."""
    if not text:
        return None
    for candidate in iter_json_candidates(text):
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, dict):
            return decoded
    return None


def reply_text(reply: dict[str, Any]) -> str:
    """Concatenate the text blocks of an upstream reply object."""
    content = reply.get("content")
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts = [
        block.get("text", "")
        for block in content
        if isinstance(block, dict) and block.get("type", "text") == "text"
    ]
    return "".join(part for part in parts if isinstance(part, str))


def usage_from_reply(reply: dict[str, Any]) -> Optional[UsageInfo]:
    raw = reply.get("usage_info")
    if not isinstance(raw, dict):
        return None
    try:
        return UsageInfo.model_validate(raw)
    except ValidationError:
        return None


def parse_analysis_reply(text: str, usage: Optional[UsageInfo] = None) -> AnalysisResult:
    """Turn reply text into an :class:`AnalysisResult`; never raises.

    On failure the result has ``parse_error`` set and ``raw_response``
    holding ``text`` verbatim.
    """
    payload = extract_json_object(text)
    if payload is None:
        logger.warning("No JSON object found in inference reply (%d chars).", len(text or ""))
        return AnalysisResult.unparsed(text or "", usage=usage)

    # Reserved keys are owned by this parser, not by the reply.
    for reserved in _RESERVED_KEYS:
        payload.pop(reserved, None)
    try:
        result = AnalysisResult.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Inference reply did not match the result schema: %s", exc.errors())
        return AnalysisResult.unparsed(text, usage=usage)

    if usage is not None:
        result = result.model_copy(update={"usage": usage})
    return result


__all__ = [
    "extract_json_object",
    "iter_json_candidates",
    "parse_analysis_reply",
    "reply_text",
    "usage_from_reply",
]
