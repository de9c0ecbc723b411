"""Extraction of assistant text from chat-completion response bodies."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .jsoncodec import decode, extract_string_field, scan_string
from .models import ColorAnalysis

logger = logging.getLogger(__name__)

_CONTENT_PATTERN = re.compile(r'"content"\s*:\s*"')
_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)
_ADJUSTMENTS_PATTERN = re.compile(r'"adjustments"\s*:\s*\{([^}]*)\}')
_ADJUSTMENT_ITEM_PATTERN = re.compile(r'"([^"]+)"\s*:\s*(-?\d+(?:\.\d+)?)')


def extract_message_text(raw_body: Optional[str]) -> Optional[str]:
    """Return the first assistant ``content`` string, or ``None`` if the body has none."""
    if not raw_body:
        return None
    choices_at = raw_body.find('"choices"')
    match = _CONTENT_PATTERN.search(raw_body, choices_at if choices_at >= 0 else 0)
    if not match:
        logger.debug("response body has no content field", extra={"body_length": len(raw_body)})
        return None
    scanned = scan_string(raw_body, match.end())
    if scanned is None:
        logger.debug("content field is not terminated", extra={"body_length": len(raw_body)})
        return None
    return scanned[0]


def parse_color_analysis(text: Optional[str]) -> Optional[ColorAnalysis]:
    """Interpret an analysis reply written in the structured JSON answer format.

    Free-form prose replies return ``None``; callers should show the text as-is.
    """
    if not text:
        return None
    candidate = text.strip()
    fenced = _FENCE_PATTERN.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    if not candidate.startswith("{"):
        return None
    try:
        data = decode(candidate)
    except json.JSONDecodeError:
        return _parse_color_analysis_by_pattern(candidate)
    if not isinstance(data, dict):
        return None
    return ColorAnalysis(
        description=_as_optional_str(data.get("description")),
        issues=_string_items(data.get("issues")),
        suggestions=_as_optional_str(data.get("suggestions")),
        adjustments=_numeric_items(data.get("adjustments")),
    )


def _parse_color_analysis_by_pattern(candidate: str) -> Optional[ColorAnalysis]:
    description = extract_string_field(candidate, "description")
    suggestions = extract_string_field(candidate, "suggestions")
    adjustments: Dict[str, float] = {}
    block = _ADJUSTMENTS_PATTERN.search(candidate)
    if block:
        for key, value in _ADJUSTMENT_ITEM_PATTERN.findall(block.group(1)):
            adjustments[key] = float(value)
    if description is None and suggestions is None and not adjustments:
        return None
    return ColorAnalysis(description=description, suggestions=suggestions, adjustments=adjustments)


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _numeric_items(value: Any) -> Dict[str, float]:
    if not isinstance(value, dict):
        return {}
    items: Dict[str, float] = {}
    for key, raw in value.items():
        if isinstance(raw, bool):
            continue
        if isinstance(raw, (int, float)):
            items[str(key)] = float(raw)
    return items


def _string_items(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def summarize_body(body: Optional[str], limit: int = 500) -> str:
    """Shorten a response body for log lines."""
    if not body:
        return ""
    if len(body) <= limit:
        return body
    return body[:limit] + "...<truncated>"
