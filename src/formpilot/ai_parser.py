"""Decoding of free-form model output into form configurations and analyses."""

from __future__ import annotations

import logging
import re
from typing import Any

import orjson

from formpilot.config import CHART_TYPES
from formpilot.results import Failure, Result, Success
from formpilot.schema import validate_element, validate_form_config

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

ERROR_INSIGHT = {
    "id": "error-insight",
    "title": "Error analyzing data",
    "description": "Could not generate insights from the provided data.",
}
CHART_KEYS = {"category": "name", "value": "value"}


def extract_json_object(text: Any) -> Any:
    """Parse ``text`` as JSON, falling back to its widest ``{...}`` span."""
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError:
        pass
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        return None
    try:
        return orjson.loads(match.group(0))
    except orjson.JSONDecodeError:
        logger.warning("Failed to parse JSON from text match")
        return None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def decode_chart(raw: Any, index: int) -> dict[str, Any]:
    chart = raw if isinstance(raw, dict) else {}
    chart_type = chart.get("type")
    if not isinstance(chart_type, str) or chart_type.lower() not in CHART_TYPES:
        chart_type = "bar"
    data = chart.get("dataPoints")
    if not isinstance(data, list):
        data = _as_list(chart.get("data"))
    return {
        "id": f"chart-{index}",
        "type": chart_type.lower(),
        "title": _str_or(chart.get("title"), f"Chart {index + 1}"),
        "description": _str_or(chart.get("description"), ""),
        "data": data,
        "keys": dict(CHART_KEYS),
    }


def decode_insight(raw: Any, index: int) -> dict[str, Any]:
    insight = raw if isinstance(raw, dict) else {}
    return {
        "id": f"insight-{index}",
        "title": _str_or(insight.get("title"), f"Insight {index + 1}"),
        "description": _str_or(insight.get("description"), ""),
    }


def analysis_placeholder(raw_response: Any) -> dict[str, Any]:
    return {
        "insights": [dict(ERROR_INSIGHT)],
        "charts": [],
        "rawResponse": raw_response if isinstance(raw_response, str) else "No response",
    }


def parse_analysis_response(text: Any) -> Result[dict[str, Any]]:
    payload = extract_json_object(text)
    if not isinstance(payload, dict):
        logger.warning("Could not parse AI analysis response as a JSON object")
        return Failure(
            "Could not parse AI response as JSON",
            fallback=analysis_placeholder(text),
        )
    return Success(
        {
            "insights": [
                decode_insight(item, index)
                for index, item in enumerate(_as_list(payload.get("insights")))
            ],
            "charts": [
                decode_chart(item, index)
                for index, item in enumerate(_as_list(payload.get("charts")))
            ],
            "rawResponse": text,
        }
    )


def parse_form_config_response(
    text: Any, title: str | None = None
) -> Result[dict[str, Any]]:
    payload = extract_json_object(text)
    if not isinstance(payload, dict) or not isinstance(payload.get("formConfig"), list):
        logger.warning("Invalid response structure from AI: %r", text)
        return Failure("Received invalid configuration structure from AI.")

    raw_elements = payload["formConfig"]
    for index, raw in enumerate(raw_elements):
        if validate_element(raw, index):
            logger.warning("Invalid element at index %s: %r", index, raw)
            return Failure(
                f"Generated element at index {index} is missing required "
                "fields (type, label, name)."
            )

    candidate_title = title or payload.get("title")
    return validate_form_config(
        {"title": candidate_title, "elements": raw_elements}, allow_empty=False
    )
