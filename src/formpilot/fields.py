"""Respondent-side rules derived from a validated form configuration."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from jsonschema import Draft7Validator

from formpilot.config import EMAIL_PATTERN, FIELD_TYPES, MAX_DURATION_MS, OPTION_TYPES

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
STRING_TYPES = {"text", "textarea", "email", "password", "date", "url", "tel", "select", "radio"}


def input_elements(config: dict[str, Any]) -> list[dict[str, Any]]:
    return [el for el in config.get("elements", []) if el["type"] != "submit"]


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in {"1", "true", "on", "yes"}


def normalize_number(value: Any) -> Any:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def build_property(element: dict[str, Any]) -> dict[str, Any]:
    element_type = element["type"]
    required = bool(element.get("required"))
    if element_type == "number":
        return {"type": "number"}
    if element_type == "checkbox":
        prop: dict[str, Any] = {"type": "boolean"}
        if required:
            prop["const"] = True
        return prop
    if element_type not in STRING_TYPES:
        if element_type not in FIELD_TYPES:
            logger.warning("Unsupported element type %r; accepting any value", element_type)
        return {}

    prop = {"type": "string"}
    if required:
        prop["minLength"] = 1
    if element_type == "email":
        prop["pattern"] = EMAIL_PATTERN
    elif element_type == "password":
        prop["minLength"] = PASSWORD_MIN_LENGTH
    elif element_type in OPTION_TYPES and element.get("options"):
        prop["enum"] = list(element["options"])
    return prop


def build_submission_schema(config: dict[str, Any]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for element in input_elements(config):
        properties[element["name"]] = build_property(element)
        if element.get("required"):
            required.append(element["name"])
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def coerce_answers(config: dict[str, Any], raw: Mapping[str, Any]) -> dict[str, Any]:
    """Turn raw input (form fields or JSON) into typed answers.

    Strings are trimmed, numbers coerced, checkboxes become booleans and
    empty optional values are dropped. Keys not in the configuration are
    ignored.
    """
    answers: dict[str, Any] = {}
    for element in input_elements(config):
        name = element["name"]
        element_type = element["type"]
        value = raw.get(name)
        if element_type == "checkbox":
            answers[name] = parse_bool(value) if value is not None else False
            continue
        if element_type == "number":
            number = normalize_number(value)
            if number is not None:
                answers[name] = number
            continue
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, ""):
            answers[name] = value
        elif element.get("required"):
            answers[name] = ""
    return answers


def _error_message(error: Any, elements: dict[str, dict[str, Any]]) -> str:
    if error.validator == "required":
        name = error.message.split("'")[1] if "'" in error.message else ""
        label = elements.get(name, {}).get("label", name)
        return f"{label} is required"

    name = str(error.path[0]) if error.path else ""
    element = elements.get(name, {})
    label = element.get("label", name)
    if error.validator == "pattern":
        return "Invalid email address"
    if error.validator == "const":
        return f"{label} must be checked"
    if error.validator == "minLength":
        if element.get("type") == "password":
            return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        return f"{label} is required"
    if error.validator == "enum":
        return f"{label} must be one of: {', '.join(element.get('options', []))}"
    if error.validator == "type" and element.get("type") == "number":
        return f"{label} must be a number"
    return f"{label}: {error.message}"


def validate_answers(config: dict[str, Any], answers: dict[str, Any]) -> list[str]:
    validator = Draft7Validator(build_submission_schema(config))
    elements = {el["name"]: el for el in input_elements(config)}
    errors = sorted(validator.iter_errors(answers), key=lambda err: list(err.path))
    messages: list[str] = []
    for error in errors:
        # A blank required value is already reported by minLength.
        if error.validator in {"pattern", "enum"} and error.instance == "":
            continue
        message = _error_message(error, elements)
        if message not in messages:
            messages.append(message)
    return messages


def compute_duration_ms(started_at_ms: Any, submitted_at_ms: int) -> int | None:
    """Elapsed time between first render and submit, never negative.

    A missing or unusable start time yields None.
    """
    if started_at_ms in (None, ""):
        return None
    try:
        started = float(started_at_ms)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(started):
        return None
    duration = max(0, submitted_at_ms - int(started))
    return duration if duration <= MAX_DURATION_MS else None


def input_type(element: dict[str, Any]) -> str:
    element_type = element["type"]
    if element_type in {"email", "password", "number", "date", "url", "tel"}:
        return element_type
    return "text"
