"""Form configuration validation.

A configuration is ``{"title": str, "elements": [element, ...]}`` where every
element carries a non-empty ``type``, ``label`` and ``name``. Validation stops
at the first offending element and reports it by index; nothing here raises.
"""

from __future__ import annotations

from typing import Any

from formpilot.config import DEFAULT_FORM_TITLE, NAME_PATTERN, OPTION_TYPES
from formpilot.fields import parse_bool
from formpilot.results import Failure, Result, Success

REQUIRED_ELEMENT_KEYS = ("type", "label", "name")


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_element(raw: Any, index: int) -> str | None:
    """Return an error message for the element at ``index`` or None."""
    if not isinstance(raw, dict):
        return f"Element at index {index} is not an object."
    for key in REQUIRED_ELEMENT_KEYS:
        if not _text(raw.get(key)):
            return f"Element at index {index} is missing required field '{key}'."
    return None


def _normalize_options(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [item.strip() for item in raw if isinstance(item, str) and item.strip()]


def normalize_element(raw: dict[str, Any]) -> dict[str, Any]:
    element_type = _text(raw.get("type")).lower()
    element: dict[str, Any] = {
        "type": element_type,
        "label": _text(raw.get("label")),
        "name": _text(raw.get("name")),
    }
    if element_type in OPTION_TYPES:
        element["options"] = _normalize_options(raw.get("options"))
    placeholder = _text(raw.get("placeholder"))
    if placeholder:
        element["placeholder"] = placeholder
    if "required" in raw:
        element["required"] = parse_bool(raw.get("required"))
    return element


def validate_elements(raw_elements: list[Any]) -> Result[list[dict[str, Any]]]:
    elements: list[dict[str, Any]] = []
    seen_names: set[str] = set()
    for index, raw in enumerate(raw_elements):
        error = validate_element(raw, index)
        if error:
            return Failure(error)
        element = normalize_element(raw)
        name = element["name"]
        if not NAME_PATTERN.match(name):
            return Failure(
                f"Element at index {index} has an invalid name ({name}); "
                "use letters, digits, '_' or '-' and start with a letter or '_'."
            )
        if name in seen_names:
            return Failure(f"Element at index {index} has a duplicate name ({name}).")
        seen_names.add(name)
        if element["type"] in OPTION_TYPES and not element["options"]:
            return Failure(
                f"Element at index {index} is missing required field 'options' "
                f"for type '{element['type']}'."
            )
        elements.append(element)
    return Success(elements)


def validate_form_config(
    candidate: Any, allow_empty: bool = True
) -> Result[dict[str, Any]]:
    """Check a candidate configuration and return it normalized.

    A bare list is read as the element sequence of an untitled form; older
    documents were stored that way.
    """
    if isinstance(candidate, list):
        title = DEFAULT_FORM_TITLE
        raw_elements: Any = candidate
    elif isinstance(candidate, dict):
        title = _text(candidate.get("title")) or DEFAULT_FORM_TITLE
        raw_elements = candidate.get("elements")
    else:
        return Failure("Form configuration has an invalid structure.")

    if not isinstance(raw_elements, list):
        return Failure("Form configuration has an invalid structure.")
    if not raw_elements and not allow_empty:
        return Failure("Form configuration must contain at least one element.")

    result = validate_elements(raw_elements)
    if not result.ok:
        return result
    return Success({"title": title, "elements": result.value})
