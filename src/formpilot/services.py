"""Use cases shared by the HTML pages and the JSON API.

Every function returns a ``Success`` or ``Failure``; store and AI errors are
logged here and reduced to a generic message.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError

from formpilot import prompts
from formpilot.ai_client import AIClientError, AIConfigurationError
from formpilot.ai_parser import parse_analysis_response, parse_form_config_response
from formpilot.aggregator import observed_duration, submission_data_for_form
from formpilot.config import DEFAULT_FORM_TITLE, MAX_DURATION_MS
from formpilot.dashboard import build_dashboard
from formpilot.fields import coerce_answers, validate_answers
from formpilot.protocols import Storage
from formpilot.results import NOT_FOUND, UPSTREAM, Failure, Result, Success
from formpilot.schema import validate_form_config
from formpilot.utils import new_ulid, now_utc

logger = logging.getLogger(__name__)

STORE_ERRORS = (SQLAlchemyError, OSError, ValueError)

AI_NOT_CONFIGURED = "AI service is not configured."
NO_SUBMISSIONS_MESSAGE = "No submissions found for this form."


def _not_found(form_id: str) -> Failure:
    return Failure(f"Form configuration not found: {form_id}", kind=NOT_FOUND)


def list_forms(storage: Storage) -> Result[list[dict[str, Any]]]:
    try:
        return Success(storage.forms.list_forms())
    except STORE_ERRORS:
        logger.exception("Error listing form configurations")
        return Failure("Failed to load forms.", kind=UPSTREAM)


def create_form(
    storage: Storage, candidate: Any, allow_empty: bool = True
) -> Result[str]:
    checked = validate_form_config(candidate, allow_empty=allow_empty)
    if not checked.ok:
        return checked
    form_id = new_ulid()
    try:
        storage.forms.create_form(
            {"id": form_id, "config": checked.value, "created_at": now_utc()}
        )
    except STORE_ERRORS:
        logger.exception("Error saving form configuration")
        return Failure("Failed to save form configuration.", kind=UPSTREAM)
    logger.info("Form configuration saved with ID: %s", form_id)
    return Success(form_id)


def create_empty_form(storage: Storage) -> Result[str]:
    return create_form(storage, {"title": DEFAULT_FORM_TITLE, "elements": []})


async def generate_form(storage: Storage, ai_client: Any, description: str) -> Result[str]:
    description = (description or "").strip()
    if not description:
        return Failure("Please describe the form you want to generate.")
    try:
        text = await ai_client.complete(
            prompts.FORM_GENERATOR_SYSTEM, prompts.form_generation_prompt(description)
        )
    except AIConfigurationError:
        logger.error("Form generation requested but the AI service is not configured")
        return Failure(AI_NOT_CONFIGURED, kind=UPSTREAM)
    except AIClientError:
        logger.exception("Error generating form config")
        return Failure("Failed to generate form configuration.", kind=UPSTREAM)

    parsed = parse_form_config_response(text, title=prompts.title_from_prompt(description))
    if not parsed.ok:
        return parsed
    return create_form(storage, parsed.value, allow_empty=False)


def get_form(storage: Storage, form_id: str) -> Result[dict[str, Any]]:
    """Fetch a form record with its configuration validated."""
    if not form_id:
        return Failure("Form ID is required.")
    try:
        form = storage.forms.get_form(form_id)
    except STORE_ERRORS:
        logger.exception("Error fetching form config %s", form_id)
        return Failure("Failed to fetch form configuration.", kind=UPSTREAM)
    if not form:
        return _not_found(form_id)
    checked = validate_form_config(form.get("config"))
    if not checked.ok:
        logger.error("Invalid config structure in stored form %s: %s", form_id, checked.error)
        return Failure(f"Fetched form configuration is invalid: {checked.error}")
    return Success({**form, "config": checked.value})


def update_form_config(
    storage: Storage, form_id: str, candidate: Any
) -> Result[dict[str, Any]]:
    if not form_id:
        return Failure("Form ID is required to update.")
    checked = validate_form_config(candidate)
    if not checked.ok:
        return checked
    try:
        updated = storage.forms.update_form(
            form_id, {"config": checked.value, "last_modified": now_utc()}
        )
    except KeyError:
        return _not_found(form_id)
    except STORE_ERRORS:
        logger.exception("Error updating form config %s", form_id)
        return Failure("Failed to update form configuration.", kind=UPSTREAM)
    logger.info("Form configuration %s updated", form_id)
    return Success(updated)


def delete_form(storage: Storage, form_id: str) -> Result[str]:
    found = get_form(storage, form_id)
    if not found.ok and found.kind == NOT_FOUND:
        return found
    try:
        storage.forms.delete_form(form_id)
    except STORE_ERRORS:
        logger.exception("Error deleting form config %s", form_id)
        return Failure("Failed to delete form configuration.", kind=UPSTREAM)
    logger.info("Form configuration %s deleted", form_id)
    return Success(form_id)


async def improve_form_config(
    storage: Storage, ai_client: Any, form_id: str, request: str
) -> Result[dict[str, Any]]:
    """Ask the model for an improved configuration; nothing is persisted."""
    request = (request or "").strip()
    if not request:
        return Failure("Please describe the improvement you want.")
    found = get_form(storage, form_id)
    if not found.ok:
        return found
    config = found.value["config"]
    try:
        text = await ai_client.complete(
            prompts.FORM_DESIGNER_SYSTEM, prompts.form_improvement_prompt(config, request)
        )
    except AIConfigurationError:
        logger.error("Form improvement requested but the AI service is not configured")
        return Failure(AI_NOT_CONFIGURED, kind=UPSTREAM)
    except AIClientError:
        logger.exception("Error improving form config %s", form_id)
        return Failure("Failed to improve form configuration.", kind=UPSTREAM)
    return parse_form_config_response(text, title=config["title"])


def _duration_from_input(value: Any) -> Result[int | None]:
    if value is None:
        return Success(None)
    if observed_duration(value) is None:
        return Failure("durationMs must be a non-negative number.")
    if value > MAX_DURATION_MS:
        return Failure(f"durationMs must not exceed {MAX_DURATION_MS}.")
    return Success(round(value))


def save_submission(
    storage: Storage,
    form_id: str,
    raw_answers: Mapping[str, Any] | None,
    duration_ms: Any = None,
) -> Result[dict[str, Any]]:
    """Validate answers against the form and insert one submission.

    On validation failure ``fallback`` holds the per-field messages.
    """
    if not form_id:
        return Failure("Form ID is required to save the response.")
    if not raw_answers:
        return Failure("Response data cannot be empty.")
    found = get_form(storage, form_id)
    if not found.ok:
        return found
    duration = _duration_from_input(duration_ms)
    if not duration.ok:
        return duration

    config = found.value["config"]
    answers = coerce_answers(config, raw_answers)
    if not answers:
        return Failure("Response data cannot be empty.")
    messages = validate_answers(config, answers)
    if messages:
        return Failure("; ".join(messages), fallback=messages)

    submission = {
        "id": new_ulid(),
        "form_id": form_id,
        "data": answers,
        "submitted_at": now_utc(),
        "duration_ms": duration.value,
    }
    try:
        storage.submissions.create_submission(submission)
    except STORE_ERRORS:
        logger.exception("Error saving form response for %s", form_id)
        return Failure("Failed to save form response.", kind=UPSTREAM)
    logger.info(
        "Response %s saved for form %s (duration: %s ms)",
        submission["id"],
        form_id,
        duration.value,
    )
    return Success(submission)


def list_submissions(storage: Storage, form_id: str | None = None) -> Result[list[dict[str, Any]]]:
    try:
        return Success(storage.submissions.list_submissions(form_id))
    except STORE_ERRORS:
        logger.exception("Error fetching submissions")
        return Failure("Failed to fetch submissions.", kind=UPSTREAM)


def get_dashboard(storage: Storage) -> Result[dict[str, Any]]:
    try:
        forms = storage.forms.list_forms()
        submissions = storage.submissions.list_submissions()
    except STORE_ERRORS:
        logger.exception("Error fetching dashboard data")
        return Failure("Failed to fetch dashboard data", kind=UPSTREAM)
    return Success(build_dashboard(forms, submissions))


async def analyze_form(storage: Storage, ai_client: Any, form_id: str) -> Result[dict[str, Any]]:
    form_id = (form_id or "").strip()
    if not form_id:
        return Failure("formId is required")
    loaded = list_submissions(storage, form_id)
    if not loaded.ok:
        return loaded
    records = submission_data_for_form(loaded.value, form_id)
    if not records:
        return Success(
            {"insights": [], "charts": [], "rawResponse": None, "message": NO_SUBMISSIONS_MESSAGE}
        )

    try:
        text = await ai_client.complete(prompts.DATA_ANALYST_SYSTEM, prompts.analysis_prompt(records))
    except AIConfigurationError:
        logger.error("Analysis requested but the AI service is not configured")
        return Failure(AI_NOT_CONFIGURED, kind=UPSTREAM)
    except AIClientError:
        logger.exception("Error analyzing data for form %s", form_id)
        return Failure("Failed to analyze submissions.", kind=UPSTREAM)

    parsed = parse_analysis_response(text)
    return Success(parsed.value if parsed.ok else parsed.fallback)
