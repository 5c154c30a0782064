from __future__ import annotations

import logging
import random
from datetime import timedelta
from pathlib import Path
from typing import Any

import orjson

from formpilot.protocols import Storage
from formpilot.schema import validate_form_config
from formpilot.utils import new_ulid, now_utc

logger = logging.getLogger(__name__)

FORM_TEMPLATES: list[dict[str, Any]] = [
    {
        "title": "Employee Information",
        "elements": [
            {"type": "text", "label": "Name", "name": "name", "required": True},
            {
                "type": "select",
                "label": "Gender",
                "name": "gender",
                "required": True,
                "options": ["Male", "Female", "Other"],
            },
            {"type": "number", "label": "Salary", "name": "salary", "required": True},
        ],
    },
    {
        "title": "Profile Form",
        "elements": [
            {"type": "text", "label": "Name", "name": "name", "required": True},
            {"type": "email", "label": "Email", "name": "email", "required": True},
            {"type": "text", "label": "Company", "name": "company", "required": False},
            {"type": "number", "label": "Age", "name": "age", "required": True},
            {
                "type": "select",
                "label": "Education",
                "name": "education",
                "required": False,
                "options": ["High School", "Bachelors", "Masters", "PhD"],
            },
        ],
    },
    {
        "title": "Feedback Form",
        "elements": [
            {"type": "text", "label": "Name", "name": "name", "required": True},
            {"type": "textarea", "label": "Feedback", "name": "feedback", "required": False},
            {"type": "number", "label": "Rating", "name": "rating", "required": True},
        ],
    },
]

SAMPLE_NAMES = ["John", "Jane", "Alice", "Bob", "Carlos", "Rahul", "Harsh", "Kashish", "Pankaj"]


def sample_value(element: dict[str, Any], rng: random.Random) -> Any:
    element_type = element["type"]
    if element_type == "number":
        return rng.randint(1, 100)
    if element_type in {"select", "radio"}:
        return rng.choice(element["options"])
    if element_type == "email":
        return f"{rng.choice(SAMPLE_NAMES).lower()}{rng.randint(1, 999)}@example.com"
    if element_type == "checkbox":
        return rng.random() < 0.5
    return rng.choice(SAMPLE_NAMES)


def seed_forms(
    storage: Storage, submissions_per_form: int = 100, seed: int | None = None
) -> list[str]:
    """Insert the template forms, each with randomly filled submissions."""
    rng = random.Random(seed)
    form_ids: list[str] = []
    for template in FORM_TEMPLATES:
        config = validate_form_config(template).value
        form_id = new_ulid()
        created_at = now_utc()
        storage.forms.create_form(
            {"id": form_id, "config": config, "created_at": created_at, "last_modified": created_at}
        )
        for index in range(submissions_per_form):
            storage.submissions.create_submission(
                {
                    "id": new_ulid(),
                    "form_id": form_id,
                    "data": {el["name"]: sample_value(el, rng) for el in config["elements"]},
                    "submitted_at": created_at + timedelta(minutes=index),
                    "duration_ms": rng.randint(5_000, 120_000),
                }
            )
        logger.info("Seeded form %s (%s) with %d submissions", form_id, config["title"], submissions_per_form)
        form_ids.append(form_id)
    return form_ids


def export_submissions(storage: Storage, path: Path, form_id: str | None = None) -> int:
    """Write the answer mappings of all (or one form's) submissions as JSON."""
    submissions = storage.submissions.list_submissions(form_id)
    data = [dict(item.get("data") or {}) for item in submissions]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    logger.info("Exported %d submissions to %s", len(data), path)
    return len(data)
