"""Per-form submission statistics.

Durations are stored in milliseconds and reported in seconds. The overall
average is the mean of every observed duration, not the mean of the per-form
averages; the two differ whenever forms have unequal response counts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass
class FormTally:
    response_count: int = 0
    durations_ms: list[float] = field(default_factory=list)


def observed_duration(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return float(value)


def tally_submissions(
    submissions: Iterable[dict[str, Any]], form_id: str | None = None
) -> dict[str, FormTally]:
    tallies: dict[str, FormTally] = {}
    for submission in submissions:
        submission_form_id = submission.get("form_id")
        if not submission_form_id:
            continue
        if form_id is not None and submission_form_id != form_id:
            continue
        tally = tallies.setdefault(submission_form_id, FormTally())
        tally.response_count += 1
        duration = observed_duration(submission.get("duration_ms"))
        if duration is not None:
            tally.durations_ms.append(duration)
    return tallies


def average_seconds(durations_ms: list[float]) -> float | None:
    if not durations_ms:
        return None
    return sum(durations_ms) / len(durations_ms) / 1000


def aggregate_submissions(
    forms: list[dict[str, Any]], submissions: Iterable[dict[str, Any]]
) -> dict[str, Any]:
    """Aggregate submissions for every known form.

    Forms without submissions are reported with a zero count and a ``None``
    average. Submissions pointing at unknown forms are left out.
    """
    tallies = tally_submissions(submissions)
    per_form: dict[str, dict[str, Any]] = {}
    all_durations: list[float] = []
    total_responses = 0

    for form in forms:
        form_id = form["id"]
        tally = tallies.get(form_id, FormTally())
        per_form[form_id] = {
            "response_count": tally.response_count,
            "average_duration_seconds": average_seconds(tally.durations_ms),
        }
        total_responses += tally.response_count
        all_durations.extend(tally.durations_ms)

    return {
        "total_forms": len(forms),
        "total_responses": total_responses,
        "per_form": per_form,
        "overall_avg_duration_seconds": average_seconds(all_durations),
    }


def submission_data_for_form(
    submissions: Iterable[dict[str, Any]], form_id: str
) -> list[dict[str, Any]]:
    return [
        dict(submission.get("data") or {})
        for submission in submissions
        if submission.get("form_id") == form_id
    ]
