from __future__ import annotations

from typing import Any, Iterable

from formpilot.aggregator import aggregate_submissions
from formpilot.config import DASHBOARD_TOP_FORMS, DEFAULT_FORM_TITLE
from formpilot.utils import to_iso


def form_title(form: dict[str, Any]) -> str:
    config = form.get("config")
    if isinstance(config, dict):
        title = config.get("title")
        if isinstance(title, str) and title.strip():
            return title
    return DEFAULT_FORM_TITLE


def build_dashboard(
    forms: list[dict[str, Any]], submissions: Iterable[dict[str, Any]]
) -> dict[str, Any]:
    stats = aggregate_submissions(forms, submissions)
    rows = []
    for form in forms:
        form_stats = stats["per_form"][form["id"]]
        rows.append(
            {
                "formId": form["id"],
                "title": form_title(form),
                "createdAt": to_iso(form.get("created_at")),
                "responseCount": form_stats["response_count"],
                "averageDurationSeconds": form_stats["average_duration_seconds"],
            }
        )
    return {
        "totalForms": stats["total_forms"],
        "totalResponses": stats["total_responses"],
        "responsesPerForm": rows,
        "overallAvgDurationSeconds": stats["overall_avg_duration_seconds"],
    }


def top_forms(
    rows: list[dict[str, Any]], limit: int = DASHBOARD_TOP_FORMS
) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda row: row["responseCount"], reverse=True)[:limit]


def chart_scale(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach a 0-100 bar width for the HTML dashboard chart."""
    peak = max((row["responseCount"] for row in rows), default=0)
    return [
        {**row, "width": round(row["responseCount"] * 100 / peak) if peak else 0}
        for row in rows
    ]
