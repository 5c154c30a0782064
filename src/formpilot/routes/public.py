from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from formpilot import services
from formpilot.fields import compute_duration_ms, input_elements
from formpilot.results import INVALID, NOT_FOUND
from formpilot.routes.admin import render_error
from formpilot.utils import now_ms

router = APIRouter()


def load_form(request: Request, form_id: str) -> Any:
    result = services.get_form(request.app.state.storage, form_id)
    if not result.ok and result.kind == NOT_FOUND:
        raise HTTPException(status_code=404, detail="Form configuration not found.")
    return result


def render_form(
    request: Request,
    form: dict[str, Any],
    started_at: Any,
    values: dict[str, Any],
    errors: list[str],
    status_code: int = 200,
) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "form_public.html",
        {
            "form": form,
            "elements": input_elements(form["config"]),
            "started_at": started_at,
            "values": values,
            "errors": errors,
        },
        status_code=status_code,
    )


@router.get("/f/{form_id}", response_class=HTMLResponse, tags=["public"])
async def public_form(request: Request, form_id: str) -> HTMLResponse:
    result = load_form(request, form_id)
    if not result.ok:
        return render_error(request, result.error, f"/f/{form_id}")
    return render_form(request, result.value, now_ms(), {}, [])


@router.post("/f/{form_id}", response_class=HTMLResponse, tags=["public"])
async def submit_form(request: Request, form_id: str) -> HTMLResponse:
    templates = request.app.state.templates
    result = load_form(request, form_id)
    if not result.ok:
        return render_error(request, result.error, f"/f/{form_id}")
    form = result.value

    form_data = await request.form()
    raw = {el["name"]: form_data.get(el["name"]) for el in input_elements(form["config"])}
    started_at = form_data.get("started_at")
    duration_ms = compute_duration_ms(started_at, now_ms())

    saved = services.save_submission(request.app.state.storage, form_id, raw, duration_ms)
    if not saved.ok:
        errors = saved.fallback if isinstance(saved.fallback, list) else [saved.error]
        return render_form(
            request,
            form,
            started_at or now_ms(),
            raw,
            errors,
            status_code=400 if saved.kind == INVALID else 500,
        )

    return templates.TemplateResponse(
        request,
        "submission_done.html",
        {
            "form": form,
            "submission": saved.value,
            "duration_seconds": (
                saved.value["duration_ms"] / 1000
                if saved.value["duration_ms"] is not None
                else None
            ),
        },
    )
