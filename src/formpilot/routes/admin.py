from __future__ import annotations

from typing import Any

import orjson
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from formpilot import services
from formpilot.dashboard import chart_scale, form_title, top_forms
from formpilot.results import INVALID, NOT_FOUND, Failure

router = APIRouter()


def render_error(request: Request, message: str, retry_url: str, status_code: int = 500) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": message, "retry_url": retry_url},
        status_code=status_code,
    )


def raise_if_not_found(result: Any) -> None:
    if isinstance(result, Failure) and result.kind == NOT_FOUND:
        raise HTTPException(status_code=404, detail="Form configuration not found.")


def render_editor(
    request: Request,
    form: dict[str, Any],
    title: str,
    elements_json: str,
    errors: list[str],
    notice: str = "",
    status_code: int = 200,
) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "form_editor.html",
        {
            "form": form,
            "title": title,
            "elements_json": elements_json,
            "errors": errors,
            "notice": notice,
        },
        status_code=status_code,
    )


def pretty_elements(elements: list[dict[str, Any]]) -> str:
    return orjson.dumps(elements, option=orjson.OPT_INDENT_2).decode("utf-8")


@router.get("/", response_class=HTMLResponse, tags=["admin"])
async def home(request: Request) -> HTMLResponse:
    return RedirectResponse("/forms")


@router.get("/forms", response_class=HTMLResponse, tags=["admin"])
async def list_forms(request: Request) -> HTMLResponse:
    templates = request.app.state.templates
    result = services.list_forms(request.app.state.storage)
    if not result.ok:
        return render_error(request, result.error, "/forms")
    forms = [{**form, "title": form_title(form)} for form in result.value]
    return templates.TemplateResponse(request, "forms.html", {"forms": forms})


@router.post("/forms/new", tags=["admin"])
async def create_empty_form(request: Request) -> HTMLResponse:
    result = services.create_empty_form(request.app.state.storage)
    if not result.ok:
        return render_error(request, result.error, "/forms")
    return RedirectResponse(f"/edit/{result.value}", status_code=303)


@router.post("/forms/{form_id}/delete", tags=["admin"])
async def delete_form(request: Request, form_id: str) -> HTMLResponse:
    result = services.delete_form(request.app.state.storage, form_id)
    raise_if_not_found(result)
    if not result.ok:
        return render_error(request, result.error, "/forms")
    return RedirectResponse("/forms", status_code=303)


@router.get("/generate", response_class=HTMLResponse, tags=["admin"])
async def generate_page(request: Request) -> HTMLResponse:
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request, "generate.html", {"prompt": "", "errors": []}
    )


@router.post("/generate", response_class=HTMLResponse, tags=["admin"])
async def generate_form(request: Request) -> HTMLResponse:
    templates = request.app.state.templates
    form_data = await request.form()
    prompt = str(form_data.get("prompt", "")).strip()
    result = await services.generate_form(
        request.app.state.storage, request.app.state.ai_client, prompt
    )
    if not result.ok:
        return templates.TemplateResponse(
            request,
            "generate.html",
            {"prompt": prompt, "errors": [result.error]},
            status_code=400 if result.kind == INVALID else 500,
        )
    return RedirectResponse(f"/edit/{result.value}", status_code=303)


@router.get("/edit/{form_id}", response_class=HTMLResponse, tags=["admin"])
async def edit_form(request: Request, form_id: str) -> HTMLResponse:
    result = services.get_form(request.app.state.storage, form_id)
    raise_if_not_found(result)
    if not result.ok:
        return render_error(request, result.error, f"/edit/{form_id}")
    form = result.value
    notice = "Form saved." if request.query_params.get("saved") else ""
    return render_editor(
        request,
        form,
        form["config"]["title"],
        pretty_elements(form["config"]["elements"]),
        [],
        notice=notice,
    )


@router.post("/edit/{form_id}", response_class=HTMLResponse, tags=["admin"])
async def update_form(request: Request, form_id: str) -> HTMLResponse:
    storage = request.app.state.storage
    found = services.get_form(storage, form_id)
    raise_if_not_found(found)
    form = found.value if found.ok else {"id": form_id}

    form_data = await request.form()
    title = str(form_data.get("title", "")).strip()
    elements_json = str(form_data.get("elements_json", "")).strip() or "[]"
    try:
        elements = orjson.loads(elements_json)
    except orjson.JSONDecodeError:
        return render_editor(
            request, form, title, elements_json, ["Elements must be valid JSON."], status_code=400
        )

    result = services.update_form_config(
        storage, form_id, {"title": title, "elements": elements}
    )
    raise_if_not_found(result)
    if not result.ok:
        return render_editor(
            request,
            form,
            title,
            elements_json,
            [result.error],
            status_code=400 if result.kind == INVALID else 500,
        )
    return RedirectResponse(f"/edit/{form_id}?saved=1", status_code=303)


@router.post("/edit/{form_id}/improve", response_class=HTMLResponse, tags=["admin"])
async def improve_form(request: Request, form_id: str) -> HTMLResponse:
    storage = request.app.state.storage
    found = services.get_form(storage, form_id)
    raise_if_not_found(found)
    if not found.ok:
        return render_error(request, found.error, f"/edit/{form_id}")
    form = found.value

    form_data = await request.form()
    prompt = str(form_data.get("prompt", "")).strip()
    result = await services.improve_form_config(
        storage, request.app.state.ai_client, form_id, prompt
    )
    if not result.ok:
        return render_editor(
            request,
            form,
            form["config"]["title"],
            pretty_elements(form["config"]["elements"]),
            [result.error],
        )
    return render_editor(
        request,
        form,
        result.value["title"],
        pretty_elements(result.value["elements"]),
        [],
        notice="Suggested changes loaded. Review them and save to keep them.",
    )


@router.get("/dashboard", response_class=HTMLResponse, tags=["admin"])
async def dashboard(request: Request) -> HTMLResponse:
    templates = request.app.state.templates
    result = services.get_dashboard(request.app.state.storage)
    if not result.ok:
        return render_error(request, result.error, "/dashboard")
    stats = result.value
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "stats": stats,
            "chart_rows": chart_scale(top_forms(stats["responsesPerForm"])),
        },
    )


@router.get("/analysis/{form_id}", response_class=HTMLResponse, tags=["admin"])
async def analysis(request: Request, form_id: str) -> HTMLResponse:
    templates = request.app.state.templates
    storage = request.app.state.storage
    found = services.get_form(storage, form_id)
    raise_if_not_found(found)
    title = found.value["config"]["title"] if found.ok else form_id

    result = await services.analyze_form(storage, request.app.state.ai_client, form_id)
    if not result.ok:
        return render_error(request, result.error, f"/analysis/{form_id}")
    return templates.TemplateResponse(
        request,
        "analysis.html",
        {
            "form_id": form_id,
            "title": title,
            "analysis": result.value,
        },
    )
