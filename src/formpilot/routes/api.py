from __future__ import annotations

import csv
import io
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from formpilot import services
from formpilot.fields import input_elements
from formpilot.results import INVALID, NOT_FOUND, UPSTREAM, Failure
from formpilot.utils import to_iso

router = APIRouter()

STATUS_BY_KIND = {INVALID: 400, NOT_FOUND: 404, UPSTREAM: 500}


def failure_response(failure: Failure) -> JSONResponse:
    body: dict[str, Any] = {"error": failure.error}
    if isinstance(failure.fallback, list):
        body["errors"] = failure.fallback
    return JSONResponse(body, status_code=STATUS_BY_KIND.get(failure.kind, 500))


async def read_json(request: Request) -> Any:
    body = await request.body()
    if not body:
        return {}
    try:
        return await request.json()
    except ValueError:
        return None


def form_output(form: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": form["id"],
        "config": form.get("config"),
        "createdAt": to_iso(form.get("created_at")),
        "lastModified": to_iso(form.get("last_modified")),
    }


def submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "formId": submission["form_id"],
        "data": submission.get("data", {}),
        "submittedAt": to_iso(submission.get("submitted_at")),
        "durationMs": submission.get("duration_ms"),
    }


def csv_text(config: dict[str, Any], submissions: list[dict[str, Any]]) -> str:
    names = [el["name"] for el in input_elements(config)]
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["submittedAt", "durationMs", *names])
    for item in submissions:
        data = item.get("data", {})
        row = [to_iso(item.get("submitted_at")) or "", item.get("duration_ms") or ""]
        for name in names:
            value = data.get(name)
            if isinstance(value, bool):
                value = "true" if value else "false"
            row.append("" if value is None else value)
        writer.writerow(row)
    return buffer.getvalue()


@router.get("/healthz", tags=["system"])
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(request: Request) -> JSONResponse:
    result = services.list_forms(request.app.state.storage)
    if not result.ok:
        return failure_response(result)
    return JSONResponse([form_output(form) for form in result.value])


@router.post("/api/forms", tags=["api/forms"])
async def api_create_form(request: Request) -> JSONResponse:
    storage = request.app.state.storage
    payload = await read_json(request)
    if not isinstance(payload, (dict, list)):
        return JSONResponse({"error": "Request body is not valid JSON."}, status_code=400)
    if payload == {}:
        result = services.create_empty_form(storage)
    elif isinstance(payload, dict):
        result = services.create_form(storage, payload.get("config", payload))
    else:
        result = services.create_form(storage, payload)
    if not result.ok:
        return failure_response(result)
    return JSONResponse({"formId": result.value}, status_code=201)


@router.post("/api/forms/generate", tags=["api/forms"])
async def api_generate_form(request: Request) -> JSONResponse:
    payload = await read_json(request)
    if not isinstance(payload, dict):
        return JSONResponse({"error": "Request body is not valid JSON."}, status_code=400)
    result = await services.generate_form(
        request.app.state.storage,
        request.app.state.ai_client,
        str(payload.get("prompt", "")),
    )
    if not result.ok:
        return failure_response(result)
    return JSONResponse({"formId": result.value}, status_code=201)


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(request: Request, form_id: str) -> JSONResponse:
    result = services.get_form(request.app.state.storage, form_id)
    if not result.ok:
        return failure_response(result)
    return JSONResponse(form_output(result.value))


@router.put("/api/forms/{form_id}", tags=["api/forms"])
async def api_update_form(request: Request, form_id: str) -> JSONResponse:
    payload = await read_json(request)
    if not isinstance(payload, (dict, list)) or payload == {}:
        return JSONResponse({"error": "Form configuration is missing."}, status_code=400)
    candidate = payload.get("config", payload) if isinstance(payload, dict) else payload
    result = services.update_form_config(request.app.state.storage, form_id, candidate)
    if not result.ok:
        return failure_response(result)
    return JSONResponse(form_output(result.value))


@router.delete("/api/forms/{form_id}", tags=["api/forms"])
async def api_delete_form(request: Request, form_id: str) -> JSONResponse:
    result = services.delete_form(request.app.state.storage, form_id)
    if not result.ok:
        return failure_response(result)
    return JSONResponse({"deleted": result.value})


@router.post("/api/forms/{form_id}/improve", tags=["api/forms"])
async def api_improve_form(request: Request, form_id: str) -> JSONResponse:
    payload = await read_json(request)
    if not isinstance(payload, dict):
        return JSONResponse({"error": "Request body is not valid JSON."}, status_code=400)
    result = await services.improve_form_config(
        request.app.state.storage,
        request.app.state.ai_client,
        form_id,
        str(payload.get("prompt", "")),
    )
    if not result.ok:
        return failure_response(result)
    return JSONResponse({"formConfig": result.value})


@router.get("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_list_submissions(request: Request, form_id: str) -> JSONResponse:
    storage = request.app.state.storage
    found = services.get_form(storage, form_id)
    if not found.ok:
        return failure_response(found)
    result = services.list_submissions(storage, form_id)
    if not result.ok:
        return failure_response(result)
    return JSONResponse([submission_output(item) for item in result.value])


@router.post("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_submit_form(request: Request, form_id: str) -> JSONResponse:
    payload = await read_json(request)
    if not isinstance(payload, dict):
        return JSONResponse({"error": "Request body is not valid JSON."}, status_code=400)
    data = payload.get("data", {})
    if not isinstance(data, dict):
        return JSONResponse({"error": "data must be an object."}, status_code=400)
    result = services.save_submission(
        request.app.state.storage, form_id, data, payload.get("durationMs")
    )
    if not result.ok:
        return failure_response(result)
    return JSONResponse({"submissionId": result.value["id"]}, status_code=201)


@router.get("/api/forms/{form_id}/export", tags=["api/submissions"])
async def api_export_submissions(request: Request, form_id: str) -> Any:
    storage = request.app.state.storage
    found = services.get_form(storage, form_id)
    if not found.ok:
        return failure_response(found)
    result = services.list_submissions(storage, form_id)
    if not result.ok:
        return failure_response(result)
    if request.query_params.get("format", "json") == "csv":
        return PlainTextResponse(
            csv_text(found.value["config"], result.value),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{form_id}.csv"'},
        )
    return JSONResponse([dict(item.get("data") or {}) for item in result.value])
