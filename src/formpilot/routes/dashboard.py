from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from formpilot import services
from formpilot.routes.api import failure_response

router = APIRouter()


@router.get("/api/dashboard", tags=["api/dashboard"])
async def api_dashboard(request: Request) -> JSONResponse:
    result = services.get_dashboard(request.app.state.storage)
    if not result.ok:
        return failure_response(result)
    return JSONResponse(result.value)


@router.get("/api/dashboard/analysis/", tags=["api/dashboard"])
async def api_analysis_without_form() -> JSONResponse:
    return JSONResponse({"error": "formId is required"}, status_code=400)


@router.get("/api/dashboard/analysis/{form_id}", tags=["api/dashboard"])
async def api_analysis(request: Request, form_id: str) -> JSONResponse:
    result = await services.analyze_form(
        request.app.state.storage, request.app.state.ai_client, form_id
    )
    if not result.ok:
        return failure_response(result)
    return JSONResponse(result.value)
