from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates

from formpilot.ai_client import AzureChatClient
from formpilot.config import BASE_DIR, Settings
from formpilot.fields import input_type
from formpilot.protocols import Storage
from formpilot.routes.admin import router as admin_router
from formpilot.routes.api import router as api_router
from formpilot.routes.dashboard import router as dashboard_router
from formpilot.routes.public import router as public_router
from formpilot.storage import init_storage


def format_dt(value: Any) -> str:
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M")
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value).astimezone().strftime("%Y-%m-%d %H:%M")
        except ValueError:
            return value
    return "-"


def format_seconds(value: Any) -> str:
    if value is None:
        return "N/A"
    return f"{value:.1f}s"


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    ai_client: Any = None,
) -> FastAPI:
    """Build the application.

    The document store and the AI client are created once here and shared by
    every request through ``app.state``.
    """
    settings = settings or Settings()
    if storage is None:
        storage = init_storage(settings)
    if ai_client is None:
        ai_client = AzureChatClient(settings)

    app = FastAPI(
        title="FormPilot",
        openapi_tags=[
            {"name": "admin", "description": "Form builder and dashboard (HTML)"},
            {"name": "public", "description": "Respondent forms (HTML)"},
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "api/dashboard", "description": "REST API: dashboard and analysis"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.ai_client = ai_client

    templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
    app.state.templates = templates

    templates.env.globals["format_dt"] = format_dt
    templates.env.globals["format_seconds"] = format_seconds
    templates.env.globals["input_type"] = input_type

    app.include_router(admin_router)
    app.include_router(public_router)
    app.include_router(api_router)
    app.include_router(dashboard_router)

    return app
