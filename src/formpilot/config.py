from __future__ import annotations

import os
import re
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

FIELD_TYPES = {
    "text",
    "textarea",
    "email",
    "password",
    "number",
    "date",
    "url",
    "tel",
    "select",
    "radio",
    "checkbox",
}
OPTION_TYPES = {"select", "radio"}
CHART_TYPES = {"bar", "line", "pie", "area"}
NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

DEFAULT_FORM_TITLE = "Untitled Form"
DASHBOARD_TOP_FORMS = 10
# Durations are stored in a signed 64-bit INTEGER column.
MAX_DURATION_MS = 2**63 - 1


class Settings:
    def __init__(self) -> None:
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/jsonstore.json"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000

        self.ai_api_key = os.getenv("AZURE_OPENAI_API_KEY", "")
        self.ai_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT", "").rstrip("/")
        self.ai_deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT", "")
        self.ai_api_version = os.getenv("AZURE_OPENAI_API_VERSION", "")
        timeout_value = os.getenv("AI_TIMEOUT_SECONDS", "60")
        try:
            self.ai_timeout = float(timeout_value)
        except ValueError:
            self.ai_timeout = 60.0

    def missing_ai_settings(self) -> list[str]:
        required = {
            "AZURE_OPENAI_API_KEY": self.ai_api_key,
            "AZURE_OPENAI_ENDPOINT": self.ai_endpoint,
            "AZURE_OPENAI_DEPLOYMENT": self.ai_deployment,
            "AZURE_OPENAI_API_VERSION": self.ai_api_version,
        }
        return [name for name, value in required.items() if not value]

    @property
    def ai_configured(self) -> bool:
        return not self.missing_ai_settings()


def ensure_dirs(settings: Settings) -> None:
    settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
    settings.json_path.parent.mkdir(parents=True, exist_ok=True)
