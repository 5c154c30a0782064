from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from formpilot.app import create_app
from formpilot.config import Settings
from formpilot.storage import init_storage

AI_ENV = (
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_DEPLOYMENT",
    "AZURE_OPENAI_API_VERSION",
)


class StubAIClient:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    async def complete(self, system, user, **kwargs):
        self.calls.append((system, user))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture(params=["json", "sqlite"])
def settings(request, tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", request.param)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "app.db"))
    monkeypatch.setenv("JSON_PATH", str(tmp_path / "store.json"))
    for name in AI_ENV:
        monkeypatch.delenv(name, raising=False)
    return Settings()


@pytest.fixture
def storage(settings):
    return init_storage(settings)


@pytest.fixture
def ai_stub():
    return StubAIClient()


@pytest.fixture
def client(settings, storage, ai_stub):
    app = create_app(settings, storage=storage, ai_client=ai_stub)
    return TestClient(app)


@pytest.fixture
def sample_config():
    return {
        "title": "Profile Form",
        "elements": [
            {"type": "text", "label": "Name", "name": "name", "required": True},
            {"type": "email", "label": "Email", "name": "email", "required": True},
            {"type": "number", "label": "Age", "name": "age"},
            {
                "type": "select",
                "label": "Education",
                "name": "education",
                "options": ["Bachelors", "Masters"],
            },
            {"type": "checkbox", "label": "Accept terms", "name": "terms", "required": True},
        ],
    }
