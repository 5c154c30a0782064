from __future__ import annotations

import logging
from typing import Any

import httpx

from formpilot.config import Settings

logger = logging.getLogger(__name__)


class AIClientError(Exception):
    pass


class AIConfigurationError(AIClientError):
    pass


class AIRequestError(AIClientError):
    pass


class AzureChatClient:
    """Chat-completions client for an Azure OpenAI deployment.

    Prompt in, text out. No retries: a failed call surfaces as
    ``AIRequestError`` to the caller.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self._settings.ai_configured

    def completions_url(self) -> str:
        settings = self._settings
        return (
            f"{settings.ai_endpoint}/openai/deployments/{settings.ai_deployment}"
            f"/chat/completions?api-version={settings.ai_api_version}"
        )

    async def complete(
        self,
        system: str,
        user: str,
        temperature: float = 0.5,
        max_tokens: int = 2000,
    ) -> str:
        missing = self._settings.missing_ai_settings()
        if missing:
            raise AIConfigurationError(
                "AI service is not configured: missing " + ", ".join(missing)
            )

        payload: dict[str, Any] = {
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"api-key": self._settings.ai_api_key}
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.ai_timeout, transport=self._transport
            ) as client:
                response = await client.post(self.completions_url(), json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise AIRequestError(
                f"API request failed: {exc.response.status_code} - {exc.response.text}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise AIRequestError(f"API request failed: {exc}") from exc

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AIRequestError("API response has no completion content") from exc
        logger.info("AI completion received (%d chars)", len(content or ""))
        return content or ""
