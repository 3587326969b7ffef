"""
Ollama backend: one non-streaming /api/chat call per request.

The model is asked for a JSON object {translation, alternatives[]} via the
``format`` schema. HTTP errors, timeouts and unparseable content all surface
as BackendError; nothing is retried here.
"""

import json
import logging
from typing import Any

import httpx

from translate_gateway.core.config import settings
from translate_gateway.core.errors import BackendError
from translate_gateway.core.translators.base import (
    TranslateAlternative,
    TranslateRequest,
    TranslateResponse,
    Translator,
)

logger = logging.getLogger(__name__)

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "translation": {"type": "string"},
        "alternatives": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "translation": {"type": "string"},
                    "details": {"type": "string"},
                },
            },
        },
    },
    "required": ["translation", "alternatives"],
}


class OllamaTranslator(Translator):
    name = "ollama"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.OLLAMA_URL).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = timeout if timeout is not None else settings.TRANSLATOR_TIMEOUT_SECONDS
        self._transport = transport

    def _payload(self, request: TranslateRequest) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": f'Translate: "{request.text}" to {request.to}.',
                }
            ],
            "stream": False,
            "options": {"temperature": settings.OLLAMA_TEMPERATURE},
            "format": RESPONSE_SCHEMA,
        }

    def translate(self, request: TranslateRequest) -> TranslateResponse:
        url = f"{self.base_url}/api/chat"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, json=self._payload(request))
                resp.raise_for_status()
                body = resp.json()
        except httpx.TimeoutException as e:
            raise BackendError("Translation backend timed out") from e
        except httpx.HTTPError as e:
            logger.warning("Ollama request failed: %s", e)
            raise BackendError("Translation backend request failed") from e
        except ValueError as e:
            raise BackendError("Translation backend returned invalid JSON") from e

        return self._parse(body, request.to)

    def _parse(self, body: Any, to: str) -> TranslateResponse:
        content = ((body or {}).get("message") or {}).get("content")
        if not isinstance(content, str):
            raise BackendError("Translation backend returned no content")
        try:
            parsed = json.loads(content)
        except ValueError as e:
            raise BackendError("Translation backend returned unparseable content") from e
        if not isinstance(parsed, dict):
            raise BackendError("Translation backend returned unparseable content")

        alternatives = [
            TranslateAlternative(
                translation=str(alt.get("translation", "")),
                details=alt.get("details"),
            )
            for alt in parsed.get("alternatives") or []
            if isinstance(alt, dict)
        ]
        return TranslateResponse(
            translation=str(parsed.get("translation") or ""),
            to=to,
            service=self.name,
            alternatives=alternatives,
        )
