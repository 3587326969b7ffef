"""
Translation backends, resolved by provider name from a fixed registry.
"""

from translate_gateway.core.errors import BackendError
from translate_gateway.core.translators.base import (
    TranslateAlternative,
    TranslateRequest,
    TranslateResponse,
    Translator,
)
from translate_gateway.core.translators.mock import MockTranslator
from translate_gateway.core.translators.ollama import OllamaTranslator

TRANSLATORS: dict[str, Translator] = {
    MockTranslator.name: MockTranslator(),
    OllamaTranslator.name: OllamaTranslator(),
}


def get_translator(name: str) -> Translator:
    translator = TRANSLATORS.get((name or "").strip().lower())
    if translator is None:
        raise BackendError(f"Translator {name} not found")
    return translator


__all__ = [
    "TRANSLATORS",
    "MockTranslator",
    "OllamaTranslator",
    "TranslateAlternative",
    "TranslateRequest",
    "TranslateResponse",
    "Translator",
    "get_translator",
]
