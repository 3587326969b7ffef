from translate_gateway.core.translators.base import (
    TranslateRequest,
    TranslateResponse,
    Translator,
)


class MockTranslator(Translator):
    """Echo backend for local runs and tests; never calls out."""

    name = "mock"

    def translate(self, request: TranslateRequest) -> TranslateResponse:
        return TranslateResponse(
            translation=f"[Mock translation to {request.to}]: {request.text}",
            to=request.to,
            service=self.name,
        )
