from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class TranslateRequest:
    text: str
    to: str


@dataclass(frozen=True)
class TranslateAlternative:
    translation: str
    details: str | None = None


@dataclass(frozen=True)
class TranslateResponse:
    translation: str
    to: str
    service: str
    alternatives: list[TranslateAlternative] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Translator:
    """Translation backend. Subclasses set ``name`` and implement translate()."""

    name: str = ""

    def translate(self, request: TranslateRequest) -> TranslateResponse:
        raise NotImplementedError
