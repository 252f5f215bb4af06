from __future__ import annotations

from dataclasses import dataclass
from typing import Any

QUARTER_TURNS: tuple[int, ...] = (0, 90, 180, 270)


@dataclass(frozen=True, slots=True)
class BoundingBox:
    x0: float
    y0: float
    x1: float
    y1: float


@dataclass(frozen=True, slots=True)
class WordCandidate:
    text: str
    confidence: float | None
    bbox: BoundingBox | None = None


@dataclass(frozen=True, slots=True)
class Recognition:
    text: str
    words: tuple[WordCandidate, ...]
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class OrientationResult:
    rotation: int | None
    confidence: float
    text_sample: str | None = None


@dataclass(frozen=True, slots=True)
class OrientationResponse:
    rotation: int | None
    confidence: float
    likelihood: float
    processing_ms: int
    text_sample: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> OrientationResponse:
        confidence = float(payload.get("confidence", 0.0))
        raw_rotation = payload.get("rotation")
        return cls(
            rotation=None if raw_rotation is None else int(raw_rotation),
            confidence=confidence,
            likelihood=float(payload.get("likelihood", confidence)),
            processing_ms=int(payload.get("processingMs", 0)),
            text_sample=payload.get("textSample"),
        )


@dataclass(frozen=True, slots=True)
class PageFailure:
    page: int
    message: str
    code: str | None = None
    retryable: bool = False
