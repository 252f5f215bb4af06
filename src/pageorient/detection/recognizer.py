from __future__ import annotations

import warnings

import pytesseract

from pageorient._imaging import ImageIO
from pageorient.types import BoundingBox, Recognition, WordCandidate

WORD_LEVEL = 5

_tesseract_available: bool | None = None


def is_tesseract_available() -> bool:
    global _tesseract_available
    if _tesseract_available is None:
        try:
            pytesseract.get_tesseract_version()
            _tesseract_available = True
        except (pytesseract.TesseractNotFoundError, OSError):
            _tesseract_available = False
            warnings.warn(
                "Tesseract binary not found. Orientation detection will report "
                "unknown rotations until it is installed.",
                UserWarning,
                stacklevel=2,
            )
    return _tesseract_available


def _parse_confidence(raw_confidence: object) -> float | None:
    try:
        confidence = float(raw_confidence)
    except (TypeError, ValueError):
        return None
    if confidence < 0:
        return None
    return confidence / 100.0


class TesseractRecognizer:
    def __init__(self, language: str | None = None) -> None:
        self.language = language

    def __call__(self, image_bytes: bytes) -> Recognition:
        image = ImageIO.open_bytes(image_bytes)
        try:
            data = pytesseract.image_to_data(
                image, lang=self.language, output_type=pytesseract.Output.DICT
            )
            image_width, image_height = image.size
        finally:
            image.close()

        words: list[WordCandidate] = []
        for word_index, raw_text in enumerate(data.get("text", [])):
            if data["level"][word_index] != WORD_LEVEL:
                continue
            text = (raw_text or "").strip()
            if not text:
                continue

            left = float(data["left"][word_index])
            top = float(data["top"][word_index])
            bbox = BoundingBox(
                x0=left,
                y0=top,
                x1=left + float(data["width"][word_index]),
                y1=top + float(data["height"][word_index]),
            )
            words.append(
                WordCandidate(
                    text=text,
                    confidence=_parse_confidence(data["conf"][word_index]),
                    bbox=bbox,
                )
            )

        return Recognition(
            text=" ".join(word.text for word in words),
            words=tuple(words),
            width=image_width,
            height=image_height,
        )
