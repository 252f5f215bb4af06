from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

ALLOWED_MIME_TYPES: tuple[str, ...] = ("image/png", "image/jpeg", "image/jpg")

MAX_UPLOAD_MB = 50

DEFAULT_PAGE_IMAGE_EXTENSIONS: tuple[str, ...] = (
    ".png",
    ".jpg",
    ".jpeg",
)

RESUME_FILENAME = "_orientation_resume.json"


def _read_bool(name: str, default: bool) -> bool:
    raw_value = os.environ.get(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    return raw_value.strip().lower() not in ("false", "0", "no", "off")


def _read_int(name: str, default: int) -> int:
    raw_value = os.environ.get(name)
    if raw_value is None or raw_value.strip() == "":
        return default
    return int(raw_value)


@dataclass(frozen=True, slots=True)
class OrientationConfig:
    word_confidence_threshold: float = 0.60
    bottom_strip_ratio: float = 1 / 8
    osd_confidence_ceiling: float = 15.0
    text_sample_enabled: bool = True
    text_sample_timeout_ms: int = 800
    tesseract_language: str | None = None

    @classmethod
    def from_env(cls) -> OrientationConfig:
        load_dotenv()
        return cls(
            text_sample_enabled=_read_bool("OCR_TEXT_SAMPLE_ENABLED", True),
            text_sample_timeout_ms=_read_int("OCR_TEXT_SAMPLE_TIMEOUT_MS", 800),
            tesseract_language=os.environ.get("OCR_LANGUAGE") or None,
        )


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    ocr_enabled: bool = True
    ocr_timeout_ms: int = 1500
    max_upload_bytes: int = MAX_UPLOAD_MB * 1024 * 1024
    allowed_mime_types: tuple[str, ...] = field(
        default_factory=lambda: ALLOWED_MIME_TYPES
    )
    cors_origin: str = "*"

    @property
    def max_upload_mb(self) -> float:
        return self.max_upload_bytes / (1024 * 1024)

    @classmethod
    def from_env(cls) -> ServiceConfig:
        load_dotenv()
        return cls(
            ocr_enabled=_read_bool("OCR_ENABLED", True),
            ocr_timeout_ms=_read_int("OCR_TIMEOUT_MS", 1500),
            max_upload_bytes=_read_int("MAX_UPLOAD_MB", MAX_UPLOAD_MB) * 1024 * 1024,
            cors_origin=os.environ.get("CORS_ORIGIN", "*"),
        )


@dataclass(frozen=True, slots=True)
class BatchConfig:
    render_scale: float = 1.0
    retry_scale_factor: float = 0.5
