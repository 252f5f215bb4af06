from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import pytesseract

from pageorient._imaging import ImageIO
from pageorient.config import OrientationConfig
from pageorient.detection.page_number import normalize_text_sample
from pageorient.rotation import snap_to_quarter_turn
from pageorient.types import OrientationResult

logger = logging.getLogger(__name__)

OsdFunction = Callable[[bytes], tuple[float | None, float]]
TextFunction = Callable[[bytes], str]


def _run_tesseract_osd(image_bytes: bytes) -> tuple[float | None, float]:
    image = ImageIO.open_bytes(image_bytes)
    try:
        result = pytesseract.image_to_osd(image, output_type=pytesseract.Output.DICT)
    finally:
        image.close()
    raw_rotation = result.get("rotate")
    detected_degrees = None if raw_rotation is None else float(raw_rotation)
    return detected_degrees, float(result.get("orientation_conf", 0.0))


def _run_tesseract_text(image_bytes: bytes) -> str:
    image = ImageIO.open_bytes(image_bytes)
    try:
        return pytesseract.image_to_string(image)
    finally:
        image.close()


class GlobalSkewEngine:
    def __init__(
        self,
        osd: OsdFunction | None = None,
        extract_text: TextFunction | None = None,
        config: OrientationConfig | None = None,
    ) -> None:
        self.config = config or OrientationConfig()
        self.osd: OsdFunction = osd or _run_tesseract_osd
        self.extract_text: TextFunction = extract_text or _run_tesseract_text

    @property
    def name(self) -> str:
        return "global_skew"

    def detect(self, image_bytes: bytes) -> OrientationResult:
        try:
            detected_degrees, raw_confidence = self.osd(image_bytes)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as osd_error:
            logger.warning("global_skew_detect_failed error=%s", osd_error)
            return OrientationResult(rotation=None, confidence=0.0)

        rotation = snap_to_quarter_turn(detected_degrees)
        confidence = self._normalize_confidence(raw_confidence)
        if rotation is None:
            return OrientationResult(rotation=None, confidence=0.0)

        text_sample = None
        if self._text_sample_enabled:
            text_sample = self._extract_text_sample(image_bytes, rotation)

        return OrientationResult(
            rotation=rotation,
            confidence=confidence,
            text_sample=text_sample,
        )

    @property
    def _text_sample_enabled(self) -> bool:
        return self.config.text_sample_enabled and self.config.text_sample_timeout_ms > 0

    def _normalize_confidence(self, raw_confidence: float) -> float:
        if raw_confidence <= 0 or self.config.osd_confidence_ceiling <= 0:
            return 0.0
        return min(raw_confidence / self.config.osd_confidence_ceiling, 1.0)

    def _extract_text_sample(self, image_bytes: bytes, rotation: int) -> str | None:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="text-sample")
        try:
            future = executor.submit(self._recognize_corrected, image_bytes, rotation)
            return normalize_text_sample(
                future.result(timeout=self.config.text_sample_timeout_ms / 1000)
            )
        except FutureTimeoutError:
            logger.warning(
                "text_sample_timeout timeout_ms=%d", self.config.text_sample_timeout_ms
            )
            return None
        except Exception as sample_error:
            logger.warning("text_sample_extraction_failed error=%s", sample_error)
            return None
        finally:
            executor.shutdown(wait=False)

    def _recognize_corrected(self, image_bytes: bytes, rotation: int) -> str:
        corrected_bytes = ImageIO.rotate_clockwise(image_bytes, rotation)
        return self.extract_text(corrected_bytes)
