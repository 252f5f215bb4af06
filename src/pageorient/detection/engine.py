from __future__ import annotations

import logging

from pageorient.config import OrientationConfig
from pageorient.detection.base import DetectionEngine
from pageorient.detection.page_number import PageNumberSweepEngine
from pageorient.detection.skew import GlobalSkewEngine
from pageorient.types import OrientationResult

logger = logging.getLogger(__name__)


def build_default_engines(config: OrientationConfig | None = None) -> list[DetectionEngine]:
    effective_config = config or OrientationConfig()
    return [
        PageNumberSweepEngine(config=effective_config),
        GlobalSkewEngine(config=effective_config),
    ]


class DetectionPipeline:
    def __init__(
        self,
        engines: list[DetectionEngine] | None = None,
        config: OrientationConfig | None = None,
    ) -> None:
        self.engines: list[DetectionEngine] = engines or build_default_engines(config)

    @property
    def name(self) -> str:
        return "+".join(engine.name for engine in self.engines)

    def detect(self, image_bytes: bytes) -> OrientationResult:
        primary_result: OrientationResult | None = None

        for engine_index, engine in enumerate(self.engines):
            if engine_index == 0:
                result = engine.detect(image_bytes)
                primary_result = result
            else:
                result = self._run_fallback(engine, image_bytes)
                if result is None:
                    continue

            if result.rotation is not None:
                logger.debug(
                    "orientation_detected engine=%s rotation=%d confidence=%.2f",
                    engine.name,
                    result.rotation,
                    result.confidence,
                )
                return result

        if primary_result is not None:
            return primary_result

        return OrientationResult(rotation=None, confidence=0.0)

    @staticmethod
    def _run_fallback(engine: DetectionEngine, image_bytes: bytes) -> OrientationResult | None:
        try:
            return engine.detect(image_bytes)
        except Exception as fallback_error:
            logger.warning(
                "orientation_fallback_failed engine=%s error=%s", engine.name, fallback_error
            )
            return None


_default_pipeline: DetectionPipeline | None = None


def detect_orientation(
    image_bytes: bytes,
    config: OrientationConfig | None = None,
) -> OrientationResult:
    global _default_pipeline
    if config is not None:
        return DetectionPipeline(config=config).detect(image_bytes)
    if _default_pipeline is None:
        _default_pipeline = DetectionPipeline()
    return _default_pipeline.detect(image_bytes)
