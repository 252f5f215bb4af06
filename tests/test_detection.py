import time

import pytesseract
import pytest

from pageorient.config import OrientationConfig
from pageorient.detection.engine import DetectionPipeline
from pageorient.detection.recognizer import TesseractRecognizer
from pageorient.detection.skew import GlobalSkewEngine
from pageorient.types import BoundingBox, OrientationResult


class FixedEngine:
    def __init__(self, name, result=None, error=None):
        self._name = name
        self.result = result
        self.error = error
        self.calls = 0

    @property
    def name(self):
        return self._name

    def detect(self, image_bytes):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class TestDetectionPipeline:
    def test_primary_result_skips_fallback(self):
        primary = FixedEngine("page_number", OrientationResult(90, 0.9, "4"))
        fallback = FixedEngine("global_skew", OrientationResult(180, 0.8))
        result = DetectionPipeline([primary, fallback]).detect(b"page")
        assert result == OrientationResult(90, 0.9, "4")
        assert fallback.calls == 0

    def test_null_primary_selects_fallback(self):
        primary = FixedEngine("page_number", OrientationResult(None, 0.0))
        fallback = FixedEngine("global_skew", OrientationResult(270, 0.7))
        result = DetectionPipeline([primary, fallback]).detect(b"page")
        assert result.rotation == 270
        assert fallback.calls == 1

    def test_null_everywhere_returns_primary_result(self):
        primary = FixedEngine("page_number", OrientationResult(None, 0.0))
        fallback = FixedEngine("global_skew", OrientationResult(None, 0.0))
        result = DetectionPipeline([primary, fallback]).detect(b"page")
        assert result == OrientationResult(None, 0.0)

    def test_fallback_error_does_not_fail_detection(self):
        primary = FixedEngine("page_number", OrientationResult(None, 0.0))
        fallback = FixedEngine("global_skew", error=RuntimeError("osd crashed"))
        result = DetectionPipeline([primary, fallback]).detect(b"page")
        assert result.rotation is None
        assert result.confidence == 0

    def test_pipeline_name(self):
        pipeline = DetectionPipeline([FixedEngine("a"), FixedEngine("b")])
        assert pipeline.name == "a+b"


class TestGlobalSkewEngine:
    def setup_method(self):
        self.no_sample_config = OrientationConfig(text_sample_enabled=False)

    def test_snaps_degrees_to_quarter_turn(self):
        engine = GlobalSkewEngine(osd=lambda image_bytes: (92.0, 7.5), config=self.no_sample_config)
        result = engine.detect(b"page")
        assert result.rotation == 90
        assert result.confidence == pytest.approx(0.5)

    def test_confidence_is_capped(self):
        engine = GlobalSkewEngine(osd=lambda image_bytes: (180, 40.0), config=self.no_sample_config)
        assert engine.detect(b"page").confidence == 1.0

    def test_missing_degrees_is_unknown(self):
        engine = GlobalSkewEngine(osd=lambda image_bytes: (None, 3.0), config=self.no_sample_config)
        assert engine.detect(b"page") == OrientationResult(None, 0.0)

    def test_osd_failure_returns_null(self):
        def failing_osd(image_bytes):
            raise pytesseract.TesseractError(1, "Too few characters")

        engine = GlobalSkewEngine(osd=failing_osd, config=self.no_sample_config)
        assert engine.detect(b"page") == OrientationResult(None, 0.0)

    def test_text_sample_extracted(self, page_png_bytes):
        engine = GlobalSkewEngine(
            osd=lambda image_bytes: (0, 15.0),
            extract_text=lambda image_bytes: "  Annual\nreport  2019 ",
        )
        result = engine.detect(page_png_bytes)
        assert result.rotation == 0
        assert result.text_sample == "Annual report 2019"

    def test_text_sample_failure_is_ignored(self, page_png_bytes):
        def failing_text(image_bytes):
            raise pytesseract.TesseractError(1, "boom")

        engine = GlobalSkewEngine(osd=lambda image_bytes: (180, 9.0), extract_text=failing_text)
        result = engine.detect(page_png_bytes)
        assert result.rotation == 180
        assert result.text_sample is None

    def test_text_sample_timeout_is_ignored(self, small_png_bytes):
        def slow_text(image_bytes):
            time.sleep(0.5)
            return "late"

        engine = GlobalSkewEngine(
            osd=lambda image_bytes: (270, 15.0),
            extract_text=slow_text,
            config=OrientationConfig(text_sample_timeout_ms=20),
        )
        started_at = time.perf_counter()
        result = engine.detect(small_png_bytes)
        assert result.rotation == 270
        assert result.text_sample is None
        assert time.perf_counter() - started_at < 0.4


class TestTesseractRecognizer:
    def test_parses_word_level_boxes(self, monkeypatch, small_png_bytes):
        fake_data = {
            "level": [1, 5, 5, 5, 5],
            "text": ["", "Page", "  ", "12", "x"],
            "conf": [-1, "91.5", -1, 88, -1],
            "left": [0, 10, 0, 30, 50],
            "top": [0, 70, 0, 72, 5],
            "width": [60, 15, 0, 8, 4],
            "height": [80, 6, 0, 6, 4],
        }
        monkeypatch.setattr(pytesseract, "image_to_data", lambda *args, **kwargs: fake_data)

        recognition = TesseractRecognizer()(small_png_bytes)

        assert recognition.width == 60
        assert recognition.height == 80
        assert [word.text for word in recognition.words] == ["Page", "12", "x"]
        assert recognition.words[0].confidence == pytest.approx(0.915)
        assert recognition.words[1].bbox == BoundingBox(x0=30.0, y0=72.0, x1=38.0, y1=78.0)
        assert recognition.words[2].confidence is None
        assert recognition.text == "Page 12 x"
