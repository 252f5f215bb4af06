import pytest
from conftest import IMAGE_HEIGHT, StubSweep, make_word

from pageorient.config import OrientationConfig
from pageorient.detection.page_number import (
    PageNumberSweepEngine,
    normalize_text_sample,
    normalize_word_confidence,
    score_page_number_tokens,
)
from pageorient.types import Recognition, WordCandidate


def _build_engine(stub, config=None):
    return PageNumberSweepEngine(recognize=stub.recognize, rotate=stub.rotate, config=config)


class TestPageNumberSweep:
    def test_only_quarter_turn_candidate_has_page_number(self):
        stub = StubSweep({
            0: [make_word("Introduction", 0.95, y1=200)],
            90: [make_word("12", 0.92)],
            180: [make_word("ZI", 0.88)],
            270: [],
        })
        result = _build_engine(stub).detect(b"page")
        assert result.rotation == 90
        assert result.confidence == pytest.approx(0.92)
        assert result.text_sample == "12"

    def test_sweeps_all_four_rotations(self):
        stub = StubSweep({})
        _build_engine(stub).detect(b"page")
        assert stub.recognized_rotations == [0, 90, 180, 270]

    def test_no_qualifying_token_returns_null(self):
        stub = StubSweep({
            0: [make_word("Chapter", 0.99)],
            90: [make_word("7", 0.95, y1=300)],
            180: [make_word("42", 0.40)],
        })
        result = _build_engine(stub).detect(b"page")
        assert result.rotation is None
        assert result.confidence == 0

    def test_highest_accuracy_wins(self):
        stub = StubSweep({
            0: [make_word("3", 0.70)],
            180: [make_word("- 3 -", 0.96)],
        })
        result = _build_engine(stub).detect(b"page")
        assert result.rotation == 180
        assert result.confidence == pytest.approx(0.96)
        assert result.text_sample == "3"

    def test_tie_prefers_smaller_rotation(self):
        stub = StubSweep({
            270: [make_word("8", 0.90)],
            90: [make_word("8", 0.90)],
        })
        result = _build_engine(stub).detect(b"page")
        assert result.rotation == 90

    def test_failing_candidate_degrades_to_zero(self):
        stub = StubSweep(
            {0: [make_word("99", 0.99)], 180: [make_word("5", 0.80)]},
            failing_rotations=[0],
        )
        result = _build_engine(stub).detect(b"page")
        assert result.rotation == 180
        assert stub.recognized_rotations == [0, 90, 180, 270]

    def test_percentage_confidences_are_normalized(self):
        stub = StubSweep({270: [make_word("p.14", 85.0)]})
        result = _build_engine(stub).detect(b"page")
        assert result.rotation == 270
        assert result.confidence == pytest.approx(0.85)
        assert result.text_sample == "14"

    def test_custom_acceptance_threshold(self):
        stub = StubSweep({90: [make_word("4", 0.55)]})
        strict = _build_engine(stub).detect(b"page")
        lenient = _build_engine(stub, OrientationConfig(word_confidence_threshold=0.5)).detect(
            b"page"
        )
        assert strict.rotation is None
        assert lenient.rotation == 90

    def test_height_read_from_image_when_unreported(self, page_png_bytes):
        word = make_word("21", 0.91, y1=IMAGE_HEIGHT - 10)

        def recognize(image_bytes):
            return Recognition(text="21", words=(word,))

        engine = PageNumberSweepEngine(
            recognize=recognize, rotate=lambda image_bytes, degrees: image_bytes
        )
        result = engine.detect(page_png_bytes)
        assert result.rotation == 0
        assert result.confidence == pytest.approx(0.91)


class TestScoring:
    def setup_method(self):
        self.config = OrientationConfig()

    def _score(self, *words):
        return score_page_number_tokens(
            Recognition(text="", words=tuple(words)), IMAGE_HEIGHT, self.config
        )

    def test_word_above_bottom_strip_is_ignored(self):
        strip_top = IMAGE_HEIGHT * 7 / 8
        assert self._score(make_word("5", 0.9, y1=int(strip_top) - 1)) == (0.0, None)
        assert self._score(make_word("5", 0.9, y1=int(strip_top))) == (0.9, "5")

    def test_word_without_bbox_is_ignored(self):
        assert self._score(WordCandidate(text="5", confidence=0.9)) == (0.0, None)

    def test_unknown_confidence_is_ignored(self):
        assert self._score(make_word("5", None)) == (0.0, None)

    def test_tokens_without_digits_are_ignored(self):
        assert self._score(make_word("Page", 0.99)) == (0.0, None)

    def test_mixed_word_keeps_digit_token(self):
        assert self._score(make_word("Page-17", 0.8)) == (0.8, "17")


class TestNormalization:
    def test_text_sample_collapses_whitespace(self):
        assert normalize_text_sample("  12 \n\t of  40 ") == "12 of 40"

    def test_text_sample_truncates(self):
        assert len(normalize_text_sample("x" * 500)) == 120

    def test_empty_text_sample(self):
        assert normalize_text_sample("   ") is None
        assert normalize_text_sample(None) is None

    def test_word_confidence(self):
        assert normalize_word_confidence(None) is None
        assert normalize_word_confidence(0.7) == 0.7
        assert normalize_word_confidence(70) == pytest.approx(0.7)
