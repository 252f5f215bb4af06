"""Page-number sweep: infer page rotation from the printed page number.

Scanned documents usually carry a page number near one edge. Each of the four
quarter-turn rotations of the page is recognized, and the rotation that places
a confident digit-bearing token in the bottom strip wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pageorient._imaging import ImageIO
from pageorient.config import OrientationConfig
from pageorient.detection.base import ImageRotator, WordRecognizer
from pageorient.detection.recognizer import TesseractRecognizer
from pageorient.types import QUARTER_TURNS, OrientationResult, Recognition, WordCandidate

logger = logging.getLogger(__name__)

NON_ALPHANUMERIC_PATTERN = re.compile(r"[^A-Za-z0-9]+")
DIGIT_PATTERN = re.compile(r"\d")
TEXT_SAMPLE_MAX_LENGTH = 120


@dataclass(frozen=True, slots=True)
class CandidateScore:
    rotation: int
    accuracy: float
    token: str | None = None


def normalize_text_sample(text: str | None) -> str | None:
    if not text:
        return None
    collapsed = " ".join(text.split())
    if not collapsed:
        return None
    return collapsed[:TEXT_SAMPLE_MAX_LENGTH]


def normalize_word_confidence(confidence: float | None) -> float | None:
    if confidence is None:
        return None
    if confidence > 1.0:
        return min(confidence / 100.0, 1.0)
    return max(confidence, 0.0)


def _is_in_bottom_strip(word: WordCandidate, image_height: int, strip_ratio: float) -> bool:
    if word.bbox is None:
        return False
    return word.bbox.y1 >= image_height * (1.0 - strip_ratio)


def _digit_tokens(text: str) -> list[str]:
    return [
        token
        for token in NON_ALPHANUMERIC_PATTERN.split(text)
        if token and DIGIT_PATTERN.search(token)
    ]


def score_page_number_tokens(
    recognition: Recognition,
    image_height: int,
    config: OrientationConfig,
) -> tuple[float, str | None]:
    best_accuracy = 0.0
    best_token: str | None = None

    for word in recognition.words:
        word_confidence = normalize_word_confidence(word.confidence)
        if word_confidence is None or word_confidence < config.word_confidence_threshold:
            continue
        if not _is_in_bottom_strip(word, image_height, config.bottom_strip_ratio):
            continue

        for token in _digit_tokens(word.text):
            if word_confidence > best_accuracy:
                best_accuracy = word_confidence
                best_token = token

    return best_accuracy, best_token


def _rotate_with_pillow(image_bytes: bytes, degrees: int) -> bytes:
    return ImageIO.rotate_clockwise(image_bytes, degrees)


class PageNumberSweepEngine:
    def __init__(
        self,
        recognize: WordRecognizer | None = None,
        rotate: ImageRotator | None = None,
        config: OrientationConfig | None = None,
    ) -> None:
        self.config = config or OrientationConfig()
        self.recognize: WordRecognizer = recognize or TesseractRecognizer(
            self.config.tesseract_language
        )
        self.rotate: ImageRotator = rotate or _rotate_with_pillow

    @property
    def name(self) -> str:
        return "page_number"

    def detect(self, image_bytes: bytes) -> OrientationResult:
        candidate_scores = [
            self._score_candidate(image_bytes, rotation) for rotation in QUARTER_TURNS
        ]

        winner = candidate_scores[0]
        for candidate in candidate_scores[1:]:
            if candidate.accuracy > winner.accuracy:
                winner = candidate

        if winner.accuracy <= 0.0:
            return OrientationResult(rotation=None, confidence=0.0)

        return OrientationResult(
            rotation=winner.rotation,
            confidence=winner.accuracy,
            text_sample=normalize_text_sample(winner.token),
        )

    def _score_candidate(self, image_bytes: bytes, rotation: int) -> CandidateScore:
        try:
            rotated_bytes = self.rotate(image_bytes, rotation)
            recognition = self.recognize(rotated_bytes)
            image_height = self._resolve_height(recognition, rotated_bytes)
            if image_height is None:
                return CandidateScore(rotation=rotation, accuracy=0.0)
            accuracy, token = score_page_number_tokens(recognition, image_height, self.config)
        except Exception as candidate_error:
            logger.warning(
                "page_number_candidate_failed rotation=%d error=%s", rotation, candidate_error
            )
            return CandidateScore(rotation=rotation, accuracy=0.0)

        return CandidateScore(rotation=rotation, accuracy=accuracy, token=token)

    @staticmethod
    def _resolve_height(recognition: Recognition, image_bytes: bytes) -> int | None:
        if recognition.height:
            return recognition.height
        header_size = ImageIO.read_size(image_bytes)
        if header_size is None:
            return None
        return header_size[1]
