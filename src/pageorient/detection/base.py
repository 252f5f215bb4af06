from __future__ import annotations

from typing import Protocol

from pageorient.types import OrientationResult, Recognition


class DetectionEngine(Protocol):
    @property
    def name(self) -> str: ...

    def detect(self, image_bytes: bytes) -> OrientationResult: ...


class WordRecognizer(Protocol):
    def __call__(self, image_bytes: bytes) -> Recognition: ...


class ImageRotator(Protocol):
    def __call__(self, image_bytes: bytes, degrees: int) -> bytes: ...
