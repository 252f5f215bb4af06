from pageorient.detection.base import DetectionEngine, ImageRotator, WordRecognizer
from pageorient.detection.engine import DetectionPipeline, detect_orientation
from pageorient.detection.page_number import PageNumberSweepEngine
from pageorient.detection.recognizer import TesseractRecognizer, is_tesseract_available
from pageorient.detection.skew import GlobalSkewEngine

__all__ = [
    "DetectionEngine",
    "DetectionPipeline",
    "GlobalSkewEngine",
    "ImageRotator",
    "PageNumberSweepEngine",
    "TesseractRecognizer",
    "WordRecognizer",
    "detect_orientation",
    "is_tesseract_available",
]
