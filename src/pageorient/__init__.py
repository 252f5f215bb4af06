from pageorient._version import __version__
from pageorient.batch.cancellation import CancellationToken
from pageorient.batch.orchestrator import BatchOrientationOrchestrator
from pageorient.batch.state import BatchOutcome, BatchRunState, BatchStatus
from pageorient.config import BatchConfig, OrientationConfig, ServiceConfig
from pageorient.detection.base import DetectionEngine
from pageorient.detection.engine import DetectionPipeline, detect_orientation
from pageorient.detection.page_number import PageNumberSweepEngine
from pageorient.detection.skew import GlobalSkewEngine
from pageorient.exceptions import (
    BatchCancelled,
    CapacityError,
    DetectionTimeoutError,
    FeatureDisabledError,
    InternalError,
    InvalidPageCount,
    InvalidPageNumber,
    InvalidRotation,
    OrientationRequestError,
    PageorientError,
    RequestError,
    ValidationError,
)
from pageorient.rotation import (
    apply_rotation_delta,
    clamp_page_number,
    get_page_rotation,
    normalize_rotation,
)
from pageorient.types import OrientationResponse, OrientationResult, PageFailure

__all__ = [
    "BatchCancelled",
    "BatchConfig",
    "BatchOrientationOrchestrator",
    "BatchOutcome",
    "BatchRunState",
    "BatchStatus",
    "CancellationToken",
    "CapacityError",
    "DetectionEngine",
    "DetectionPipeline",
    "DetectionTimeoutError",
    "FeatureDisabledError",
    "GlobalSkewEngine",
    "InternalError",
    "InvalidPageCount",
    "InvalidPageNumber",
    "InvalidRotation",
    "OrientationConfig",
    "OrientationRequestError",
    "OrientationResponse",
    "OrientationResult",
    "PageFailure",
    "PageNumberSweepEngine",
    "PageorientError",
    "RequestError",
    "ServiceConfig",
    "ValidationError",
    "__version__",
    "apply_rotation_delta",
    "clamp_page_number",
    "detect_orientation",
    "get_page_rotation",
    "normalize_rotation",
]
