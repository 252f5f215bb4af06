from pageorient.batch.cancellation import CancellationToken
from pageorient.batch.client import OrientationClient, PageDetector
from pageorient.batch.continuity import propagate_continuous_rotation
from pageorient.batch.orchestrator import BatchOrientationOrchestrator, advance_state
from pageorient.batch.scanner import DirectoryPageSource, PageImageSource, scan_directory
from pageorient.batch.state import BatchOutcome, BatchRunState, BatchStatus, HighConfidenceAnchor

__all__ = [
    "BatchOrientationOrchestrator",
    "BatchOutcome",
    "BatchRunState",
    "BatchStatus",
    "CancellationToken",
    "DirectoryPageSource",
    "HighConfidenceAnchor",
    "OrientationClient",
    "PageDetector",
    "PageImageSource",
    "advance_state",
    "propagate_continuous_rotation",
    "scan_directory",
]
