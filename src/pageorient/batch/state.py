from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pageorient.rotation import normalize_rotation
from pageorient.types import PageFailure

DEFAULT_CONTINUOUS_THRESHOLD = 0.6


class BatchStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class HighConfidenceAnchor:
    page: int
    rotation: int


def _normalize_target_pages(pages: Iterable[int]) -> tuple[int, ...]:
    unique_pages: set[int] = set()
    for page in pages:
        page_number = int(page)
        if page_number < 1:
            raise ValueError(f"Page numbers start at 1, got {page}")
        unique_pages.add(page_number)
    return tuple(sorted(unique_pages))


@dataclass(frozen=True, slots=True)
class BatchRunState:
    """Everything a batch run carries between pages.

    A snapshot taken on cancellation is enough to resume at the same cursor
    with the same anchor, threshold and failure bookkeeping.
    """

    target_pages: tuple[int, ...]
    current_index: int = 0
    continuous_rotation_enabled: bool = False
    continuous_threshold: float = DEFAULT_CONTINUOUS_THRESHOLD
    last_high_confidence: HighConfidenceAnchor | None = None
    high_confidence_rotations: Mapping[int, int] = field(default_factory=dict)
    rotation_map: Mapping[int, int] = field(default_factory=dict)
    failures: tuple[PageFailure, ...] = ()
    processed: int = 0
    corrected_pages: tuple[int, ...] = ()

    @classmethod
    def start(
        cls,
        pages: Iterable[int],
        *,
        rotation_map: Mapping[int, int] | None = None,
        continuous_rotation_enabled: bool = False,
        continuous_threshold: float = DEFAULT_CONTINUOUS_THRESHOLD,
    ) -> BatchRunState:
        if not 0.0 <= continuous_threshold <= 1.0:
            raise ValueError(
                f"Continuous threshold must be between 0 and 1, got {continuous_threshold}"
            )
        return cls(
            target_pages=_normalize_target_pages(pages),
            continuous_rotation_enabled=continuous_rotation_enabled,
            continuous_threshold=continuous_threshold,
            rotation_map={
                int(page): normalize_rotation(rotation)
                for page, rotation in (rotation_map or {}).items()
            },
        )

    @classmethod
    def for_all_pages(cls, total_pages: int, **options: Any) -> BatchRunState:
        return cls.start(range(1, total_pages + 1), **options)

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.target_pages)

    @property
    def current_page(self) -> int:
        return self.target_pages[self.current_index]

    @property
    def remaining_pages(self) -> tuple[int, ...]:
        return self.target_pages[self.current_index:]

    def to_dict(self) -> dict[str, Any]:
        anchor = self.last_high_confidence
        return {
            "targetPages": list(self.target_pages),
            "currentIndex": self.current_index,
            "continuousRotationEnabled": self.continuous_rotation_enabled,
            "continuousThreshold": self.continuous_threshold,
            "lastHighConfidence": (
                None if anchor is None else {"page": anchor.page, "rotation": anchor.rotation}
            ),
            "highConfidenceRotations": {
                str(page): rotation for page, rotation in self.high_confidence_rotations.items()
            },
            "rotationMap": {str(page): rotation for page, rotation in self.rotation_map.items()},
            "failures": [
                {
                    "page": failure.page,
                    "message": failure.message,
                    "code": failure.code,
                    "retryable": failure.retryable,
                }
                for failure in self.failures
            ],
            "processed": self.processed,
            "correctedPages": list(self.corrected_pages),
        }

    @classmethod
    def from_dict(cls, snapshot: Mapping[str, Any]) -> BatchRunState:
        raw_anchor = snapshot.get("lastHighConfidence")
        anchor = None
        if raw_anchor is not None:
            anchor = HighConfidenceAnchor(
                page=int(raw_anchor["page"]),
                rotation=normalize_rotation(raw_anchor["rotation"]),
            )

        return cls(
            target_pages=tuple(int(page) for page in snapshot["targetPages"]),
            current_index=int(snapshot.get("currentIndex", 0)),
            continuous_rotation_enabled=bool(snapshot.get("continuousRotationEnabled", False)),
            continuous_threshold=float(
                snapshot.get("continuousThreshold", DEFAULT_CONTINUOUS_THRESHOLD)
            ),
            last_high_confidence=anchor,
            high_confidence_rotations={
                int(page): normalize_rotation(rotation)
                for page, rotation in snapshot.get("highConfidenceRotations", {}).items()
            },
            rotation_map={
                int(page): normalize_rotation(rotation)
                for page, rotation in snapshot.get("rotationMap", {}).items()
            },
            failures=tuple(
                PageFailure(
                    page=int(failure["page"]),
                    message=str(failure["message"]),
                    code=failure.get("code"),
                    retryable=bool(failure.get("retryable", False)),
                )
                for failure in snapshot.get("failures", [])
            ),
            processed=int(snapshot.get("processed", 0)),
            corrected_pages=tuple(int(page) for page in snapshot.get("correctedPages", [])),
        )


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    status: BatchStatus
    state: BatchRunState
    summary: str | None = None
    error: str | None = None

    @property
    def processed(self) -> int:
        return self.state.processed

    @property
    def failures(self) -> tuple[PageFailure, ...]:
        return self.state.failures

    @property
    def rotation_map(self) -> Mapping[int, int]:
        return self.state.rotation_map

    @property
    def resumable(self) -> bool:
        return self.status in (BatchStatus.CANCELLED, BatchStatus.FAILED)
