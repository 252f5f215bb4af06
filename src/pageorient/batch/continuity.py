from __future__ import annotations

from dataclasses import replace

from pageorient.batch.state import BatchRunState, HighConfidenceAnchor


def _pages_between(target_pages: tuple[int, ...], first: int, second: int) -> list[int]:
    lower_page, upper_page = min(first, second), max(first, second)
    return [page for page in target_pages if lower_page < page < upper_page]


def propagate_continuous_rotation(
    state: BatchRunState,
    page: int,
    rotation: int,
    likelihood: float,
) -> tuple[BatchRunState, dict[int, int]]:
    """Record a high-confidence anchor and fill the run of pages it closes.

    Returns the updated state and the pages to force, mapped to their absolute
    rotation. Pages between two anchors that agree are forced to the shared
    rotation unless one of them is itself a high-confidence page that
    disagrees. Only members of the target set are ever filled. Targets run in
    ascending order, so that veto only triggers on restored or hand-built states.
    """
    if not state.continuous_rotation_enabled or likelihood < state.continuous_threshold:
        return state, {}

    high_confidence_rotations = dict(state.high_confidence_rotations)
    high_confidence_rotations[page] = rotation

    previous_anchor = state.last_high_confidence
    forced_rotations: dict[int, int] = {}

    if previous_anchor is not None and previous_anchor.rotation == rotation:
        interval_pages = _pages_between(state.target_pages, previous_anchor.page, page)
        has_conflict = any(
            high_confidence_rotations.get(interval_page, rotation) != rotation
            for interval_page in interval_pages
        )
        if not has_conflict:
            forced_rotations = {interval_page: rotation for interval_page in interval_pages}

    updated_state = replace(
        state,
        last_high_confidence=HighConfidenceAnchor(page=page, rotation=rotation),
        high_confidence_rotations=high_confidence_rotations,
    )
    return updated_state, forced_rotations
