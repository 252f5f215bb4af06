from __future__ import annotations

import math
from collections.abc import Mapping

from pageorient.exceptions import InvalidPageCount, InvalidPageNumber, InvalidRotation
from pageorient.types import QUARTER_TURNS

RotationMap = Mapping[int, int]


def _ensure_quarter_turn(value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRotation(f"Rotation must be a multiple of 90 degrees, got {value!r}")
    if not math.isfinite(value) or value % 90 != 0:
        raise InvalidRotation(f"Rotation must be a multiple of 90 degrees, got {value!r}")


def normalize_rotation(value: float) -> int:
    _ensure_quarter_turn(value)
    return int(value % 360)


def snap_to_quarter_turn(degrees: float | None) -> int | None:
    if degrees is None or not math.isfinite(degrees):
        return None
    snapped = int(round(degrees / 90) * 90) % 360
    return snapped if snapped in QUARTER_TURNS else None


def get_page_rotation(rotation_map: RotationMap, page_number: int) -> int:
    if page_number not in rotation_map:
        return 0
    return normalize_rotation(rotation_map[page_number])


def rotation_delta(current: int, target: int) -> int:
    return normalize_rotation(target - current)


def apply_rotation_delta(
    rotation_map: RotationMap, page_number: int, delta: float
) -> dict[int, int]:
    _ensure_quarter_turn(delta)
    current_rotation = get_page_rotation(rotation_map, page_number)
    updated_map = dict(rotation_map)
    updated_map[page_number] = normalize_rotation(current_rotation + delta)
    return updated_map


def clamp_page_number(page_number: float, total_pages: float) -> int:
    if not math.isfinite(total_pages) or total_pages < 1:
        raise InvalidPageCount(f"Total page count must be at least 1, got {total_pages!r}")
    if not math.isfinite(page_number):
        raise InvalidPageNumber(f"Invalid page number: {page_number!r}")

    truncated_page = math.trunc(page_number)
    if truncated_page < 1:
        return 1
    if truncated_page > total_pages:
        return int(total_pages)
    return truncated_page
