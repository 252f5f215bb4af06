import math

import pytest

from pageorient.exceptions import InvalidPageCount, InvalidPageNumber, InvalidRotation
from pageorient.rotation import (
    apply_rotation_delta,
    clamp_page_number,
    get_page_rotation,
    normalize_rotation,
    rotation_delta,
    snap_to_quarter_turn,
)

QUARTER_TURN_INPUTS = [-720, -450, -270, -180, -90, 0, 90, 180, 270, 360, 450, 720, 990]


class TestNormalizeRotation:
    @pytest.mark.parametrize("value", QUARTER_TURN_INPUTS)
    def test_result_is_quarter_turn(self, value):
        assert normalize_rotation(value) in (0, 90, 180, 270)

    @pytest.mark.parametrize("value", QUARTER_TURN_INPUTS)
    def test_is_idempotent(self, value):
        assert normalize_rotation(normalize_rotation(value)) == normalize_rotation(value)

    def test_negative_wraps(self):
        assert normalize_rotation(-90) == 270
        assert normalize_rotation(-270) == 90

    def test_large_values_wrap(self):
        assert normalize_rotation(450) == 90
        assert normalize_rotation(360) == 0

    def test_float_multiple_is_accepted(self):
        assert normalize_rotation(180.0) == 180

    @pytest.mark.parametrize("value", [45, 1, -30, 90.5, math.nan, math.inf])
    def test_rejects_non_quarter_turns(self, value):
        with pytest.raises(InvalidRotation):
            normalize_rotation(value)

    def test_rejects_non_numbers(self):
        with pytest.raises(InvalidRotation):
            normalize_rotation("90")


class TestApplyRotationDelta:
    def test_absent_page_defaults_to_zero(self):
        assert apply_rotation_delta({}, 3, 90) == {3: 90}

    def test_returns_new_map(self):
        original = {1: 90}
        updated = apply_rotation_delta(original, 1, 90)
        assert original == {1: 90}
        assert updated == {1: 180}

    def test_negative_delta_wraps(self):
        assert apply_rotation_delta({}, 1, -90) == {1: 270}

    def test_other_pages_untouched(self):
        assert apply_rotation_delta({1: 90, 2: 180}, 2, 180) == {1: 90, 2: 0}

    def test_rejects_invalid_delta(self):
        with pytest.raises(InvalidRotation):
            apply_rotation_delta({}, 1, 45)

    @pytest.mark.parametrize("first_delta", [-180, -90, 0, 90, 270, 450])
    @pytest.mark.parametrize("second_delta", [-270, 0, 90, 180, 360])
    def test_deltas_compose(self, first_delta, second_delta):
        start = {1: 90}
        stepwise = apply_rotation_delta(
            apply_rotation_delta(start, 1, first_delta), 1, second_delta
        )
        combined = apply_rotation_delta(start, 1, first_delta + second_delta)
        assert stepwise == combined


class TestHelpers:
    def test_get_page_rotation(self):
        assert get_page_rotation({2: 270}, 2) == 270
        assert get_page_rotation({2: 270}, 5) == 0

    def test_rotation_delta(self):
        assert rotation_delta(90, 0) == 270
        assert rotation_delta(0, 270) == 270
        assert rotation_delta(180, 180) == 0

    @pytest.mark.parametrize(
        "degrees, expected",
        [(0, 0), (88.0, 90), (179, 180), (-90, 270), (359, 0), (None, None), (math.nan, None)],
    )
    def test_snap_to_quarter_turn(self, degrees, expected):
        assert snap_to_quarter_turn(degrees) == expected


class TestClampPageNumber:
    def test_within_range(self):
        assert clamp_page_number(3, 10) == 3

    def test_truncates(self):
        assert clamp_page_number(3.9, 10) == 3

    def test_clamps_low_and_high(self):
        assert clamp_page_number(0, 10) == 1
        assert clamp_page_number(-4, 10) == 1
        assert clamp_page_number(11, 10) == 10

    @pytest.mark.parametrize("total_pages", [0, -1, math.nan])
    def test_rejects_invalid_total(self, total_pages):
        with pytest.raises(InvalidPageCount):
            clamp_page_number(1, total_pages)

    def test_rejects_non_finite_page(self):
        with pytest.raises(InvalidPageNumber):
            clamp_page_number(math.inf, 10)
