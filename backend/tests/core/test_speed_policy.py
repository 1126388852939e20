"""Speed Policy tests — which rate a slice is charged at, and how units are counted."""

from shiftledger.core.speed_policy import rate_for_slice, units_for_slice


def test_first_slice_uses_current_rate():
    assert rate_for_slice(None, 12.0) == 12.0


def test_unchanged_rate_is_used_as_is():
    assert rate_for_slice(10.0, 10.0) == 10.0


def test_changed_rate_charges_previous_rate_for_this_slice():
    """The new rate only applies from the next slice onwards."""
    assert rate_for_slice(10.0, 20.0) == 10.0
    assert rate_for_slice(20.0, 10.0) == 20.0


def test_previous_rate_of_zero_is_kept():
    assert rate_for_slice(0.0, 15.0) == 0.0


def test_units_multiply_minutes_by_rate():
    assert units_for_slice(5, 10.0) == 50


def test_units_floor_fractional_production():
    assert units_for_slice(3, 2.5) == 7
    assert units_for_slice(1, 0.9) == 0


def test_units_zero_for_empty_slice_or_idle_rate():
    assert units_for_slice(0, 10.0) == 0
    assert units_for_slice(-2, 10.0) == 0
    assert units_for_slice(5, 0.0) == 0
    assert units_for_slice(5, -3.0) == 0
