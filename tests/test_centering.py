import numpy as np
import pytest

from services.pointcloud import Bounds, CoordinateOffset, center_positions, invert_vertical_axis, parse_xyz
from services.pointcloud.errors import ContractViolationError

from conftest import make_point_set

SURVEY_TEXT = """\
512345.67 6789012.34 105.20
512399.01 6789050.00 98.75
512310.50 6788990.10 110.05
512370.25 6789001.90 101.00
"""


def test_offset_is_bounds_midpoint():
    parsed = parse_xyz(SURVEY_TEXT)
    centered, offset = center_positions(parsed.positions, parsed.bounds)

    assert offset.x == pytest.approx((512310.50 + 512399.01) / 2)
    assert offset.y == pytest.approx((6788990.10 + 6789050.00) / 2)
    assert offset.z == pytest.approx((98.75 + 110.05) / 2)
    np.testing.assert_allclose(centered + offset.as_array(), parsed.positions)


def test_centered_bounds_are_symmetric():
    parsed = parse_xyz(SURVEY_TEXT)
    centered, _ = center_positions(parsed.positions, parsed.bounds)

    np.testing.assert_allclose(centered.max(axis=0) + centered.min(axis=0), 0.0, atol=1e-6)


def test_recentering_is_a_fixed_point():
    parsed = parse_xyz(SURVEY_TEXT)
    centered, _ = center_positions(parsed.positions, parsed.bounds)

    again, offset = center_positions(centered, Bounds.from_points(centered))

    np.testing.assert_allclose(offset.as_array(), 0.0, atol=1e-6)
    np.testing.assert_allclose(again, centered, atol=1e-6)


def test_input_positions_are_not_modified():
    parsed = parse_xyz(SURVEY_TEXT)
    before = parsed.positions.copy()

    center_positions(parsed.positions, parsed.bounds)

    np.testing.assert_array_equal(parsed.positions, before)


def test_empty_bounds_give_zero_offset():
    centered, offset = center_positions(np.empty((0, 3)), Bounds.empty())

    assert centered.shape == (0, 3)
    assert offset == CoordinateOffset()


def test_flat_array_is_accepted():
    centered, offset = center_positions([0, 0, 0, 2, 4, 6], Bounds(np.zeros(3), np.array([2.0, 4.0, 6.0])))

    assert centered.shape == (2, 3)
    assert offset.as_array().tolist() == [1.0, 2.0, 3.0]


def test_malformed_positions_raise():
    with pytest.raises(ContractViolationError):
        center_positions([1.0, 2.0], Bounds.empty())


def test_invert_vertical_axis_negates_z_and_offset():
    point_set = make_point_set([[1, 2, 3], [-1, -2, -3]])
    offset = CoordinateOffset(10.0, 20.0, 30.0)

    inverted = invert_vertical_axis(point_set, offset)

    np.testing.assert_array_equal(point_set.positions[:, 2], [-3, 3])
    np.testing.assert_array_equal(point_set.positions[:, :2], [[1, 2], [-1, -2]])
    assert (inverted.x, inverted.y, inverted.z) == (10.0, 20.0, -30.0)
    np.testing.assert_allclose(inverted.to_original(point_set.positions)[:, 2], [-33, -27])
