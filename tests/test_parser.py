import numpy as np
import pytest

from services.pointcloud.parser import generate_default_cloud, height_colors, hsl_to_rgb, parse_xyz


def test_scenario_comment_and_blank_lines():
    result = parse_xyz("0 0 0\n1 0 1\n2 0 2\n# comment\n\n3 0 3")

    assert result.count == 4
    assert result.bounds.min[2] == 0
    assert result.bounds.max[2] == 3
    np.testing.assert_array_equal(result.positions[:, 0], [0, 1, 2, 3])


def test_array_lengths_match_count():
    result = parse_xyz("1 2 3\n4 5 6\n7 8 9\n")

    assert result.count * 3 == result.positions.size == result.colors.size


def test_signs_decimals_exponents_and_whitespace():
    text = "  -1.5   +2e3\t.25 \n6.02E-1 -0 7.\n"
    result = parse_xyz(text)

    assert result.count == 2
    np.testing.assert_allclose(result.positions[0], [-1.5, 2000.0, 0.25])
    np.testing.assert_allclose(result.positions[1], [0.602, 0.0, 7.0])


def test_malformed_tokens_are_skipped():
    result = parse_xyz("1 abc 2 3\nx y z\n4 5\n1.2.3 7 8 9\n")

    assert result.count == 2
    np.testing.assert_array_equal(result.positions[0], [1, 2, 3])
    np.testing.assert_array_equal(result.positions[1], [7, 8, 9])


def test_extra_columns_are_ignored():
    result = parse_xyz("1 2 3 255 128 0\n")

    np.testing.assert_array_equal(result.positions[0], [1, 2, 3])


def test_no_valid_records_returns_zero_count():
    result = parse_xyz("# header only\n\nnot numbers here\n")

    assert result.count == 0
    assert result.positions.shape == (0, 3)
    assert result.colors.shape == (0, 3)
    assert result.bounds.is_empty


def test_empty_input():
    assert parse_xyz("").count == 0


def test_buffer_grows_past_initial_estimate():
    lines = [f"{k} {k % 7} {k % 3}" for k in range(5000)]
    result = parse_xyz("\n".join(lines))

    assert result.count == 5000
    assert result.positions[4999, 0] == 4999
    assert result.bounds.max[0] == 4999


def test_bounds_accumulated_per_axis():
    result = parse_xyz("5 -1 10\n-3 4 2\n0 0 0\n")

    np.testing.assert_array_equal(result.bounds.min, [-3, -1, 0])
    np.testing.assert_array_equal(result.bounds.max, [5, 4, 10])


def test_height_gradient_blue_to_red():
    result = parse_xyz("0 0 0\n0 0 10\n")

    np.testing.assert_allclose(result.colors[0], [0.0, 0.4, 1.0], atol=1e-9)
    np.testing.assert_allclose(result.colors[1], [1.0, 0.0, 0.0], atol=1e-9)


def test_flat_elevation_is_all_blue():
    colors = height_colors(np.array([5.0, 5.0]), 5.0, 5.0)

    np.testing.assert_allclose(colors, [[0.0, 0.4, 1.0]] * 2, atol=1e-9)


@pytest.mark.parametrize("hue,expected", [
    (0.0, [1.0, 0.0, 0.0]),
    (1.0 / 3.0, [0.0, 1.0, 0.0]),
    (2.0 / 3.0, [0.0, 0.0, 1.0]),
])
def test_hsl_primaries(hue, expected):
    np.testing.assert_allclose(hsl_to_rgb(hue, 1.0, 0.5)[0], expected, atol=1e-9)


def test_default_cloud_terrain():
    result = generate_default_cloud()

    assert result.count == 10000
    assert result.bounds.min[0] == pytest.approx(500000.0)
    assert result.bounds.max[0] == pytest.approx(500100.0)
    assert result.bounds.min[2] >= -70.0
    assert result.bounds.max[2] <= -60.0
    assert np.all((result.colors >= 0) & (result.colors <= 1))
