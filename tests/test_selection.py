import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from services.pointcloud import Bounds, CoordinateOffset, PointSet
from services.pointcloud.errors import ContractViolationError
from services.pointcloud.selection import (
    FADED_COLOR,
    ColorEditSession,
    OrientedVolume,
    export_selected,
    select_in_volume,
)

from conftest import make_point_set

ORIENTATIONS = [
    (0, 0, 0),
    (0, 0, 45),
    (30, 60, 90),
    (-120, 15, 200),
    (90, 90, 90),
]


class TestOrientedVolume:

    def test_scaled_unit_cube_boundary(self):
        volume = OrientedVolume(scale=(2, 2, 2))

        inside = volume.contains([[0.9, 0, 0], [1.1, 0, 0]])

        assert inside.tolist() == [True, False]

    @pytest.mark.parametrize("angles", ORIENTATIONS)
    def test_center_is_inside_for_any_orientation(self, angles):
        volume = OrientedVolume(
            position=(5.0, -3.0, 2.0),
            orientation=Rotation.from_euler("XYZ", angles, degrees=True),
            scale=(0.1, 4.0, 2.5),
        )

        assert volume.contains([[5.0, -3.0, 2.0]]).tolist() == [True]

    @pytest.mark.parametrize("angles", ORIENTATIONS)
    def test_local_coordinate_beyond_half_is_outside(self, angles):
        orientation = Rotation.from_euler("XYZ", angles, degrees=True)
        volume = OrientedVolume(position=(1.0, 2.0, 3.0), orientation=orientation, scale=(2.0, 3.0, 4.0))
        local = np.array([[0.51, 0.0, 0.0], [0.0, -0.51, 0.0], [0.0, 0.0, 0.6], [0.49, 0.49, -0.49]])
        world = orientation.apply(local * volume.scale) + volume.position

        assert volume.contains(world).tolist() == [False, False, False, True]
        np.testing.assert_allclose(volume.to_local(world), local, atol=1e-9)

    def test_rotation_changes_containment(self):
        volume = OrientedVolume()
        point = [[0.6, 0.0, 0.0]]
        assert volume.contains(point).tolist() == [False]

        volume.rotate(Rotation.from_euler("z", 45, degrees=True))

        assert volume.contains(point).tolist() == [True]

    def test_inverse_rigid_matrix_undoes_rigid_matrix(self):
        volume = OrientedVolume(
            position=(3, 4, 5),
            orientation=Rotation.from_euler("XYZ", (10, 20, 30), degrees=True),
            scale=(7, 8, 9),
        )

        np.testing.assert_allclose(volume.inverse_rigid_matrix() @ volume.rigid_matrix(), np.eye(4), atol=1e-12)

    @pytest.mark.parametrize("scale", [(0, 1, 1), (1, 1e-12, 1), (1, 1, -1e-10)])
    def test_degenerate_scale_selects_nothing(self, scale):
        volume = OrientedVolume(scale=scale)

        assert volume.is_degenerate
        assert not volume.contains([[0, 0, 0]]).any()

    def test_translate_and_fit_to_bounds(self):
        volume = OrientedVolume()
        volume.translate((1, 1, 1))
        assert volume.position.tolist() == [1, 1, 1]

        volume.fit_to_bounds(Bounds(np.array([-2.0, -4.0, -1.0]), np.array([2.0, 4.0, 1.0])))

        assert volume.position.tolist() == [0, 0, 0]
        assert volume.scale.tolist() == [4, 8, 2]

    def test_face_of_the_box_is_inside(self):
        volume = OrientedVolume(scale=(2, 2, 2))

        inside = volume.contains([[0.5, 0, 0], [1.0, 0, 0], [0, -1.0, 1.0], [1.0000001, 0, 0]])

        assert inside.tolist() == [True, True, True, False]

    def test_bad_vector_length_raises(self):
        with pytest.raises(ContractViolationError):
            OrientedVolume(position=(1, 2))


class TestRecoloring:

    def setup_method(self):
        self.point_set = make_point_set([[0, 0, 0], [5, 0, 0], [0.2, 0.2, 0.2]])
        self.volume = OrientedVolume(scale=(1, 1, 1))

    def test_hide_outside_fades_outside_points(self):
        original = self.point_set.colors.copy()

        count = select_in_volume(self.point_set, self.volume, original, hide_outside=True)

        assert count == 2
        np.testing.assert_array_equal(self.point_set.colors[1], FADED_COLOR)
        np.testing.assert_array_equal(self.point_set.colors[[0, 2]], original[[0, 2]])

    def test_keep_outside_restores_original_colors(self):
        original = self.point_set.colors.copy()
        select_in_volume(self.point_set, self.volume, original, hide_outside=True)

        count = select_in_volume(self.point_set, self.volume, original, hide_outside=False)

        assert count == 2
        np.testing.assert_array_equal(self.point_set.colors, original)

    def test_snapshot_shape_mismatch_raises(self):
        with pytest.raises(ContractViolationError):
            select_in_volume(self.point_set, self.volume, np.zeros((1, 3)))

    def test_session_select_is_repeatable(self):
        session = ColorEditSession.begin(self.point_set)

        first = session.select(self.volume, hide_outside=True)
        colors_after_first = self.point_set.colors.copy()
        second = session.select(self.volume, hide_outside=True)

        assert first == second == 2
        np.testing.assert_array_equal(self.point_set.colors, colors_after_first)

    def test_session_restore(self):
        original = self.point_set.colors.copy()
        session = ColorEditSession.begin(self.point_set)
        session.select(self.volume, hide_outside=True)

        session.restore()

        np.testing.assert_array_equal(self.point_set.colors, original)

    def test_session_as_context_manager_restores_on_exit(self):
        original = self.point_set.colors.copy()

        with ColorEditSession.begin(self.point_set) as session:
            session.select(self.volume, hide_outside=True)
            assert not np.array_equal(self.point_set.colors, original)

        np.testing.assert_array_equal(self.point_set.colors, original)


class TestExport:

    def test_lines_use_original_coordinates(self):
        point_set = make_point_set([[0.0, 0.0, 0.0], [0.25, -0.125, 0.4], [3.0, 0.0, 0.0]])
        offset = CoordinateOffset(512000.0, 6789000.0, 100.0)

        lines = export_selected(point_set, OrientedVolume(), offset)

        assert lines == ["512000.00 6789000.00 100.00", "512000.25 6788999.88 100.40"]

    def test_no_match_returns_empty(self):
        point_set = make_point_set([[3.0, 3.0, 3.0]])

        assert export_selected(point_set, OrientedVolume(), CoordinateOffset()) == []

    def test_export_does_not_recolor(self):
        point_set = make_point_set([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
        before = point_set.colors.copy()

        export_selected(point_set, OrientedVolume(), CoordinateOffset())

        np.testing.assert_array_equal(point_set.colors, before)


def test_point_set_shape_mismatch_raises():
    with pytest.raises(ContractViolationError):
        PointSet(np.zeros((3, 3)), np.zeros((2, 3)))
