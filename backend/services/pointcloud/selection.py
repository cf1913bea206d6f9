"""Oriented selection box: containment, recoloring and export."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy.spatial.transform import Rotation

from services.pointcloud.errors import ContractViolationError
from services.pointcloud.models import Bounds, CoordinateOffset, PointSet, as_points, as_vector3

logger = logging.getLogger(__name__)

FADED_COLOR = (0.9, 0.9, 0.9)
MIN_SCALE = 1e-9
HALF_EXTENT = 0.5


class OrientedVolume:
    """Box defined by the unit cube [-0.5, 0.5]^3 in local space.

    Position and orientation form a rigid transform; the per-axis scale is
    kept separate and applied after rotation, so the box is never sheared.
    """

    def __init__(
        self,
        position: Sequence[float] = (0.0, 0.0, 0.0),
        orientation: Optional[Rotation] = None,
        scale: Sequence[float] = (1.0, 1.0, 1.0),
    ):
        self.position = as_vector3(position, "position")
        self.orientation = orientation if orientation is not None else Rotation.identity()
        self.scale = as_vector3(scale, "scale")

    def move_to(self, position: Sequence[float]) -> None:
        self.position = as_vector3(position, "position")

    def translate(self, delta: Sequence[float]) -> None:
        self.position = self.position + as_vector3(delta, "delta")

    def rotate(self, rotation: Rotation) -> None:
        """Apply a world-frame rotation on top of the current orientation."""
        self.orientation = rotation * self.orientation

    def set_orientation(self, rotation: Rotation) -> None:
        self.orientation = rotation

    def set_scale(self, scale: Sequence[float]) -> None:
        self.scale = as_vector3(scale, "scale")

    def fit_to_bounds(self, bounds: Bounds) -> None:
        """Center the box on ``bounds`` and size it to their extent."""
        if bounds.is_empty:
            return
        self.position = bounds.center.copy()
        self.scale = bounds.size.copy()
        logger.debug(
            "Selection box at (%.2f, %.2f, %.2f), size %.2f x %.2f x %.2f",
            *self.position, *self.scale,
        )

    @property
    def is_degenerate(self) -> bool:
        return bool(np.any(np.abs(self.scale) < MIN_SCALE))

    def rigid_matrix(self) -> np.ndarray:
        """4x4 transform from position and orientation, unit scale."""
        matrix = np.eye(4)
        matrix[:3, :3] = self.orientation.as_matrix()
        matrix[:3, 3] = self.position
        return matrix

    def inverse_rigid_matrix(self) -> np.ndarray:
        rotation_t = self.orientation.as_matrix().T
        inverse = np.eye(4)
        inverse[:3, :3] = rotation_t
        inverse[:3, 3] = -rotation_t @ self.position
        return inverse

    def to_local(self, points) -> np.ndarray:
        """Map world points into unit-cube coordinates of the box."""
        points = as_points(points, "points")
        inverse = self.inverse_rigid_matrix()
        local = points @ inverse[:3, :3].T + inverse[:3, 3]
        return local / self.scale

    def contains(self, points) -> np.ndarray:
        points = as_points(points, "points")
        if self.is_degenerate:
            return np.zeros(len(points), dtype=bool)
        local = self.to_local(points)
        return np.all(np.abs(local) <= HALF_EXTENT, axis=1)

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            "position": self.position.tolist(),
            "quaternion": self.orientation.as_quat().tolist(),
            "scale": self.scale.tolist(),
        }


def select_in_volume(
    point_set: PointSet,
    volume: OrientedVolume,
    original_colors: np.ndarray,
    hide_outside: bool = False,
) -> int:
    """Recolor ``point_set`` from ``original_colors`` and count points inside."""
    if original_colors.shape != point_set.colors.shape:
        raise ContractViolationError("color snapshot does not match the point set")

    inside = volume.contains(point_set.positions)
    point_set.colors[:] = original_colors
    if hide_outside:
        point_set.colors[~inside] = FADED_COLOR

    selected = int(np.count_nonzero(inside))
    logger.info("%d points selected", selected)
    return selected


class ColorEditSession:
    """Holds the colors a point set had before any selection recoloring.

    The snapshot is taken when the session begins, so restoring is always
    possible while the session exists.
    """

    def __init__(self, point_set: PointSet):
        self.point_set = point_set
        self.snapshot = point_set.colors.copy()

    @classmethod
    def begin(cls, point_set: PointSet) -> "ColorEditSession":
        return cls(point_set)

    def select(self, volume: OrientedVolume, hide_outside: bool = False) -> int:
        return select_in_volume(self.point_set, volume, self.snapshot, hide_outside)

    def restore(self) -> None:
        self.point_set.colors[:] = self.snapshot

    def __enter__(self) -> "ColorEditSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()


def export_selected(
    point_set: PointSet,
    volume: OrientedVolume,
    offset: CoordinateOffset,
) -> List[str]:
    """Lines "<x> <y> <z>" in original coordinates for points inside the box."""
    inside = volume.contains(point_set.positions)
    if not np.any(inside):
        logger.warning("No points inside the selection box")
        return []

    original = offset.to_original(point_set.positions[inside])
    lines = [f"{x:.2f} {y:.2f} {z:.2f}" for x, y, z in original]
    logger.info("%d points exported", len(lines))
    return lines
