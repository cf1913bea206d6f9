"""Coordinate centering around the bounding box midpoint."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from services.pointcloud.models import Bounds, CoordinateOffset, PointSet, as_points

logger = logging.getLogger(__name__)


def center_positions(positions, bounds: Bounds) -> Tuple[np.ndarray, CoordinateOffset]:
    """Subtract the bounds midpoint from every position.

    Survey coordinates sit around 10^6, so downstream geometry runs on the
    centered copy and the returned offset maps results back.
    """
    positions = as_points(positions)
    if bounds.is_empty:
        return positions.copy(), CoordinateOffset()

    offset = bounds.center
    centered = positions - offset

    logger.info("Centered point cloud, offset (%.2f, %.2f, %.2f)", *offset)
    return centered, CoordinateOffset.from_vector(offset)


def invert_vertical_axis(point_set: PointSet, offset: CoordinateOffset) -> CoordinateOffset:
    """Flip Z in place and return the offset with its Z negated."""
    point_set.positions[:, 2] *= -1.0
    inverted = CoordinateOffset(offset.x, offset.y, -offset.z)
    logger.info("Inverted Z axis, Z offset now %.2f", inverted.z)
    return inverted
