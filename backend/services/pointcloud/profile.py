"""Cross-section extraction along a vertical plane."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np

from services.pointcloud.models import CoordinateOffset, PointSet, ProfileLine, ProfilePoint

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 1e-12


@dataclass
class ProfileSlice:
    """Points within half the thickness of the line's vertical plane.

    Arrays are parallel and keep the input scan order.
    """
    line: ProfileLine
    indices: np.ndarray
    distances: np.ndarray
    elevations: np.ndarray
    colors: np.ndarray

    @classmethod
    def empty(cls, line: ProfileLine) -> "ProfileSlice":
        return cls(
            line=line,
            indices=np.empty(0, dtype=np.int64),
            distances=np.empty(0),
            elevations=np.empty(0),
            colors=np.empty((0, 3)),
        )

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[ProfilePoint]:
        for distance, elevation, color in zip(self.distances, self.elevations, self.colors):
            yield ProfilePoint(float(distance), float(elevation), tuple(float(c) for c in color))

    def points(self) -> List[ProfilePoint]:
        return list(self)

    @property
    def line_length(self) -> float:
        return self.line.horizontal_length

    def elevation_range(self) -> Optional[Tuple[float, float]]:
        if len(self) == 0:
            return None
        return float(self.elevations.min()), float(self.elevations.max())

    def summary(self, offset: Optional[CoordinateOffset] = None) -> Dict[str, Any]:
        """Line length and elevation range, in the original frame when ``offset`` is given."""
        z_shift = offset.z if offset is not None else 0.0
        elevation = self.elevation_range()
        return {
            "point_count": len(self),
            "line_length": self.line_length,
            "thickness": self.line.thickness,
            "min_elevation": elevation[0] + z_shift if elevation else None,
            "max_elevation": elevation[1] + z_shift if elevation else None,
        }


def extract_profile(start, end, thickness: float, point_set: PointSet) -> ProfileSlice:
    """Collect points within ``thickness / 2`` of the vertical plane through start/end.

    The line direction ignores height, so the plane stays vertical when the
    endpoints differ in Z. A zero-length line yields an empty slice.
    """
    line = ProfileLine(start, end, thickness)

    direction = line.end - line.start
    direction[2] = 0.0
    length = float(np.linalg.norm(direction))
    if length < MIN_LINE_LENGTH or point_set.count == 0:
        if length < MIN_LINE_LENGTH:
            logger.warning("Profile line has zero horizontal length")
        return ProfileSlice.empty(line)

    direction /= length
    normal = np.array([-direction[1], direction[0], 0.0])

    to_point = point_set.positions - line.start
    plane_distance = np.abs(to_point @ normal)
    inside = plane_distance <= line.thickness / 2.0
    indices = np.flatnonzero(inside)

    result = ProfileSlice(
        line=line,
        indices=indices,
        distances=to_point[indices] @ direction,
        elevations=point_set.positions[indices, 2].copy(),
        colors=point_set.colors[indices].copy(),
    )
    logger.info("Profile: %d points extracted (thickness: %sm)", len(result), line.thickness)
    return result
