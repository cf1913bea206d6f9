"""Explicit state for one loaded point cloud and the tools acting on it."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from services.pointcloud.centering import center_positions, invert_vertical_axis
from services.pointcloud.models import Bounds, CoordinateOffset, ParseResult, PointSet, ProfileLine
from services.pointcloud.parser import generate_default_cloud, parse_xyz
from services.pointcloud.profile import ProfileSlice, extract_profile
from services.pointcloud.resolution import estimate_resolution
from services.pointcloud.selection import ColorEditSession, OrientedVolume, export_selected
from services.pointcloud.statistics import DatasetSummary, Measurement, measure, summarize

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_THICKNESS = 1.0


class PointCloudContext:
    """Owns one dataset, its selection box, color session and profile line.

    Callers serialize access; nothing here is thread-safe.
    """

    def __init__(self, profile_thickness: float = DEFAULT_PROFILE_THICKNESS):
        self.point_set: Optional[PointSet] = None
        self.bounds: Optional[Bounds] = None
        self.offset = CoordinateOffset()
        self.volume = OrientedVolume()
        self.profile_thickness = float(profile_thickness)
        self.profile_line: Optional[ProfileLine] = None
        self.source: Optional[str] = None
        self._session: Optional[ColorEditSession] = None
        self._hide_outside = False

    def is_loaded(self) -> bool:
        return self.point_set is not None and self.point_set.count > 0

    @property
    def point_count(self) -> int:
        return self.point_set.count if self.point_set is not None else 0

    @property
    def has_snapshot(self) -> bool:
        return self._session is not None

    # Loading

    def load(self, parsed: ParseResult, source: Optional[str] = None) -> int:
        """Replace the dataset with ``parsed``; an empty result keeps the old one."""
        if parsed.count == 0:
            return 0

        centered, offset = center_positions(parsed.positions, parsed.bounds)
        self.point_set = PointSet(centered, parsed.colors.copy())
        self.bounds = parsed.bounds
        self.offset = offset
        self.source = source
        self.reset_snapshot()
        self.profile_line = None
        self.volume.fit_to_bounds(self.point_set.bounds())

        logger.info("Loaded %d points from %s", parsed.count, source or "memory")
        return parsed.count

    def load_text(self, text: str, source: Optional[str] = None) -> int:
        return self.load(parse_xyz(text), source=source)

    def load_default(self) -> int:
        return self.load(generate_default_cloud(), source="default terrain")

    # Selection box

    def reset_snapshot(self) -> None:
        self._session = None

    def select(self, hide_outside: bool = False) -> int:
        if not self.is_loaded():
            return 0
        if self._session is None:
            self._session = ColorEditSession.begin(self.point_set)
        self._hide_outside = hide_outside
        return self._session.select(self.volume, hide_outside)

    def restore_colors(self) -> bool:
        if self._session is None:
            return False
        self._session.restore()
        return True

    def export_selected(self) -> List[str]:
        if not self.is_loaded():
            return []
        return export_selected(self.point_set, self.volume, self.offset)

    # Profile

    def extract_profile(self, start, end, thickness: Optional[float] = None) -> ProfileSlice:
        if thickness is not None:
            self.profile_thickness = float(thickness)
        self.profile_line = ProfileLine(start, end, self.profile_thickness)
        return self._current_profile()

    def set_profile_thickness(self, thickness: float) -> Optional[ProfileSlice]:
        """Change the slice thickness and re-extract the current line, if any."""
        self.profile_thickness = float(thickness)
        if self.profile_line is None:
            return None
        self.profile_line.thickness = self.profile_thickness
        return self._current_profile()

    def clear_profile(self) -> None:
        self.profile_line = None

    def _current_profile(self) -> ProfileSlice:
        line = self.profile_line
        if not self.is_loaded():
            return ProfileSlice.empty(line)
        return extract_profile(line.start, line.end, line.thickness, self.point_set)

    # Analysis

    def original_positions(self) -> np.ndarray:
        if self.point_set is None:
            return np.empty((0, 3))
        return self.offset.to_original(self.point_set.positions)

    def estimate_resolution(self, seed: Optional[int] = None) -> float:
        if not self.is_loaded():
            return 0.0
        return estimate_resolution(self.point_set.positions, seed=seed)

    def summary(self, seed: Optional[int] = None) -> DatasetSummary:
        original = self.original_positions()
        return summarize(original, Bounds.from_points(original), seed=seed)

    def measure(self, start: Sequence[float], end: Sequence[float]) -> Measurement:
        return measure(start, end, self.offset)

    def invert_vertical_axis(self) -> Optional[Bounds]:
        """Flip Z of the dataset; returns the new centered bounds.

        Original bounds and the selection box are mirrored with the points,
        and an active selection is re-applied.
        """
        if not self.is_loaded():
            logger.warning("No point cloud to invert")
            return None
        self.offset = invert_vertical_axis(self.point_set, self.offset)

        min_z, max_z = self.bounds.min[2], self.bounds.max[2]
        self.bounds = Bounds(self.bounds.min.copy(), self.bounds.max.copy())
        self.bounds.min[2] = -max_z
        self.bounds.max[2] = -min_z

        position = self.volume.position.copy()
        position[2] = -position[2]
        self.volume.move_to(position)
        if self._session is not None:
            self._session.select(self.volume, self._hide_outside)

        return self.point_set.bounds()

    # Transfer to the viewer

    def points_chunk(self, start: int, count: int) -> Dict[str, Any]:
        total = self.point_count
        if total == 0:
            return {"points": [], "start": start, "count": 0, "total": 0}

        end = min(start + count, total)
        indices = np.arange(start, end) if start < end else np.empty(0, dtype=np.int64)
        points = self._points_payload(indices)
        return {"points": points, "start": start, "count": len(points), "total": total}

    def downsampled(self, max_points: int = 50000, seed: Optional[int] = None) -> List[Dict[str, float]]:
        total = self.point_count
        if total <= max_points:
            indices = np.arange(total)
        else:
            rng = np.random.default_rng(seed)
            indices = np.sort(rng.choice(total, max_points, replace=False))
        return self._points_payload(indices)

    def _points_payload(self, indices: np.ndarray) -> List[Dict[str, float]]:
        if self.point_set is None or len(indices) == 0:
            return []
        positions = self.point_set.positions[indices]
        colors = self.point_set.colors[indices]
        return [
            {
                "x": float(p[0]), "y": float(p[1]), "z": float(p[2]),
                "r": float(c[0]), "g": float(c[1]), "b": float(c[2]),
            }
            for p, c in zip(positions, colors)
        ]

    def status(self) -> Dict[str, Any]:
        loaded = self.is_loaded()
        return {
            "loaded": loaded,
            "source": self.source,
            "point_count": self.point_count,
            "bounding_box": self.bounds.to_dict() if loaded else None,
            "offset": self.offset.to_dict(),
            "has_snapshot": self.has_snapshot,
        }
