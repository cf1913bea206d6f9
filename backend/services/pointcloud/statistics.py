"""Dataset statistics and point-to-point measurement."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from services.pointcloud.models import Bounds, CoordinateOffset, as_points, as_vector3
from services.pointcloud.resolution import estimate_resolution

HISTOGRAM_BINS = 10


def z_histogram(positions, min_z: float, max_z: float, bins: int = HISTOGRAM_BINS) -> List[int]:
    """Point counts per elevation band; values on ``max_z`` go to the last bin."""
    z = as_points(positions)[:, 2]
    counts = np.zeros(bins, dtype=np.int64)
    if len(z) == 0:
        return counts.tolist()

    z_range = max_z - min_z
    if z_range <= 0:
        counts[0] = len(z)
        return counts.tolist()

    index = np.floor((z - min_z) / (z_range / bins)).astype(np.int64)
    np.clip(index, 0, bins - 1, out=index)
    counts += np.bincount(index, minlength=bins)
    return counts.tolist()


@dataclass
class DatasetSummary:
    point_count: int
    min_z: float
    max_z: float
    z_span: float
    area_x: float
    area_y: float
    resolution: float
    histogram: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(positions, bounds: Bounds, seed: Optional[int] = None) -> DatasetSummary:
    """Dashboard statistics; ``positions`` and ``bounds`` must share a frame."""
    positions = as_points(positions)
    if len(positions) == 0 or bounds.is_empty:
        return DatasetSummary(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, [0] * HISTOGRAM_BINS)

    min_z, max_z = float(bounds.min[2]), float(bounds.max[2])
    size = bounds.size
    return DatasetSummary(
        point_count=len(positions),
        min_z=min_z,
        max_z=max_z,
        z_span=max_z - min_z,
        area_x=float(size[0]),
        area_y=float(size[1]),
        resolution=estimate_resolution(positions, seed=seed),
        histogram=z_histogram(positions, min_z, max_z),
    )


@dataclass
class Measurement:
    delta_x: float
    delta_y: float
    delta_z: float
    distance_3d: float
    start_original: Dict[str, float]
    end_original: Dict[str, float]

    @property
    def horizontal_distance(self) -> float:
        return float(np.hypot(self.delta_x, self.delta_y))

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["horizontal_distance"] = self.horizontal_distance
        return result


def measure(start, end, offset: Optional[CoordinateOffset] = None) -> Measurement:
    """Distance between two centered points, endpoints reported in the original frame."""
    start = as_vector3(start, "start")
    end = as_vector3(end, "end")
    offset = offset or CoordinateOffset()

    delta = end - start
    start_original = offset.to_original(start)
    end_original = offset.to_original(end)

    return Measurement(
        delta_x=float(delta[0]),
        delta_y=float(delta[1]),
        delta_z=float(delta[2]),
        distance_3d=float(np.linalg.norm(delta)),
        start_original={"x": float(start_original[0]), "y": float(start_original[1]), "z": float(start_original[2])},
        end_original={"x": float(end_original[0]), "y": float(end_original[1]), "z": float(end_original[2])},
    )
