"""Average point spacing estimated from flat grid cells."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from services.pointcloud.models import as_points
from services.pointcloud.spatial_grid import DEFAULT_GRID_SIZE, SpatialGrid

logger = logging.getLogger(__name__)

MIN_CELL_POINTS = 10
MAX_FLAT_STD = 0.5
MAX_FLAT_CELLS = 20
SAMPLES_PER_CELL = 25
MAX_DISTANCE_SAMPLES = 500
MIN_NEIGHBOR_DISTANCE = 0.001

# Fallback pseudo-cell when no flat cell exists
FALLBACK_POINTS = 1000
FALLBACK_STRIDE_TARGET = 5000


def _fallback_sample(positions: np.ndarray) -> np.ndarray:
    n_points = len(positions)
    stride = max(1, n_points // min(FALLBACK_STRIDE_TARGET, n_points))
    sample = np.arange(min(FALLBACK_POINTS, n_points)) * stride
    return sample[sample < n_points]


def _nearest_neighbor_distances(
    xy: np.ndarray,
    members: np.ndarray,
    rng: np.random.Generator,
    samples: int,
) -> List[float]:
    """Nearest planar neighbour distance for ``samples`` random members."""
    distances = []
    cell_xy = xy[members]
    for pick in rng.integers(0, len(members), size=samples):
        delta = cell_xy - cell_xy[pick]
        dist = np.hypot(delta[:, 0], delta[:, 1])
        keep = dist > MIN_NEIGHBOR_DISTANCE
        keep[pick] = False
        dist = dist[keep]
        if len(dist):
            distances.append(float(dist.min()))
    return distances


def estimate_resolution(
    positions,
    seed: Optional[int] = None,
    grid_size: int = DEFAULT_GRID_SIZE,
    min_cell_points: int = MIN_CELL_POINTS,
    max_flat_std: float = MAX_FLAT_STD,
) -> float:
    """Mean nearest-neighbour planar spacing, sampled from flat regions.

    Falls back to a strided sample of all points when no cell is flat, and
    to sqrt(area / count) when no neighbour distance can be measured.
    """
    positions = as_points(positions)
    n_points = len(positions)
    if n_points == 0:
        return 0.0

    rng = np.random.default_rng(seed)
    grid = SpatialGrid.build(positions, grid_size)
    groups = [cell.indices for cell in grid.flat_cells(min_cell_points, max_flat_std)]

    if not groups:
        logger.warning("No flat areas found, sampling from all points")
        groups = [_fallback_sample(positions)]

    xy = positions[:, :2]
    distances: List[float] = []
    for members in groups[:MAX_FLAT_CELLS]:
        remaining = MAX_DISTANCE_SAMPLES - len(distances)
        samples = min(SAMPLES_PER_CELL, len(members), remaining)
        distances.extend(_nearest_neighbor_distances(xy, members, rng, samples))
        if len(distances) >= MAX_DISTANCE_SAMPLES:
            break

    if not distances:
        return float(np.sqrt(grid.area / n_points))

    logger.info(
        "Point resolution from %d samples in %d flat areas",
        len(distances), len(groups),
    )
    return float(np.mean(distances))
