"""Planar bucketing of points for density analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np

from services.pointcloud.models import as_points

DEFAULT_GRID_SIZE = 50


@dataclass
class SpatialGridCell:
    """One bucket of the grid with cached elevation statistics."""
    key: Tuple[int, int]
    indices: np.ndarray
    mean_z: float
    variance_z: float

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def std_z(self) -> float:
        return float(np.sqrt(self.variance_z))

    def is_flat(self, min_points: int, max_std: float) -> bool:
        return self.count >= min_points and self.std_z < max_std


class SpatialGrid:
    """Fixed-size X/Y grid over the extent of a set of positions.

    Cells are kept in the order their first point appears in the input.
    """

    def __init__(
        self,
        cells: List[SpatialGridCell],
        origin: np.ndarray,
        cell_size: np.ndarray,
        extent: np.ndarray,
        grid_size: int,
    ):
        self.cells = cells
        self.origin = origin
        self.cell_size = cell_size
        self.extent = extent
        self.grid_size = grid_size
        self._by_key: Dict[Tuple[int, int], SpatialGridCell] = {c.key: c for c in cells}

    @classmethod
    def build(cls, positions, grid_size: int = DEFAULT_GRID_SIZE) -> "SpatialGrid":
        positions = as_points(positions)
        if grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {grid_size}")

        if len(positions) == 0:
            zeros = np.zeros(2)
            return cls([], zeros, np.ones(2) / grid_size, np.ones(2), grid_size)

        xy = positions[:, :2]
        origin = xy.min(axis=0)
        extent = xy.max(axis=0) - origin
        extent[extent == 0] = 1.0
        cell_size = extent / grid_size

        cell_xy = np.floor((xy - origin) / cell_size).astype(np.int64)
        np.clip(cell_xy, 0, grid_size - 1, out=cell_xy)
        keys = cell_xy[:, 0] * grid_size + cell_xy[:, 1]

        unique_keys, first_index, inverse, counts = np.unique(
            keys, return_index=True, return_inverse=True, return_counts=True
        )
        inverse = inverse.reshape(-1)

        z = positions[:, 2]
        sums = np.bincount(inverse, weights=z, minlength=len(unique_keys))
        means = sums / counts
        deviations = z - means[inverse]
        variances = np.bincount(inverse, weights=deviations * deviations, minlength=len(unique_keys)) / counts

        order = np.argsort(inverse, kind="stable")
        members = np.split(order, np.cumsum(counts)[:-1])

        cells = []
        for k in np.argsort(first_index, kind="stable"):
            key = int(unique_keys[k])
            cells.append(SpatialGridCell(
                key=(key // grid_size, key % grid_size),
                indices=members[k],
                mean_z=float(means[k]),
                variance_z=float(variances[k]),
            ))

        return cls(cells, origin, cell_size, extent, grid_size)

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[SpatialGridCell]:
        return iter(self.cells)

    def cell(self, cell_x: int, cell_y: int) -> SpatialGridCell:
        return self._by_key[(cell_x, cell_y)]

    def flat_cells(self, min_points: int, max_std: float) -> List[SpatialGridCell]:
        return [c for c in self.cells if c.is_flat(min_points, max_std)]

    @property
    def area(self) -> float:
        return float(self.extent[0] * self.extent[1])
