"""Core data types shared by the point cloud engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from services.pointcloud.errors import ContractViolationError

AXES = ("x", "y", "z")


def as_vector3(value: Sequence[float], name: str = "vector") -> np.ndarray:
    """Coerce a 3-component sequence to a float64 array."""
    vector = np.asarray(value, dtype=np.float64).reshape(-1)
    if vector.shape != (3,):
        raise ContractViolationError(f"{name} must have 3 components, got {vector.shape[0]}")
    return vector


def as_points(value, name: str = "positions") -> np.ndarray:
    """Coerce an (N, 3) or flat 3N array to an (N, 3) float64 array."""
    array = np.asarray(value, dtype=np.float64)
    if array.ndim == 1:
        if array.size % 3 != 0:
            raise ContractViolationError(f"{name} length {array.size} is not a multiple of 3")
        array = array.reshape(-1, 3)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ContractViolationError(f"{name} must have shape (N, 3), got {array.shape}")
    return array


@dataclass
class Bounds:
    """Per-axis min/max of a point set."""
    min: np.ndarray
    max: np.ndarray

    @classmethod
    def empty(cls) -> "Bounds":
        return cls(
            min=np.full(3, np.inf, dtype=np.float64),
            max=np.full(3, -np.inf, dtype=np.float64),
        )

    @classmethod
    def from_points(cls, positions: np.ndarray) -> "Bounds":
        positions = as_points(positions)
        if len(positions) == 0:
            return cls.empty()
        return cls(min=positions.min(axis=0), max=positions.max(axis=0))

    @property
    def is_empty(self) -> bool:
        return bool(np.any(self.min > self.max))

    @property
    def center(self) -> np.ndarray:
        return (self.min + self.max) / 2.0

    @property
    def size(self) -> np.ndarray:
        return self.max - self.min

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "min": {axis: float(v) for axis, v in zip(AXES, self.min)},
            "max": {axis: float(v) for axis, v in zip(AXES, self.max)},
        }


@dataclass
class CoordinateOffset:
    """Vector subtracted from raw coordinates during centering."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_vector(cls, vector: Sequence[float]) -> "CoordinateOffset":
        x, y, z = as_vector3(vector, "offset")
        return cls(float(x), float(y), float(z))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_original(self, points) -> np.ndarray:
        """Map centered coordinates back to the original reference frame."""
        return np.asarray(points, dtype=np.float64) + self.as_array()

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


class PointSet:
    """Parallel position/color arrays for one loaded dataset.

    Positions and colors are mutated in place (recoloring, axis inversion)
    but never resized.
    """

    def __init__(self, positions, colors):
        self.positions = as_points(positions, "positions")
        self.colors = as_points(colors, "colors")
        if self.positions.shape != self.colors.shape:
            raise ContractViolationError(
                f"positions {self.positions.shape} and colors {self.colors.shape} differ in length"
            )

    @property
    def count(self) -> int:
        return len(self.positions)

    def __len__(self) -> int:
        return self.count

    def bounds(self) -> Bounds:
        return Bounds.from_points(self.positions)


@dataclass
class ParseResult:
    positions: np.ndarray
    colors: np.ndarray
    count: int
    bounds: Bounds

    def to_point_set(self) -> PointSet:
        return PointSet(self.positions, self.colors)


@dataclass
class ProfileLine:
    """Two endpoints in centered space plus the slice thickness."""
    start: np.ndarray
    end: np.ndarray
    thickness: float = 1.0

    def __post_init__(self):
        self.start = as_vector3(self.start, "start")
        self.end = as_vector3(self.end, "end")
        self.thickness = float(self.thickness)

    @property
    def horizontal_length(self) -> float:
        delta = self.end - self.start
        return float(np.hypot(delta[0], delta[1]))


@dataclass(frozen=True)
class ProfilePoint:
    distance: float
    elevation: float
    color: Tuple[float, float, float]
