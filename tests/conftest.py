import os

import numpy as np
import pytest

os.environ.setdefault("CLOUD_LOAD_DEFAULT", "0")

from services import pointcloud_service  # noqa: E402
from services.pointcloud import PointCloudContext, PointSet  # noqa: E402


def grid_positions(n: int, spacing: float = 1.0, z=None) -> np.ndarray:
    """n x n planar grid, x varying slowest."""
    i, j = np.meshgrid(np.arange(n), np.arange(n), indexing="ij")
    x = i.ravel() * spacing
    y = j.ravel() * spacing
    zs = np.zeros_like(x, dtype=float) if z is None else z(x, y)
    return np.column_stack([x, y, zs]).astype(float)


def make_point_set(positions) -> PointSet:
    positions = np.asarray(positions, dtype=float).reshape(-1, 3)
    colors = np.tile([0.2, 0.4, 0.6], (len(positions), 1))
    return PointSet(positions, colors)


@pytest.fixture
def service(monkeypatch):
    svc = pointcloud_service.PointCloudService(PointCloudContext())
    monkeypatch.setattr(pointcloud_service, "_service", svc)
    return svc


@pytest.fixture
def client(service):
    from fastapi.testclient import TestClient
    import main

    return TestClient(main.app)
