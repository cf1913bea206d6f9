"""Point cloud spatial processing engine.

Ingestion, centering, selection box, profile slicing and resolution
estimation over in-memory XYZ datasets.
"""

from services.pointcloud.centering import center_positions, invert_vertical_axis
from services.pointcloud.context import PointCloudContext
from services.pointcloud.errors import ContractViolationError, PointCloudError
from services.pointcloud.models import (
    Bounds,
    CoordinateOffset,
    ParseResult,
    PointSet,
    ProfileLine,
    ProfilePoint,
)
from services.pointcloud.parser import generate_default_cloud, parse_xyz
from services.pointcloud.profile import ProfileSlice, extract_profile
from services.pointcloud.resolution import estimate_resolution
from services.pointcloud.selection import (
    ColorEditSession,
    OrientedVolume,
    export_selected,
    select_in_volume,
)
from services.pointcloud.spatial_grid import SpatialGrid, SpatialGridCell
from services.pointcloud.statistics import measure, summarize, z_histogram

__all__ = [
    "Bounds",
    "ColorEditSession",
    "ContractViolationError",
    "CoordinateOffset",
    "OrientedVolume",
    "ParseResult",
    "PointCloudContext",
    "PointCloudError",
    "PointSet",
    "ProfileLine",
    "ProfilePoint",
    "ProfileSlice",
    "SpatialGrid",
    "SpatialGridCell",
    "center_positions",
    "estimate_resolution",
    "export_selected",
    "extract_profile",
    "generate_default_cloud",
    "invert_vertical_axis",
    "measure",
    "parse_xyz",
    "select_in_volume",
    "summarize",
    "z_histogram",
]
