"""Point cloud service shared by the API routers."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from scipy.spatial.transform import Rotation

from config import settings
from services.pointcloud import PointCloudContext, ProfileSlice

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = [".xyz", ".txt"]


class PointCloudService:
    """Runs engine calls in the thread pool, one at a time.

    Every call that touches the context holds the same lock, so recoloring,
    axis inversion and dataset replacement never overlap.
    """

    def __init__(self, context: Optional[PointCloudContext] = None):
        self.context = context or PointCloudContext(profile_thickness=settings.profile_thickness)
        self._lock: Optional[asyncio.Lock] = None

    async def _run(self, func: Callable, *args):
        if self._lock is None:
            # Bound to the serving loop on first use
            self._lock = asyncio.Lock()
        async with self._lock:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, func, *args)

    # Loading

    async def load_file(self, file_path: str) -> Dict[str, Any]:
        """Read an XYZ text file and make it the active dataset."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported file type: {suffix}. Expected .xyz or .txt")

        return await self._run(self._load_file, path)

    def _load_file(self, path: Path) -> Dict[str, Any]:
        text = path.read_text(encoding="ascii", errors="ignore")
        logger.info("Loading %s (%.2f KB)", path.name, len(text) / 1024)
        count = self.context.load_text(text, source=str(path))
        return self._load_info(count)

    async def load_text(self, content: str, source: Optional[str] = None) -> Dict[str, Any]:
        return await self._run(self._load_text, content, source)

    def _load_text(self, content: str, source: Optional[str]) -> Dict[str, Any]:
        count = self.context.load_text(content, source=source)
        return self._load_info(count)

    async def load_default(self) -> Dict[str, Any]:
        return await self._run(self._load_default)

    def _load_default(self) -> Dict[str, Any]:
        return self._load_info(self.context.load_default())

    def _load_info(self, parsed_count: int) -> Dict[str, Any]:
        status = self.context.status()
        return {
            "parsed_count": parsed_count,
            "point_count": status["point_count"],
            "bounding_box": status["bounding_box"],
            "offset": status["offset"],
        }

    # Selection box

    async def set_box(
        self,
        position: Optional[Sequence[float]] = None,
        scale: Optional[Sequence[float]] = None,
        quaternion: Optional[Sequence[float]] = None,
        euler_degrees: Optional[Sequence[float]] = None,
    ) -> Dict[str, List[float]]:
        return await self._run(self._set_box, position, scale, quaternion, euler_degrees)

    def _set_box(self, position, scale, quaternion, euler_degrees) -> Dict[str, List[float]]:
        volume = self.context.volume
        if position is not None:
            volume.move_to(position)
        if scale is not None:
            volume.set_scale(scale)
        if quaternion is not None:
            volume.set_orientation(Rotation.from_quat(quaternion))
        elif euler_degrees is not None:
            volume.set_orientation(Rotation.from_euler("XYZ", euler_degrees, degrees=True))
        return volume.to_dict()

    async def get_box(self) -> Dict[str, List[float]]:
        return await self._run(self.context.volume.to_dict)

    async def select(self, hide_outside: bool) -> int:
        return await self._run(self.context.select, hide_outside)

    async def restore_colors(self) -> bool:
        return await self._run(self.context.restore_colors)

    async def export_selected(self) -> List[str]:
        return await self._run(self.context.export_selected)

    # Profile

    async def extract_profile(self, start, end, thickness: Optional[float] = None) -> Dict[str, Any]:
        return await self._run(self._extract_profile, start, end, thickness)

    def _extract_profile(self, start, end, thickness) -> Dict[str, Any]:
        return self._profile_payload(self.context.extract_profile(start, end, thickness))

    async def set_profile_thickness(self, thickness: float) -> Optional[Dict[str, Any]]:
        return await self._run(self._set_profile_thickness, thickness)

    def _set_profile_thickness(self, thickness: float) -> Optional[Dict[str, Any]]:
        result = self.context.set_profile_thickness(thickness)
        return self._profile_payload(result) if result is not None else None

    async def clear_profile(self) -> None:
        await self._run(self.context.clear_profile)

    async def profile_state(self) -> Dict[str, Any]:
        return await self._run(self._profile_state)

    def _profile_state(self) -> Dict[str, Any]:
        line = self.context.profile_line
        return {
            "has_profile": line is not None,
            "start": line.start.tolist() if line is not None else None,
            "end": line.end.tolist() if line is not None else None,
            "thickness": self.context.profile_thickness,
        }

    def _profile_payload(self, profile: ProfileSlice) -> Dict[str, Any]:
        return {
            "points": [
                {
                    "distance": p.distance,
                    "elevation": p.elevation,
                    "r": p.color[0], "g": p.color[1], "b": p.color[2],
                }
                for p in profile
            ],
            "summary": profile.summary(self.context.offset),
        }

    # Analysis

    async def summary(self, seed: Optional[int] = None) -> Dict[str, Any]:
        result = await self._run(self.context.summary, seed)
        return result.to_dict()

    async def estimate_resolution(self, seed: Optional[int] = None) -> float:
        return await self._run(self.context.estimate_resolution, seed)

    async def measure(self, start, end) -> Dict[str, Any]:
        result = await self._run(self.context.measure, start, end)
        return result.to_dict()

    async def invert_vertical_axis(self) -> Optional[Dict[str, Any]]:
        bounds = await self._run(self.context.invert_vertical_axis)
        if bounds is None:
            return None
        return {"bounding_box": bounds.to_dict(), "offset": self.context.offset.to_dict()}

    # Transfer

    async def points_chunk(self, start: int, count: int) -> Dict[str, Any]:
        return await self._run(self.context.points_chunk, start, count)

    async def downsampled(self, max_points: int) -> List[Dict[str, float]]:
        return await self._run(self.context.downsampled, max_points)

    def status(self) -> Dict[str, Any]:
        return self.context.status()


# Global service instance
_service: Optional[PointCloudService] = None


def get_pointcloud_service() -> PointCloudService:
    """Get the global point cloud service instance."""
    global _service
    if _service is None:
        _service = PointCloudService()
    return _service
