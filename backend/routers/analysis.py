"""Analysis router for dataset statistics and measurements."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from services.pointcloud_service import get_pointcloud_service

router = APIRouter()


class SummaryResult(BaseModel):
    pointCount: int
    minZ: float
    maxZ: float
    zSpan: float
    areaX: float
    areaY: float
    resolution: float
    histogram: List[int]


class SummaryResponse(BaseModel):
    success: bool
    data: Optional[SummaryResult] = None
    error: Optional[str] = None


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(seed: Optional[int] = Query(None, ge=0)):
    """Point count, elevation range, planar extent, resolution and Z histogram."""
    try:
        result = await get_pointcloud_service().summary(seed)
        return SummaryResponse(
            success=True,
            data=SummaryResult(
                pointCount=result["point_count"],
                minZ=result["min_z"],
                maxZ=result["max_z"],
                zSpan=result["z_span"],
                areaX=result["area_x"],
                areaY=result["area_y"],
                resolution=result["resolution"],
                histogram=result["histogram"],
            ),
        )
    except Exception as e:
        return SummaryResponse(success=False, error=str(e))


@router.get("/resolution")
async def get_resolution(seed: Optional[int] = Query(None, ge=0)):
    """Average nearest-neighbour spacing in flat areas."""
    resolution = await get_pointcloud_service().estimate_resolution(seed)
    return {"success": True, "resolution": resolution}


class MeasurementRequest(BaseModel):
    """Endpoints in centered coordinates, as picked in the viewer."""
    start: List[float]
    end: List[float]


class MeasurementResult(BaseModel):
    deltaX: float
    deltaY: float
    deltaZ: float
    distance3D: float
    horizontalDistance: float
    startOriginal: Dict[str, float]
    endOriginal: Dict[str, float]


class MeasurementResponse(BaseModel):
    success: bool
    data: Optional[MeasurementResult] = None
    error: Optional[str] = None


@router.post("/measure", response_model=MeasurementResponse)
async def measure_distance(request: MeasurementRequest):
    """Distance and axis deltas between two picked points."""
    try:
        result = await get_pointcloud_service().measure(request.start, request.end)
        return MeasurementResponse(
            success=True,
            data=MeasurementResult(
                deltaX=result["delta_x"],
                deltaY=result["delta_y"],
                deltaZ=result["delta_z"],
                distance3D=result["distance_3d"],
                horizontalDistance=result["horizontal_distance"],
                startOriginal=result["start_original"],
                endOriginal=result["end_original"],
            ),
        )
    except Exception as e:
        return MeasurementResponse(success=False, error=str(e))
