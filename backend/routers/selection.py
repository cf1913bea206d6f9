"""Selection box router: placement, recoloring and export."""

from typing import List, Optional

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from services.pointcloud_service import get_pointcloud_service
from services.progress_manager import get_progress_manager

router = APIRouter()


class BoxRequest(BaseModel):
    """Any field left out keeps its current value."""
    position: Optional[List[float]] = None
    scale: Optional[List[float]] = None
    quaternion: Optional[List[float]] = None  # x, y, z, w
    eulerDegrees: Optional[List[float]] = None  # XYZ order


class BoxState(BaseModel):
    position: List[float]
    quaternion: List[float]
    scale: List[float]


class BoxResponse(BaseModel):
    success: bool
    data: Optional[BoxState] = None
    error: Optional[str] = None


class SelectRequest(BaseModel):
    hideOutside: bool = True


class SelectResponse(BaseModel):
    success: bool
    selectedCount: int = 0
    message: Optional[str] = None
    error: Optional[str] = None


@router.put("/box", response_model=BoxResponse)
async def update_box(request: BoxRequest):
    """Move, rotate or resize the selection box."""
    try:
        state = await get_pointcloud_service().set_box(
            position=request.position,
            scale=request.scale,
            quaternion=request.quaternion,
            euler_degrees=request.eulerDegrees,
        )
        return BoxResponse(success=True, data=BoxState(**state))
    except Exception as e:
        return BoxResponse(success=False, error=str(e))


@router.get("/box", response_model=BoxResponse)
async def get_box():
    """Current selection box placement."""
    state = await get_pointcloud_service().get_box()
    return BoxResponse(success=True, data=BoxState(**state))


@router.post("/apply", response_model=SelectResponse)
async def apply_selection(request: SelectRequest):
    """Recolor the cloud around the box and count the points inside."""
    service = get_pointcloud_service()
    progress = get_progress_manager()

    if not service.status()["loaded"]:
        return SelectResponse(success=False, message="Upload a point cloud first!")

    try:
        count = await service.select(request.hideOutside)
    except Exception as e:
        return SelectResponse(success=False, error=str(e))

    if count == 0:
        message = "No points inside the selection box"
        await progress.send_status("selection", message, level="warning")
    else:
        message = f"{count:,} points selected"
        await progress.send_status("selection", message)
    return SelectResponse(success=True, selectedCount=count, message=message)


@router.post("/restore")
async def restore_colors():
    """Put back the colors the cloud had before the first selection."""
    restored = await get_pointcloud_service().restore_colors()
    return {"success": True, "restored": restored}


@router.get("/export", response_class=PlainTextResponse)
async def export_selection():
    """Points inside the box as XYZ text in original coordinates."""
    lines = await get_pointcloud_service().export_selected()
    if not lines:
        await get_progress_manager().send_status("export", "No points in the box!", level="warning")
    return PlainTextResponse("\n".join(lines))
