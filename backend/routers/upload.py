"""Upload router for XYZ point cloud loading."""

from pathlib import Path
from typing import Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from services.pointcloud_service import SUPPORTED_SUFFIXES, get_pointcloud_service
from services.progress_manager import get_progress_manager

router = APIRouter()


class XyzUploadRequest(BaseModel):
    file_path: str


class TextUploadRequest(BaseModel):
    content: str
    name: Optional[str] = None


class BoundingBox(BaseModel):
    min: Dict[str, float]  # {x, y, z}
    max: Dict[str, float]  # {x, y, z}


class CloudInfo(BaseModel):
    pointCount: int
    boundingBox: BoundingBox
    offset: Dict[str, float]


class UploadResponse(BaseModel):
    success: bool
    data: Optional[CloudInfo] = None
    message: Optional[str] = None
    error: Optional[str] = None


async def _announce_result(step: str, info: dict) -> UploadResponse:
    progress = get_progress_manager()

    if info["parsed_count"] == 0:
        message = "No valid points found in file!"
        await progress.send_status(step, message, level="error")
        return UploadResponse(success=False, message=message)

    message = f"Point cloud loaded! {info['point_count']:,} points visualized."
    await progress.send_complete(step, {"pointCount": info["point_count"]})
    return UploadResponse(
        success=True,
        data=CloudInfo(
            pointCount=info["point_count"],
            boundingBox=BoundingBox(
                min=info["bounding_box"]["min"],
                max=info["bounding_box"]["max"],
            ),
            offset=info["offset"],
        ),
        message=message,
    )


@router.post("/xyz", response_model=UploadResponse)
async def upload_xyz(request: XyzUploadRequest):
    """Load an XYZ text file from disk."""
    file_path = Path(request.file_path)

    if not file_path.exists():
        raise HTTPException(status_code=404, detail=f"File not found: {request.file_path}")

    if file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise HTTPException(status_code=400, detail="Invalid file type. Expected .xyz or .txt")

    progress = get_progress_manager()
    try:
        await progress.send_busy("parse", f"Parsing {file_path.name}...")
        info = await get_pointcloud_service().load_file(str(file_path))
        return await _announce_result("parse", info)
    except Exception as e:
        await progress.send_error("parse", str(e))
        return UploadResponse(success=False, error=str(e))


@router.post("/text", response_model=UploadResponse)
async def upload_text(request: TextUploadRequest):
    """Load XYZ records sent in the request body."""
    progress = get_progress_manager()
    try:
        await progress.send_busy("parse", f"Parsing {request.name or 'upload'}...")
        info = await get_pointcloud_service().load_text(request.content, source=request.name)
        return await _announce_result("parse", info)
    except Exception as e:
        await progress.send_error("parse", str(e))
        return UploadResponse(success=False, error=str(e))


@router.post("/demo", response_model=UploadResponse)
async def load_demo_data():
    """Load the synthetic default terrain."""
    try:
        info = await get_pointcloud_service().load_default()
        return await _announce_result("demo", info)
    except Exception as e:
        return UploadResponse(success=False, error=str(e))


@router.get("/status")
async def get_upload_status():
    """Get the status of the current dataset."""
    status = get_pointcloud_service().status()

    return {
        "loaded": status["loaded"],
        "file": status["source"],
        "point_count": status["point_count"],
    }
