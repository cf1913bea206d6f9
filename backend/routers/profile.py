"""Profile router for cross-section extraction."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from services.pointcloud_service import get_pointcloud_service

router = APIRouter()


class ProfileRequest(BaseModel):
    """Line endpoints in centered coordinates."""
    start: List[float]
    end: List[float]
    thickness: Optional[float] = None


class ThicknessRequest(BaseModel):
    thickness: float


class ProfilePointData(BaseModel):
    distance: float
    elevation: float
    r: float
    g: float
    b: float


class ProfileResult(BaseModel):
    points: List[ProfilePointData]
    summary: Dict[str, Any]


class ProfileResponse(BaseModel):
    success: bool
    data: Optional[ProfileResult] = None
    message: Optional[str] = None
    error: Optional[str] = None


def _response(payload: Dict[str, Any]) -> ProfileResponse:
    count = len(payload["points"])
    message = f"Profile: {count:,} points extracted" if count else "No points within the profile slice"
    return ProfileResponse(success=True, data=ProfileResult(**payload), message=message)


@router.post("/extract", response_model=ProfileResponse)
async def extract_profile(request: ProfileRequest):
    """Extract the slice along a newly drawn line."""
    try:
        payload = await get_pointcloud_service().extract_profile(
            request.start, request.end, request.thickness
        )
        return _response(payload)
    except Exception as e:
        return ProfileResponse(success=False, error=str(e))


@router.post("/thickness", response_model=ProfileResponse)
async def update_thickness(request: ThicknessRequest):
    """Change the slice thickness and re-extract the current line."""
    try:
        payload = await get_pointcloud_service().set_profile_thickness(request.thickness)
    except Exception as e:
        return ProfileResponse(success=False, error=str(e))

    if payload is None:
        return ProfileResponse(success=True, message="Thickness saved; no profile line drawn yet")
    return _response(payload)


@router.get("")
async def get_profile_state():
    """Current profile line and thickness."""
    state = await get_pointcloud_service().profile_state()
    return {"success": True, "profile": state}


@router.delete("")
async def clear_profile():
    await get_pointcloud_service().clear_profile()
    return {"success": True}
