"""
Point Cloud Viewer - Python Backend
FastAPI server for XYZ ingestion, selection box, profiles and statistics.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from config import settings
from routers import upload, selection, profile, analysis
from services.pointcloud_service import get_pointcloud_service
from services.progress_manager import get_progress_manager

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting Point Cloud Viewer backend...")

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / "uploads").mkdir(exist_ok=True)
    (settings.data_dir / "exports").mkdir(exist_ok=True)
    logger.info("Data directory: %s", settings.data_dir.absolute())

    if settings.load_default_on_startup:
        info = await get_pointcloud_service().load_default()
        logger.info("Default terrain loaded with %d points", info["point_count"])

    logger.info("Backend ready!")

    yield

    logger.info("Shutting down Point Cloud Viewer backend...")


app = FastAPI(
    title="Point Cloud Viewer API",
    description="Backend API for browser point cloud visualization",
    version="1.0.0",
    lifespan=lifespan,
)

# Viewer is served from a different origin during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload.router, prefix="/api/upload", tags=["Upload"])
app.include_router(selection.router, prefix="/api/selection", tags=["Selection"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "pointcloud-viewer"}


@app.get("/api/pointcloud/chunk")
async def get_pointcloud_chunk(
    start: int = Query(0, ge=0),
    count: int = Query(10000, ge=1, le=100000)
) -> Dict[str, Any]:
    """Get a chunk of the loaded point cloud in centered coordinates."""
    return await get_pointcloud_service().points_chunk(start, count)


@app.get("/api/pointcloud/preview")
async def get_pointcloud_preview(
    max_points: int = Query(settings.preview_points, ge=1000, le=200000)
) -> Dict[str, Any]:
    """Get a downsampled preview of the point cloud."""
    service = get_pointcloud_service()
    status = service.status()

    if not status["loaded"]:
        return {"points": [], "total": 0, "bounding_box": None}

    points = await service.downsampled(max_points)
    return {
        "points": points,
        "total": status["point_count"],
        "bounding_box": status["bounding_box"],
    }


@app.get("/api/pointcloud/status")
async def get_pointcloud_status() -> Dict[str, Any]:
    """Get the status of the loaded point cloud."""
    return get_pointcloud_service().status()


@app.post("/api/pointcloud/invert-z")
async def invert_z_axis() -> Dict[str, Any]:
    """Flip the vertical axis of the loaded point cloud."""
    result = await get_pointcloud_service().invert_vertical_axis()
    if result is None:
        return {"success": False, "error": "No point cloud to invert"}
    return {"success": True, **result}


@app.websocket("/ws/progress")
async def websocket_progress(websocket: WebSocket):
    """WebSocket endpoint for busy/status/complete messages."""
    progress_manager = get_progress_manager()
    await websocket.accept()
    progress_manager.add_client(websocket)

    try:
        while True:
            # Clients only listen; reading detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        progress_manager.remove_client(websocket)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Point Cloud Viewer API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


def main():
    """Main entry point for the backend server."""
    parser = argparse.ArgumentParser(description="Point Cloud Viewer Backend")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
