"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request

from core.filesystem import DriveFileSystem
from core.git import Pipeline


async def get_app(request: Request) -> FastAPI:
    """Get FastAPI app instance from request."""
    return request.app


async def get_pipeline(app: Annotated[FastAPI, Depends(get_app)]) -> Pipeline:
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(503, "Pipeline is not running")
    return pipeline


async def get_drive(app: Annotated[FastAPI, Depends(get_app)]) -> DriveFileSystem:
    drive = getattr(app.state, "drive", None)
    if drive is None:
        raise HTTPException(503, "Drive is not ready")
    return drive
