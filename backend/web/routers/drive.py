"""Drive endpoints: directory listing, removal, operation progress."""

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from backend.web.core.config import API_PREFIX
from backend.web.core.dependencies import get_drive, get_pipeline
from backend.web.services.operation_stream import observe_operation
from core.filesystem import DriveFileSystem
from core.git import DriveError, InvalidPathError, NotFoundError, Pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix=API_PREFIX, tags=["drive"])

# SSE response headers: disable proxy buffering for real-time streaming
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


@router.get("/health")
async def health(pipeline: Annotated[Pipeline, Depends(get_pipeline)]) -> dict[str, Any]:
    return pipeline.status()


@router.get("/dir")
@router.get("/dir/{path:path}")
async def read_dir(
    drive: Annotated[DriveFileSystem, Depends(get_drive)],
    path: str = "",
) -> list[dict[str, Any]]:
    """List a drive directory. Sizes are in MB; git metadata is hidden."""
    try:
        entries = await asyncio.to_thread(drive.read_dir, path)
    except InvalidPathError as e:
        raise HTTPException(400, str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(404, str(e)) from e
    except NotADirectoryError as e:
        raise HTTPException(400, str(e)) from e
    except OSError as e:
        logger.warning("failed to read directory %r: %s", path, e)
        raise HTTPException(500, str(e)) from e
    return [{"name": e.name, "isDir": e.is_dir, "size": e.size_mb} for e in entries]


@router.get("/operations/{operation_id}")
async def stream_operation(
    operation_id: int,
    request: Request,
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
    after: int = 0,
) -> EventSourceResponse:
    """SSE stream of an operation's snapshots, ending with a ``close`` event.

    Supports reconnection via ``?after=N`` or ``Last-Event-ID`` header.
    Finished (or unknown) operations are 404.
    """
    last_id = request.headers.get("Last-Event-ID")
    if last_id:
        try:
            after = max(after, int(last_id))
        except ValueError:
            pass

    try:
        channel = pipeline.listen(operation_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e)) from e
    return EventSourceResponse(observe_operation(channel, after=after), headers=SSE_HEADERS)


@router.delete("/{path:path}")
async def remove(
    path: str,
    drive: Annotated[DriveFileSystem, Depends(get_drive)],
) -> dict[str, Any]:
    """Delete a file or directory and start committing the removal."""
    try:
        operation_id = await drive.remove(path)
    except InvalidPathError as e:
        raise HTTPException(400, str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(404, str(e)) from e
    # @@@submit-after-delete - the local delete already happened; report the pipeline refusal
    except DriveError as e:
        raise HTTPException(503, str(e)) from e
    except OSError as e:
        logger.warning("failed to remove %r: %s", path, e)
        raise HTTPException(500, str(e)) from e
    return {"id": operation_id, "path": path}
