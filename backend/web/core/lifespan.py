"""Application lifespan management."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import load_settings
from core.filesystem import DriveFileSystem
from core.git import Pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the working copy, start the dispatcher, stop it on shutdown."""
    # Settings and pipeline may be injected before startup (CLI, tests)
    settings = getattr(app.state, "settings", None) or load_settings()
    pipeline = getattr(app.state, "pipeline", None) or Pipeline.from_settings(settings)

    # Open/clone failures are fatal: let them abort startup
    await pipeline.start()

    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.drive = DriveFileSystem(settings.path, pipeline)
    logger.info("serving drive %s (remote %s)", settings.path, settings.remote_url)

    try:
        yield
    finally:
        await pipeline.stop()
