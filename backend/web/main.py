"""git-drive Web Backend - FastAPI Application."""

import argparse
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.web.core.lifespan import lifespan
from backend.web.routers import drive
from config import DriveSettings, load_settings
from core.git import Pipeline


def create_app(settings: DriveSettings | None = None, pipeline: Pipeline | None = None) -> FastAPI:
    """Build the app. Settings/pipeline left as None are resolved at startup."""
    app = FastAPI(title="git-drive", lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(drive.router)
    return app


app = create_app()


def _parse_args(argv: list[str] | None = None) -> dict[str, Any]:
    parser = argparse.ArgumentParser(description="Serve a git repository as a browsable drive.")
    parser.add_argument("--owner", help="repo's owner")
    parser.add_argument("--repo", help="repo's name")
    parser.add_argument("--url", help="explicit remote url (overrides owner/repo)")
    parser.add_argument("--remote", help="repo's remote name (default origin)")
    parser.add_argument("--path", help="local path in which the repo will be cloned")
    parser.add_argument("--key", dest="ssh_key", help="ssh private key path")
    parser.add_argument("--host", help="bind address (default 0.0.0.0)")
    parser.add_argument("--port", type=int, help="server port (default 8080)")
    parser.add_argument("--push-interval", type=float, help="seconds between batched pushes")
    parser.add_argument("--log-level", help="debug/info/warning/error")
    parser.add_argument("--config", dest="config_file", help="config file (default ~/.gitdrive/config.json)")
    args = vars(parser.parse_args(argv))
    return {k: v for k, v in args.items() if v is not None}


def main(argv: list[str] | None = None) -> None:
    overrides = _parse_args(argv)
    config_file = overrides.pop("config_file", None)
    settings = load_settings(overrides, config_file=config_file)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
