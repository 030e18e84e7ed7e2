"""Drive view of the git working copy: list directories, remove entries."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import shutil
from dataclasses import dataclass
from pathlib import Path

from core.git.errors import InvalidPathError
from core.git.pipeline import Pipeline

logger = logging.getLogger(__name__)

GIT_DIR = ".git"
BYTES_PER_MB = 1024 * 1024


@dataclass
class FileInfo:
    """Single drive entry."""

    name: str
    is_dir: bool
    size_mb: float = 0.0  # files only


def normalize_drive_path(raw_path: str | None) -> str:
    """Turn a client path ("/docs/a.txt", "docs/", "") into a clean relative posix path.

    Returns "" for the drive root. Raises InvalidPathError for paths that
    leave the working copy or point into git metadata.
    """
    raw = (raw_path or "").replace("\\", "/").strip("/")
    if not raw:
        return ""
    rel = posixpath.normpath(raw)
    if rel == ".":
        return ""
    parts = rel.split("/")
    if parts[0] == "..":
        raise InvalidPathError(f"Path outside drive: {raw_path}")
    if GIT_DIR in parts:
        raise InvalidPathError(f"Path points into git metadata: {raw_path}")
    return rel


class DriveFileSystem:
    """Filesystem view over the working copy owned by *pipeline*.

    Reads go straight to disk. Removals delete locally, then submit a commit
    through the pipeline and hand back the operation id for progress tracking.
    """

    def __init__(self, root: str | Path, pipeline: Pipeline):
        self.root = Path(root).expanduser().resolve()
        self.pipeline = pipeline

    def _target(self, rel: str, follow: bool = False) -> Path:
        """Absolute path of *rel*, refusing symlinks that lead out of the drive.

        With *follow* the target itself is resolved (listing a directory);
        otherwise only its parent is, so a symlink entry can still be removed.
        """
        if not rel:
            return self.root
        target = self.root / rel
        anchor = target.resolve() if follow else target.parent.resolve()
        if not anchor.is_relative_to(self.root):
            raise InvalidPathError(f"Path leaves the drive through a symlink: {rel}")
        return target

    def read_dir(self, path: str | None = None) -> list[FileInfo]:
        rel = normalize_drive_path(path)
        target = self._target(rel, follow=True)
        if not target.exists():
            raise FileNotFoundError(f"failed to read directory \"{rel or '/'}\": no such directory")
        if not target.is_dir():
            raise NotADirectoryError(f"failed to read directory \"{rel}\": not a directory")

        entries = []
        for item in sorted(target.iterdir(), key=lambda p: p.name):
            if item.name == GIT_DIR:
                continue
            if item.is_dir():
                entries.append(FileInfo(name=item.name, is_dir=True))
            else:
                size = item.lstat().st_size
                entries.append(FileInfo(name=item.name, is_dir=False, size_mb=size / BYTES_PER_MB))
        return entries

    def _delete(self, rel: str) -> None:
        target = self._target(rel)
        logger.debug("trying to remove path %r", rel)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()
        logger.info("removed path %r", rel)

    async def remove(self, path: str) -> int:
        """Delete *path* locally and submit "rm: <path>". Returns the operation id."""
        rel = normalize_drive_path(path)
        if not rel:
            raise InvalidPathError("Refusing to remove the drive root")
        target = self._target(rel)
        if not target.exists() and not target.is_symlink():
            raise FileNotFoundError(f"no such file or directory: {rel}")

        await asyncio.to_thread(self._delete, rel)
        return await self.pipeline.submit(f"rm: {rel}", [rel])
