"""Drive view over the git working copy."""

from core.filesystem.drive import DriveFileSystem, FileInfo

__all__ = ["DriveFileSystem", "FileInfo"]
