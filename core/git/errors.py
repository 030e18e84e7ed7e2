"""Error taxonomy for the drive and its git pipeline."""

from __future__ import annotations


class DriveError(Exception):
    """Base class for drive errors."""


class BackendError(DriveError):
    """A git operation failed."""


class OpenError(BackendError):
    """Opening or cloning the working copy failed."""


class PullError(BackendError):
    pass


class StageError(BackendError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"error adding path {path}: {reason}")


class CommitError(BackendError):
    pass


class PushError(BackendError):
    pass


class NotFoundError(DriveError, LookupError):
    """No live operation with the requested id."""

    def __init__(self, operation_id: int):
        self.operation_id = operation_id
        super().__init__(f"operation {operation_id} not found")


class OperationStateError(DriveError):
    """An operation lifecycle rule was violated (double create, backwards stage, ...)."""


class InvalidPathError(DriveError, ValueError):
    """A drive path is empty, escapes the working copy, or targets git metadata."""
