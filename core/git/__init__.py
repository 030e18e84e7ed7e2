"""Asynchronous git mutation pipeline."""

from core.git.backend import Backend, GitBackend
from core.git.channel import OperationChannel
from core.git.dispatcher import Dispatcher
from core.git.errors import (
    BackendError,
    CommitError,
    DriveError,
    InvalidPathError,
    NotFoundError,
    OpenError,
    OperationStateError,
    PullError,
    PushError,
    StageError,
)
from core.git.pipeline import Pipeline
from core.git.registry import OperationRegistry
from core.git.types import Command, IdAllocator, Operation, Stage, Status

__all__ = [
    "Backend",
    "BackendError",
    "Command",
    "CommitError",
    "Dispatcher",
    "DriveError",
    "GitBackend",
    "IdAllocator",
    "InvalidPathError",
    "NotFoundError",
    "OpenError",
    "Operation",
    "OperationChannel",
    "OperationRegistry",
    "OperationStateError",
    "Pipeline",
    "PullError",
    "PushError",
    "Stage",
    "StageError",
    "Status",
]
