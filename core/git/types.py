"""Commands, operations and their lifecycle enums."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from enum import Enum


class Stage(str, Enum):
    """Position of an operation in the pipeline. Declaration order is pipeline order."""

    PENDING = "pending"
    QUEUED = "queued"
    ADD = "add"
    COMMIT = "commit"
    PUSH = "push"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = list(Stage)


class Status(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self is not Status.PENDING


# Progress reported at each stage
PROGRESS = {
    Stage.PENDING: 0,
    Stage.QUEUED: 0,
    Stage.ADD: 33,
    Stage.COMMIT: 66,
    Stage.PUSH: 69,
}
PROGRESS_DONE = 100


@dataclass(frozen=True)
class Command:
    """One mutation to stage, commit and push. Consumed once by the dispatcher."""

    id: int
    message: str
    paths: tuple[str, ...]


@dataclass
class Operation:
    """Caller-visible state of a submitted command."""

    id: int
    stage: Stage = Stage.PENDING
    progress: int = 0
    status: Status = Status.PENDING
    data: str = ""

    def snapshot(self) -> Operation:
        return Operation(self.id, self.stage, self.progress, self.status, self.data)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["stage"] = self.stage.value
        payload["status"] = self.status.value
        return payload


@dataclass
class IdAllocator:
    """Millisecond-clock ids, bumped past the last issued id so they never collide."""

    clock: Callable[[], float] = time.time
    _last: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def next(self) -> int:
        with self._lock:
            candidate = int(self.clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return self._last
