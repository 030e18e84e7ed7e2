"""Pytest configuration for git-drive tests.

Ensures the project root is in sys.path so imports work correctly, and
provides a recording Backend double for pipeline tests.
"""

import sys
import threading
from collections.abc import Sequence
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.git.backend import Backend  # noqa: E402
from core.git.errors import BackendError  # noqa: E402


class FakeBackend(Backend):
    """Records every call; raises the error queued in ``failures[method]`` once."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.failures: dict[str, list[BackendError]] = {}
        self._lock = threading.Lock()
        self._active = 0
        self.overlapped = False

    def fail_next(self, method: str, error: BackendError) -> None:
        self.failures.setdefault(method, []).append(error)

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    def _record(self, method: str, *args) -> None:
        with self._lock:
            self._active += 1
            if self._active > 1:
                self.overlapped = True
        try:
            self.calls.append((method, *args))
            pending = self.failures.get(method)
            if pending:
                raise pending.pop(0)
        finally:
            with self._lock:
                self._active -= 1

    def open_or_clone(self) -> None:
        self._record("open")

    def pull(self) -> None:
        self._record("pull")

    def stage(self, paths: Sequence[str]) -> None:
        self._record("stage", tuple(paths))

    def commit(self, message: str) -> None:
        self._record("commit", message)

    def push(self) -> None:
        self._record("push")


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
