"""Per-operation snapshot channel.

An append-only log of Operation snapshots with a close signal. The dispatcher
is the only writer; any number of observers read it with their own cursor, so
a stalled observer never blocks the writer or other observers.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from core.git.errors import OperationStateError
from core.git.types import Operation


@dataclass
class OperationChannel:
    """Ordered snapshot log with cursor-based reading and completion signal."""

    operation_id: int
    snapshots: list[Operation] = field(default_factory=list)
    closed: asyncio.Event = field(default_factory=asyncio.Event)
    _changed: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def publish(self, snapshot: Operation) -> None:
        if self.closed.is_set():
            raise OperationStateError(f"channel for operation {self.operation_id} is closed")
        self.snapshots.append(snapshot)
        self._wake()

    def close(self) -> None:
        if self.closed.is_set():
            raise OperationStateError(f"channel for operation {self.operation_id} already closed")
        self.closed.set()
        self._wake()

    def _wake(self) -> None:
        # Readers hold the previous event; swapping in a fresh one wakes them
        # all without the writer ever awaiting.
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def read(self, cursor: int) -> tuple[list[Operation], int]:
        """Return (new_snapshots, new_cursor). Waits if nothing new and not closed."""
        while True:
            if cursor < len(self.snapshots):
                return self.snapshots[cursor:], len(self.snapshots)
            if self.closed.is_set():
                return [], cursor
            await self._changed.wait()

    async def read_with_timeout(self, cursor: int, timeout: float = 15) -> tuple[list[Operation] | None, int]:
        """Same as read() but returns (None, cursor) on timeout instead of blocking forever."""
        try:
            return await asyncio.wait_for(self.read(cursor), timeout)
        except TimeoutError:
            return None, cursor

    async def stream(self, after: int = 0) -> AsyncIterator[tuple[int, Operation]]:
        """Yield (index, snapshot) from index *after* until the channel is closed and exhausted."""
        cursor = after
        while True:
            snapshots, new_cursor = await self.read(cursor)
            if not snapshots:
                return
            for offset, snapshot in enumerate(snapshots):
                yield cursor + offset, snapshot
            cursor = new_cursor
