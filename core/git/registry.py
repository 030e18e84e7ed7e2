"""Table of live operations and their subscriber channels."""

from __future__ import annotations

import logging

from core.git.channel import OperationChannel
from core.git.errors import NotFoundError, OperationStateError
from core.git.types import PROGRESS_DONE, Command, Operation, Stage, Status

logger = logging.getLogger(__name__)


class OperationRegistry:
    """Maps operation ids to their current snapshot and notification channel.

    Enforces the lifecycle of each entry:
    - create once (duplicate ids are rejected)
    - advance only forward through Stage while status is pending
    - finish once: terminal snapshot is published, the channel closed and the
      entry removed in one step
    """

    def __init__(self) -> None:
        self._operations: dict[int, Operation] = {}
        self._channels: dict[int, OperationChannel] = {}

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, operation_id: int) -> bool:
        return operation_id in self._operations

    def ids(self) -> tuple[int, ...]:
        return tuple(self._operations)

    def create(self, command: Command) -> OperationChannel:
        if command.id in self._operations:
            raise OperationStateError(f"operation {command.id} already exists")
        self._operations[command.id] = Operation(id=command.id)
        channel = OperationChannel(operation_id=command.id)
        self._channels[command.id] = channel
        return channel

    def get(self, operation_id: int) -> Operation:
        return self._require(operation_id).snapshot()

    def listen(self, operation_id: int) -> OperationChannel:
        channel = self._channels.get(operation_id)
        if channel is None:
            raise NotFoundError(operation_id)
        return channel

    def advance(self, operation_id: int, stage: Stage, progress: int) -> Operation:
        op = self._require(operation_id)
        if stage.rank < op.stage.rank:
            raise OperationStateError(
                f"operation {operation_id} cannot move back from {op.stage.value} to {stage.value}"
            )
        op.stage = stage
        op.progress = progress
        return self._publish(op)

    def finish(self, operation_id: int, status: Status, data: str = "") -> Operation:
        if not status.terminal:
            raise OperationStateError(f"{status.value} is not a terminal status")
        op = self._require(operation_id)
        op.status = status
        op.data = data
        if status is Status.SUCCESS:
            op.progress = PROGRESS_DONE
        snapshot = self._publish(op)

        channel = self._channels.pop(operation_id)
        del self._operations[operation_id]
        channel.close()
        logger.debug("operation %s finished: %s", operation_id, status.value)
        return snapshot

    def _require(self, operation_id: int) -> Operation:
        op = self._operations.get(operation_id)
        if op is None:
            raise NotFoundError(operation_id)
        return op

    def _publish(self, op: Operation) -> Operation:
        snapshot = op.snapshot()
        self._channels[op.id].publish(snapshot)
        return snapshot
