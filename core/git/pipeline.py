"""Public entry points of the mutation pipeline."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from core.git.backend import Backend, GitBackend
from core.git.channel import OperationChannel
from core.git.dispatcher import Dispatcher
from core.git.types import Command, IdAllocator, Operation

if TYPE_CHECKING:
    from config.schema import DriveSettings

logger = logging.getLogger(__name__)


class Pipeline:
    """Submit mutations and observe their progress.

    Everything touching git or the operation table goes through the
    dispatcher; this class only allocates ids and forwards.
    """

    def __init__(self, backend: Backend, ids: IdAllocator | None = None, **dispatcher_options: Any):
        self.dispatcher = Dispatcher(backend, **dispatcher_options)
        self._ids = ids or IdAllocator()

    @classmethod
    def from_settings(cls, settings: DriveSettings) -> Pipeline:
        backend = GitBackend(
            path=settings.path,
            url=settings.remote_url,
            remote=settings.remote,
            ssh_key=settings.ssh_key,
            author_name=settings.author_name,
            author_email=settings.author_email,
        )
        return cls(
            backend,
            queue_size=settings.queue_size,
            inbound_size=settings.inbound_size,
            push_interval=settings.push_interval,
            pull_interval=settings.pull_interval,
        )

    async def start(self) -> None:
        await self.dispatcher.start()

    async def stop(self) -> None:
        await self.dispatcher.stop()

    async def submit(self, message: str, paths: Sequence[str]) -> int:
        """Queue a stage+commit+push of *paths*. Returns the operation id immediately."""
        command = Command(id=self._ids.next(), message=message, paths=tuple(paths))
        await self.dispatcher.submit(command)
        logger.debug("submitted operation %s: %s", command.id, message)
        return command.id

    def listen(self, operation_id: int) -> OperationChannel:
        """Channel of a live operation. Raises NotFoundError once it has finished."""
        return self.dispatcher.registry.listen(operation_id)

    def get(self, operation_id: int) -> Operation:
        return self.dispatcher.registry.get(operation_id)

    def status(self) -> dict[str, Any]:
        return {
            "running": self.dispatcher.running,
            "inbound": self.dispatcher.inbound,
            "batched": self.dispatcher.batched,
            "operations": len(self.dispatcher.registry),
        }
