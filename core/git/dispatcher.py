"""Single worker that serializes every repository mutation.

The dispatcher owns the backend and the operation registry. Each loop
iteration runs exactly one branch, in priority order:

1. a submitted command is waiting: stage + commit it, then batch it for push
2. the push deadline has passed: push the whole batch once
3. otherwise: pull if due, then wait for the next command or deadline

Backend calls run in a worker thread one at a time so the event loop stays
responsive while git works.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from core.git.backend import Backend
from core.git.errors import BackendError, DriveError, NotFoundError
from core.git.registry import OperationRegistry
from core.git.types import PROGRESS, Command, Stage, Status
from core.queue.bounded import BoundedQueue

logger = logging.getLogger(__name__)

QUEUE_MAX_SIZE = 20
PUSH_INTERVAL_SEC = 5.0
PULL_INTERVAL_SEC = 1.0

STOPPED_MESSAGE = "pipeline stopped before the command was applied"


class Dispatcher:
    def __init__(
        self,
        backend: Backend,
        *,
        queue_size: int = QUEUE_MAX_SIZE,
        inbound_size: int = QUEUE_MAX_SIZE,
        push_interval: float = PUSH_INTERVAL_SEC,
        pull_interval: float = PULL_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._backend = backend
        self.registry = OperationRegistry()
        self._batch: BoundedQueue[Command] = BoundedQueue(queue_size)
        self._inbound: asyncio.Queue[Command] = asyncio.Queue(maxsize=inbound_size)
        self._push_interval = push_interval
        self._pull_interval = pull_interval
        self._clock = clock

        self._push_deadline = 0.0
        self._next_pull = 0.0
        self._ready: Command | None = None
        self._idle_wait: asyncio.Future | None = None
        self._task: asyncio.Task | None = None
        self._stopping = False
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def batched(self) -> int:
        return len(self._batch)

    @property
    def inbound(self) -> int:
        return self._inbound.qsize()

    async def start(self) -> None:
        """Open the working copy and launch the loop. Open failures propagate."""
        if self._task is not None:
            raise DriveError("dispatcher already started")
        await asyncio.to_thread(self._backend.open_or_clone)
        self._stopping = False
        self._closed = False
        self._task = asyncio.create_task(self.run(), name="git-dispatcher")
        logger.info(
            "dispatcher started (push every %.1fs, batch capacity %d)",
            self._push_interval,
            self._batch.capacity,
        )

    async def stop(self) -> None:
        """Finish the current step, fail unapplied commands and push what is committed."""
        if self._task is None:
            return
        self._stopping = True
        if self._idle_wait is not None:
            self._idle_wait.cancel()
        try:
            await self._task
        finally:
            self._task = None
        logger.info("dispatcher stopped")

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, command: Command) -> None:
        """Register the command's operation and hand the command to the loop.

        Registration is synchronous, so the operation is listenable as soon as
        this is called. Only waits when the inbound queue is full. If the wait
        is cancelled, or the loop shuts down meanwhile, the operation is failed
        before the error propagates.
        """
        if self._stopping:
            raise DriveError("dispatcher is stopping")
        self.registry.create(command)
        self.registry.advance(command.id, Stage.QUEUED, PROGRESS[Stage.QUEUED])
        try:
            await self._inbound.put(command)
        except BaseException:
            self._fail(command.id, "submission cancelled before the command was queued")
            raise
        if self._closed:
            # the loop drained the inbound queue for the last time while we waited for room
            self._fail_inbound()
            raise DriveError("dispatcher stopped before the command was queued")

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        self._push_deadline = self._clock() + self._push_interval
        self._next_pull = self._clock()
        while not self._stopping:
            try:
                await self._step()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("dispatcher step failed")
        await self._shutdown()

    async def _step(self) -> None:
        command = self._take_command()
        if command is not None:
            await self._apply(command)
        elif self._clock() >= self._push_deadline:
            self._push_deadline = self._clock() + self._push_interval
            await self._flush()
        else:
            await self._idle()

    def _take_command(self) -> Command | None:
        if self._ready is not None:
            command, self._ready = self._ready, None
            return command
        try:
            return self._inbound.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def _apply(self, command: Command) -> None:
        op_id = command.id
        try:
            await asyncio.to_thread(self._backend.stage, command.paths)
            self.registry.advance(op_id, Stage.ADD, PROGRESS[Stage.ADD])
            await asyncio.to_thread(self._backend.commit, command.message)
            self.registry.advance(op_id, Stage.COMMIT, PROGRESS[Stage.COMMIT])
        except BackendError as e:
            logger.warning("error while processing command %s: %s", op_id, e)
            self._fail(op_id, str(e))
            return
        except Exception as e:
            logger.exception("unexpected error while processing command %s", op_id)
            self._fail(op_id, str(e) or type(e).__name__)
            return

        logger.debug("committed %s: %s", op_id, command.message)
        for evicted in self._batch.enqueue(command):
            logger.warning("push queue full, evicting operation %s", evicted.id)
            self._fail(
                evicted.id,
                f"evicted from push queue (capacity {self._batch.capacity}) before push",
            )

    async def _flush(self) -> None:
        # ids are captured before the registry is mutated
        ids = [command.id for command in self._batch.drain()]
        if not ids:
            return
        for op_id in ids:
            self.registry.advance(op_id, Stage.PUSH, PROGRESS[Stage.PUSH])

        try:
            await asyncio.to_thread(self._backend.push)
        except BackendError as e:
            logger.warning("error while pushing %d operation(s): %s", len(ids), e)
            status, data = Status.FAILED, str(e)
        except Exception as e:
            logger.exception("unexpected error while pushing %d operation(s)", len(ids))
            status, data = Status.FAILED, str(e) or type(e).__name__
        else:
            logger.info("pushed %d operation(s)", len(ids))
            status, data = Status.SUCCESS, ""

        for op_id in ids:
            self.registry.finish(op_id, status, data)

    async def _idle(self) -> None:
        if self._clock() >= self._next_pull:
            try:
                await asyncio.to_thread(self._backend.pull)
            except BackendError as e:
                logger.warning("error while pulling: %s", e)
            finally:
                self._next_pull = self._clock() + self._pull_interval

        timeout = min(self._push_deadline, self._next_pull) - self._clock()
        if timeout <= 0 or self._stopping:
            return

        waiter = asyncio.ensure_future(self._inbound.get())
        self._idle_wait = waiter
        try:
            await asyncio.wait({waiter}, timeout=timeout)
        finally:
            self._idle_wait = None
            if not waiter.done():
                waiter.cancel()
        if waiter.done() and not waiter.cancelled():
            self._ready = waiter.result()

    async def _shutdown(self) -> None:
        if self._ready is not None:
            self._fail(self._ready.id, STOPPED_MESSAGE)
            self._ready = None
        self._fail_inbound()
        # submitters still waiting for room fail their own operation from here on
        self._closed = True
        await self._flush()

    def _fail_inbound(self) -> None:
        while True:
            try:
                command = self._inbound.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._fail(command.id, STOPPED_MESSAGE)

    def _fail(self, op_id: int, message: str) -> None:
        try:
            self.registry.finish(op_id, Status.FAILED, message)
        except NotFoundError:
            logger.debug("operation %s already gone", op_id)
