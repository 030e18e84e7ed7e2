"""SSE relay of operation snapshots."""

import json
import logging
from collections.abc import AsyncGenerator

from backend.web.core.config import SSE_HEARTBEAT_SEC, SSE_RETRY_MS
from core.git import OperationChannel, Status

logger = logging.getLogger(__name__)


async def observe_operation(
    channel: OperationChannel,
    after: int = 0,
    heartbeat: float = SSE_HEARTBEAT_SEC,
) -> AsyncGenerator[dict[str, str], None]:
    """Consume snapshots from an OperationChannel. Yields SSE event dicts.

    Safe to abort: the dispatcher never waits on observers, so a dropped
    connection only ends this generator.
    Each snapshot carries ``id`` = its 1-based position, so a reconnect with
    ``Last-Event-ID: N`` (or ``?after=N``) resumes after the N-th snapshot.
    Failed snapshots use the ``error`` event name. A final ``close`` event
    marks the end of the operation.
    """
    yield {"retry": SSE_RETRY_MS}

    cursor = max(after, 0)
    while True:
        snapshots, new_cursor = await channel.read_with_timeout(cursor, timeout=heartbeat)
        if snapshots is None:
            yield {"comment": "keepalive"}
            continue
        if not snapshots:
            break
        for offset, snapshot in enumerate(snapshots):
            yield {
                "event": "error" if snapshot.status is Status.FAILED else "message",
                "id": str(cursor + offset + 1),
                "data": json.dumps(snapshot.to_dict()),
            }
        cursor = new_cursor

    logger.debug("operation %s stream closed", channel.operation_id)
    yield {"event": "close", "data": "close"}
