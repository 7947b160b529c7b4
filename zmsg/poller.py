"""
Operation poller — waits for an asynchronous node operation.

The node builds shielded transactions in the background and offers no
push channel, so the only way to learn the outcome is to ask. One
call to wait_for_operation() does:

    1. Query the status immediately.
    2. success → return the txid.
       failed  → raise OperationFailed, no retry.
       anything else (queued, executing, or a status this version does
       not recognize) → report progress, sleep ``interval``, query again.
    3. Transport and RPC errors propagate on the spot.

By default there is no bound: the loop ends only on a terminal status
or an error. ``max_attempts`` and ``timeout`` add one (PollTimeout);
``cancel`` stops the loop between queries (PollCancelled), never in
the middle of a request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from zmsg.client import NodeClient, OperationHandle, OperationStatus
from zmsg.errors import (
    MalformedResponse,
    OperationFailed,
    OperationNotFound,
    PollCancelled,
    PollTimeout,
)

logger = logging.getLogger(__name__)

# Seconds between status queries.
POLL_INTERVAL = 1.0

ProgressCallback = Callable[[OperationHandle, int], object]


async def wait_for_operation(
    client: NodeClient,
    op_id: str,
    *,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    max_attempts: int | None = None,
    cancel: asyncio.Event | None = None,
    on_progress: ProgressCallback | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Poll ``op_id`` until it succeeds or fails.

    Args:
        client: Node client.
        op_id: Operation id returned by the transfer call.
        interval: Seconds to wait between queries.
        timeout: Give up after this many seconds. None waits forever.
        max_attempts: Give up after this many status queries. None
            waits forever.
        cancel: Event checked before every query after the first.
        on_progress: Called with (handle, attempt) for each non-terminal
            status. Its return value is ignored.
        sleep: Awaitable sleep. Inject for tests.
        clock: Monotonic clock in seconds. Inject for tests.

    Returns:
        Transaction id of the completed operation.

    Raises:
        OperationFailed: The node reported the operation as failed.
        OperationNotFound: The node does not know ``op_id``.
        PollTimeout: ``timeout`` or ``max_attempts`` was exhausted.
        PollCancelled: ``cancel`` was set.
    """
    started = clock()
    attempt = 0

    while True:
        attempt += 1
        handle = await _query(client, op_id)

        if handle.status is OperationStatus.SUCCESS:
            if not handle.txid:
                raise MalformedResponse(
                    f"operation {op_id} succeeded without a txid",
                    details={"op_id": op_id},
                )
            logger.info("operation %s succeeded: txid %s", op_id, handle.txid)
            return handle.txid

        if handle.status is OperationStatus.FAILED:
            message = handle.error.message if handle.error and handle.error.message else "operation failed"
            code = handle.error.code if handle.error else None
            logger.warning("operation %s failed: %s", op_id, message)
            raise OperationFailed(message, op_id=op_id, code=code)

        if handle.status is OperationStatus.UNKNOWN:
            logger.warning("operation %s has unrecognized status %r, still waiting", op_id, handle.raw_status)
        else:
            logger.debug("operation %s is %s (attempt %d)", op_id, handle.raw_status, attempt)

        if on_progress is not None:
            on_progress(handle, attempt)

        if max_attempts is not None and attempt >= max_attempts:
            raise PollTimeout(
                f"operation {op_id} still {handle.raw_status!r} after {attempt} status checks",
                details={"op_id": op_id, "attempts": attempt},
            )
        elapsed = clock() - started
        if timeout is not None and elapsed >= timeout:
            raise PollTimeout(
                f"operation {op_id} still {handle.raw_status!r} after {elapsed:.1f}s",
                details={"op_id": op_id, "elapsed_s": elapsed},
            )

        await sleep(interval)

        if cancel is not None and cancel.is_set():
            raise PollCancelled(
                f"stopped waiting for operation {op_id}",
                details={"op_id": op_id, "attempts": attempt},
            )


async def _query(client: NodeClient, op_id: str) -> OperationHandle:
    handles = await client.get_operation_status([op_id])
    for handle in handles:
        if handle.op_id == op_id:
            return handle
    raise OperationNotFound(
        f"node has no record of operation {op_id}",
        details={"op_id": op_id},
    )
