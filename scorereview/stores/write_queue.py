"""
Single-writer queue for spreadsheet mutations.

Approvals arrive concurrently, but row deletes shift indices, so the reads,
deletes and appends of one job must never interleave with another's. One
worker task drains an asyncio.Queue in submission order.

Usage:
    queue = get_sheet_write_queue()
    await queue.submit(store.add_edition, edition)      # wait for the result
    queue.submit_nowait(store.remove_edition, "slug")   # fire and forget
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SheetWriteQueue:
    """FIFO of spreadsheet jobs processed by one worker task.

    Jobs may be coroutine functions or plain callables; plain callables run
    in a worker thread so the blocking Sheets client does not stall the loop.
    """

    def __init__(self) -> None:
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: set[asyncio.Future] = set()

    def _ensure_worker(self) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # Queues are bound to the loop they were first used on
            self._queue = asyncio.Queue()
            self._worker = None
            self._loop = loop
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())
        assert self._queue is not None
        return self._queue

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            fn, args, kwargs, future = await queue.get()
            name = getattr(fn, "__name__", repr(fn))
            try:
                if inspect.iscoroutinefunction(fn):
                    result = await fn(*args, **kwargs)
                else:
                    result = await asyncio.to_thread(fn, *args, **kwargs)
                if not future.cancelled():
                    future.set_result(result)
            except Exception as e:
                logger.debug(f"Sheet job {name} raised {type(e).__name__}: {e}")
                if not future.cancelled():
                    future.set_exception(e)
            finally:
                queue.task_done()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> asyncio.Future:
        """Enqueue a job and return a future resolving to its result."""
        queue = self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        queue.put_nowait((fn, args, kwargs, future))
        logger.debug(f"Queued sheet job {getattr(fn, '__name__', fn)} (depth {queue.qsize()})")
        return future

    def submit_nowait(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> asyncio.Future:
        """Enqueue a job whose failure is logged rather than raised."""
        future = self.submit(fn, *args, **kwargs)
        self._pending.add(future)
        future.add_done_callback(self._log_outcome)
        return future

    def _log_outcome(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background sheet update failed: {error}")

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def close(self) -> None:
        """Drain outstanding jobs and stop the worker."""
        await self.join()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None


_queue: Optional[SheetWriteQueue] = None


def get_sheet_write_queue() -> SheetWriteQueue:
    """Get the process-wide sheet write queue."""
    global _queue
    if _queue is None:
        _queue = SheetWriteQueue()
    return _queue
