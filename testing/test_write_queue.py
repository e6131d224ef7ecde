"""Tests for the single-writer spreadsheet queue."""

import asyncio
import logging
import threading
import time

import pytest

from scorereview.stores import SheetWriteQueue, get_sheet_write_queue


class TestSheetWriteQueue:
    async def test_returns_sync_result(self):
        queue = SheetWriteQueue()
        assert await queue.submit(lambda a, b: a + b, 2, 3) == 5
        await queue.close()

    async def test_runs_coroutine_jobs(self):
        queue = SheetWriteQueue()

        async def job(value):
            await asyncio.sleep(0)
            return value * 2

        assert await queue.submit(job, 21) == 42
        await queue.close()

    async def test_sync_jobs_run_off_the_event_loop(self):
        queue = SheetWriteQueue()
        main_thread = threading.get_ident()

        worker_thread = await queue.submit(threading.get_ident)

        assert worker_thread != main_thread
        await queue.close()

    async def test_jobs_never_overlap(self):
        """Concurrent submissions execute one at a time, in order."""
        queue = SheetWriteQueue()
        active = 0
        max_active = 0
        order: list[int] = []

        def job(n: int) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            time.sleep(0.01)
            order.append(n)
            active -= 1

        await asyncio.gather(*(queue.submit(job, n) for n in range(5)))

        assert max_active == 1
        assert order == [0, 1, 2, 3, 4]
        await queue.close()

    async def test_error_propagates_to_submitter_and_queue_continues(self):
        queue = SheetWriteQueue()

        def fail():
            raise ValueError("bad row")

        with pytest.raises(ValueError, match="bad row"):
            await queue.submit(fail)
        assert await queue.submit(lambda: "still running") == "still running"
        await queue.close()

    async def test_submit_nowait_logs_failures(self, caplog):
        queue = SheetWriteQueue()

        def fail():
            raise RuntimeError("sheets down")

        with caplog.at_level(logging.ERROR, logger="scorereview.stores.write_queue"):
            queue.submit_nowait(fail)
            await queue.join()
            await asyncio.sleep(0)

        assert "Background sheet update failed: sheets down" in caplog.text
        await queue.close()

    async def test_shared_instance(self):
        assert get_sheet_write_queue() is get_sheet_write_queue()
