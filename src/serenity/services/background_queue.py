"""
Bounded-concurrency background job queue.

Jobs are argument-less coroutine functions. At most ``concurrency`` run at
once; the rest wait in FIFO order. A failing job is logged and dropped,
never retried. The queue belongs to whoever constructs it, so each
process (or test) owns an isolated instance.
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, Set

from loguru import logger

JobFn = Callable[[], Awaitable[None]]


class BackgroundQueue:
    """Runs pushed jobs on the current event loop with bounded concurrency."""

    def __init__(self, concurrency: int = 3):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self._pending: Deque[JobFn] = deque()
        self._tasks: Set[asyncio.Task] = set()
        self._running = 0
        self.completed = 0
        self.failed = 0

    @property
    def running(self) -> int:
        return self._running

    @property
    def pending(self) -> int:
        return len(self._pending)

    def push(self, job: JobFn) -> None:
        """Enqueue a job. Must be called from inside a running event loop."""
        self._pending.append(job)
        self._run_next()

    def _run_next(self) -> None:
        while self._running < self.concurrency and self._pending:
            job = self._pending.popleft()
            self._running += 1
            task = asyncio.get_running_loop().create_task(self._run(job))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, job: JobFn) -> None:
        try:
            await job()
            self.completed += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed += 1
            logger.warning(f"Background job failed: {e}")
        finally:
            self._running -= 1
            self._run_next()

    async def join(self) -> None:
        """Wait until every pushed job, including ones queued meanwhile, has finished."""
        while self._tasks or self._pending:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                self._run_next()
