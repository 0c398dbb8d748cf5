"""
One-at-a-time execution of print jobs.

All jobs share a single render surface, so a job must not start before every
job submitted ahead of it has settled. ``PrintQueue`` runs a single worker
task that takes entries off an ``asyncio.Queue`` in submission order and
awaits each one to completion. A failing job rejects its own future and is
logged; the worker moves on to the next entry.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from errors import QueueTaskError
from logging_config import get_logger

logger = get_logger(__name__)

Job = Callable[[], Awaitable[Any]]


@dataclass
class _Entry:
    job: Job
    future: asyncio.Future
    label: str = field(default_factory=lambda: uuid.uuid4().hex[:8])


class PrintQueue:
    def __init__(self):
        self._entries: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def pending(self) -> int:
        return self._entries.qsize() if self._entries is not None else 0

    def start(self) -> None:
        """Start the worker on the running loop. ``enqueue`` does this on demand."""
        if self.running:
            return
        if self._entries is None:
            self._entries = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(), name='print-queue')

    async def stop(self) -> None:
        """Let already enqueued jobs finish, then end the worker."""
        if not self.running:
            return
        await self._entries.put(None)
        await self._worker
        self._worker = None

    def enqueue(self, job: Job, label: Optional[str] = None) -> asyncio.Future:
        """
        Schedule ``job`` after everything already queued.

        The returned future settles with this job's own result or exception.
        Must be called from within the event loop.
        """
        self.start()
        future = asyncio.get_running_loop().create_future()
        entry = _Entry(job, future) if label is None else _Entry(job, future, label)
        self._entries.put_nowait(entry)
        logger.debug('Job %s queued (%d waiting)', entry.label, self._entries.qsize())
        return future

    async def _run(self) -> None:
        while True:
            entry = await self._entries.get()
            try:
                if entry is None:
                    return
                await self._execute(entry)
            finally:
                self._entries.task_done()

    async def _execute(self, entry: _Entry) -> None:
        try:
            result = await entry.job()
        except asyncio.CancelledError:
            if not entry.future.done():
                entry.future.cancel()
            # the worker itself is being cancelled: stop here
            if asyncio.current_task().cancelling():
                raise
            logger.warning('Job %s was cancelled', entry.label)
            return
        except Exception as e:
            self.failed += 1
            err = QueueTaskError(entry.label, e)
            logger.error('%s', err, exc_info=e)
            if not entry.future.done():
                entry.future.set_exception(e)
            return
        logger.debug('Job %s finished', entry.label)
        # a caller that stopped waiting has cancelled its future
        if not entry.future.done():
            entry.future.set_result(result)
