import asyncio
from typing import Any, Dict, List, Optional

import printer
from dispatcher import OutputDispatcher
from logging_config import get_logger
from models import PrintJob
from preparer import PagePreparer, ready_wait_from_config
from print_queue import PrintQueue
from surface import RenderSurface

logger = get_logger(__name__)


class PrintService:
    """
    Entry point for print requests: validates the payload, then runs
    prepare -> dispatch for it on the shared surface through the queue.
    """

    def __init__(
        self,
        surface: RenderSurface,
        queue: Optional[PrintQueue] = None,
        preparer: Optional[PagePreparer] = None,
        dispatcher: Optional[OutputDispatcher] = None,
    ):
        self.surface = surface
        self.queue = queue or PrintQueue()
        self.preparer = preparer or PagePreparer(surface, ready_wait=ready_wait_from_config())
        self.dispatcher = dispatcher or OutputDispatcher(surface)

    async def start(self) -> None:
        start = getattr(self.surface, 'start', None)
        if start is not None:
            await start()
        self.queue.start()

    async def stop(self) -> None:
        await self.queue.stop()
        await self.dispatcher.drain()
        close = getattr(self.surface, 'close', None)
        if close is not None:
            await close()

    def submit(self, payload: Any) -> asyncio.Future:
        """
        Validate ``payload`` and queue the job. Raises InvalidPayloadError
        before anything is queued; the returned future carries the job result.
        """
        job = PrintJob.from_payload(payload)
        return self.queue.enqueue(lambda: self._run(job))

    async def print(self, payload: Any) -> bool:
        return await self.submit(payload)

    async def _run(self, job: PrintJob) -> bool:
        # the previous job's background reset must not overlap this load
        await self.dispatcher.drain()
        logger.info('Running %s job (%s)', job.source_kind, 'preview' if job.preview else 'direct print')
        await self.preparer.prepare(job)
        return await self.dispatcher.dispatch(job)

    async def list_printers(self) -> List[Dict]:
        return await asyncio.to_thread(printer.list_printers)
