"""
Turn a prepared page into output: a PDF opened in the desktop viewer
(preview) or a job sent straight to a printer.
"""

import asyncio
import itertools
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional, Set

import config
from errors import PreviewFailedError, PrintFailedError
from logging_config import get_logger
from margins import pdf_margin_options
from models import PrintJob
from surface import PdfOptions, PrintOptions, RenderSurface

logger = get_logger(__name__)

OpenPath = Callable[[Path], Awaitable[None]]


async def open_with_default_app(path: Path) -> None:
    """Ask the OS to open ``path`` with its default handler. Does not wait for the viewer."""
    if sys.platform == 'win32':
        await asyncio.to_thread(os.startfile, str(path))
        return
    opener = 'open' if sys.platform == 'darwin' else 'xdg-open'
    await asyncio.to_thread(
        subprocess.Popen, [opener, str(path)],
        stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
    )


class OutputDispatcher:
    def __init__(
        self,
        surface: RenderSurface,
        open_path: OpenPath = open_with_default_app,
        preview_dir: Optional[str] = None,
    ):
        self.surface = surface
        self.open_path = open_path
        self.preview_dir = Path(preview_dir or config.PREVIEW_DIR)
        self._seq = itertools.count(1)
        self._resets: Set[asyncio.Task] = set()

    async def dispatch(self, job: PrintJob) -> bool:
        if job.preview:
            return await self.preview(job)
        return await self.direct_print(job)

    def _preview_path(self) -> Path:
        # timestamp plus a per-process counter keeps same-millisecond jobs apart
        token = f'{int(time.time() * 1000)}-{next(self._seq)}'
        return self.preview_dir / f'{config.PREVIEW_PREFIX}{token}.pdf'

    async def preview(self, job: PrintJob) -> bool:
        options = PdfOptions(
            print_background=job.print_background,
            landscape=job.landscape,
            margins=pdf_margin_options(job.margin_type, job.margins),
        )
        try:
            data = await self.surface.render_pdf(options)
            path = self._preview_path()
            await asyncio.to_thread(path.write_bytes, data)
            await self.open_path(path)
        except Exception as e:
            logger.exception('Print preview failed')
            raise PreviewFailedError() from e
        logger.info('Preview opened: %s', path)
        # the surface is left as is: the user may still be looking at it
        return True

    async def direct_print(self, job: PrintJob) -> bool:
        options = PrintOptions(
            device_name=job.printer_name,
            landscape=job.landscape,
            copies=job.copies,
            print_background=job.print_background,
        )
        try:
            outcome = await self.surface.print(options)
        except Exception as e:
            raise PrintFailedError(str(e) or type(e).__name__, job.printer_name) from e
        if not outcome.success:
            raise PrintFailedError(outcome.failure_reason, job.printer_name)
        logger.info('Printed %d cop%s on %s', job.copies, 'y' if job.copies == 1 else 'ies', job.printer_name or 'default printer')
        task = asyncio.create_task(self._reset_surface(), name='surface-reset')
        self._resets.add(task)
        task.add_done_callback(self._resets.discard)
        return True

    async def _reset_surface(self) -> None:
        try:
            await self.surface.reset()
        except Exception as e:
            logger.warning('Failed to reset render surface after job: %s', e)

    async def drain(self) -> None:
        """Wait for background surface resets still in flight."""
        if self._resets:
            await asyncio.gather(*list(self._resets))
