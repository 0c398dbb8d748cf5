"""Get a job's content onto the render surface: load, wait for it, apply margins."""

import asyncio
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

import config
from logging_config import get_logger
from margins import css_margin
from models import PrintJob
from surface import RenderSurface

logger = get_logger(__name__)

ReadyWait = Callable[[RenderSurface], Awaitable[None]]

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def html_data_uri(html: str) -> str:
    return 'data:text/html;charset=utf-8,' + quote(html, safe=_URI_COMPONENT_SAFE)


def page_margin_rule(margin_css: str) -> str:
    return f'@page {{ margin: {margin_css} }}'


async def wait_until_ready(surface: RenderSurface) -> None:
    """Wait for "document complete" with no upper bound."""
    await surface.await_ready()


def bounded_ready_wait(timeout: float) -> ReadyWait:
    """A ready-wait that gives up with ``asyncio.TimeoutError`` after ``timeout`` seconds."""
    async def wait(surface: RenderSurface) -> None:
        await asyncio.wait_for(surface.await_ready(), timeout)
    return wait


def ready_wait_from_config(timeout: Optional[float] = None) -> ReadyWait:
    timeout = config.READY_TIMEOUT if timeout is None else timeout
    if timeout is None:
        return wait_until_ready
    return bounded_ready_wait(timeout)


class PagePreparer:
    def __init__(
        self,
        surface: RenderSurface,
        ready_wait: ReadyWait = wait_until_ready,
        user_agent: str = config.USER_AGENT,
        style_id: str = config.MARGIN_STYLE_ID,
    ):
        self.surface = surface
        self.ready_wait = ready_wait
        self.user_agent = user_agent
        self.style_id = style_id

    async def load(self, job: PrintJob) -> None:
        # target is the url when both are given
        if job.source_kind == "url":
            await self.surface.load(job.target, user_agent=self.user_agent)
        else:
            await self.surface.load(html_data_uri(job.target))

    async def inject_margins(self, job: PrintJob) -> None:
        rule = page_margin_rule(css_margin(job.margin_type, job.margins))
        await self.surface.inject_style(rule, self.style_id)

    async def prepare(self, job: PrintJob) -> None:
        logger.debug('Loading %s content', job.source_kind)
        await self.load(job)
        await self.ready_wait(self.surface)
        await self.inject_margins(job)
