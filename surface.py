"""
The page-rendering surface print jobs run against.

``RenderSurface`` is the whole contract the pipeline relies on. Only one job
touches a surface at a time; the queue guarantees that, the surface does not.
``PlaywrightSurface`` implements it with one headless Chromium page.
"""

import asyncio
import os
import tempfile
from dataclasses import dataclass
from typing import Optional, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright

import printer
from logging_config import get_logger
from margins import MarginKind, PdfMarginOptions

logger = get_logger(__name__)

BLANK_PAGE = 'about:blank'

_READY_SCRIPT = """
() => new Promise(resolve => {
  if (document.readyState === 'complete') resolve();
  else window.addEventListener('load', () => resolve(), { once: true });
})
"""

_INJECT_STYLE_SCRIPT = """
({ id, css }) => {
  const existing = document.getElementById(id);
  if (existing) existing.remove();
  const style = document.createElement('style');
  style.id = id;
  style.textContent = css;
  (document.head || document.documentElement).appendChild(style);
}
"""

# Page margins for the fixed PDF margin kinds
_KIND_MARGINS = {
    MarginKind.NONE: '0',
    MarginKind.MINIMUM: '0.5cm',
    MarginKind.DEFAULT: '1cm',
}


@dataclass(frozen=True)
class PdfOptions:
    print_background: bool = True
    landscape: bool = False
    margins: PdfMarginOptions = PdfMarginOptions(MarginKind.DEFAULT)


@dataclass(frozen=True)
class PrintOptions:
    device_name: Optional[str] = None
    landscape: bool = False
    copies: int = 1
    print_background: bool = True


@dataclass(frozen=True)
class PrintOutcome:
    success: bool
    failure_reason: Optional[str] = None


class RenderSurface(Protocol):
    async def load(self, target: str, user_agent: Optional[str] = None) -> None: ...

    async def await_ready(self) -> None: ...

    async def inject_style(self, css: str, element_id: str) -> None: ...

    async def render_pdf(self, options: PdfOptions) -> bytes: ...

    async def print(self, options: PrintOptions) -> PrintOutcome: ...

    async def reset(self) -> None: ...


def playwright_margin(margins: PdfMarginOptions) -> dict:
    """Translate a margin kind into Playwright's ``page.pdf(margin=...)`` mapping."""
    if margins.kind == MarginKind.CUSTOM and margins.points is not None:
        # Playwright has no pt unit; 72pt = 1in
        p = margins.points
        return {side: f'{getattr(p, side) / 72}in' for side in ('top', 'right', 'bottom', 'left')}
    value = _KIND_MARGINS.get(margins.kind, _KIND_MARGINS[MarginKind.DEFAULT])
    return {'top': value, 'right': value, 'bottom': value, 'left': value}


class PlaywrightSurface:
    """Headless Chromium page. ``start()`` before use, ``close()`` when done."""

    def __init__(self, headless: bool = True):
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        await self._ensure_page()
        logger.info('Render surface started (headless=%s)', self.headless)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            self._page = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _ensure_page(self) -> Page:
        if self._browser is None:
            await self.start()
        if self._page is None or self._page.is_closed():
            self._page = await self._browser.new_page()
            self._page.on('close', lambda _: logger.warning('Render page closed; it will be recreated'))
            await self._page.goto(BLANK_PAGE)
        return self._page

    async def load(self, target: str, user_agent: Optional[str] = None) -> None:
        page = await self._ensure_page()
        await page.set_extra_http_headers({'User-Agent': user_agent} if user_agent else {})
        await page.goto(target)

    async def await_ready(self) -> None:
        page = await self._ensure_page()
        await page.evaluate(_READY_SCRIPT)

    async def inject_style(self, css: str, element_id: str) -> None:
        page = await self._ensure_page()
        await page.evaluate(_INJECT_STYLE_SCRIPT, {'id': element_id, 'css': css})

    async def render_pdf(self, options: PdfOptions) -> bytes:
        page = await self._ensure_page()
        return await page.pdf(
            print_background=options.print_background,
            landscape=options.landscape,
            margin=playwright_margin(options.margins),
        )

    async def print(self, options: PrintOptions) -> PrintOutcome:
        """
        Print the current page on a device. The page is rendered with its own
        ``@page`` CSS, spooled through a temporary PDF, and the file removed
        once the print command returns.
        """
        page = await self._ensure_page()
        data = await page.pdf(
            print_background=options.print_background,
            landscape=options.landscape,
            prefer_css_page_size=True,
        )
        fd, path = tempfile.mkstemp(prefix='print-tray-job-', suffix='.pdf')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            res = await asyncio.to_thread(printer.print_pdf, path, options.device_name, options.copies)
        finally:
            try:
                os.remove(path)
            except OSError as e:
                logger.warning('Could not remove spool file %s: %s', path, e)
        if res.get('ok'):
            return PrintOutcome(True)
        return PrintOutcome(False, res.get('error'))

    async def reset(self) -> None:
        page = await self._ensure_page()
        await page.set_extra_http_headers({})
        await page.goto(BLANK_PAGE)
