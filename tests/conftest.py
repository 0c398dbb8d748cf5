import asyncio
from pathlib import Path

import pytest

from dispatcher import OutputDispatcher
from service import PrintService
from surface import PrintOutcome


class RecordingSurface:
    """Render surface double that records every call in order."""

    def __init__(self):
        self.calls = []
        self.current = None
        self.pdf_bytes = b'%PDF-1.4 test document'
        self.outcomes = {}      # loaded target -> PrintOutcome
        self.failures = {}      # operation name -> exception to raise

    async def _record(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.failures.get(name)
        if exc is not None:
            raise exc
        # give other tasks a chance to interleave
        await asyncio.sleep(0)

    def names(self):
        return [c[0] for c in self.calls]

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    async def load(self, target, user_agent=None):
        self.current = target
        await self._record('load', target, user_agent)

    async def await_ready(self):
        await self._record('await_ready')

    async def inject_style(self, css, element_id):
        await self._record('inject_style', css, element_id)

    async def render_pdf(self, options):
        await self._record('render_pdf', options)
        return self.pdf_bytes

    async def print(self, options):
        await self._record('print', options)
        return self.outcomes.get(self.current, PrintOutcome(True))

    async def reset(self):
        await self._record('reset')
        self.current = 'about:blank'


class RecordingOpener:
    def __init__(self):
        self.opened = []

    async def __call__(self, path: Path):
        self.opened.append(path)


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def opener():
    return RecordingOpener()


@pytest.fixture
def dispatcher(surface, opener, tmp_path):
    return OutputDispatcher(surface, open_path=opener, preview_dir=str(tmp_path))


@pytest.fixture
def service(surface, dispatcher):
    return PrintService(surface, dispatcher=dispatcher)
