import asyncio
import logging

import pytest

from errors import PreviewFailedError, PrintFailedError
from margins import MarginKind, MarginPoints, PdfMarginOptions
from models import PrintJob
from surface import PdfOptions, PrintOptions, PrintOutcome


def job(**payload):
    payload.setdefault("html", "<p>x</p>")
    return PrintJob.from_payload(payload)


class TestPreview:

    def test_renders_writes_and_opens(self, surface, dispatcher, opener, tmp_path):
        ok = asyncio.run(dispatcher.dispatch(job(preview=True, landscape=True, marginType="none")))

        assert ok is True
        assert surface.calls_to("render_pdf") == [
            ("render_pdf", PdfOptions(print_background=True, landscape=True, margins=PdfMarginOptions(MarginKind.NONE))),
        ]
        assert len(opener.opened) == 1
        path = opener.opened[0]
        assert path.parent == tmp_path
        assert path.name.startswith("print-tray-preview-")
        assert path.suffix == ".pdf"
        assert path.read_bytes() == surface.pdf_bytes

    def test_does_not_reset_surface(self, surface, dispatcher):
        async def scenario():
            await dispatcher.dispatch(job(preview=True))
            await dispatcher.drain()

        asyncio.run(scenario())
        assert "reset" not in surface.names()
        assert "print" not in surface.names()

    def test_custom_margins_in_points(self, surface, dispatcher):
        asyncio.run(dispatcher.dispatch(job(
            preview=True,
            printBackground=False,
            marginType="custom",
            margins={"top": "1in", "right": "96px", "bottom": "12pt", "left": 0},
        )))

        options = surface.calls_to("render_pdf")[0][1]
        assert options.print_background is False
        assert options.margins == PdfMarginOptions(MarginKind.CUSTOM, MarginPoints(72, 72, 12, 0))

    def test_file_names_are_unique(self, dispatcher, opener):
        async def scenario():
            for _ in range(3):
                await dispatcher.dispatch(job(preview=True))

        asyncio.run(scenario())
        assert len(set(opener.opened)) == 3

    def test_render_failure_becomes_preview_failed(self, surface, dispatcher, opener, caplog):
        surface.failures["render_pdf"] = RuntimeError("renderer crashed")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(PreviewFailedError) as exc:
                asyncio.run(dispatcher.dispatch(job(preview=True)))

        assert exc.value.message == "Print preview failed"
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert "Print preview failed" in caplog.text
        assert opener.opened == []

    def test_open_failure_becomes_preview_failed(self, surface, dispatcher):
        async def broken_open(path):
            raise OSError("no handler for .pdf")

        dispatcher.open_path = broken_open
        with pytest.raises(PreviewFailedError):
            asyncio.run(dispatcher.dispatch(job(preview=True)))


class TestDirectPrint:

    def test_print_options(self, surface, dispatcher):
        ok = asyncio.run(dispatcher.dispatch(job(copies=3, landscape=True, printerName="Label_Printer")))

        assert ok is True
        assert surface.calls_to("print") == [
            ("print", PrintOptions(device_name="Label_Printer", landscape=True, copies=3, print_background=True)),
        ]

    def test_default_device_and_copies(self, surface, dispatcher):
        asyncio.run(dispatcher.dispatch(job(copies=0)))

        options = surface.calls_to("print")[0][1]
        assert options.device_name is None
        assert options.copies == 1

    def test_no_margins_sent_to_device(self, surface, dispatcher):
        asyncio.run(dispatcher.dispatch(job(marginType="custom", margins={"top": "2cm"})))
        assert not hasattr(surface.calls_to("print")[0][1], "margins")

    def test_resets_surface_after_success(self, surface, dispatcher):
        async def scenario():
            await dispatcher.dispatch(job())
            await dispatcher.drain()

        asyncio.run(scenario())
        assert surface.names() == ["print", "reset"]

    def test_reset_failure_is_only_logged(self, surface, dispatcher, caplog):
        surface.failures["reset"] = RuntimeError("page crashed")

        async def scenario():
            result = await dispatcher.dispatch(job())
            await dispatcher.drain()
            return result

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(scenario()) is True
        assert "Failed to reset render surface" in caplog.text

    def test_failure_carries_reason(self, surface, dispatcher):
        surface.outcomes[None] = PrintOutcome(False, "Printer is out of paper")

        with pytest.raises(PrintFailedError) as exc:
            asyncio.run(dispatcher.dispatch(job(printerName="Office")))

        assert exc.value.reason == "Printer is out of paper"
        assert exc.value.code == "PRINT_FAILED"
        assert "reset" not in surface.names()

    def test_failure_without_reason(self, surface, dispatcher):
        surface.outcomes[None] = PrintOutcome(False)

        with pytest.raises(PrintFailedError, match="Unknown print failure"):
            asyncio.run(dispatcher.dispatch(job()))

    def test_surface_exception_becomes_print_failed(self, surface, dispatcher):
        surface.failures["print"] = OSError("spooler unavailable")

        with pytest.raises(PrintFailedError, match="spooler unavailable"):
            asyncio.run(dispatcher.dispatch(job()))
