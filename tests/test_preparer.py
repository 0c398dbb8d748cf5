import asyncio

import pytest

from models import PrintJob
from preparer import (
    PagePreparer,
    bounded_ready_wait,
    html_data_uri,
    page_margin_rule,
    ready_wait_from_config,
    wait_until_ready,
)


def test_html_data_uri_percent_encodes():
    assert html_data_uri("<p>hi there</p>") == "data:text/html;charset=utf-8,%3Cp%3Ehi%20there%3C%2Fp%3E"


def test_html_data_uri_keeps_uri_component_safe_chars():
    assert html_data_uri("a-b_c.d!e~f*g'h(i)") == "data:text/html;charset=utf-8,a-b_c.d!e~f*g'h(i)"


def test_html_data_uri_encodes_non_ascii_as_utf8():
    assert html_data_uri("é") == "data:text/html;charset=utf-8,%C3%A9"


def test_page_margin_rule():
    assert page_margin_rule("0") == "@page { margin: 0 }"


def test_prepare_sequence_for_url(surface):
    job = PrintJob.from_payload({"url": "https://example.com/ticket", "marginType": "minimum"})
    asyncio.run(PagePreparer(surface).prepare(job))

    assert surface.calls == [
        ("load", "https://example.com/ticket", "PrintTray"),
        ("await_ready",),
        ("inject_style", "@page { margin: 0.5cm }", "print-tray-margins"),
    ]


def test_prepare_loads_html_as_data_uri(surface):
    job = PrintJob.from_payload({"html": "<p>hi</p>"})
    asyncio.run(PagePreparer(surface).prepare(job))

    assert surface.calls[0] == ("load", "data:text/html;charset=utf-8,%3Cp%3Ehi%3C%2Fp%3E", None)
    assert surface.calls[2] == ("inject_style", "@page { margin: 1cm }", "print-tray-margins")


def test_url_preferred_when_both_given(surface):
    job = PrintJob.from_payload({"html": "<p>ignored</p>", "url": "https://example.com"})
    asyncio.run(PagePreparer(surface).prepare(job))

    loads = surface.calls_to("load")
    assert loads == [("load", "https://example.com", "PrintTray")]


def test_custom_margins_injected(surface):
    job = PrintJob.from_payload({
        "html": "x",
        "marginType": "custom",
        "margins": {"top": "10", "right": "1cm", "bottom": 0, "left": "4mm"},
    })
    asyncio.run(PagePreparer(surface, style_id="margins").prepare(job))

    assert surface.calls_to("inject_style") == [("inject_style", "@page { margin: 10px 1cm 0 4mm }", "margins")]


def test_load_failure_stops_pipeline(surface):
    surface.failures["load"] = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
    job = PrintJob.from_payload({"url": "https://nowhere.invalid"})

    with pytest.raises(RuntimeError, match="ERR_NAME_NOT_RESOLVED"):
        asyncio.run(PagePreparer(surface).prepare(job))
    assert surface.names() == ["load"]


def test_custom_ready_wait_is_used(surface):
    waited = []

    async def ready_wait(s):
        waited.append(s)

    job = PrintJob.from_payload({"html": "x"})
    asyncio.run(PagePreparer(surface, ready_wait=ready_wait).prepare(job))

    assert waited == [surface]
    assert "await_ready" not in surface.names()


class NeverReady:
    async def await_ready(self):
        await asyncio.Event().wait()


def test_bounded_ready_wait_times_out():
    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(bounded_ready_wait(0.01)(NeverReady()))


def test_ready_wait_from_config(monkeypatch):
    monkeypatch.setattr("config.READY_TIMEOUT", None)
    assert ready_wait_from_config() is wait_until_ready
    assert ready_wait_from_config(5) is not wait_until_ready
