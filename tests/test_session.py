import asyncio
import time

import pytest

from captions.aggregator import TextAggregator
from captions.session import LiveTranslationSession
from fakes import FakeRegistry
from translator.base import LanguagePair
from translator.orchestrator import TranslationOrchestrator


class ListSource:
    def __init__(self, captions):
        self.captions = list(captions)

    def read_caption(self):
        return self.captions.pop(0) if self.captions else None


def make_session(stub, clock, captions, **kwargs):
    received = []
    kwargs.setdefault("min_interval", 0)
    orchestrator = TranslationOrchestrator(
        FakeRegistry(stub),
        TextAggregator(),
        languages=LanguagePair("en", "zh"),
        sinks=[received.append],
        clock=clock,
        **kwargs,
    )
    return LiveTranslationSession(ListSource(captions), orchestrator, poll_interval=0.001), received


@pytest.mark.asyncio
async def test_completed_unit_is_translated_without_waiting_for_debounce(stub, clock):
    session, received = make_session(stub, clock, ["Hello", "Hello world."], debounce_delay=60)

    session.poller.poll_once()
    session.poller.poll_once()
    await asyncio.sleep(0.01)
    await session.orchestrator.wait_idle()

    assert received == ["XHello world."]


@pytest.mark.asyncio
async def test_unfinished_text_waits_for_more_input(stub, clock):
    session, received = make_session(stub, clock, ["Hello there"], debounce_delay=0.01)

    session.poller.poll_once()
    await asyncio.sleep(0.05)
    await session.orchestrator.wait_idle()

    assert received == []
    assert session.aggregator.pending_text == "Hello there"


@pytest.mark.asyncio
async def test_auto_translate_off_leaves_units_for_explicit_request(stub, clock):
    session, received = make_session(stub, clock, ["Manual only."], auto_translate=False)

    session.poller.poll_once()
    await asyncio.sleep(0.01)
    assert received == []

    await session.orchestrator.request()
    assert received == ["XManual only."]


@pytest.mark.asyncio
async def test_run_and_close(stub, clock):
    session, received = make_session(stub, clock, ["Short run."], debounce_delay=0.01)

    runner = asyncio.create_task(session.run())
    await asyncio.sleep(0.05)
    await session.close()
    await asyncio.wait_for(runner, timeout=1)

    assert received == ["XShort run."]
    assert session.orchestrator.registry.closed


@pytest.mark.asyncio
async def test_unit_formed_inside_rate_window_is_still_translated(stub):
    session, received = make_session(
        stub,
        time.monotonic,
        ["First one.", "First one. Second one."],
        min_interval=0.1,
        debounce_delay=0.1,
    )

    session.poller.poll_once()
    await asyncio.sleep(0.01)
    await session.orchestrator.wait_idle()
    session.poller.poll_once()

    await asyncio.sleep(0.3)
    await session.orchestrator.wait_idle()

    assert received == ["XFirst one.", "XSecond one."]
    await session.close()
