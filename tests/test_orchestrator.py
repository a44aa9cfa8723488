import asyncio
import time

import pytest

from captions.aggregator import TextAggregator
from fakes import FakeRegistry, StubTranslator
from translator import factory
from translator.base import LanguagePair
from translator.errors import LanguagePairError, NetworkError, ProviderTimeoutError
from translator.factory import ProviderRegistry
from translator.orchestrator import DispatchStatus, TranslationOrchestrator


def make_orchestrator(translator, clock, **kwargs):
    received = []
    kwargs.setdefault("min_interval", 1.5)
    orchestrator = TranslationOrchestrator(
        FakeRegistry(translator),
        TextAggregator(max_length=kwargs.pop("unit_length", 200)),
        languages=LanguagePair("auto", "zh"),
        sinks=[received.append],
        clock=clock,
        **kwargs,
    )
    return orchestrator, received


@pytest.mark.asyncio
async def test_end_to_end_single_notification(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)
    orchestrator.aggregator.ingest("Hello world.")

    first = await orchestrator.try_translate()
    second = await orchestrator.try_translate()

    assert first.status is DispatchStatus.TRANSLATED
    assert first.translated_text == "XHello world."
    assert second.status is DispatchStatus.RATE_LIMITED
    assert received == ["XHello world."]

    clock.advance(5)
    third = await orchestrator.try_translate()
    assert third.status is DispatchStatus.NOTHING_TO_TRANSLATE
    assert received == ["XHello world."]


@pytest.mark.asyncio
async def test_repeated_captions_are_translated_once(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)
    for _ in range(5):
        orchestrator.aggregator.ingest("Same sentence.")
        await orchestrator.try_translate()
        clock.advance(2)

    assert received == ["XSame sentence."]
    assert len(stub.requests) == 1


@pytest.mark.asyncio
async def test_rate_limit_rejects_without_side_effects(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)
    orchestrator.aggregator.ingest("One.")
    await orchestrator.try_translate()
    started = orchestrator.last_dispatch

    orchestrator.aggregator.ingest("Two.")
    clock.advance(1.0)
    outcome = await orchestrator.try_translate()
    assert outcome.status is DispatchStatus.RATE_LIMITED
    assert orchestrator.last_dispatch == started
    assert "Two." not in orchestrator.cache

    clock.advance(0.5)
    outcome = await orchestrator.try_translate()
    assert outcome.status is DispatchStatus.TRANSLATED
    assert orchestrator.last_dispatch - started >= 1.5
    assert received == ["XOne.", "XTwo."]


@pytest.mark.asyncio
async def test_long_unit_is_truncated_but_cached_whole(stub, clock):
    orchestrator, _ = make_orchestrator(stub, clock, max_length=5)
    orchestrator.aggregator.ingest("Hello world.")

    await orchestrator.try_translate()

    assert stub.requests[0].text == "Hello"
    assert "Hello world." in orchestrator.cache
    assert "Hello" not in orchestrator.cache


@pytest.mark.asyncio
async def test_failure_reports_error_and_allows_retry(stub, clock):
    stub.error = NetworkError("Stub", "connection error - down")
    orchestrator, received = make_orchestrator(stub, clock)
    orchestrator.aggregator.ingest("Try me.")

    failed = await orchestrator.try_translate()

    assert failed.status is DispatchStatus.FAILED
    assert isinstance(failed.error, NetworkError)
    assert received == ["Translation error: Stub: connection error - down"]
    assert "Try me." not in orchestrator.cache
    assert orchestrator.last_dispatch == clock.now

    stub.error = None
    assert (await orchestrator.try_translate()).status is DispatchStatus.RATE_LIMITED
    clock.advance(1.5)
    retried = await orchestrator.try_translate()
    assert retried.status is DispatchStatus.TRANSLATED
    assert received[-1] == "XTry me."


@pytest.mark.asyncio
async def test_busy_guard_rejects_overlap(stub, clock):
    stub.gate = asyncio.Event()
    orchestrator, received = make_orchestrator(stub, clock, min_interval=0)
    orchestrator.aggregator.ingest("Slow one.")

    in_flight = asyncio.create_task(orchestrator.try_translate())
    await asyncio.sleep(0)
    assert orchestrator.busy

    overlapping = await orchestrator.try_translate()
    assert overlapping.status is DispatchStatus.BUSY

    stub.gate.set()
    outcome = await in_flight
    assert outcome.status is DispatchStatus.TRANSLATED
    assert not orchestrator.busy
    assert received == ["XSlow one."]


@pytest.mark.asyncio
async def test_dispatch_timeout_becomes_timeout_error(stub, clock):
    stub.delay = 1.0
    orchestrator, received = make_orchestrator(stub, clock, dispatch_timeout=0.05)
    orchestrator.aggregator.ingest("Never mind.")

    outcome = await orchestrator.try_translate()

    assert outcome.status is DispatchStatus.FAILED
    assert isinstance(outcome.error, ProviderTimeoutError)
    assert received[0].startswith("Translation error:")
    assert not orchestrator.busy


@pytest.mark.asyncio
async def test_provider_switch_lets_in_flight_dispatch_finish(clock, monkeypatch):
    old = StubTranslator(prefix="OLD:")
    old.gate = asyncio.Event()
    new = StubTranslator(prefix="NEW:")
    built = iter([old, new])
    monkeypatch.setattr(factory, "build_translator", lambda *args, **kwargs: next(built))

    registry = ProviderRegistry()
    await registry.set_active("google")
    received = []
    orchestrator = TranslationOrchestrator(
        registry,
        TextAggregator(),
        languages=LanguagePair("auto", "zh"),
        sinks=[received.append],
        clock=clock,
        min_interval=1.5,
    )
    orchestrator.aggregator.ingest("Keep going.")

    in_flight = asyncio.create_task(orchestrator.try_translate())
    await asyncio.sleep(0.01)
    assert len(old.requests) == 1

    await orchestrator.set_provider("microsoft")
    assert registry.active is new
    assert not old.closed

    old.gate.set()
    outcome = await in_flight

    assert outcome.status is DispatchStatus.TRANSLATED
    assert received == ["OLD:Keep going."]
    assert len(old.requests) == 1
    assert old.closed and old.disposed
    assert not new.closed


@pytest.mark.asyncio
async def test_failed_dispatch_is_retried_later(stub, clock):
    stub.error = NetworkError("Stub", "connection error - down")
    orchestrator, received = make_orchestrator(stub, clock, min_interval=0, debounce_delay=0.02)
    orchestrator.aggregator.ingest("Try again.")

    assert (await orchestrator.try_translate()).status is DispatchStatus.FAILED
    stub.error = None
    await asyncio.sleep(0.05)
    await orchestrator.wait_idle()

    assert received[-1] == "XTry again."
    await orchestrator.close()


@pytest.mark.asyncio
async def test_rate_limited_unit_is_picked_up_after_interval(stub):
    orchestrator, received = make_orchestrator(stub, time.monotonic, min_interval=0.05)
    orchestrator.aggregator.ingest("One.")
    await orchestrator.try_translate()

    orchestrator.aggregator.ingest("Two.")
    assert (await orchestrator.try_translate()).status is DispatchStatus.RATE_LIMITED

    await asyncio.sleep(0.1)
    await orchestrator.wait_idle()
    assert received == ["XOne.", "XTwo."]


@pytest.mark.asyncio
async def test_sink_failure_does_not_block_other_sinks(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)

    def broken(text):
        raise RuntimeError("display gone")

    orchestrator.add_sink(broken)
    later = []
    orchestrator.add_sink(later.append)
    orchestrator.aggregator.ingest("Hi.")

    outcome = await orchestrator.try_translate()

    assert outcome.status is DispatchStatus.TRANSLATED
    assert received == ["XHi."]
    assert later == ["XHi."]


@pytest.mark.asyncio
async def test_missing_provider_is_reported(clock):
    orchestrator, received = make_orchestrator(None, clock)
    orchestrator.aggregator.ingest("Hi.")

    outcome = await orchestrator.try_translate()

    assert outcome.status is DispatchStatus.FAILED
    assert received == ["Translation error: No translation provider selected"]


@pytest.mark.asyncio
async def test_language_change_triggers_translation(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)
    orchestrator.aggregator.ingest("Bonjour.")

    outcome = await orchestrator.set_language_pair(LanguagePair("fr", "en"))

    assert outcome.status is DispatchStatus.TRANSLATED
    assert stub.requests[0].source_lang == "fr"
    assert stub.requests[0].target_lang == "en"


@pytest.mark.asyncio
async def test_language_change_without_auto_translate(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock, auto_translate=False)
    orchestrator.aggregator.ingest("Bonjour.")

    assert await orchestrator.set_language_pair(LanguagePair("fr", "en")) is None
    assert received == []

    outcome = await orchestrator.request()
    assert outcome.status is DispatchStatus.TRANSLATED


@pytest.mark.asyncio
async def test_swap_languages(stub, clock):
    orchestrator, _ = make_orchestrator(stub, clock, auto_translate=False)
    with pytest.raises(LanguagePairError):
        await orchestrator.swap_languages()

    orchestrator.languages = LanguagePair("en", "ja")
    await orchestrator.swap_languages()
    assert orchestrator.languages == LanguagePair("ja", "en")


def test_target_language_cannot_be_auto():
    with pytest.raises(LanguagePairError):
        LanguagePair("en", "auto")
    with pytest.raises(LanguagePairError):
        LanguagePair("en", "xx")


@pytest.mark.asyncio
async def test_clear_resets_cache_and_clock(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock)
    orchestrator.aggregator.ingest("Again.")
    await orchestrator.try_translate()

    orchestrator.clear()
    assert orchestrator.last_dispatch is None
    assert len(orchestrator.cache) == 0

    orchestrator.aggregator.ingest("Again.")
    outcome = await orchestrator.try_translate()
    assert outcome.status is DispatchStatus.TRANSLATED
    assert received == ["XAgain.", "XAgain."]


@pytest.mark.asyncio
async def test_debounce_restart_coalesces_triggers(stub, clock):
    orchestrator, received = make_orchestrator(stub, clock, min_interval=0, debounce_delay=0.05)
    orchestrator.aggregator.ingest("First.")
    orchestrator.notify_text_changed()
    orchestrator.aggregator.ingest("Second.")
    orchestrator.notify_text_changed()

    await asyncio.sleep(0.1)
    await orchestrator.wait_idle()

    assert len(stub.requests) == 1
    assert received == ["XSecond."]


@pytest.mark.asyncio
async def test_history_keeps_recent_translations(stub, clock):
    orchestrator, _ = make_orchestrator(stub, clock, history_size=2)
    for text in ("A.", "B.", "C."):
        orchestrator.aggregator.ingest(text)
        await orchestrator.try_translate()
        clock.advance(2)
    assert list(orchestrator.history) == ["XB.", "XC."]


@pytest.mark.asyncio
async def test_close_releases_registry(stub, clock):
    orchestrator, _ = make_orchestrator(stub, clock)
    await orchestrator.close()
    assert orchestrator.registry.closed
