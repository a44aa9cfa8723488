from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Deque, Iterable, List, Optional, Set

from loguru import logger

from config import SETTINGS
from utils.cache import DedupCache
from utils.text import preview, truncate

from .base import LanguagePair
from .errors import ConfigurationError, ProviderTimeoutError, TranslatorError
from .factory import ProviderCredentials, ProviderRegistry, ProviderSelector

if TYPE_CHECKING:
    from captions.aggregator import TextAggregator


Sink = Callable[[str], None]
Clock = Callable[[], float]


class DispatchStatus(str, Enum):
    TRANSLATED = "translated"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    BUSY = "busy"
    NOTHING_TO_TRANSLATE = "nothing_to_translate"


@dataclass(slots=True)
class TranslationOutcome:
    status: DispatchStatus
    source_text: str | None = None
    translated_text: str | None = None
    error: TranslatorError | None = None

    @property
    def dispatched(self) -> bool:
        return self.status in (DispatchStatus.TRANSLATED, DispatchStatus.FAILED)


class TranslationOrchestrator:
    """Decides what caption text to translate and when.

    At most one dispatch runs at a time (``busy``) and two dispatches never
    start less than ``min_interval`` seconds apart; attempts that arrive too
    early or while busy are dropped, not queued. While auto-translate is on and
    a unit is still waiting, a dropped or failed attempt arms the timer again
    so the unit is picked up once the interval has passed. A unit is
    remembered in the dedup cache only after a successful translation, so
    failed units stay eligible for the next attempt.

    The translator is leased from the registry for the length of a dispatch;
    switching providers meanwhile retires the old client without closing it
    under the request.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        aggregator: TextAggregator,
        *,
        languages: LanguagePair | None = None,
        cache: DedupCache | None = None,
        sinks: Iterable[Sink] = (),
        min_interval: float | None = None,
        max_length: int | None = None,
        dispatch_timeout: float | None = None,
        debounce_delay: float | None = None,
        history_size: int | None = None,
        auto_translate: bool = True,
        clock: Clock = time.monotonic,
    ) -> None:
        pipeline = SETTINGS.pipeline
        self.registry = registry
        self.aggregator = aggregator
        self.languages = languages or LanguagePair(SETTINGS.default_source_lang, SETTINGS.default_target_lang)
        self.cache = cache if cache is not None else DedupCache(
            capacity=pipeline.dedup_capacity, trim=pipeline.dedup_trim
        )
        self.min_interval = pipeline.min_interval if min_interval is None else min_interval
        self.max_length = max_length or pipeline.max_unit_length
        self.dispatch_timeout = dispatch_timeout or SETTINGS.translator.dispatch_timeout
        self.debounce_delay = pipeline.debounce_delay if debounce_delay is None else debounce_delay
        self.auto_translate = auto_translate
        self.history: Deque[str] = deque(maxlen=history_size or pipeline.history_size)
        self._sinks: List[Sink] = list(sinks)
        self._clock = clock
        self._last_dispatch: Optional[float] = None
        self._busy = False
        self._retry_after_dispatch = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def last_dispatch(self) -> Optional[float]:
        return self._last_dispatch

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: Sink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    async def try_translate(self) -> TranslationOutcome:
        if self._busy:
            logger.debug("Dispatch already in flight, skipping")
            self._retry_after_dispatch = True
            return TranslationOutcome(DispatchStatus.BUSY)

        now = self._clock()
        if self._last_dispatch is not None and now - self._last_dispatch < self.min_interval:
            self._retry_later(self.min_interval - (now - self._last_dispatch))
            return TranslationOutcome(DispatchStatus.RATE_LIMITED)

        unit = self.aggregator.next_candidate(self.cache)
        if unit is None:
            logger.debug("No new caption text to translate")
            return TranslationOutcome(DispatchStatus.NOTHING_TO_TRANSLATE)

        try:
            translator = self.registry.acquire()
        except ConfigurationError as exc:
            return self._failed(unit, exc)

        self._busy = True
        self._retry_after_dispatch = False
        languages = self.languages
        try:
            logger.info(f"Translating via {translator.display_name}: {preview(unit)}")
            translated = await asyncio.wait_for(
                translator.translate(truncate(unit, self.max_length), languages.source, languages.target),
                timeout=self.dispatch_timeout,
            )
        except asyncio.TimeoutError:
            return self._failed(
                unit,
                ProviderTimeoutError(translator.display_name, f"no result within {self.dispatch_timeout:g}s"),
            )
        except TranslatorError as exc:
            return self._failed(unit, exc)
        finally:
            self._last_dispatch = now
            self._busy = False
            await self.registry.release(translator)

        self.cache.add(unit)
        self.history.append(translated)
        logger.info(f"Translation result: {preview(translated)}")
        self._notify(translated)
        if self._retry_after_dispatch:
            # a trigger arrived while busy
            self._retry_later(self.min_interval)
        return TranslationOutcome(DispatchStatus.TRANSLATED, source_text=unit, translated_text=translated)

    async def request(self) -> TranslationOutcome:
        """Explicit translate request, honoured even when auto-translate is off."""
        return await self.try_translate()

    def notify_text_changed(self) -> None:
        if self.auto_translate:
            self.schedule()

    def schedule(self, delay: float | None = None) -> None:
        """(Re)start the debounce timer; a pending timer is pushed back, not stacked."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce_delay if delay is None else delay, self._on_timer)

    async def set_language_pair(self, languages: LanguagePair) -> Optional[TranslationOutcome]:
        self.languages = languages
        logger.info(f"Language pair set to {languages.source} -> {languages.target}")
        if self.auto_translate:
            return await self.try_translate()
        return None

    async def swap_languages(self) -> Optional[TranslationOutcome]:
        return await self.set_language_pair(self.languages.swapped())

    async def set_auto_translate(self, enabled: bool) -> Optional[TranslationOutcome]:
        self.auto_translate = enabled
        if enabled:
            return await self.try_translate()
        self._cancel_timer()
        return None

    async def set_provider(
        self,
        selector: ProviderSelector | str,
        credentials: ProviderCredentials | None = None,
    ) -> None:
        # The old client is closed by the registry once an in-flight dispatch releases it
        await self.registry.set_active(selector, credentials)

    def clear(self) -> None:
        self.cache.clear()
        self.aggregator.clear()
        self.history.clear()
        self._last_dispatch = None
        logger.info("Translation state cleared")

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.auto_translate = False
        self._cancel_timer()
        await self.wait_idle()
        self._cancel_timer()
        await self.registry.close()

    def _failed(self, unit: str, error: TranslatorError) -> TranslationOutcome:
        logger.warning(f"Translation failed: {error}")
        self._notify(f"Translation error: {error}")
        self._retry_later(max(self.min_interval, self.debounce_delay))
        return TranslationOutcome(DispatchStatus.FAILED, source_text=unit, error=error)

    def _retry_later(self, delay: float) -> None:
        """Arm the timer for a skipped or failed attempt while a unit is still waiting.

        An earlier pending timer is left alone so retries never push back a trigger.
        """
        if not self.auto_translate or self.aggregator.next_candidate(self.cache) is None:
            return
        delay = max(delay, 0.0)
        loop = asyncio.get_running_loop()
        if self._timer is not None and self._timer.when() <= loop.time() + delay:
            return
        logger.debug(f"Retrying translation in {delay:.2f}s")
        self.schedule(delay)

    def _notify(self, text: str) -> None:
        for sink in list(self._sinks):
            try:
                sink(text)
            except Exception as exc:  # noqa: BLE001
                logger.opt(exception=exc).error(f"Sink {sink!r} failed")

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self.try_translate())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("Scheduled translation crashed")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
