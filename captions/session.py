from __future__ import annotations

from typing import Optional

from loguru import logger

from translator.orchestrator import TranslationOrchestrator

from .source import CaptionPoller, CaptionSource


class LiveTranslationSession:
    """Feeds polled captions into the aggregator and triggers translation.

    A completed unit is translated right away; any other change restarts the
    orchestrator's debounce timer. Polling never waits for a translation.
    """

    def __init__(
        self,
        source: CaptionSource,
        orchestrator: TranslationOrchestrator,
        *,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.aggregator = orchestrator.aggregator
        self.poller = CaptionPoller(source, self._on_fragment, poll_interval=poll_interval)

    def _on_fragment(self, fragment: str) -> None:
        formed_before = self.aggregator.units_formed
        self.aggregator.ingest(fragment)
        if self.aggregator.units_formed != formed_before and self.orchestrator.auto_translate:
            self.orchestrator.schedule(0)
        else:
            self.orchestrator.notify_text_changed()

    async def run(self) -> None:
        logger.info("Live translation session started")
        await self.poller.run()

    def stop(self) -> None:
        self.poller.stop()

    async def close(self) -> None:
        self.stop()
        await self.orchestrator.close()
        logger.info("Live translation session closed")
