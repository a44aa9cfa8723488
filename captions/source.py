from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Protocol

from loguru import logger

from config import SETTINGS
from utils.text import new_tail, preview


FragmentCallback = Callable[[str], None]


class CaptionSource(Protocol):
    def read_caption(self) -> Optional[str]:
        """Current caption text, "" when nothing is shown, None when unavailable."""


class FileCaptionSource:
    """Reads the last non-empty line of a text file another process keeps writing."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read_caption(self) -> Optional[str]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        for line in reversed(content.splitlines()):
            if line.strip():
                return line.strip()
        return ""


class CaptionPoller:
    """Polls a caption source and forwards new text as fragments.

    Only changed, non-empty captions are forwarded. When the caption grew in
    place only the appended tail is passed on. A source that raises or returns
    None is treated as gone for now; polling carries on until it comes back.
    """

    def __init__(
        self,
        source: CaptionSource,
        on_fragment: FragmentCallback,
        *,
        poll_interval: float | None = None,
    ) -> None:
        self.source = source
        self.on_fragment = on_fragment
        self.poll_interval = poll_interval if poll_interval is not None else SETTINGS.pipeline.poll_interval
        self._last_caption = ""
        self._available = True
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def available(self) -> bool:
        return self._available

    def poll_once(self) -> Optional[str]:
        try:
            caption = self.source.read_caption()
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"Caption source read failed: {exc}")
            caption = None

        if caption is None:
            if self._available:
                logger.warning("Caption source unavailable, waiting for it to come back")
                self._available = False
            return None
        if not self._available:
            logger.info("Caption source available again")
            self._available = True

        if not caption or caption == self._last_caption:
            return None

        fragment = new_tail(self._last_caption, caption)
        self._last_caption = caption
        if not fragment:
            return None
        logger.debug(f"Caption received: {preview(fragment)}")
        self.on_fragment(fragment)
        return fragment

    async def run(self) -> None:
        self._running = True
        logger.info(f"Caption polling started ({self.poll_interval * 1000:.0f} ms)")
        try:
            while self._running:
                self.poll_once()
                await asyncio.sleep(self.poll_interval)
        finally:
            self._running = False
            logger.info("Caption polling stopped")

    def stop(self) -> None:
        self._running = False
