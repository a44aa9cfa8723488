from __future__ import annotations

from collections import deque
from typing import Container, Deque, List, Sequence

from loguru import logger

from utils.text import ends_with_terminator, preview


class TextAggregator:
    """Turns a stream of caption fragments into translation units.

    Fragments are appended to a buffer. The buffer becomes a unit when it
    reaches ``max_length`` characters or when a fragment ends with one of the
    ``terminators``. Formed units are kept in a window bounded to
    ``window_factor * max_length`` characters; the newest unit always stays.
    """

    def __init__(
        self,
        *,
        max_length: int = 200,
        terminators: Sequence[str] = (".", "。"),
        window_factor: int = 5,
    ) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self.terminators = tuple(terminators)
        self.window_limit = max_length * window_factor
        self._buffer: List[str] = []
        self._buffered_chars = 0
        self._units: Deque[str] = deque()
        self._window_chars = 0
        self.units_formed = 0

    @property
    def pending_text(self) -> str:
        return "".join(self._buffer)

    @property
    def recent_units(self) -> List[str]:
        return list(self._units)

    def ingest(self, fragment: str) -> None:
        if not fragment:
            return
        self._buffer.append(fragment)
        self._buffered_chars += len(fragment)

        if self._buffered_chars > self.window_limit:
            logger.warning(
                f"Caption buffer exceeded {self.window_limit} chars without a boundary, dropping it"
            )
            self._reset_buffer()
            return

        if self._buffered_chars >= self.max_length or ends_with_terminator(fragment, self.terminators):
            self.flush()

    def next_candidate(self, seen: Container[str]) -> str | None:
        """Newest unit not present in ``seen``; ``seen`` is only read."""
        for unit in reversed(self._units):
            if unit not in seen:
                return unit
        return None

    def clear(self) -> None:
        self._reset_buffer()
        self._units.clear()
        self._window_chars = 0

    def flush(self) -> None:
        """Close the pending buffer as a unit even without a boundary."""
        unit = self.pending_text.strip()
        self._reset_buffer()
        if not unit:
            return
        self._units.append(unit)
        self._window_chars += len(unit)
        self.units_formed += 1
        while len(self._units) > 1 and self._window_chars > self.window_limit:
            dropped = self._units.popleft()
            self._window_chars -= len(dropped)
        logger.debug(f"Caption unit formed: {preview(unit)}")

    def _reset_buffer(self) -> None:
        self._buffer.clear()
        self._buffered_chars = 0
