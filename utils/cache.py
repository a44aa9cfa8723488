from __future__ import annotations

from typing import Dict, Iterator


class DedupCache:
    """Insertion-ordered set of caption units that were already translated.

    Once the set grows past ``capacity`` the ``trim`` oldest entries are
    dropped in a single pass. Re-adding an existing entry does not refresh its
    position, so the trim follows first-insertion order rather than recency.
    """

    def __init__(self, *, capacity: int = 100, trim: int = 50) -> None:
        if capacity <= 0 or not 0 < trim <= capacity:
            raise ValueError("trim must be between 1 and capacity")
        self.capacity = capacity
        self.trim = trim
        self._entries: Dict[str, None] = {}

    def __contains__(self, unit: object) -> bool:
        return unit in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def add(self, unit: str) -> None:
        if unit in self._entries:
            return
        self._entries[unit] = None
        if len(self._entries) > self.capacity:
            keep = list(self._entries)[self.trim:]
            self._entries = dict.fromkeys(keep)

    def clear(self) -> None:
        self._entries.clear()
