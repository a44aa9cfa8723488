from __future__ import annotations

from typing import Sequence


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for log lines."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]


def ends_with_terminator(fragment: str, terminators: Sequence[str]) -> bool:
    stripped = fragment.rstrip()
    return any(stripped.endswith(mark) for mark in terminators)


def new_tail(previous: str, current: str) -> str:
    """Return the part of ``current`` that was appended after ``previous``.

    Captions usually grow in place; when ``current`` is not an extension of
    ``previous`` the whole of it is new.
    """
    if previous and current.startswith(previous):
        return current[len(previous):]
    return current
