from .aggregator import TextAggregator
from .source import CaptionPoller, CaptionSource, FileCaptionSource

__all__ = [
    "TextAggregator",
    "CaptionPoller",
    "CaptionSource",
    "FileCaptionSource",
]
