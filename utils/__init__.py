from .cache import DedupCache
from .lang import SUPPORTED_LANGUAGES, is_valid_language
from .text import preview, truncate

__all__ = [
    "DedupCache",
    "SUPPORTED_LANGUAGES",
    "is_valid_language",
    "preview",
    "truncate",
]
