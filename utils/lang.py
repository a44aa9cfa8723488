from __future__ import annotations

AUTO = "auto"

SUPPORTED_LANGUAGES: dict[str, str] = {
    AUTO: "Auto detect",
    "zh": "Chinese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "es": "Spanish",
    "ru": "Russian",
    "de": "German",
    "it": "Italian",
    "tr": "Turkish",
    "pt": "Portuguese",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "th": "Thai",
    "ms": "Malay",
    "ar": "Arabic",
    "hi": "Hindi",
}


def is_valid_language(code: str) -> bool:
    return code in SUPPORTED_LANGUAGES


def source_languages() -> dict[str, str]:
    return dict(SUPPORTED_LANGUAGES)


def target_languages() -> dict[str, str]:
    # "auto" only makes sense on the source side
    return {code: name for code, name in SUPPORTED_LANGUAGES.items() if code != AUTO}
