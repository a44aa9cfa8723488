"""
Caption Translator Engines

Supported engines:
- Google Translate (public endpoint, no key required)
- Youdao Translate (signed requests, app key + secret)
- Microsoft Translator (subscription key + region)
"""
from .base import BaseTranslator, LanguagePair, TranslationRequest
from .errors import (
    ConfigurationError,
    HttpFailureError,
    LanguagePairError,
    MissingCredentialsError,
    NetworkError,
    ProtocolError,
    ProviderApiError,
    ProviderError,
    ProviderTimeoutError,
    TranslatorError,
    UnsupportedEngineError,
)
from .google import GoogleTranslator
from .microsoft import MicrosoftTranslator
from .youdao import YoudaoTranslator
from .factory import (
    AVAILABLE_ENGINES,
    ProviderCredentials,
    ProviderRegistry,
    ProviderSelector,
    build_translator,
    get_available_engines,
)
from .orchestrator import DispatchStatus, TranslationOrchestrator, TranslationOutcome

__all__ = [
    "BaseTranslator",
    "LanguagePair",
    "TranslationRequest",
    "TranslatorError",
    "ConfigurationError",
    "MissingCredentialsError",
    "UnsupportedEngineError",
    "LanguagePairError",
    "ProviderError",
    "NetworkError",
    "HttpFailureError",
    "ProviderTimeoutError",
    "ProtocolError",
    "ProviderApiError",
    "GoogleTranslator",
    "YoudaoTranslator",
    "MicrosoftTranslator",
    "ProviderSelector",
    "ProviderCredentials",
    "ProviderRegistry",
    "build_translator",
    "get_available_engines",
    "AVAILABLE_ENGINES",
    "DispatchStatus",
    "TranslationOrchestrator",
    "TranslationOutcome",
]
