"""
Translator Factory

Builds translator instances and keeps exactly one of them active.
Supports: Google, Youdao, Microsoft
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from config import SETTINGS, EngineSecrets
from .base import BaseTranslator
from .errors import ConfigurationError, MissingCredentialsError, UnsupportedEngineError
from .google import GoogleTranslator
from .microsoft import MicrosoftTranslator
from .youdao import YoudaoTranslator


class ProviderSelector(str, Enum):
    GOOGLE = "google"
    YOUDAO = "youdao"
    MICROSOFT = "microsoft"

    @classmethod
    def parse(cls, value: "ProviderSelector | str") -> "ProviderSelector":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            raise UnsupportedEngineError(f"Unsupported translator engine: {value}") from exc


# Available translation engines
AVAILABLE_ENGINES = {
    ProviderSelector.GOOGLE.value: "Google Translate",
    ProviderSelector.YOUDAO.value: "Youdao Translate (app key + secret)",
    ProviderSelector.MICROSOFT.value: "Microsoft Translator (subscription key + region)",
}


def get_available_engines() -> dict[str, str]:
    """Get available translation engines with display names."""
    return AVAILABLE_ENGINES.copy()


@dataclass(frozen=True, slots=True)
class ProviderCredentials:
    youdao_app_key: str | None = None
    youdao_app_secret: str | None = None
    microsoft_key: str | None = None
    microsoft_region: str | None = None

    @classmethod
    def from_secrets(cls, secrets: EngineSecrets) -> "ProviderCredentials":
        return cls(
            youdao_app_key=secrets.youdao_app_key,
            youdao_app_secret=secrets.youdao_app_secret,
            microsoft_key=secrets.microsoft_key,
            microsoft_region=secrets.microsoft_region,
        )


def build_translator(
    engine: ProviderSelector | str,
    credentials: Optional[ProviderCredentials] = None,
    *,
    proxy: Optional[str] = None,
    timeout: Optional[float] = None,
) -> BaseTranslator:
    """Build a translator instance.

    Args:
        engine: Selector or name of the engine (google, youdao, microsoft)
        credentials: Provider secrets (falls back to settings)
        proxy: Optional proxy URL
        timeout: Per-request timeout in seconds

    Raises:
        UnsupportedEngineError: If the engine is unknown
        MissingCredentialsError: If the engine needs secrets that are absent
    """
    selector = ProviderSelector.parse(engine)
    creds = credentials or ProviderCredentials.from_secrets(SETTINGS.secrets)
    proxy = proxy or SETTINGS.translator.proxy_url
    timeout = timeout if timeout is not None else SETTINGS.translator.request_timeout

    if selector is ProviderSelector.GOOGLE:
        return GoogleTranslator(proxy=proxy, timeout=timeout)

    if selector is ProviderSelector.YOUDAO:
        return YoudaoTranslator(
            app_key=creds.youdao_app_key or "",
            app_secret=creds.youdao_app_secret or "",
            proxy=proxy,
            timeout=timeout,
        )

    return MicrosoftTranslator(
        subscription_key=creds.microsoft_key or "",
        region=creds.microsoft_region or "",
        proxy=proxy,
        timeout=timeout,
    )


class ProviderRegistry:
    """Owns the single active translator.

    Switching providers validates the new configuration before touching the
    current client. Callers lease the active client with :meth:`acquire` and
    hand it back with :meth:`release`; a client replaced while leased is only
    closed when its last lease is released, so a dispatch already running on
    it finishes normally.
    """

    def __init__(
        self,
        credentials: Optional[ProviderCredentials] = None,
        *,
        proxy: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.credentials = credentials
        self.proxy = proxy
        self.timeout = timeout
        self._selector: Optional[ProviderSelector] = None
        self._active: Optional[BaseTranslator] = None
        self._leases: Counter = Counter()
        self._retired: Set[BaseTranslator] = set()
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def selector(self) -> Optional[ProviderSelector]:
        return self._selector

    @property
    def active(self) -> BaseTranslator:
        if self._active is None:
            raise ConfigurationError("No translation provider selected")
        return self._active

    def acquire(self) -> BaseTranslator:
        translator = self.active
        self._leases[translator] += 1
        return translator

    async def release(self, translator: BaseTranslator) -> None:
        self._leases[translator] -= 1
        if self._leases[translator] > 0:
            return
        del self._leases[translator]
        if translator in self._retired:
            self._retired.discard(translator)
            await translator.close()
            self.logger.debug(f"Closed retired provider {translator.display_name}")

    async def _retire(self, translator: BaseTranslator) -> None:
        if self._leases[translator] > 0:
            self._retired.add(translator)
        else:
            self._leases.pop(translator, None)
            await translator.close()

    async def set_active(
        self,
        selector: ProviderSelector | str,
        credentials: Optional[ProviderCredentials] = None,
    ) -> BaseTranslator:
        selector = ProviderSelector.parse(selector)
        if credentials is not None:
            self.credentials = credentials
        try:
            translator = build_translator(
                selector,
                self.credentials,
                proxy=self.proxy,
                timeout=self.timeout,
            )
        except MissingCredentialsError as exc:
            self.logger.error(f"Cannot activate {selector.value}: {exc}")
            raise

        previous = self._active
        self._selector = selector
        self._active = translator
        if previous is not None:
            await self._retire(previous)
        self.logger.info(f"Active translation provider: {translator.display_name}")
        return translator

    async def close(self) -> None:
        if self._active is not None:
            await self._retire(self._active)
            self._active = None
            self._selector = None
