from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import aiohttp

from config import RetryPolicy, SETTINGS
from utils.lang import AUTO, is_valid_language

from .errors import (
    ConfigurationError,
    LanguagePairError,
    NetworkError,
    ProtocolError,
    ProviderError,
    ProviderTimeoutError,
)


@dataclass(frozen=True, slots=True)
class LanguagePair:
    source: str
    target: str

    def __post_init__(self) -> None:
        if self.target == AUTO:
            raise LanguagePairError("Target language cannot be 'auto'")
        for code in (self.source, self.target):
            if not is_valid_language(code):
                raise LanguagePairError(f"Unsupported language code: {code}")

    @property
    def is_auto(self) -> bool:
        return self.source == AUTO

    def swapped(self) -> "LanguagePair":
        if self.is_auto:
            raise LanguagePairError("Cannot swap languages while the source is auto-detected")
        return LanguagePair(source=self.target, target=self.source)


@dataclass(slots=True)
class TranslationRequest:
    text: str
    source_lang: str
    target_lang: str


class BaseTranslator(ABC):
    """One translation provider.

    Subclasses implement :meth:`_translate_once`, a single network round trip.
    :meth:`translate` wraps it in the shared retry loop: up to
    ``retry_policy.max_attempts`` attempts with ``base_delay * 2**attempt``
    between them. Errors that are not ``retryable`` (timeouts, protocol and
    API errors) abort the loop at once.
    """

    name: str = "base"
    display_name: str = "Base"
    max_chars_per_request: int = 5000
    LANG_MAP: Dict[str, str] = {}

    def __init__(
        self,
        *,
        timeout: float | None = None,
        proxy: str | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else SETTINGS.translator.request_timeout
        self.proxy = proxy
        self.retry_policy = retry_policy or SETTINGS.retry
        self._session: Optional[aiohttp.ClientSession] = None
        self._disposed = False
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _session_headers(self) -> Dict[str, str]:
        return {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session. A closed client never reopens one."""
        if self._disposed:
            raise ConfigurationError(f"{self.display_name} client has been closed")
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self._session = aiohttp.ClientSession(headers=self._session_headers(), timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        self._disposed = True
        if self._session:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    def _map_lang(self, lang: str) -> str:
        return self.LANG_MAP.get(lang.lower(), lang)

    async def _send(self, method: str, url: str, **kwargs: Any) -> Tuple[int, str]:
        """Issue one HTTP request and return ``(status, body)``.

        Timeouts surface as ``ProviderTimeoutError`` and transport failures as
        ``NetworkError``; status codes are left to the caller.
        """
        session = await self._get_session()
        try:
            async with session.request(method, url, proxy=self.proxy, **kwargs) as resp:
                return resp.status, await resp.text()
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(self.display_name) from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(self.display_name, f"connection error - {exc}") from exc

    def _parse_json(self, body: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ProtocolError(self.display_name, f"malformed response - {exc}") from exc

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if not text:
            return ""
        request = TranslationRequest(
            text=text,
            source_lang=self._map_lang(source_lang),
            target_lang=self._map_lang(target_lang),
        )
        return await self._translate_with_retry(request)

    async def _translate_with_retry(self, request: TranslationRequest) -> str:
        attempts = max(1, self.retry_policy.max_attempts)
        attempt = 0
        while True:
            try:
                return await self._translate_once(request)
            except ProviderError as exc:
                if not exc.retryable or attempt + 1 >= attempts:
                    raise
                delay = self.retry_policy.base_delay * (2 ** attempt)
                self.logger.warning(
                    f"{self.display_name} attempt {attempt + 1}/{attempts} failed: {exc}; retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
            attempt += 1

    @abstractmethod
    async def _translate_once(self, request: TranslationRequest) -> str:
        """Perform one request and return the translated text."""

    def __del__(self) -> None:
        session = getattr(self, "_session", None)
        if session and not session.closed:
            try:
                loop = asyncio.get_running_loop()
                loop.create_task(self.close())
            except RuntimeError:
                pass
