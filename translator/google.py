"""
Google Translator (public ``translate_a/single`` endpoint).

No API key is needed. The endpoint answers a URL-encoded GET with a nested
array whose first element holds the translated segments.
"""
from __future__ import annotations

import urllib.parse
from typing import Any, Dict

from .base import BaseTranslator, TranslationRequest
from .errors import HttpFailureError, ProtocolError


class GoogleTranslator(BaseTranslator):
    name = "google"
    display_name = "Google Translate"
    max_chars_per_request = 5000

    BASE_URL = "https://translate.googleapis.com/translate_a/single"

    LANG_MAP = {
        "zh": "zh-CN",
    }

    def _session_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9,zh-CN;q=0.8,zh;q=0.7",
        }

    def build_url(self, request: TranslationRequest) -> str:
        params = {
            "client": "gtx",
            "sl": request.source_lang,
            "tl": request.target_lang,
            "dt": "t",
            "source": "input",
            "ie": "UTF-8",
            "oe": "UTF-8",
            "q": request.text,
        }
        query = urllib.parse.urlencode(params, safe="")
        return f"{self.BASE_URL}?{query}"

    async def _translate_once(self, request: TranslationRequest) -> str:
        status, body = await self._send("GET", self.build_url(request))
        if status != 200:
            raise HttpFailureError(self.display_name, status, body)
        return self.parse_response(self._parse_json(body))

    def parse_response(self, data: Any) -> str:
        """Join the first slot of every segment in ``data[0]``, skipping nulls."""
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            raise ProtocolError(self.display_name, "unexpected response shape")
        parts = []
        for segment in data[0]:
            if not isinstance(segment, list) or not segment:
                continue
            if segment[0] is None:
                continue
            parts.append(str(segment[0]))
        return "".join(parts)
