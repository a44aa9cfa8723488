"""
Youdao Translator (signed OpenAPI requests).

Every request carries a v3 signature:
``sha256(app_key + input + salt + curtime + app_secret)`` as lowercase hex,
where ``input`` is a fixed-size fingerprint of the query text.
"""
from __future__ import annotations

import hashlib
import time
import uuid
from typing import Any, Dict

from .base import BaseTranslator, TranslationRequest
from .errors import HttpFailureError, MissingCredentialsError, ProtocolError, ProviderApiError


def sign_input(text: str) -> str:
    """Text itself up to 20 chars, else first 10 + length + last 10."""
    if len(text) <= 20:
        return text
    return f"{text[:10]}{len(text)}{text[-10:]}"


def compute_sign(app_key: str, app_secret: str, text: str, salt: str, curtime: str) -> str:
    raw = f"{app_key}{sign_input(text)}{salt}{curtime}{app_secret}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class YoudaoTranslator(BaseTranslator):
    name = "youdao"
    display_name = "Youdao Translate"
    max_chars_per_request = 5000

    API_URL = "https://openapi.youdao.com/api"

    LANG_MAP = {
        "zh": "zh-CHS",
    }

    def __init__(self, *, app_key: str, app_secret: str, **kwargs: Any) -> None:
        missing = [name for name, value in (("app_key", app_key), ("app_secret", app_secret)) if not value]
        if missing:
            raise MissingCredentialsError(self.display_name, missing)
        super().__init__(**kwargs)
        self.app_key = app_key
        self.app_secret = app_secret

    def build_form(self, request: TranslationRequest, *, salt: str | None = None, curtime: str | None = None) -> Dict[str, str]:
        salt = salt or str(uuid.uuid4())
        curtime = curtime or str(int(time.time()))
        return {
            "q": request.text,
            "from": request.source_lang,
            "to": request.target_lang,
            "appKey": self.app_key,
            "salt": salt,
            "sign": compute_sign(self.app_key, self.app_secret, request.text, salt, curtime),
            "signType": "v3",
            "curtime": curtime,
        }

    async def _translate_once(self, request: TranslationRequest) -> str:
        status, body = await self._send("POST", self.API_URL, data=self.build_form(request))
        if status != 200:
            raise HttpFailureError(self.display_name, status, body)
        return self.parse_response(self._parse_json(body))

    def parse_response(self, data: Any) -> str:
        if not isinstance(data, dict):
            raise ProtocolError(self.display_name, "unexpected response shape")
        error_code = data.get("errorCode")
        if error_code is not None and str(error_code) != "0":
            raise ProviderApiError(self.display_name, str(error_code))
        translation = data.get("translation")
        if not isinstance(translation, list) or not translation:
            raise ProtocolError(self.display_name, "no translation in response")
        return str(translation[0] or "")
