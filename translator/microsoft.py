"""
Microsoft Translator (Azure Cognitive Services, API v3).

Authenticates with a subscription key and region sent as headers.
"""
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from utils.lang import AUTO

from .base import BaseTranslator, TranslationRequest
from .errors import HttpFailureError, MissingCredentialsError, ProtocolError, ProviderApiError


class MicrosoftTranslator(BaseTranslator):
    """Microsoft Translator with subscription-key authentication.

    - "auto" source becomes an empty ``from`` so the service detects it
    - 429 and 5xx are treated as transient and retried
    - other error statuses carry a service error code and are not retried
    """

    name = "microsoft"
    display_name = "Microsoft Translator"
    max_chars_per_request = 5000

    API_URL = "https://api.cognitive.microsofttranslator.com/translate"
    API_VERSION = "3.0"

    LANG_MAP = {
        AUTO: "",
        "zh": "zh-Hans",
    }

    def __init__(self, *, subscription_key: str, region: str, **kwargs: Any) -> None:
        missing = [
            name for name, value in (("subscription_key", subscription_key), ("region", region)) if not value
        ]
        if missing:
            raise MissingCredentialsError(self.display_name, missing)
        super().__init__(**kwargs)
        self.subscription_key = subscription_key
        self.region = region

    def _session_headers(self) -> Dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self.subscription_key,
            "Ocp-Apim-Subscription-Region": self.region,
            "Content-Type": "application/json",
        }

    def build_params(self, request: TranslationRequest) -> List[Tuple[str, str]]:
        params = [("api-version", self.API_VERSION)]
        # An empty source means auto-detect; the service wants it omitted
        if request.source_lang:
            params.append(("from", request.source_lang))
        params.append(("to", request.target_lang))
        return params

    @staticmethod
    def build_body(request: TranslationRequest) -> List[Dict[str, str]]:
        return [{"Text": request.text}]

    async def _translate_once(self, request: TranslationRequest) -> str:
        status, body = await self._send(
            "POST",
            self.API_URL,
            params=self.build_params(request),
            json=self.build_body(request),
        )
        if status == 429 or status >= 500:
            raise HttpFailureError(self.display_name, status, body)
        if status != 200:
            raise self._api_error(status, body)
        return self.parse_response(self._parse_json(body))

    def _api_error(self, status: int, body: str) -> Exception:
        try:
            error = self._parse_json(body)["error"]
            code = error["code"]
        except (ProtocolError, KeyError, TypeError):
            return HttpFailureError(self.display_name, status, body)
        return ProviderApiError(self.display_name, str(code), error.get("message"))

    def parse_response(self, data: Any) -> str:
        try:
            text = data[0]["translations"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProtocolError(self.display_name, "unexpected response shape") from exc
        return text or ""
