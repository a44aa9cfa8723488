from __future__ import annotations


class TranslatorError(Exception):
    """Base class for everything the translation layer raises."""


class ConfigurationError(TranslatorError):
    pass


class MissingCredentialsError(ConfigurationError):
    def __init__(self, engine: str, missing: list[str]) -> None:
        self.engine = engine
        self.missing = list(missing)
        super().__init__(f"{engine} requires credentials: {', '.join(self.missing)}")


class UnsupportedEngineError(ConfigurationError):
    pass


class LanguagePairError(ConfigurationError):
    pass


class ProviderError(TranslatorError):
    """A failure reported while talking to a translation provider.

    ``retryable`` tells the retry loop whether another attempt may succeed.
    """

    retryable: bool = False

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class NetworkError(ProviderError):
    retryable = True


class HttpFailureError(NetworkError):
    def __init__(self, provider: str, status: int, body: str = "") -> None:
        self.status = status
        detail = f"HTTP {status}"
        if body:
            detail = f"{detail} - {body[:200]}"
        super().__init__(provider, detail)


class ProviderTimeoutError(NetworkError):
    retryable = False

    def __init__(self, provider: str, message: str = "request timed out, please try again later") -> None:
        super().__init__(provider, message)


class ProtocolError(ProviderError):
    pass


class ProviderApiError(ProviderError):
    def __init__(self, provider: str, code: str, message: str | None = None) -> None:
        self.code = str(code)
        super().__init__(provider, message or f"error code {self.code}")
