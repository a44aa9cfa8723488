from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os


BASE_DIR = Path(__file__).resolve().parent
DEFAULT_LOG_PATH = BASE_DIR / "storage" / "caption_translator.log"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0


@dataclass(slots=True)
class TranslatorSettings:
    request_timeout: float = 10.0
    dispatch_timeout: float = 30.0
    proxy_url: str | None = field(default_factory=lambda: os.getenv("TRANSLATOR_PROXY"))


@dataclass(slots=True)
class PipelineSettings:
    max_unit_length: int = field(default_factory=lambda: _env_int("CAPTION_MAX_LENGTH", 200))
    min_interval: float = field(default_factory=lambda: _env_float("CAPTION_MIN_INTERVAL", 1.5))
    debounce_delay: float = field(default_factory=lambda: _env_float("CAPTION_DEBOUNCE", 1.5))
    poll_interval: float = field(default_factory=lambda: _env_float("CAPTION_POLL_INTERVAL", 0.1))
    dedup_capacity: int = 100
    dedup_trim: int = 50
    history_size: int = 10
    terminators: tuple[str, ...] = (".", "。")


@dataclass(slots=True)
class EngineSecrets:
    youdao_app_key: str | None = field(default_factory=lambda: os.getenv("YOUDAO_APP_KEY"))
    youdao_app_secret: str | None = field(default_factory=lambda: os.getenv("YOUDAO_APP_SECRET"))
    microsoft_key: str | None = field(default_factory=lambda: os.getenv("MICROSOFT_TRANSLATOR_KEY"))
    microsoft_region: str | None = field(default_factory=lambda: os.getenv("MICROSOFT_TRANSLATOR_REGION"))


@dataclass(slots=True)
class AppSettings:
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    translator: TranslatorSettings = field(default_factory=TranslatorSettings)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    secrets: EngineSecrets = field(default_factory=EngineSecrets)
    log_path: Path = field(default_factory=lambda: Path(os.getenv("CAPTION_TRANSLATOR_LOG", DEFAULT_LOG_PATH)))
    default_engine: str = field(default_factory=lambda: os.getenv("CAPTION_ENGINE", "microsoft"))
    default_source_lang: str = field(default_factory=lambda: os.getenv("CAPTION_SOURCE", "auto"))
    default_target_lang: str = field(default_factory=lambda: os.getenv("CAPTION_TARGET", "zh"))


SETTINGS = AppSettings()
