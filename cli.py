from __future__ import annotations

import asyncio
from pathlib import Path
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from captions.aggregator import TextAggregator
from captions.session import LiveTranslationSession
from captions.source import FileCaptionSource
from config import SETTINGS
from translator.base import LanguagePair
from translator.errors import ConfigurationError
from translator.factory import ProviderCredentials, ProviderRegistry, get_available_engines
from translator.orchestrator import DispatchStatus, TranslationOrchestrator
from utils.lang import source_languages, target_languages
from utils.logging_config import configure_logging

app = typer.Typer(add_completion=False)
console = Console()


def _run_async(coro):
    return asyncio.run(coro)


def _credentials(
    youdao_key: str | None,
    youdao_secret: str | None,
    microsoft_key: str | None,
    microsoft_region: str | None,
) -> ProviderCredentials:
    secrets = SETTINGS.secrets
    return ProviderCredentials(
        youdao_app_key=youdao_key or secrets.youdao_app_key,
        youdao_app_secret=youdao_secret or secrets.youdao_app_secret,
        microsoft_key=microsoft_key or secrets.microsoft_key,
        microsoft_region=microsoft_region or secrets.microsoft_region,
    )


def _build_orchestrator(
    registry: ProviderRegistry,
    *,
    source: str,
    target: str,
    max_length: int,
    interval: float,
) -> TranslationOrchestrator:
    pipeline = SETTINGS.pipeline
    aggregator = TextAggregator(max_length=max_length, terminators=pipeline.terminators)
    return TranslationOrchestrator(
        registry,
        aggregator,
        languages=LanguagePair(source=source, target=target),
        min_interval=interval,
        max_length=max_length,
    )


@app.command(help="Follow a caption file and print translations as they arrive")
def run(
    caption_file: Path = typer.Argument(..., help="Text file whose last line is the current caption"),
    engine: str = typer.Option(SETTINGS.default_engine, "--engine", "-e"),
    source: str = typer.Option(SETTINGS.default_source_lang, "--source", "-s", help="Source language code or 'auto'"),
    target: str = typer.Option(SETTINGS.default_target_lang, "--target", "-t"),
    max_length: int = typer.Option(SETTINGS.pipeline.max_unit_length, "--max-length", help="Longest unit sent to the provider"),
    interval: float = typer.Option(SETTINGS.pipeline.min_interval, "--interval", help="Minimum seconds between translations"),
    proxy: str | None = typer.Option(None, help="Proxy URL for provider requests"),
    youdao_key: str | None = typer.Option(None, help="Override Youdao app key"),
    youdao_secret: str | None = typer.Option(None, help="Override Youdao app secret"),
    microsoft_key: str | None = typer.Option(None, help="Override Microsoft Translator subscription key"),
    microsoft_region: str | None = typer.Option(None, help="Override Microsoft Translator region"),
    log_file: Path | None = typer.Option(None, help="Also write debug logs to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    configure_logging(log_file, verbose=verbose)
    credentials = _credentials(youdao_key, youdao_secret, microsoft_key, microsoft_region)

    async def runner() -> None:
        registry = ProviderRegistry(credentials, proxy=proxy)
        await registry.set_active(engine)
        orchestrator = _build_orchestrator(
            registry, source=source, target=target, max_length=max_length, interval=interval
        )
        orchestrator.add_sink(lambda text: console.print(text, markup=False))
        session = LiveTranslationSession(FileCaptionSource(caption_file), orchestrator)
        try:
            await session.run()
        finally:
            await session.close()

    console.log(f"Following {caption_file} ({engine}, {source} -> {target}); Ctrl+C to stop")
    try:
        _run_async(runner())
    except ConfigurationError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        console.log("Stopped")


@app.command(help="Translate a single piece of text")
def translate(
    text: str = typer.Argument(...),
    engine: str = typer.Option(SETTINGS.default_engine, "--engine", "-e"),
    source: str = typer.Option(SETTINGS.default_source_lang, "--source", "-s", help="Source language code or 'auto'"),
    target: str = typer.Option(SETTINGS.default_target_lang, "--target", "-t"),
    max_length: int = typer.Option(SETTINGS.pipeline.max_unit_length, "--max-length"),
    proxy: str | None = typer.Option(None, help="Proxy URL for provider requests"),
    youdao_key: str | None = typer.Option(None, help="Override Youdao app key"),
    youdao_secret: str | None = typer.Option(None, help="Override Youdao app secret"),
    microsoft_key: str | None = typer.Option(None, help="Override Microsoft Translator subscription key"),
    microsoft_region: str | None = typer.Option(None, help="Override Microsoft Translator region"),
) -> None:
    configure_logging()
    credentials = _credentials(youdao_key, youdao_secret, microsoft_key, microsoft_region)

    async def runner():
        registry = ProviderRegistry(credentials, proxy=proxy)
        await registry.set_active(engine)
        orchestrator = _build_orchestrator(
            registry, source=source, target=target, max_length=max_length, interval=0.0
        )
        orchestrator.aggregator.ingest(text)
        orchestrator.aggregator.flush()
        try:
            return await orchestrator.request()
        finally:
            await orchestrator.close()

    try:
        outcome = _run_async(runner())
    except ConfigurationError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    if outcome.status is DispatchStatus.TRANSLATED:
        console.print(outcome.translated_text, markup=False)
    elif outcome.status is DispatchStatus.FAILED:
        console.print(f"[red]Translation error: {escape(str(outcome.error))}[/red]")
        raise typer.Exit(code=1)
    else:
        console.print("Nothing to translate")


@app.command(help="List supported language codes")
def languages() -> None:
    table = Table("Code", "Language", "Target")
    targets = target_languages()
    for code, name in source_languages().items():
        table.add_row(code, name, "yes" if code in targets else "source only")
    console.print(table)


@app.command(help="List available translation engines")
def engines() -> None:
    for name, label in get_available_engines().items():
        console.print(f"[bold]{name}[/bold]  {label}")


if __name__ == "__main__":
    app()
