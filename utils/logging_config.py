from __future__ import annotations

import logging
import sys
from pathlib import Path
from loguru import logger


class _InterceptHandler(logging.Handler):
    """Forward standard ``logging`` records (provider clients) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, f"[{record.name}] {record.getMessage()}")


def configure_logging(log_file: Path | None = None, *, verbose: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", rotation="1 MB", retention=5)
    logging.basicConfig(handlers=[_InterceptHandler()], level=logging.DEBUG if verbose else logging.INFO, force=True)
