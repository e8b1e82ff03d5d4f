"""Logging utilities for the readiness CLI."""

from __future__ import annotations

import logging
import logging.config
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

LOGGER_NAME = "ReadinessEngine"


def configure_logging(log_path: Path, log_format: str, verbose: bool) -> logging.Logger:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = "json" if log_format == "json" else "text"
    level = "DEBUG" if verbose else "INFO"
    handlers: dict[str, dict[str, object]] = {
        "file": {
            "class": "logging.FileHandler",
            "filename": str(log_path),
            "mode": "a",
            "encoding": "utf-8",
            "formatter": formatter,
        },
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stderr,
            "formatter": formatter,
            "level": level,
        },
    }

    formatters = {
        "text": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "loggers": {
                LOGGER_NAME: {
                    "handlers": ["console", "file"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("Logging configured", extra={"log_path": str(log_path), "log_format": log_format})
    return logger


@contextmanager
def progress_spinner(message: str) -> Iterator[Progress]:
    console = Console(stderr=True)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        transient=True,
        console=console,
    )
    progress.add_task(message)
    with progress:
        yield progress
