"""CLI package exports."""

from .app import app, main
from .config import EngineConfig, load_engine_config
from .logging import configure_logging, progress_spinner

__all__ = [
    "app",
    "main",
    "EngineConfig",
    "configure_logging",
    "load_engine_config",
    "progress_spinner",
]
