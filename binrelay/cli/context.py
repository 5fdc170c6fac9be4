"""Shared CLI helpers: config loading and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from binrelay.config import ReleaseConfig
from binrelay.errors import ConfigurationError


def load_config(
    project_root: Path | None = None,
    local_store: Path | None = None,
) -> ReleaseConfig:
    """Environment config with command-line overrides applied.

    Raises ``ConfigurationError`` if a setting fails validation.
    """
    overrides: dict[str, object] = {}
    if project_root is not None:
        overrides["project_root"] = project_root
    if local_store is not None:
        overrides["store_backend"] = "local"
        overrides["local_store_path"] = local_store
    try:
        return ReleaseConfig(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def configure_logging(level: str, console: Console | None = None) -> None:
    """Route log records and warnings through a Rich handler."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
    logging.captureWarnings(True)
