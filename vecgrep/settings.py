"""Environment-driven settings for vecgrep."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import ConfigError

DEFAULT_MODEL = "minishlab/potion-base-8M"
DEFAULT_THRESHOLD = 0.6
DEFAULT_BATCH_SIZE = 1024


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _default_workers() -> int:
    return int(os.environ.get("VECGREP_WORKERS", str(os.cpu_count() or 1)))


@dataclass
class Settings:
    """Process-level defaults; command-line flags take precedence."""

    model_name: str = field(default_factory=lambda: os.environ.get("VECGREP_MODEL", DEFAULT_MODEL))
    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("VECGREP_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))
    )
    workers: int = field(default_factory=_default_workers)
    threshold: float = field(
        default_factory=lambda: float(os.environ.get("VECGREP_THRESHOLD", str(DEFAULT_THRESHOLD)))
    )
    offline: bool = field(default_factory=lambda: _env_flag("VECGREP_OFFLINE"))
    verbose: bool = field(default_factory=lambda: _env_flag("VECGREP_VERBOSE"))


def load_settings() -> Settings:
    """Build settings from the environment, rejecting malformed values."""
    try:
        settings = Settings()
    except ValueError as exc:
        raise ConfigError(f"invalid VECGREP_* environment value: {exc}") from exc
    if settings.batch_size < 1:
        raise ConfigError("VECGREP_BATCH_SIZE must be at least 1")
    if settings.workers < 1:
        raise ConfigError("VECGREP_WORKERS must be at least 1")
    return settings
