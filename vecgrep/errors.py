"""Error types raised by vecgrep."""

from __future__ import annotations


class VecgrepError(Exception):
    """Base class for fatal vecgrep errors."""

    exit_code = 1


class ConfigError(VecgrepError, ValueError):
    """Raised when run options are invalid or mutually exclusive."""

    exit_code = 2


class EmbeddingError(VecgrepError, RuntimeError):
    """Raised when the embedding model cannot be loaded or fails to encode."""


class InputReadError(VecgrepError, OSError):
    """Raised when the line source cannot be read."""
