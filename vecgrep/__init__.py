"""vecgrep: semantic grep over lines of text."""

__version__ = "0.1.0"
