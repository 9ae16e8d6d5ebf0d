"""Generate tutorial documents by running their shell snippets in Docker."""

__version__ = "0.1.0"