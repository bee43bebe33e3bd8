"""
Error types raised by the memo index.
"""

from __future__ import annotations


class MemomerError(Exception):
    """Base class for all memomer errors."""


class IndexIOError(MemomerError, OSError):
    """Raised when the persisted index cannot be read, written, or decoded."""


class EmbeddingError(MemomerError):
    """Raised when the embedding function fails for a given text."""


class ValidationError(MemomerError, ValueError):
    """Raised when malformed input reaches the index."""
