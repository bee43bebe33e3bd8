"""Storage backends for the memo index."""

from .base import DocumentPredicate, DocumentStore, EmbeddingStore, IndexedDocument
from .duckdb import DuckDBEmbeddingStore
from .files import FileMemoStorage

__all__ = [
    "DocumentPredicate",
    "DocumentStore",
    "EmbeddingStore",
    "IndexedDocument",
    "DuckDBEmbeddingStore",
    "FileMemoStorage",
]
