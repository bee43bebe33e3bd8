"""
memomer - Markdown memos with an embedded semantic search index.

This package stores memos as Markdown files, keeps a DuckDB index of their
embeddings and tags, and answers similarity queries combined with tag and
directory filters. Embeddings come from Google Gemini by default, but any
``text -> vector`` callable can be injected.

Example usage:
    >>> from memomer import DuckDBEmbeddingStore, MemoQueryEngine, SearchQuery
    >>> store = DuckDBEmbeddingStore.open("index.duckdb")
    >>> engine = MemoQueryEngine(store, embedding_fn)
    >>> engine.search(SearchQuery(text="meeting notes", tags=("work",)))
"""

from .errors import EmbeddingError, IndexIOError, MemomerError, ValidationError
from .indexing import IndexMaintainer, MaintenanceResult
from .memo import Memo, create_memo, parse_memo, serialize_memo
from .search import MemoFilter, MemoQueryEngine, SearchQuery, SearchResult
from .service import MemoService
from .storage import (
    DocumentStore,
    DuckDBEmbeddingStore,
    EmbeddingStore,
    FileMemoStorage,
    IndexedDocument,
)

__all__ = [
    # Errors
    "MemomerError",
    "IndexIOError",
    "EmbeddingError",
    "ValidationError",
    # Memos
    "Memo",
    "create_memo",
    "parse_memo",
    "serialize_memo",
    # Storage
    "DocumentStore",
    "EmbeddingStore",
    "IndexedDocument",
    "DuckDBEmbeddingStore",
    "FileMemoStorage",
    # Search
    "MemoFilter",
    "MemoQueryEngine",
    "SearchQuery",
    "SearchResult",
    # Maintenance
    "IndexMaintainer",
    "MaintenanceResult",
    "MemoService",
]
