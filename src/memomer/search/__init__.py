"""Search helpers for the memo index."""

from .filters import MemoFilter
from .query import MemoQueryEngine, SearchQuery, SearchResult
from .ranker import ScoredDocument, cosine_similarity, rank_documents

__all__ = [
    "MemoFilter",
    "MemoQueryEngine",
    "SearchQuery",
    "SearchResult",
    "ScoredDocument",
    "cosine_similarity",
    "rank_documents",
]
