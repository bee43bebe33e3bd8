"""
Query engine combining embedding similarity with tag and directory filters.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..embeddings import EmbeddingFn
from ..storage import EmbeddingStore
from .filters import MemoFilter
from .ranker import rank_documents


@dataclass(frozen=True)
class SearchQuery:
    """A memo search: optional text, required tags, and an id prefix."""

    text: str | None = None
    tags: tuple[str, ...] = field(default=())
    directory: str | None = None

    @property
    def memo_filter(self) -> MemoFilter:
        return MemoFilter.build(tags=self.tags, directory=self.directory)


@dataclass(frozen=True)
class SearchResult:
    """Ranked memo hit."""

    name: str
    score: float


class MemoQueryEngine:
    """Answer memo searches against an embedding store."""

    def __init__(self, store: EmbeddingStore, embedding_fn: EmbeddingFn) -> None:
        self.store = store
        self.embedding_fn = embedding_fn

    def search(self, query: SearchQuery, *, limit: int | None = None) -> list[SearchResult]:
        """Return memos matching ``query``, best first.

        Without text every memo passing the filters scores ``1.0`` and comes
        back in store order. With text, all rows are ranked by cosine
        similarity first and the filters are applied to the ranked list.
        """
        if not query.text:
            results = self._filter_only(query.memo_filter)
        else:
            results = self._ranked(query.text, query.memo_filter)

        if limit is not None:
            return results[: max(limit, 0)]
        return results

    def _filter_only(self, memo_filter: MemoFilter) -> list[SearchResult]:
        documents = self.store.scan_filtered(memo_filter, include_embeddings=False)
        return [SearchResult(name=doc.id, score=1.0) for doc in documents]

    def _ranked(self, text: str, memo_filter: MemoFilter) -> list[SearchResult]:
        query_embedding = self.embedding_fn(text)
        ranked = rank_documents(self.store.scan_all(), query_embedding)
        return [
            SearchResult(name=item.document.id, score=item.score)
            for item in ranked
            if memo_filter(item.document)
        ]
