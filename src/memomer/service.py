"""
Memo service wiring the memo store to the search index.
"""

from __future__ import annotations

import threading

from .indexing import IndexMaintainer, MaintenanceResult
from .memo import Memo
from .search import MemoQueryEngine, SearchQuery, SearchResult
from .storage import FileMemoStorage
from .storage.codec import normalize_tags


class MemoService:
    """Save, delete, and search memos while keeping the index current.

    Tags are validated before anything is written. The memo file is written
    first; indexing happens afterwards, so a failed embedding call leaves the
    memo saved but stale in the index until the next sync.
    """

    def __init__(
        self,
        storage: FileMemoStorage,
        maintainer: IndexMaintainer,
        engine: MemoQueryEngine,
    ) -> None:
        self.storage = storage
        self.maintainer = maintainer
        self.engine = engine

    def save(self, memo: Memo) -> None:
        # Tags the index would reject must not reach the memo directory either.
        normalize_tags(memo.tags)
        self.storage.save(memo)
        self.maintainer.index(memo.name, memo.content, memo.tags)

    def get(self, name: str) -> Memo | None:
        return self.storage.get(name)

    def delete(self, name: str) -> None:
        self.storage.delete(name)
        self.maintainer.remove_from_index(name)

    def list(self) -> list[str]:
        return self.storage.list_ids()

    def search(self, query: SearchQuery, *, limit: int | None = None) -> list[SearchResult]:
        return self.engine.search(query, limit=limit)

    def rebuild(self, *, cancel_event: threading.Event | None = None) -> MaintenanceResult:
        return self.maintainer.rebuild(cancel_event=cancel_event)

    def sync(self, *, cancel_event: threading.Event | None = None) -> MaintenanceResult:
        return self.maintainer.sync(cancel_event=cancel_event)
