"""
Index maintenance: single-memo indexing plus rebuild and sync against the
authoritative memo store.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Sequence

from ..embeddings import EmbeddingFn
from ..errors import EmbeddingError, ValidationError
from ..memo import Memo
from ..storage import DocumentStore, EmbeddingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaintenanceResult:
    """Summary output for a rebuild or sync run."""

    indexed: int = 0
    removed: int = 0
    skipped: int = 0
    unchanged: int = 0
    failures: tuple[tuple[str, str], ...] = field(default=())
    cancelled: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled


def content_sha256(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class IndexMaintainer:
    """Keep an embedding store in step with a memo store."""

    def __init__(
        self,
        store: EmbeddingStore,
        documents: DocumentStore,
        embedding_fn: EmbeddingFn,
        max_workers: int = 4,
    ) -> None:
        self.store = store
        self.documents = documents
        self.embedding_fn = embedding_fn
        self._max_workers = max(max_workers, 1)

    def index(self, id: str, content: str, tags: Sequence[str]) -> None:
        """Embed ``content`` and upsert it under ``id``."""
        embedding = self.embedding_fn(content)
        self.store.upsert(
            id,
            embedding,
            list(tags),
            content_sha256=content_sha256(content),
        )

    def remove_from_index(self, id: str) -> None:
        self.store.remove(id)

    def rebuild(self, *, cancel_event: threading.Event | None = None) -> MaintenanceResult:
        """Clear the index and re-embed every memo in the memo store.

        Memos are read before the index is cleared; a memo that cannot be
        read is reported as a failure and left out.
        """
        memos, skipped, read_failures = self._load_memos(self.documents.list_ids())
        self.store.clear()
        result = self._embed_and_store(memos, cancel_event=cancel_event)
        return MaintenanceResult(
            indexed=result.indexed,
            skipped=skipped,
            failures=read_failures + result.failures,
            cancelled=result.cancelled,
        )

    def sync(self, *, cancel_event: threading.Event | None = None) -> MaintenanceResult:
        """Reconcile the index with the memo store without clearing it.

        Ids no longer in the memo store are removed. Memos whose content hash
        or tags differ from the indexed row, or that are not indexed yet, are
        re-embedded. Everything else is left untouched.

        A memo that cannot be read or re-embedded loses its indexed row, so
        no row outlives the content it was built from; it is reported in
        ``failures`` and picked up again by the next sync.
        """
        source_ids = self.documents.list_ids()
        source_id_set = set(source_ids)

        removed = 0
        for stale_id in sorted(self.store.ids() - source_id_set):
            if cancel_event is not None and cancel_event.is_set():
                return MaintenanceResult(removed=removed, cancelled=True)
            self.store.remove(stale_id)
            removed += 1

        memos, skipped, read_failures = self._load_memos(source_ids)
        for memo_id, _ in read_failures:
            self.store.remove(memo_id)

        pending: list[Memo] = []
        unchanged = 0
        for memo in memos:
            if self._is_current(memo):
                unchanged += 1
            else:
                pending.append(memo)

        result = self._embed_and_store(
            pending, cancel_event=cancel_event, drop_failed=True
        )
        return MaintenanceResult(
            indexed=result.indexed,
            removed=removed,
            skipped=skipped,
            unchanged=unchanged,
            failures=read_failures + result.failures,
            cancelled=result.cancelled,
        )

    def _is_current(self, memo: Memo) -> bool:
        row = self.store.get(memo.name)
        if row is None or row.content_sha256 is None:
            return False
        return row.content_sha256 == content_sha256(memo.content) and set(row.tags) == set(
            memo.tags
        )

    def _load_memos(
        self, ids: Sequence[str]
    ) -> tuple[list[Memo], int, tuple[tuple[str, str], ...]]:
        memos: list[Memo] = []
        skipped = 0
        failures: list[tuple[str, str]] = []
        for memo_id in sorted(ids):
            try:
                memo = self.documents.get(memo_id)
            except (OSError, ValueError) as exc:
                # ValueError covers undecodable files and invalid names.
                logger.warning("Failed to read memo %s: %s", memo_id, exc)
                failures.append((memo_id, str(exc)))
                continue
            if memo is None:
                # Deleted after it was listed.
                skipped += 1
                continue
            memos.append(memo)
        return memos, skipped, tuple(failures)

    def _embed_and_store(
        self,
        memos: list[Memo],
        *,
        cancel_event: threading.Event | None,
        drop_failed: bool = False,
    ) -> MaintenanceResult:
        """Embed memos in parallel and upsert them one at a time in order."""
        if not memos:
            return MaintenanceResult()

        indexed = 0
        failures: list[tuple[str, str]] = []
        cancelled = False

        executor = ThreadPoolExecutor(max_workers=self._max_workers)
        try:
            futures: list[Future[Sequence[float]]] = [
                executor.submit(self.embedding_fn, memo.content) for memo in memos
            ]
            for memo, future in zip(memos, futures):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                try:
                    embedding = future.result()
                except EmbeddingError as exc:
                    logger.warning("Failed to embed memo %s: %s", memo.name, exc)
                    failures.append((memo.name, str(exc)))
                    if drop_failed:
                        self.store.remove(memo.name)
                    continue
                try:
                    self.store.upsert(
                        memo.name,
                        embedding,
                        list(memo.tags),
                        content_sha256=content_sha256(memo.content),
                    )
                except ValidationError as exc:
                    logger.warning("Rejected memo %s: %s", memo.name, exc)
                    failures.append((memo.name, str(exc)))
                    if drop_failed:
                        self.store.remove(memo.name)
                    continue
                indexed += 1
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return MaintenanceResult(
            indexed=indexed,
            failures=tuple(failures),
            cancelled=cancelled,
        )
