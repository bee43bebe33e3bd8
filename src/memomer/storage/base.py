"""
Storage interfaces and data models for index persistence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from ..memo import Memo


@dataclass(frozen=True)
class IndexedDocument:
    """One indexed memo: its embedding and the tags it carried at index time."""

    id: str
    embedding: tuple[float, ...]
    tags: tuple[str, ...]
    content_sha256: str | None = None

    def has_tags(self, required: set[str] | frozenset[str]) -> bool:
        return required.issubset(self.tags)


DocumentPredicate = Callable[[IndexedDocument], bool]


class EmbeddingStore(Protocol):
    """Protocol for durable persistence of indexed documents."""

    def upsert(
        self,
        id: str,
        embedding: Sequence[float],
        tags: Sequence[str],
        *,
        content_sha256: str | None = None,
    ) -> None:
        """Insert or replace the row for ``id`` and flush it to disk."""

    def remove(self, id: str) -> None:
        """Delete the row for ``id``; absent ids are ignored."""

    def clear(self) -> None:
        """Delete every row."""

    def get(self, id: str) -> IndexedDocument | None:
        """Return the row for ``id`` if present."""

    def ids(self) -> set[str]:
        """Return every indexed id."""

    def scan_all(self) -> list[IndexedDocument]:
        """Return every row in unspecified order."""

    def scan_filtered(
        self,
        predicate: DocumentPredicate,
        *,
        include_embeddings: bool = True,
    ) -> list[IndexedDocument]:
        """Return rows accepted by ``predicate``.

        With ``include_embeddings=False`` rows carry an empty embedding.
        """


class DocumentStore(Protocol):
    """Read side of the authoritative memo store."""

    def get(self, id: str) -> Memo | None:
        """Return the memo stored under ``id`` if present."""

    def list_ids(self) -> list[str]:
        """Return every memo id currently stored."""
