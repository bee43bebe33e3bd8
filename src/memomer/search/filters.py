"""
Metadata filters applied to indexed memos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..storage import IndexedDocument


@dataclass(frozen=True)
class MemoFilter:
    """Tag and directory conditions a memo must satisfy.

    Tags are conjunctive: a memo matches only if it carries every requested
    tag. ``directory`` is a plain string prefix of the memo id, so ``/wo``
    matches ``/work/x``.
    """

    tags: frozenset[str] = field(default_factory=frozenset)
    directory: str | None = None

    @classmethod
    def build(
        cls,
        *,
        tags: Iterable[str] | None = None,
        directory: str | None = None,
    ) -> MemoFilter:
        return cls(tags=frozenset(tags or ()), directory=directory or None)

    @property
    def is_empty(self) -> bool:
        return not self.tags and self.directory is None

    def matches_id(self, doc_id: str) -> bool:
        if self.directory is None:
            return True
        return doc_id.startswith(self.directory)

    def matches_tags(self, tags: Iterable[str]) -> bool:
        if not self.tags:
            return True
        return self.tags.issubset(tags)

    def __call__(self, document: IndexedDocument) -> bool:
        return self.matches_tags(document.tags) and self.matches_id(document.id)
