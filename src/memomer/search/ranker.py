"""
Similarity scoring and ranking for indexed memos.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from ..storage import IndexedDocument


@dataclass(frozen=True)
class ScoredDocument:
    """An indexed memo paired with its similarity to the query."""

    document: IndexedDocument
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Vectors of different length, with zero magnitude, or holding non-finite
    components score ``0.0``.
    """
    if len(a) != len(b):
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    with np.errstate(all="ignore"):
        magnitude = np.linalg.norm(vec_a) * np.linalg.norm(vec_b)
        if magnitude == 0:
            return 0.0
        score = float(np.dot(vec_a, vec_b) / magnitude)
    if not np.isfinite(score):
        return 0.0
    # Rounding can push identical vectors a hair past 1.
    return float(np.clip(score, -1.0, 1.0))


def rank_documents(
    documents: Iterable[IndexedDocument],
    query_embedding: Sequence[float],
) -> list[ScoredDocument]:
    """Score every document against the query and sort by descending score."""
    scored = [
        ScoredDocument(document=doc, score=cosine_similarity(query_embedding, doc.embedding))
        for doc in documents
    ]
    # sorted() is stable, so ties keep store order.
    return sorted(scored, key=lambda item: -item.score)
