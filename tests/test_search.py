"""Tests for similarity scoring, metadata filters, and the query engine."""

from __future__ import annotations

import math

import pytest

from conftest import RecordingEmbedder
from memomer.errors import EmbeddingError
from memomer.search import (
    MemoFilter,
    MemoQueryEngine,
    SearchQuery,
    SearchResult,
    cosine_similarity,
    rank_documents,
)
from memomer.storage import DuckDBEmbeddingStore, IndexedDocument


def test_cosine_similarity_identical_vectors_score_one() -> None:
    assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)


def test_cosine_similarity_opposite_vectors_score_minus_one() -> None:
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_cosine_similarity_zero_vector_scores_zero() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_cosine_similarity_length_mismatch_scores_zero() -> None:
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0


def test_cosine_similarity_stays_in_bounds() -> None:
    vectors = [
        [1e-8, 3.0, -7.5],
        [123.0, -0.001, 42.0],
        [0.1, 0.1, 0.1],
        [-5.0, 2.0, 9.0],
    ]
    for a in vectors:
        for b in vectors:
            score = cosine_similarity(a, b)
            assert not math.isnan(score)
            assert -1.0 <= score <= 1.0


def test_cosine_similarity_non_finite_components_score_zero() -> None:
    assert cosine_similarity([1.0, 0.0], [math.nan, 1.0]) == 0.0
    assert cosine_similarity([math.inf, 1.0], [1.0, 1.0]) == 0.0


def test_rank_documents_keeps_nan_rows_below_real_matches() -> None:
    documents = [
        IndexedDocument(id="/nan", embedding=(math.nan, 1.0), tags=()),
        IndexedDocument(id="/match", embedding=(1.0, 0.1), tags=()),
        IndexedDocument(id="/other", embedding=(0.0, 1.0), tags=()),
    ]

    ranked = rank_documents(documents, [1.0, 0.0])

    assert [item.document.id for item in ranked] == ["/match", "/nan", "/other"]
    assert ranked[1].score == 0.0


def test_memo_filter_is_conjunctive_over_tags() -> None:
    flt = MemoFilter.build(tags=["work", "urgent"])

    assert not flt(IndexedDocument(id="/a", embedding=(), tags=("work",)))
    assert flt(IndexedDocument(id="/b", embedding=(), tags=("urgent", "work", "x")))
    assert not flt(IndexedDocument(id="/c", embedding=(), tags=("personal",)))


def test_memo_filter_directory_is_plain_prefix() -> None:
    flt = MemoFilter.build(directory="/work")

    assert flt.matches_id("/work/x")
    assert flt.matches_id("/work2/x")
    assert not flt.matches_id("/personal/work")
    assert MemoFilter.build(directory="/wo").matches_id("/work/x")


def test_memo_filter_empty_matches_everything() -> None:
    flt = MemoFilter.build(tags=[], directory="")

    assert flt.is_empty
    assert flt(IndexedDocument(id="/anything", embedding=(), tags=()))


@pytest.fixture
def populated(store: DuckDBEmbeddingStore) -> DuckDBEmbeddingStore:
    store.upsert("/work/meeting", [1.0, 0.0, 0.0, 0.0], ["work", "meeting"])
    store.upsert("/work/task", [0.0, 0.0, 1.0, 0.0], ["work", "urgent"])
    store.upsert("/personal/diary", [0.0, 1.0, 0.0, 0.0], ["personal"])
    store.upsert("/work2/budget", [0.2, 0.0, 0.0, 1.0], ["work"])
    return store


def test_search_without_text_filters_by_tags(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery(tags=("work", "urgent")))

    assert results == [SearchResult(name="/work/task", score=1.0)]
    assert embedder.calls == []


def test_search_without_text_filters_by_directory_prefix(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery(directory="/work"))

    assert sorted(result.name for result in results) == [
        "/work/meeting",
        "/work/task",
        "/work2/budget",
    ]
    assert all(result.score == 1.0 for result in results)


def test_search_without_anything_returns_every_memo(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery())

    assert len(results) == 4


def test_search_text_ranks_by_cosine_similarity(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery(text="meeting"))

    assert embedder.calls == ["meeting"]
    assert results[0].name == "/work/meeting"
    assert results[0].score == pytest.approx(1.0)
    assert results[1].name == "/work2/budget"
    assert 0.0 < results[1].score < 1.0
    assert {result.name for result in results[2:]} == {"/work/task", "/personal/diary"}
    assert all(result.score == 0.0 for result in results[2:])


def test_search_text_applies_filters_after_ranking(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery(text="meeting", tags=("work",), directory="/work"))

    assert [result.name for result in results] == [
        "/work/meeting",
        "/work2/budget",
        "/work/task",
    ]
    # Filters never adjust the score itself.
    assert results[0].score == pytest.approx(1.0)


def test_search_limit_truncates_after_filtering(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    results = engine.search(SearchQuery(text="meeting", tags=("work",)), limit=1)

    assert [result.name for result in results] == ["/work/meeting"]


def test_search_mixed_dimensions_score_zero(
    store: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    store.upsert("/good", [1.0, 0.0, 0.0, 0.0], [])
    store.upsert("/odd", [1.0, 0.0], [])
    engine = MemoQueryEngine(store, embedder)

    results = engine.search(SearchQuery(text="meeting"))

    assert results[0] == SearchResult(name="/good", score=pytest.approx(1.0))
    assert results[1] == SearchResult(name="/odd", score=0.0)


def test_search_on_empty_index_returns_empty_list(
    store: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(store, embedder)

    assert engine.search(SearchQuery(text="anything")) == []
    assert engine.search(SearchQuery(tags=("work",))) == []


def test_search_propagates_embedding_error(populated: DuckDBEmbeddingStore) -> None:
    engine = MemoQueryEngine(populated, RecordingEmbedder(fail_on={"meeting"}))

    with pytest.raises(EmbeddingError):
        engine.search(SearchQuery(text="meeting"))


def test_removed_memo_never_returned(
    populated: DuckDBEmbeddingStore, embedder: RecordingEmbedder
) -> None:
    engine = MemoQueryEngine(populated, embedder)

    populated.remove("/work/meeting")

    assert "/work/meeting" not in {r.name for r in engine.search(SearchQuery(text="meeting"))}
    assert "/work/meeting" not in {r.name for r in engine.search(SearchQuery(tags=("work",)))}
