from pathlib import Path

import pytest

from memomer.errors import EmbeddingError
from memomer.memo import Memo, create_memo
from memomer.storage import DuckDBEmbeddingStore


_VOCABULARY = ("meeting", "diary", "task", "budget")


def keyword_embedding(text: str) -> list[float]:
    """Deterministic embedding: one dimension per vocabulary word."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in _VOCABULARY]


class FakeMemoStore:
    """In-memory document store used as the source of truth in tests."""

    def __init__(self, memos: list[Memo] | None = None) -> None:
        self.memos: dict[str, Memo] = {memo.name: memo for memo in memos or []}
        self.get_calls: list[str] = []

    def put(self, name: str, content: str, tags: list[str] | None = None) -> None:
        self.memos[name] = create_memo(name, content, tags or [])

    def get(self, id: str) -> Memo | None:
        self.get_calls.append(id)
        return self.memos.get(id)

    def list_ids(self) -> list[str]:
        return list(self.memos)


class RecordingEmbedder:
    """Keyword embedder that records calls and fails on chosen texts."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on or set()

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingError(f"quota exceeded for {text!r}")
        return keyword_embedding(text)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "index" / "memos.duckdb")


@pytest.fixture
def store(db_path: str):
    store = DuckDBEmbeddingStore.open(db_path)
    yield store
    store.close()


@pytest.fixture
def embedder() -> RecordingEmbedder:
    return RecordingEmbedder()
