"""
DuckDB storage backend for the memo embedding index.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Sequence

import duckdb

from ..errors import IndexIOError, ValidationError
from .base import DocumentPredicate, IndexedDocument
from .codec import decode_embedding, decode_tags, encode_embedding, encode_tags


class DuckDBEmbeddingStore:
    """DuckDB-backed persistence for ``(id, embedding, tags)`` rows.

    Every connection access happens under one lock, so mutations are
    serialized and readers never see a half-applied write. Each mutation runs
    in its own transaction and is checkpointed before returning.
    """

    def __init__(
        self,
        db_path: str,
        *,
        strict_dimensions: bool = False,
        read_only: bool = False,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.strict_dimensions = strict_dimensions
        self.read_only = read_only
        self._lock = threading.RLock()
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(self.db_path, read_only=read_only)
        except (duckdb.Error, OSError) as exc:
            raise IndexIOError(f"Cannot open index at {self.db_path}: {exc}") from exc
        if not read_only:
            self.initialize()

    @classmethod
    def open(cls, db_path: str, **kwargs: Any) -> DuckDBEmbeddingStore:
        """Load the index at ``db_path``, creating an empty one if it is missing."""
        return cls(db_path, **kwargs)

    def __enter__(self) -> DuckDBEmbeddingStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()

    def initialize(self) -> None:
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS memos (
                id VARCHAR PRIMARY KEY,
                embedding BLOB NOT NULL,
                tags VARCHAR NOT NULL DEFAULT '',
                content_sha256 VARCHAR
            );
            """
        )

    def upsert(
        self,
        id: str,
        embedding: Sequence[float],
        tags: Sequence[str],
        *,
        content_sha256: str | None = None,
    ) -> None:
        if not id:
            raise ValidationError("Document id must not be empty.")
        blob = encode_embedding(embedding)
        tags_text = encode_tags(tags)
        with self._lock:
            if self.strict_dimensions:
                self._check_dimensions(id, len(embedding))
            self._mutate(
                """
                INSERT INTO memos (id, embedding, tags, content_sha256)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    embedding = excluded.embedding,
                    tags = excluded.tags,
                    content_sha256 = excluded.content_sha256
                """,
                [id, blob, tags_text, content_sha256],
            )

    def remove(self, id: str) -> None:
        with self._lock:
            self._mutate("DELETE FROM memos WHERE id = ?", [id])

    def clear(self) -> None:
        with self._lock:
            self._mutate("DELETE FROM memos", [])

    def get(self, id: str) -> IndexedDocument | None:
        with self._lock:
            row = self._execute(
                """
                SELECT id, embedding, tags, content_sha256
                FROM memos
                WHERE id = ?
                LIMIT 1
                """,
                [id],
            ).fetchone()
        if row is None:
            return None
        return self._row_to_document(row)

    def ids(self) -> set[str]:
        with self._lock:
            rows = self._execute("SELECT id FROM memos").fetchall()
        return {str(row[0]) for row in rows}

    def count(self) -> int:
        with self._lock:
            row = self._execute("SELECT COUNT(*) FROM memos").fetchone()
        return int(row[0]) if row else 0

    def scan_all(self) -> list[IndexedDocument]:
        with self._lock:
            rows = self._execute(
                "SELECT id, embedding, tags, content_sha256 FROM memos"
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def scan_filtered(
        self,
        predicate: DocumentPredicate,
        *,
        include_embeddings: bool = True,
    ) -> list[IndexedDocument]:
        if include_embeddings:
            return [doc for doc in self.scan_all() if predicate(doc)]

        with self._lock:
            rows = self._execute(
                "SELECT id, tags, content_sha256 FROM memos"
            ).fetchall()
        results: list[IndexedDocument] = []
        for row in rows:
            doc = IndexedDocument(
                id=str(row[0]),
                embedding=(),
                tags=decode_tags(row[1]),
                content_sha256=row[2],
            )
            if predicate(doc):
                results.append(doc)
        return results

    def _check_dimensions(self, id: str, dimensions: int) -> None:
        row = self._execute(
            "SELECT octet_length(embedding) FROM memos WHERE id <> ? LIMIT 1",
            [id],
        ).fetchone()
        if row is None:
            return
        expected = int(row[0]) // 8
        if expected != dimensions:
            raise ValidationError(
                f"Embedding for {id!r} has {dimensions} dimensions; index expects {expected}."
            )

    def _mutate(self, sql: str, params: list[Any]) -> None:
        try:
            self._conn.begin()
            self._conn.execute(sql, params)
            self._conn.commit()
        except duckdb.Error as exc:
            self._rollback()
            raise IndexIOError(f"Index write failed at {self.db_path}: {exc}") from exc
        self._execute("CHECKPOINT")

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except duckdb.Error:
            # No transaction left open to roll back.
            pass

    def _execute(self, sql: str, params: list[Any] | None = None) -> duckdb.DuckDBPyConnection:
        try:
            if params is None:
                return self._conn.execute(sql)
            return self._conn.execute(sql, params)
        except duckdb.Error as exc:
            raise IndexIOError(f"Index query failed at {self.db_path}: {exc}") from exc

    @staticmethod
    def _row_to_document(row: tuple[Any, ...]) -> IndexedDocument:
        return IndexedDocument(
            id=str(row[0]),
            embedding=decode_embedding(bytes(row[1])),
            tags=decode_tags(row[2]),
            content_sha256=row[3],
        )
