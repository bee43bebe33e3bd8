"""
Embedding provider for vector-based semantic search.

Wraps the Google GenAI embedding API with a configurable model and
dimensionality. Query and document texts are embedded with their matching
retrieval task types.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Sequence

from google.genai import Client as GenAIClient

from .errors import EmbeddingError


EmbeddingFn = Callable[[str], Sequence[float]]

_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 768


class EmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("MEMOMER_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self.dim = dim or int(os.getenv("MEMOMER_EMBEDDING_DIM", str(_DEFAULT_DIM)))

        if client is not None:
            self._client = client
        else:
            resolved_key = (
                api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            )
            if resolved_key is None:
                raise ValueError(
                    "GEMINI_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    def embed_document(self, text: str) -> list[float]:
        """Embed a memo body for storage in the index."""
        return self._embed(text, task_type="RETRIEVAL_DOCUMENT")

    def embed_query(self, text: str) -> list[float]:
        """Embed a single query text for retrieval."""
        return self._embed(text, task_type="RETRIEVAL_QUERY")

    def _embed(self, text: str, *, task_type: str) -> list[float]:
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=[text],
                config={
                    "task_type": task_type,
                    "output_dimensionality": self.dim,
                },
            )
        except Exception as exc:
            raise EmbeddingError(f"Embedding request to {self.model} failed: {exc}") from exc
        if not result.embeddings:
            raise EmbeddingError(f"Embedding response from {self.model} was empty.")
        return list(result.embeddings[0].values)
