"""In-memory knowledge index with cosine-similarity search."""

from __future__ import annotations

import threading
from collections import Counter
from datetime import datetime, timezone
from math import sqrt
from typing import Any, Protocol

from venture_agent.ingest.embedder import Embedder
from venture_agent.types import Document, SearchResult


class DocumentIndex(Protocol):
    """Minimal index contract used by the knowledge service."""

    def add_document(self, document: Document) -> str:
        """Store a document and return its id."""

    def search(
        self,
        query: str,
        top_k: int = 5,
        threshold: float = 0.1,
        category: str | None = None,
    ) -> list[SearchResult]:
        """Rank documents by similarity to `query`."""

    def get(self, document_id: str) -> Document | None:
        """Fetch one document by id."""

    def all(self) -> list[Document]:
        """Every stored document in insertion order."""

    def stats(self) -> dict[str, Any]:
        """Aggregate counts for dashboards."""


class InMemoryDocumentIndex:
    """Process-local index; adds are serialized, searches read a snapshot.

    Writers replace the document map under a lock instead of mutating it, so
    a search iterates a map that no concurrent add can change.
    """

    def __init__(self, embedder: Embedder) -> None:
        self._embedder = embedder
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()
        self._last_updated: datetime | None = None

    @property
    def dimension(self) -> int:
        return self._embedder.dimension

    def __len__(self) -> int:
        return len(self._documents)

    def add_document(self, document: Document) -> str:
        if not document.embedding:
            document.embedding = self._embedder.embed_documents([document.content])[0]
        if len(document.embedding) != self.dimension:
            raise ValueError(
                f"Embedding dimension {len(document.embedding)} does not match index dimension {self.dimension}"
            )

        with self._lock:
            if document.id in self._documents:
                raise ValueError(f"Document already exists: {document.id}")
            documents = dict(self._documents)
            documents[document.id] = document
            self._documents = documents
            self._last_updated = datetime.now(timezone.utc)
        return document.id

    def search(
        self,
        query: str,
        top_k: int = 5,
        threshold: float = 0.1,
        category: str | None = None,
    ) -> list[SearchResult]:
        return self.search_by_vector(
            self._embedder.embed_query(query),
            top_k=top_k,
            threshold=threshold,
            category=category,
        )

    def search_by_vector(
        self,
        query_embedding: list[float],
        *,
        top_k: int = 5,
        threshold: float = 0.1,
        category: str | None = None,
    ) -> list[SearchResult]:
        if top_k < 1:
            return []
        snapshot = self._documents
        scored = [
            (document, _cosine_similarity(query_embedding, document.embedding))
            for document in snapshot.values()
            if category is None or document.metadata.category == category
        ]
        ranked = sorted(
            (item for item in scored if item[1] >= threshold),
            key=lambda item: item[1],
            reverse=True,
        )
        return [
            SearchResult(document=document, similarity=similarity, rank=i + 1)
            for i, (document, similarity) in enumerate(ranked[:top_k])
        ]

    def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def all(self) -> list[Document]:
        return list(self._documents.values())

    def stats(self) -> dict[str, Any]:
        documents = list(self._documents.values())
        return {
            "total_documents": len(documents),
            "categories": dict(Counter(doc.metadata.category for doc in documents)),
            "sources": dict(Counter(doc.metadata.source for doc in documents)),
            "last_updated": self._last_updated.isoformat() if self._last_updated else None,
            "dimension": self.dimension,
        }


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
