"""Knowledge ingestion and search surface over the document index."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from venture_agent.config import RetrievalConfig
from venture_agent.errors import RetrievalError
from venture_agent.retrieval.vector_store import DocumentIndex
from venture_agent.types import Document, DocumentMetadata, SearchResult

logger = logging.getLogger(__name__)


class KnowledgeService:
    """Search and ingestion API used by the pipeline, tools and HTTP layer.

    Failures inside the index surface as `RetrievalError`; invalid caller
    input raises `ValueError`.
    """

    def __init__(self, index: DocumentIndex, config: RetrievalConfig | None = None) -> None:
        self.index = index
        self.config = config or RetrievalConfig()

    def search(
        self,
        query: str,
        top_k: int | None = None,
        threshold: float | None = None,
        category: str | None = None,
    ) -> list[SearchResult]:
        top_k = self.config.default_top_k if top_k is None else top_k
        threshold = self.config.default_threshold if threshold is None else threshold
        try:
            return self.index.search(query, top_k=top_k, threshold=threshold, category=category)
        except Exception as exc:
            raise RetrievalError(f"Search failed: {exc}") from exc

    def search_by_category(self, category: str, query: str, top_k: int = 5) -> list[SearchResult]:
        return self.search(query, top_k=top_k, threshold=self.config.default_threshold, category=category)

    def multi_category_search(
        self, query: str, categories: Sequence[str], top_k: int = 5
    ) -> list[SearchResult]:
        """Search each category, then merge into one globally ranked list.

        The threshold is applied inside each per-category search, before the
        merge, so a document only competes globally if it already cleared the
        bar within its own category.
        """
        merged: list[SearchResult] = []
        for category in dict.fromkeys(categories):
            merged.extend(self.search_by_category(category, query, top_k=top_k))
        merged.sort(key=lambda item: item.similarity, reverse=True)
        return [
            SearchResult(document=item.document, similarity=item.similarity, rank=i + 1)
            for i, item in enumerate(merged[:top_k])
        ]

    def contextual_search(self, query: str, context: str, top_k: int = 5) -> list[SearchResult]:
        combined = f"{query} {context}".strip()
        return self.search(combined, top_k=top_k, threshold=self.config.contextual_threshold)

    def add_knowledge(
        self,
        content: str,
        *,
        title: str,
        category: str,
        source: str = "user",
        tags: Sequence[str] | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        if not content.strip():
            raise ValueError("content must not be empty")
        if not title.strip() or not category.strip():
            raise ValueError("title and category are required")

        document = Document(
            id=f"doc-{uuid.uuid4().hex[:12]}",
            content=content,
            metadata=DocumentMetadata(
                title=title,
                category=category,
                source=source,
                timestamp=timestamp or datetime.now(timezone.utc),
                tags=list(tags or []),
            ),
        )
        try:
            document_id = self.index.add_document(document)
        except Exception as exc:
            raise RetrievalError(f"Could not add document: {exc}") from exc
        logger.info("Added knowledge document %s (%s)", document_id, category)
        return document_id

    def get_knowledge(self, document_id: str) -> Document | None:
        return self.index.get(document_id)

    def get_stats(self) -> dict[str, Any]:
        stats = self.index.stats()
        return {
            "total_documents": stats["total_documents"],
            "categories": stats["categories"],
            "sources": stats["sources"],
            "last_updated": stats["last_updated"],
        }
