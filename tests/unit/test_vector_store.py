from datetime import datetime, timezone

import pytest

from venture_agent.ingest.embedder import HashingEmbedder
from venture_agent.ingest.seed import SEED_DOCUMENTS, seed_index
from venture_agent.retrieval.vector_store import InMemoryDocumentIndex
from venture_agent.types import Document, DocumentMetadata


def _document(doc_id: str, content: str, category: str = "general") -> Document:
    return Document(
        id=doc_id,
        content=content,
        metadata=DocumentMetadata(
            title=doc_id,
            category=category,
            source="unit",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ),
    )


def test_search_ranks_by_similarity_and_assigns_ranks() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder())
    index.add_document(_document("a", "seed funding for startups"))
    index.add_document(_document("b", "seed funding rounds for startups and founders"))
    index.add_document(_document("c", "holiday policy for employees"))

    results = index.search("seed funding for startups", top_k=5, threshold=0.1)

    assert [item.document.id for item in results][:2] == ["a", "b"]
    assert [item.rank for item in results] == list(range(1, len(results) + 1))
    assert all(item.similarity >= 0.1 for item in results)
    similarities = [item.similarity for item in results]
    assert similarities == sorted(similarities, reverse=True)


def test_search_applies_category_filter_and_top_k() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder())
    for i in range(4):
        index.add_document(_document(f"f{i}", f"funding stages guide part {i}", "funding"))
    index.add_document(_document("m0", "funding stages market report", "market"))

    results = index.search("funding stages", top_k=2, threshold=0.0, category="funding")

    assert len(results) == 2
    assert all(item.document.metadata.category == "funding" for item in results)


def test_non_positive_top_k_returns_empty() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder())
    index.add_document(_document("a", "anything"))

    assert index.search("anything", top_k=0) == []


def test_duplicate_id_and_dimension_mismatch_rejected() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder(dimension=32))
    index.add_document(_document("a", "text"))

    with pytest.raises(ValueError):
        index.add_document(_document("a", "other text"))

    wrong = _document("b", "text")
    wrong.embedding = [0.1] * 8
    with pytest.raises(ValueError):
        index.add_document(wrong)
    assert len(index) == 1


def test_seed_index_loads_every_document_with_stats() -> None:
    index = InMemoryDocumentIndex(HashingEmbedder())

    ids = seed_index(index)

    assert ids == [f"doc-{i}" for i in range(1, len(SEED_DOCUMENTS) + 1)]
    stats = index.stats()
    assert stats["total_documents"] == len(SEED_DOCUMENTS)
    assert stats["categories"]["investment"] >= 1
    assert stats["last_updated"] is not None
    assert index.get("doc-1").metadata.title == "Meta3Ventures Investment Criteria"
