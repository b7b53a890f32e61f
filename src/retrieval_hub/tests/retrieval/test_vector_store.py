import logging

import pytest

from retrieval_hub.common import Document, RetrievalQuery
from retrieval_hub.retrieval.embedder import BaseEmbedder, HashingEmbedder
from retrieval_hub.retrieval.vector_store import (
    DimensionMismatchError,
    InMemoryVectorStore,
    VectorStoreKind,
    cosine_similarity,
    create_vector_store,
)


class FixedEmbedder(BaseEmbedder):
    """Returns one fixed vector for every query and counts calls."""

    def __init__(self, vector):
        self.vector = list(vector)
        self.embed_calls = 0
        self.batch_calls = 0

    @property
    def dimensions(self) -> int:
        return len(self.vector)

    def embed(self, text: str):
        self.embed_calls += 1
        return list(self.vector)

    def embed_documents(self, documents):
        self.batch_calls += 1
        return [list(self.vector) for _ in documents]

    @classmethod
    def from_config_dict(cls, config):
        return cls(config["vector"])


@pytest.fixture
def store():
    s = InMemoryVectorStore(embedder=FixedEmbedder([1.0, 0.0, 0.0]))
    s.index(Document(id="a", content="alpha", metadata={"lang": "en"}, embedding=[1.0, 0.0, 0.0]))
    s.index(Document(id="b", content="beta", metadata={"lang": "en"}, embedding=[0.8, 0.6, 0.0]))
    s.index(Document(id="c", content="gamma", metadata={"lang": "fr"}, embedding=[0.0, 1.0, 0.0]))
    s.index(Document(id="d", content="delta", metadata={}, embedding=[-1.0, 0.0, 0.0]))
    return s


def test_cosine_similarity_identities():
    assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_cosine_similarity_zero_vector_scores_zero():
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0


def test_cosine_similarity_rejects_length_mismatch():
    with pytest.raises(DimensionMismatchError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    assert issubclass(DimensionMismatchError, ValueError)


def test_search_sorts_and_truncates(store):
    result = store.search(RetrievalQuery(query="anything", top_k=3))

    assert [d.id for d in result.documents] == ["a", "b", "c"]
    scores = [d.score for d in result.documents]
    assert scores == sorted(scores, reverse=True)
    assert scores[0] == pytest.approx(1.0)
    assert result.total_results == 4
    assert all(d.metadata is None for d in result.documents)


def test_search_applies_filters_and_metadata_flag(store):
    result = store.search(RetrievalQuery(query="q", top_k=10, filters={"lang": "en"}, include_metadata=True))

    assert [d.id for d in result.documents] == ["a", "b"]
    assert result.total_results == 2
    assert result.documents[0].metadata == {"lang": "en"}


def test_search_with_filter_matching_nothing(store):
    result = store.search(RetrievalQuery(query="q", filters={"lang": "de"}))

    assert result.documents == []
    assert result.total_results == 0


def test_empty_query_enumerates_without_embedding(store):
    embedder = store.embedder
    before = embedder.embed_calls

    result = store.search(RetrievalQuery(query="", top_k=1000, filters={"lang": "en"}))

    assert {d.id for d in result.documents} == {"a", "b"}
    assert all(d.score == 0.0 for d in result.documents)
    assert embedder.embed_calls == before


def test_index_embeds_missing_vectors():
    embedder = FixedEmbedder([0.0, 1.0])
    s = InMemoryVectorStore(embedder=embedder)
    doc = Document(id="x", content="text")

    s.index(doc)

    assert doc.embedding == [0.0, 1.0]
    assert embedder.embed_calls == 1


def test_index_batch_embeds_in_one_call():
    embedder = FixedEmbedder([0.0, 1.0])
    s = InMemoryVectorStore(embedder=embedder)

    s.index_batch(
        [
            Document(id="x", content="one"),
            Document(id="y", content="two"),
            Document(id="z", content="three", embedding=[1.0, 0.0]),
        ]
    )

    assert embedder.batch_calls == 1
    assert len(s) == 3


def test_index_rejects_wrong_dimensions():
    s = InMemoryVectorStore(embedder=FixedEmbedder([1.0, 0.0, 0.0]))

    with pytest.raises(DimensionMismatchError):
        s.index(Document(id="bad", content="x", embedding=[1.0, 0.0]))

    assert "bad" not in s


def test_constructor_rejects_embedder_dimension_mismatch():
    with pytest.raises(DimensionMismatchError):
        InMemoryVectorStore(embedder=HashingEmbedder(8), dimensions=16)


def test_index_overwrites_same_id(store):
    store.index(Document(id="a", content="alpha v2", embedding=[1.0, 0.0, 0.0]))

    result = store.search(RetrievalQuery(query="q", top_k=1))
    assert result.documents[0].content == "alpha v2"
    assert store.get_stats().document_count == 4


def test_delete_is_idempotent(store):
    store.delete("a")
    store.delete("a")
    store.delete("never-indexed")

    assert "a" not in store
    assert store.get_stats().document_count == 3


def test_stats_estimate_index_size(store):
    stats = store.get_stats()

    assert stats.document_count == 4
    assert stats.dimensions == 3
    assert stats.index_size == 4 * 3 * 4
    assert stats.to_dict() == {"documentCount": 4, "indexSize": 48, "dimensions": 3}


def test_quantum_query_prefers_quantum_document():
    s = InMemoryVectorStore()
    s.index(Document(id="quantum", content="Quantum computing is the future"))
    s.index(Document(id="classical", content="Classical computers are everywhere"))

    top = s.search(RetrievalQuery(query="quantum", top_k=1))
    both = s.search(RetrievalQuery(query="quantum", top_k=2))

    assert [d.id for d in top.documents] == ["quantum"]
    assert both.documents[0].score > both.documents[1].score


def test_default_store_uses_384_dimensions():
    s = InMemoryVectorStore()
    s.index(Document(id="x", content="hello"))

    assert s.get_stats().dimensions == 384
    assert s.get_stats().index_size == 4 * 384


def test_factory_builds_memory_store():
    s = create_vector_store("memory", dimensions=16)

    assert isinstance(s, InMemoryVectorStore)
    assert s.dimensions == 16
    assert isinstance(create_vector_store(VectorStoreKind.MEMORY), InMemoryVectorStore)


@pytest.mark.parametrize("kind", ["pinecone", "Weaviate", "pgvector"])
def test_factory_falls_back_with_warning(kind, caplog):
    with caplog.at_level(logging.WARNING, logger="retrieval_hub.retrieval.vector_store"):
        s = create_vector_store(kind)

    assert isinstance(s, InMemoryVectorStore)
    assert "not yet implemented" in caplog.text


def test_factory_rejects_unknown_kind():
    with pytest.raises(ValueError):
        create_vector_store("faiss")
