import logging

import pytest

from retrieval_hub.common import RetrievalQuery
from retrieval_hub.config import RetrievalHubConfig
from retrieval_hub.pipelines.retrieval_hub import RetrievalHub
from retrieval_hub.retrieval.vector_store import InMemoryVectorStore


class CountingStore(InMemoryVectorStore):
    """In-memory store that records every search it serves."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        return super().search(query)


class FailingStore(InMemoryVectorStore):
    def index_batch(self, documents):
        raise RuntimeError("disk full")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


DOCS = [
    {"content": "Quantum computing is the future", "metadata": {"id": "q", "source": "q.md"}},
    {"content": "Classical computers are everywhere", "metadata": {"id": "c", "source": "c.md"}},
]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def hub(store, clock):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store, clock=clock)
    h.index_documents(DOCS)
    return h


def test_index_documents_reports_counts(store, clock):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store, clock=clock)

    assert h.index_documents(DOCS) == {"indexed": 2, "chunks": 2}
    assert store.get_stats().document_count == 2


def test_index_documents_accepts_camel_case_options(store):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store)
    content = " ".join(f"Sentence {i} is about search." for i in range(20))

    result = h.index_documents([{"content": content, "metadata": {"id": "long"}}], {"chunkSize": 80, "chunkOverlap": 0})

    assert result["indexed"] == 1
    assert result["chunks"] > 1


def test_search_returns_best_match_highlighted(hub):
    result = hub.search(RetrievalQuery(query="quantum", top_k=1))

    assert [d.id for d in result.documents] == ["q_chunk_0"]
    assert result.documents[0].content == "**Quantum** computing is the future"
    assert result.total_results == 2


def test_search_uses_configured_default_top_k(store):
    h = RetrievalHub(RetrievalHubConfig(default_top_k=1), vector_store=store)
    h.index_documents(DOCS)

    result = h.search(RetrievalQuery(query="computers"))

    assert len(result.documents) == 1
    assert store.queries[-1].top_k == 1


def test_repeated_search_is_served_from_cache(hub, store):
    first = hub.search(RetrievalQuery(query="quantum"))
    second = hub.search(RetrievalQuery(query="quantum"))

    assert second is first
    assert len(store.queries) == 1


def test_cached_result_expires_after_ttl(hub, store, clock):
    hub.search(RetrievalQuery(query="quantum"))
    clock.now += hub.config.cache_ttl_ms / 1000 + 1

    hub.search(RetrievalQuery(query="quantum"))

    assert len(store.queries) == 2


def test_disabled_cache_always_searches(store):
    h = RetrievalHub(RetrievalHubConfig(enable_cache=False), vector_store=store)
    h.index_documents(DOCS)

    h.search(RetrievalQuery(query="quantum"))
    h.search(RetrievalQuery(query="quantum"))

    assert len(store.queries) == 2
    assert len(h.cache) == 0


def test_cache_respects_smaller_top_k(hub, store):
    hub.search(RetrievalQuery(query="quantum", top_k=5))

    result = hub.search(RetrievalQuery(query="quantum", top_k=1))

    assert len(result.documents) <= 1
    assert len(store.queries) == 2


def test_cache_respects_filters(hub):
    hub.search(RetrievalQuery(query="quantum"))

    result = hub.search(RetrievalQuery(query="quantum", filters={"source_doc_id": "c"}))

    assert [d.id for d in result.documents] == ["c_chunk_0"]


def test_cache_respects_metadata_flag(hub):
    bare = hub.search(RetrievalQuery(query="quantum", include_metadata=False))
    assert bare.documents[0].metadata is None

    full = hub.search(RetrievalQuery(query="quantum", include_metadata=True))
    assert full.documents[0].metadata["source"] == "q.md"


def test_ircot_after_plain_search_keeps_sources(hub):
    """
    A cached plain search for the same text must not hide the sources that
    the IRCoT rendering needs.
    """
    hub.search(RetrievalQuery(query="quantum"))

    output = hub.retrieve_for_ircot("quantum")

    assert output.startswith("Retrieved Information:\n\n[q.md]\n")


def test_indexing_invalidates_cache(hub, store):
    hub.search(RetrievalQuery(query="quantum"))
    hub.index_documents([{"content": "Quantum sensors", "metadata": {"id": "s"}}])

    result = hub.search(RetrievalQuery(query="quantum", top_k=5))

    assert len(store.queries) == 2
    assert "s_chunk_0" in {d.id for d in result.documents}


def test_rerank_flag_is_not_used_as_filter(hub, store):
    result = hub.search(RetrievalQuery(query="computers", filters={"rerank": True}))

    assert result.documents
    assert store.queries[-1].filters is None


def test_near_duplicates_are_removed(store):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store)
    h.index_documents(
        [
            {"content": "Same text about vectors", "metadata": {"id": "one"}},
            {"content": "same   text about VECTORS", "metadata": {"id": "two"}},
        ]
    )

    result = h.search(RetrievalQuery(query="vectors", top_k=5))

    assert len(result.documents) == 1
    assert result.total_results == 2


def test_delete_document_removes_all_chunks(hub):
    hub.search(RetrievalQuery(query="quantum"))

    assert hub.delete_document("q") == 1
    assert len(hub.cache) == 0

    remaining = hub.search(RetrievalQuery(query="quantum", filters={"source_doc_id": "q"}))
    assert remaining.documents == []
    assert hub.get_stats()["vectorStore"]["documentCount"] == 1


def test_delete_document_counts_every_chunk(store):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store)
    content = "\n".join(f"Line {i} of a long manual." for i in range(40))
    indexed = h.index_documents([{"content": content, "metadata": {"id": "manual"}}], {"chunk_size": 100})

    assert h.delete_document("manual") == indexed["chunks"]
    assert store.get_stats().document_count == 0


def test_delete_unknown_document_is_not_an_error(hub):
    assert hub.delete_document("missing") == 0


def test_ircot_uses_retrieve_directive(hub, store):
    output = hub.retrieve_for_ircot("I should look this up. [RETRIEVE: quantum computing] Then answer.")

    query = store.queries[-1]
    assert query.query == "quantum computing"
    assert query.top_k == 3
    assert query.include_metadata is True

    assert output.startswith("Retrieved Information:\n\n[q.md]\n**Quantum** **computing** is the future")
    assert "\n\n---\n\n[c.md]\n" in output


def test_ircot_appends_context(hub, store):
    hub.retrieve_for_ircot("quantum", context="earlier reasoning")

    assert store.queries[-1].query == "quantum (Context: earlier reasoning)"


def test_ircot_falls_back_to_document_label(store):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store)
    h.index_documents([{"content": "Untitled text", "metadata": {"id": "u"}}])

    assert h.retrieve_for_ircot("text").startswith("Retrieved Information:\n\n[Document 1]\n")


def test_ircot_without_results(store):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=store)

    assert h.retrieve_for_ircot("anything") == "No relevant information found."


def test_get_stats(hub):
    hub.search(RetrievalQuery(query="quantum"))

    assert hub.get_stats() == {
        "vectorStore": {"documentCount": 2, "indexSize": 4 * 384 * 2, "dimensions": 384},
        "cache": {"size": 1, "enabled": True},
    }


def test_index_failure_is_logged_and_raised(caplog):
    h = RetrievalHub(RetrievalHubConfig(), vector_store=FailingStore())

    with caplog.at_level(logging.ERROR, logger="retrieval_hub.pipelines.retrieval_hub"):
        with pytest.raises(RuntimeError, match="disk full"):
            h.index_documents(DOCS)

    assert "Failed to index" in caplog.text


def test_default_store_follows_config():
    h = RetrievalHub(RetrievalHubConfig(dimensions=32))

    assert isinstance(h.vector_store, InMemoryVectorStore)
    assert h.vector_store.get_stats().dimensions == 32
