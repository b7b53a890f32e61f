import pytest

from retrieval_hub.common import ScoredDocument
from retrieval_hub.retrieval.reranker import (
    ExactMatchReranker,
    create_reranker,
    deduplicate,
    highlight,
    highlight_documents,
)


def _doc(doc_id: str, content: str, score: float) -> ScoredDocument:
    return ScoredDocument(id=doc_id, content=content, score=score)


def test_exact_match_boost_reorders_hits():
    docs = [
        _doc("a", "Vector search basics", 0.80),
        _doc("b", "An intro to Query Caching for search", 0.75),
    ]

    reranked = ExactMatchReranker().rerank("query caching", docs)

    assert [d.id for d in reranked] == ["b", "a"]
    assert reranked[0].score == pytest.approx(0.85)
    # inputs are not mutated
    assert docs[1].score == 0.75


def test_exact_match_without_hits_keeps_order():
    docs = [_doc("a", "one", 0.9), _doc("b", "two", 0.5)]

    assert [d.id for d in ExactMatchReranker().rerank("three", docs)] == ["a", "b"]


def test_deduplicate_keeps_first_near_duplicate():
    prefix = "x" * 100
    docs = [
        _doc("a", "Same   Text here", 0.9),
        _doc("b", "same text HERE", 0.8),
        _doc("c", prefix + " tail one", 0.7),
        _doc("d", prefix + " tail two", 0.6),
        _doc("e", "different", 0.5),
    ]

    assert [d.id for d in deduplicate(docs)] == ["a", "c", "e"]


def test_highlight_wraps_whole_words_case_insensitively():
    text = "Caching helps. The cache is warm; precache is not a word match."

    assert highlight(text, "CACHE is") == (
        "Caching helps. The **cache** is warm; precache is not a word match."
    )


def test_highlight_escapes_regex_characters():
    assert highlight("use c++ and c.net", "c.net") == "use c++ and **c.net**"
    assert highlight("costs $100 total", "(100") == "costs $100 total"


def test_highlight_documents_returns_copies():
    docs = [_doc("a", "vector store", 1.0)]

    out = highlight_documents(docs, "vector")

    assert out[0].content == "**vector** store"
    assert docs[0].content == "vector store"


def test_create_reranker():
    assert isinstance(create_reranker(None), ExactMatchReranker)
    assert create_reranker({"type": "exact-match", "boost": 0.5}).boost == 0.5

    with pytest.raises(ValueError):
        create_reranker({"type": "rrf"})
