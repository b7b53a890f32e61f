import math

import pytest
from llama_index.core.embeddings import MockEmbedding

from retrieval_hub.retrieval import embedder as embedder_module
from retrieval_hub.retrieval.embedder import (
    HashingEmbedder,
    LlamaIndexEmbedder,
    _normalize_embedder_kind,
    create_embedder,
)


def _norm(vector):
    return math.sqrt(sum(v * v for v in vector))


def test_hashing_embedder_is_deterministic_and_normalised():
    e = HashingEmbedder(64)

    first = e.embed("Vector stores hold embeddings")
    second = e.embed("Vector stores hold embeddings")

    assert first == second
    assert len(first) == 64
    assert _norm(first) == pytest.approx(1.0)


def test_hashing_embedder_is_case_insensitive_on_words():
    e = HashingEmbedder()

    assert e.embed("Quantum") == e.embed("quantum")


def test_hashing_embedder_empty_text_is_zero_vector():
    assert HashingEmbedder(8).embed("") == [0.0] * 8


def test_hashing_embedder_handles_text_without_words():
    vector = HashingEmbedder(16).embed("?!")

    assert len(vector) == 16
    assert _norm(vector) == pytest.approx(1.0)


def test_hashing_embedder_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        HashingEmbedder(0)


def test_llamaindex_adapter_delegates_to_model():
    wrapped = LlamaIndexEmbedder(MockEmbedding(embed_dim=8), dimensions=8)

    assert wrapped.dimensions == 8
    assert len(wrapped.embed("hello")) == 8
    assert len(wrapped.embed_query("hello")) == 8
    assert [len(v) for v in wrapped.embed_documents(["a", "b"])] == [8, 8]
    assert wrapped.embed_documents([]) == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("OpenAILike", "openai_like"),
        ("openai-like", "openai_like"),
        ("HuggingFace", "hugging_face"),
        ("hashing", "hashing"),
        ("", ""),
    ],
)
def test_normalize_embedder_kind(raw, expected):
    assert _normalize_embedder_kind(raw) == expected


def test_create_embedder_defaults_to_hashing():
    e = create_embedder(None)

    assert isinstance(e, HashingEmbedder)
    assert e.dimensions == 384


def test_create_embedder_reads_dimensions():
    e = create_embedder({"type": "Hashing", "dimensions": 32})

    assert isinstance(e, HashingEmbedder)
    assert e.dimensions == 32


def test_create_embedder_dispatches_on_provider(monkeypatch):
    captured = {}

    def fake_from_config_dict(cls, config):
        captured["config"] = config
        return "hf-embedder"

    monkeypatch.setattr(
        embedder_module.HuggingFaceEmbedder,
        "from_config_dict",
        classmethod(fake_from_config_dict),
    )

    result = create_embedder({"provider": "hf", "model_name": "some/model"})

    assert result == "hf-embedder"
    assert captured["config"]["model_name"] == "some/model"


def test_create_embedder_rejects_unknown_kind():
    with pytest.raises(ValueError):
        create_embedder({"type": "word2vec"})


def test_create_embedder_rejects_non_mapping():
    with pytest.raises(TypeError):
        create_embedder(["hashing"])
