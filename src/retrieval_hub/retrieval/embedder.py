"""retrieval_hub.retrieval.embedder

Embedding interfaces and factories for the retrieval layer.

This module defines a small provider-agnostic strategy for producing vector
embeddings from text. The vector store only depends on :class:`BaseEmbedder`,
so a real embedding model can be swapped in through configuration without
touching store logic. A factory function is provided to construct an embedder
implementation from configuration.

Classes
-------
BaseEmbedder
    Abstract interface specifying the API used by the vector store.
HashingEmbedder
    Deterministic, dependency-free placeholder based on feature hashing.
LlamaIndexEmbedder
    Adapter around any LlamaIndex embedding model.
HuggingFaceEmbedder
    LlamaIndex adapter backed by a Hugging Face SentenceTransformer.
OpenAILikeEmbedder
    LlamaIndex adapter backed by an OpenAI-compatible HTTP API.

Functions
---------
create_embedder
    Create an embedder implementation from a configuration mapping.
"""

from __future__ import annotations

import hashlib
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import yaml
from llama_index.core.base.embeddings.base import BaseEmbedding as LlamaIndexBaseEmbedding

DEFAULT_DIMENSIONS = 384

TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return bool(value)


def _l2_normalise(vector: list[float]) -> list[float]:
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return vector
    return [v / norm for v in vector]


class BaseEmbedder(ABC):
    """Abstract interface for text embedding.

    Concrete implementations expose a fixed dimensionality and a single
    :meth:`embed` method; batch and query helpers are derived from it.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector produced by this embedder."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single piece of text.

        Parameters
        ----------
        text : str
            Text to embed.

        Returns
        -------
        list[float]
            Embedding vector of length :attr:`dimensions`.
        """

    @classmethod
    @abstractmethod
    def from_config_dict(cls, config: Dict[str, Any]) -> "BaseEmbedder":
        """Create an embedder from a configuration mapping.

        Raises
        ------
        KeyError
            If required configuration keys are missing.
        """

    @classmethod
    def from_config(cls, config_path: str) -> "BaseEmbedder":
        """Create an embedder from a YAML configuration file.

        Parameters
        ----------
        config_path : str
            Path to a YAML file holding the embedder section.

        Returns
        -------
        BaseEmbedder
            An initialised embedder implementation.
        """
        with open(config_path, "r") as f:
            cfg = yaml.safe_load(f) or {}
        return cls.from_config_dict(cfg)

    def embed_query(self, query: str) -> list[float]:
        """Embed a search query. Defaults to :meth:`embed`."""
        return self.embed(query)

    def embed_documents(self, documents: list[str]) -> list[list[float]]:
        """Embed multiple documents, one :meth:`embed` call each."""
        return [self.embed(doc) for doc in documents]


class HashingEmbedder(BaseEmbedder):
    """Deterministic placeholder embedder.

    Word tokens are lower-cased and hashed into ``dimensions`` buckets with a
    hash-derived sign (the "hashing trick"), so texts sharing words get
    positively correlated vectors. Text without any word token falls back to
    a periodic vector seeded by the hash of the whole text. Vectors are
    L2-normalised; the empty string maps to the zero vector.

    This stands in for a real embedding model; it carries no semantics
    beyond word overlap.

    Parameters
    ----------
    dimensions : int, optional
        Vector length. Defaults to ``384``.
    """

    def __init__(self, dimensions: int = DEFAULT_DIMENSIONS):
        dimensions = int(dimensions)
        if dimensions <= 0:
            raise ValueError("'dimensions' must be a positive integer.")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimensions
        if not text:
            return vector

        tokens = TOKEN_PATTERN.findall(text.lower())
        if not tokens:
            seed = int.from_bytes(hashlib.sha1(text.encode("utf-8")).digest()[:4], "big")
            vector = [math.sin(seed * (i + 1)) * 0.5 + 0.5 for i in range(self._dimensions)]
            return _l2_normalise(vector)

        for token in tokens:
            digest = hashlib.sha1(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimensions
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign

        return _l2_normalise(vector)

    @classmethod
    def from_config_dict(cls, config: Dict[str, Any]) -> "HashingEmbedder":
        return cls(dimensions=int(config.get("dimensions", DEFAULT_DIMENSIONS)))


class LlamaIndexEmbedder(BaseEmbedder):
    """Adapter exposing a LlamaIndex embedding model as a :class:`BaseEmbedder`.

    Parameters
    ----------
    embed_model : LlamaIndexBaseEmbedding
        Any LlamaIndex embedding model.
    dimensions : int
        Output dimensionality of ``embed_model``. The vector store rejects
        vectors of any other length.
    """

    def __init__(self, embed_model: LlamaIndexBaseEmbedding, *, dimensions: int):
        self.embed_model = embed_model
        self._dimensions = int(dimensions)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def get_embedder(self) -> LlamaIndexBaseEmbedding:
        """Return the underlying LlamaIndex embedding object."""
        return self.embed_model

    def embed(self, text: str) -> list[float]:
        return list(self.embed_model.get_text_embedding(text))

    def embed_query(self, query: str) -> list[float]:
        return list(self.embed_model.get_query_embedding(query))

    def embed_documents(self, documents: list[str]) -> list[list[float]]:
        if not documents:
            return []
        return [list(v) for v in self.embed_model.get_text_embedding_batch(documents)]

    @classmethod
    def from_config_dict(cls, config: Dict[str, Any]) -> "LlamaIndexEmbedder":
        raise TypeError(
            "LlamaIndexEmbedder wraps an existing model; construct it directly "
            "or use HuggingFaceEmbedder / OpenAILikeEmbedder."
        )


class HuggingFaceEmbedder(LlamaIndexEmbedder):
    """Embedder backed by a Hugging Face SentenceTransformer via LlamaIndex.

    This implementation wraps :class:`llama_index.embeddings.huggingface.HuggingFaceEmbedding`.

    Parameters
    ----------
    model_name : str
        Name or path of the embedding model.
    dimensions : int
        Output dimensionality of the model.
    device : str or None, optional
        Device identifier (e.g., ``"cuda"``, ``"cpu"``, ``"mps"``).
    trust_remote_code : bool, optional
        Whether to allow custom model code from the Hugging Face Hub.
    model_kwargs : dict[str, Any] or None, optional
        Additional keyword arguments forwarded to the underlying embedder.
    """

    def __init__(
            self,
            model_name: str,
            *,
            dimensions: int,
            device: Optional[str] = None,
            trust_remote_code: bool = False,
            model_kwargs: dict[str, Any] = None,
        ):
        from llama_index.embeddings.huggingface import HuggingFaceEmbedding

        embed_model = HuggingFaceEmbedding(
            model_name=model_name,
            trust_remote_code=trust_remote_code,
            device=device,
            model_kwargs=model_kwargs or {},
        )
        super().__init__(embed_model, dimensions=dimensions)

    @classmethod
    def from_config_dict(cls, config: Dict[str, Any]) -> "HuggingFaceEmbedder":
        """Create a Hugging Face embedder from a configuration mapping.

        Raises
        ------
        KeyError
            If ``model_name`` is missing.
        """
        return cls(
            model_name=config["model_name"],
            dimensions=int(config.get("dimensions", DEFAULT_DIMENSIONS)),
            device=config.get("device"),
            trust_remote_code=_as_bool(config.get("trust_remote_code"), False),
            model_kwargs=config.get("model_kwargs", {}),
        )


class OpenAILikeEmbedder(LlamaIndexEmbedder):
    """Embedder backed by an OpenAI-compatible embedding API via LlamaIndex.

    This implementation wraps :class:`llama_index.embeddings.openai_like.OpenAILikeEmbedding`.
    """

    def __init__(
            self,
            model_name: str,
            *,
            api_base: str,
            dimensions: int,
            api_key: str = None,
            model_kwargs: dict[str, Any] = None,
            timeout: float = 60.0,
            max_retries: int = 10,
            embed_batch_size: int = 10,
            reuse_client: bool = True,
        ):
        from llama_index.embeddings.openai_like import OpenAILikeEmbedding

        embed_model = OpenAILikeEmbedding(
            model_name=model_name,
            api_base=api_base,
            additional_kwargs=model_kwargs or {},
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            embed_batch_size=embed_batch_size,
            reuse_client=reuse_client,
        )
        super().__init__(embed_model, dimensions=dimensions)

    @classmethod
    def from_config_dict(cls, config: Dict[str, Any]) -> "OpenAILikeEmbedder":
        """Create an OpenAI-compatible embedder from a configuration mapping.

        Raises
        ------
        KeyError
            If ``model_name`` or ``api_base`` is missing.
        """
        return cls(
            model_name=config["model_name"],
            api_base=config["api_base"],
            dimensions=int(config.get("dimensions", DEFAULT_DIMENSIONS)),
            api_key=config.get("api_key"),
            model_kwargs=config.get("model_kwargs", {}),
            timeout=float(config.get("timeout", config.get("request_timeout", 60.0))),
            max_retries=int(config.get("max_retries", 10)),
            embed_batch_size=int(config.get("embed_batch_size", 10)),
            reuse_client=_as_bool(config.get("reuse_client"), True),
        )


# ----------------- Factory helpers -----------------

def _get_embedder_kind(cfg: Mapping[str, Any]) -> str:
    """Extract the embedder kind/type/provider discriminator from a config mapping.

    Returns
    -------
    str
        The first non-empty discriminator value found, or an empty string if none
        is present.
    """
    for key in ("kind", "type", "provider", "backend", "impl"):
        val = cfg.get(key)
        if isinstance(val, str) and val.strip():
            return val.strip()
    return ""


def _normalize_embedder_kind(kind: str) -> str:
    """Normalise an embedder kind/type string to a stable registry key.

    The normalisation converts CamelCase to snake_case, replaces whitespace
    and hyphens with underscores, collapses repeated underscores and applies
    a small set of provider-specific aliases (e.g., ``"OpenAILike"`` ->
    ``"openai_like"``).
    """
    k = kind.strip()
    if not k:
        return ""

    # Insert underscores between camel-case boundaries.
    out: list[str] = []
    prev = ""
    for ch in k:
        if prev and prev.islower() and ch.isupper():
            out.append("_")
        out.append(ch)
        prev = ch

    k2 = "".join(out)
    k2 = k2.replace("-", "_").replace(" ", "_")

    while "__" in k2:
        k2 = k2.replace("__", "_")

    k2 = k2.lower()

    k2 = k2.replace("openailike", "openai_like")
    k2 = k2.replace("open_ailike", "openai_like")
    k2 = k2.replace("open_ai_like", "openai_like")

    return k2


def create_embedder(config: Optional[Mapping[str, Any]] = None) -> BaseEmbedder:
    """Create an embedder implementation from a configuration mapping.

    The concrete implementation is selected by a discriminator field in the
    configuration (one of: ``kind``, ``type``, ``provider``, ``backend``, or
    ``impl``). If none is provided, :class:`HashingEmbedder` is used.

    Parameters
    ----------
    config : Mapping[str, Any] or None, optional
        Configuration mapping used to construct the embedder.

    Returns
    -------
    BaseEmbedder
        An initialised embedder implementation.

    Raises
    ------
    TypeError
        If ``config`` is not a mapping.
    ValueError
        If the discriminator selects an unsupported implementation.
    """
    if config is None:
        config = {}
    if not isinstance(config, Mapping):
        raise TypeError(f"create_embedder expected a mapping/dict, got {type(config)}")

    kind_raw = _get_embedder_kind(config)
    kind = _normalize_embedder_kind(kind_raw)

    registry = {
        "hashing": HashingEmbedder,
        "hash": HashingEmbedder,
        "placeholder": HashingEmbedder,
        "huggingface": HuggingFaceEmbedder,
        "hugging_face": HuggingFaceEmbedder,
        "hf": HuggingFaceEmbedder,
        "openai_like": OpenAILikeEmbedder,
        "openai": OpenAILikeEmbedder,
    }

    cls = registry.get(kind) if kind else HashingEmbedder

    if cls is None:
        raise ValueError(
            f"Unknown embedder kind '{kind_raw}' (normalized to '{kind}'). "
            f"Supported kinds: {sorted(registry.keys())}."
        )

    return cls.from_config_dict(dict(config))


__all__ = [
    "BaseEmbedder",
    "HashingEmbedder",
    "LlamaIndexEmbedder",
    "HuggingFaceEmbedder",
    "OpenAILikeEmbedder",
    "create_embedder",
]
