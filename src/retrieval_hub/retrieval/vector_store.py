"""retrieval_hub.retrieval.vector_store

Vector store interfaces and factories for the retrieval layer.

This module defines a small interface around vector-store backends and
provides an in-process implementation that scores documents by cosine
similarity with a linear scan. The main responsibilities are:
- indexing :class:`~retrieval_hub.common.schemas.Document` objects, embedding
  them on first index when they carry no vector
- running filtered similarity queries and reporting size statistics

Classes
-------
VectorStore
    Abstract interface for vector store backends.
InMemoryVectorStore
    Dictionary-backed store with brute-force cosine search.
VectorStoreKind
    Known backend names.
DimensionMismatchError
    Raised when vectors of different lengths meet.

Functions
---------
cosine_similarity
    Cosine similarity between two equal-length vectors.
create_vector_store
    Create a vector store implementation for a backend name.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from retrieval_hub.common import Document, RetrievalQuery, RetrievalResult, ScoredDocument, VectorStoreStats
from retrieval_hub.retrieval.embedder import DEFAULT_DIMENSIONS, BaseEmbedder, HashingEmbedder

logger = logging.getLogger(__name__)

BYTES_PER_FLOAT = 4
DEFAULT_TOP_K = 5


class DimensionMismatchError(ValueError):
    """Raised when two vectors, or a vector and a store, disagree on length."""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of two vectors.

    Parameters
    ----------
    a, b : Sequence[float]
        Vectors of equal length.

    Returns
    -------
    float
        ``dot(a, b) / (|a| * |b|)``, in ``[-1, 1]``. ``0.0`` when either
        vector has zero norm.

    Raises
    ------
    DimensionMismatchError
        If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vector lengths differ: {len(a)} != {len(b)}")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def _matches_filters(metadata: Mapping[str, Any], filters: Optional[Mapping[str, Any]]) -> bool:
    if not filters:
        return True
    for key, value in filters.items():
        if key not in metadata or metadata[key] != value:
            return False
    return True


class VectorStore(ABC):
    """Abstract interface for vector store backends.

    Implementations own their documents and embeddings exclusively; callers
    interact only through the methods below.
    """

    @abstractmethod
    def index(self, document: Document) -> None:
        """Store a document, embedding it first if it has no vector."""

    @abstractmethod
    def index_batch(self, documents: Iterable[Document]) -> None:
        """Store several documents."""

    @abstractmethod
    def search(self, query: RetrievalQuery) -> RetrievalResult:
        """Return the documents most similar to ``query``.

        Parameters
        ----------
        query : RetrievalQuery
            Query text, result limit, metadata filters and metadata flag.

        Returns
        -------
        RetrievalResult
            Hits sorted by descending score, at most ``query.top_k`` of them.
        """

    @abstractmethod
    def delete(self, doc_id: str) -> None:
        """Remove a document. Removing an unknown id is a no-op."""

    @abstractmethod
    def get_stats(self) -> VectorStoreStats:
        """Return size information for the store."""


class InMemoryVectorStore(VectorStore):
    """Vector store holding documents and embeddings in process memory.

    Search is an exact linear scan: every filter-matching document is scored
    against the query embedding.

    Parameters
    ----------
    embedder : BaseEmbedder or None, optional
        Embedding strategy. Defaults to a :class:`HashingEmbedder` of
        ``dimensions`` length.
    dimensions : int or None, optional
        Expected vector length. Defaults to the embedder's dimensionality,
        or ``384`` without an embedder.

    Raises
    ------
    DimensionMismatchError
        If ``dimensions`` and the embedder's dimensionality disagree.
    """

    def __init__(self, embedder: Optional[BaseEmbedder] = None, dimensions: Optional[int] = None):
        if embedder is None:
            embedder = HashingEmbedder(dimensions or DEFAULT_DIMENSIONS)
        if dimensions is None:
            dimensions = embedder.dimensions
        if int(dimensions) != embedder.dimensions:
            raise DimensionMismatchError(
                f"Store expects {dimensions} dimensions but embedder produces {embedder.dimensions}"
            )

        self.embedder = embedder
        self.dimensions = int(dimensions)
        self._documents: dict[str, Document] = {}
        self._embeddings: dict[str, list[float]] = {}
        self._lock = threading.RLock()

    def _check_dimensions(self, document: Document) -> None:
        if len(document.embedding) != self.dimensions:
            raise DimensionMismatchError(
                f"Document {document.id!r} has a {len(document.embedding)}-dimensional embedding; "
                f"store expects {self.dimensions}"
            )

    def index(self, document: Document) -> None:
        if document.embedding is None:
            document.embedding = self.embedder.embed(document.content)
        self._check_dimensions(document)

        with self._lock:
            self._documents[document.id] = document
            self._embeddings[document.id] = list(document.embedding)

        logger.debug("Indexed document %s", document.id)

    def index_batch(self, documents: Iterable[Document]) -> None:
        documents = list(documents)
        missing = [doc for doc in documents if doc.embedding is None]
        if missing:
            vectors = self.embedder.embed_documents([doc.content for doc in missing])
            for doc, vector in zip(missing, vectors):
                doc.embedding = vector

        for doc in documents:
            self._check_dimensions(doc)

        with self._lock:
            for doc in documents:
                self._documents[doc.id] = doc
                self._embeddings[doc.id] = list(doc.embedding)

        logger.info("Indexed %d documents", len(documents))

    def search(self, query: RetrievalQuery) -> RetrievalResult:
        started = time.perf_counter()
        top_k = query.top_k if query.top_k is not None else DEFAULT_TOP_K

        # An empty query only enumerates filter matches; every score is 0.0.
        query_vector = self.embedder.embed_query(query.query) if query.query else None

        with self._lock:
            candidates = [
                (doc, self._embeddings[doc_id])
                for doc_id, doc in self._documents.items()
                if _matches_filters(doc.metadata, query.filters)
            ]

        scored: list[ScoredDocument] = []
        for doc, vector in candidates:
            score = cosine_similarity(query_vector, vector) if query_vector is not None else 0.0
            scored.append(
                ScoredDocument(
                    id=doc.id,
                    content=doc.content,
                    score=score,
                    metadata=dict(doc.metadata) if query.include_metadata else None,
                )
            )

        scored.sort(key=lambda d: d.score, reverse=True)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        return RetrievalResult(
            documents=scored[:max(0, int(top_k))],
            total_results=len(scored),
            query_time_ms=elapsed_ms,
        )

    def delete(self, doc_id: str) -> None:
        with self._lock:
            self._documents.pop(doc_id, None)
            self._embeddings.pop(doc_id, None)
        logger.debug("Deleted document %s", doc_id)

    def get_stats(self) -> VectorStoreStats:
        with self._lock:
            count = len(self._documents)
        return VectorStoreStats(
            document_count=count,
            index_size=BYTES_PER_FLOAT * self.dimensions * count,
            dimensions=self.dimensions,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        with self._lock:
            return doc_id in self._documents


class VectorStoreKind(str, Enum):
    """Known vector store backends.

    Only ``MEMORY`` is implemented; the remaining names are accepted and fall
    back to the in-memory store.
    """

    MEMORY = "memory"
    PINECONE = "pinecone"
    WEAVIATE = "weaviate"
    PGVECTOR = "pgvector"


def create_vector_store(
    kind: str | VectorStoreKind = VectorStoreKind.MEMORY,
    *,
    embedder: Optional[BaseEmbedder] = None,
    dimensions: Optional[int] = None,
) -> VectorStore:
    """Create a vector store for a backend name.

    Parameters
    ----------
    kind : str or VectorStoreKind, optional
        Backend name (case-insensitive). Defaults to ``"memory"``.
    embedder : BaseEmbedder or None, optional
        Embedding strategy handed to the store.
    dimensions : int or None, optional
        Expected vector length.

    Returns
    -------
    VectorStore
        An initialised store. Backends without an implementation log a
        warning and return an :class:`InMemoryVectorStore`.

    Raises
    ------
    ValueError
        If ``kind`` names no known backend.
    """
    raw = kind.value if isinstance(kind, VectorStoreKind) else str(kind or "").strip().lower()
    try:
        resolved = VectorStoreKind(raw or VectorStoreKind.MEMORY.value)
    except ValueError:
        raise ValueError(
            f"Unknown vector store type '{kind}'. "
            f"Supported types: {sorted(k.value for k in VectorStoreKind)}."
        ) from None

    if resolved is not VectorStoreKind.MEMORY:
        logger.warning("%s vector store not yet implemented, using in-memory store", resolved.value)

    return InMemoryVectorStore(embedder=embedder, dimensions=dimensions)


__all__ = [
    "DimensionMismatchError",
    "InMemoryVectorStore",
    "VectorStore",
    "VectorStoreKind",
    "cosine_similarity",
    "create_vector_store",
]
