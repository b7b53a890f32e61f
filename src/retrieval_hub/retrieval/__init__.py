"""
Retrieval layer of the retrieval hub.

This package covers everything needed to turn raw text into searchable
vectors and to fetch the most relevant chunks for a query: text cleaning and
chunking, embedding strategies, vector store backends, a query result cache,
and post-processing of hits.

Submodules
----------
document_processor
    Cleaning, section detection and chunking of raw documents.
embedder
    Embedding strategies and the embedder factory.
vector_store
    Vector store interface, in-memory implementation and backend factory.
query_cache
    TTL cache of search results.
reranker
    Exact-match reranking, deduplication and keyword highlighting.

Re-exports
----------
DocumentProcessor
    Primary interface for splitting documents into chunks.
BaseEmbedder
    Abstraction over embedding models.
VectorStore
    Vector store interface.
InMemoryVectorStore
    Default vector store implementation.
QueryCache
    Search result cache.
"""
from .document_processor import DocumentProcessor
from .embedder import BaseEmbedder, HashingEmbedder, create_embedder
from .query_cache import QueryCache
from .reranker import ExactMatchReranker, create_reranker
from .vector_store import (
    DimensionMismatchError,
    InMemoryVectorStore,
    VectorStore,
    VectorStoreKind,
    create_vector_store,
)

__all__ = [
    "BaseEmbedder",
    "DimensionMismatchError",
    "DocumentProcessor",
    "ExactMatchReranker",
    "HashingEmbedder",
    "InMemoryVectorStore",
    "QueryCache",
    "VectorStore",
    "VectorStoreKind",
    "create_embedder",
    "create_reranker",
    "create_vector_store",
]
