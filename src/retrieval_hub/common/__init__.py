"""
Common building blocks shared across the retrieval hub.

This package provides small, widely-used primitives (document, query and
result schemas plus ID aliases) intended to be imported by multiple layers of
the system.

Classes
-------
Document
    Retrievable unit of text with optional embedding.
ChunkMetadata
    Positional record of a chunk within its source document.
ProcessingOptions
    Document processing options.
RetrievalQuery
    Similarity query with filters.
ScoredDocument
    Single retrieval hit.
RetrievalResult
    Ranked retrieval hits.
CacheEntry
    Cached retrieval result.
VectorStoreStats
    Vector store size information.

Attributes
----------
DocId : TypeAlias
    Type alias for document identifiers.
ChunkId : TypeAlias
    Type alias for chunk identifiers.
"""
from __future__ import annotations
from typing import TypeAlias

from .schemas import (
    CacheEntry,
    ChunkMetadata,
    Document,
    ProcessingOptions,
    RetrievalQuery,
    RetrievalResult,
    ScoredDocument,
    VectorStoreStats,
)

DocId: TypeAlias = str
ChunkId: TypeAlias = str

__all__ = [
    "CacheEntry",
    "ChunkMetadata",
    "Document",
    "ProcessingOptions",
    "RetrievalQuery",
    "RetrievalResult",
    "ScoredDocument",
    "VectorStoreStats",
    "DocId",
    "ChunkId",
]
