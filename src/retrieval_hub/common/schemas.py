"""retrieval_hub.common.schemas

Core data schemas shared across the retrieval hub.

These lightweight dataclasses describe the canonical shapes passed between
the document processor, the vector store, the query cache, the hub
orchestrator and the HTTP layer.

Classes
-------
Document
    A retrievable unit of text (usually a chunk) with optional embedding.
ChunkMetadata
    Positional record describing where a chunk came from.
ProcessingOptions
    Cleaning and chunk-geometry options for the document processor.
RetrievalQuery
    A similarity query with optional metadata filters.
ScoredDocument
    A single search hit.
RetrievalResult
    Ranked hits plus candidate count and timing.
CacheEntry
    A cached :class:`RetrievalResult` and the time it was stored.
VectorStoreStats
    Size information reported by a vector store.

Notes
-----
``metadata`` is intentionally untyped (``dict[str, Any]``) to allow arbitrary
key-value pairs (e.g., source, author). Downstream code should not assume
any key is present.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4


@dataclass
class Document:
    """Container for a retrievable document or chunk.

    Attributes
    ----------
    content : str
        Text content used for embedding and returned on retrieval.
    id : str
        Unique identifier within a store. Defaults to a random UUID4 string.
    metadata : Dict[str, Any]
        Arbitrary metadata. Chunks produced by the document processor carry
        the :class:`ChunkMetadata` keys here.
    embedding : list[float] or None
        Embedding vector. Computed by the store on first index when ``None``.
    """
    content: str
    id: str = field(default_factory=lambda: str(uuid4()))
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[List[float]] = None


@dataclass
class ChunkMetadata:
    """Positional record of a chunk within its source document.

    Attributes
    ----------
    source_doc_id : str
        Identifier of the document the chunk was cut from.
    chunk_index : int
        0-based position of the chunk; contiguous per ``source_doc_id``.
    total_chunks : int
        Number of chunks produced for ``source_doc_id``.
    start_char : int
        Start offset of the chunk window.
    end_char : int
        End offset (exclusive) of the chunk window.
    section : str or None
        Heading of the section the chunk belongs to, if any.
    """
    source_doc_id: str
    chunk_index: int
    total_chunks: int
    start_char: int
    end_char: int
    section: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProcessingOptions:
    """Options controlling cleaning and chunk geometry.

    Attributes
    ----------
    chunk_size : int
        Maximum window size in characters. Defaults to ``512``.
    chunk_overlap : int
        Characters shared between adjacent windows. Defaults to ``128``.
    include_metadata : bool
        Whether caller-supplied metadata is copied onto each chunk.
    clean_text : bool
        Whether to strip control characters and normalise whitespace.
    preserve_formatting : bool
        When cleaning, keep whitespace and line layout untouched and only
        strip control characters.
    """
    chunk_size: int = 512
    chunk_overlap: int = 128
    include_metadata: bool = True
    clean_text: bool = True
    preserve_formatting: bool = False

    _ALIASES = {
        "chunkSize": "chunk_size",
        "chunkOverlap": "chunk_overlap",
        "includeMetadata": "include_metadata",
        "cleanText": "clean_text",
        "preserveFormatting": "preserve_formatting",
    }

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "ProcessingOptions":
        """Build options from a mapping using snake_case or camelCase keys.

        Unknown keys and ``None`` values are ignored.
        """
        kwargs: Dict[str, Any] = {}
        for key, value in (raw or {}).items():
            name = cls._ALIASES.get(key, key)
            if name in cls.__dataclass_fields__ and value is not None:
                kwargs[name] = value
        return cls(**kwargs)


@dataclass
class RetrievalQuery:
    """A similarity query.

    Attributes
    ----------
    query : str
        Raw query text. Also used as the cache key.
    top_k : int or None
        Maximum number of hits. ``None`` lets the hub apply its default.
    filters : dict or None
        Exact-match metadata filters. The hub additionally honours a
        ``rerank`` flag here.
    include_metadata : bool
        Whether hits carry their document metadata.
    """
    query: str
    top_k: Optional[int] = None
    filters: Optional[Dict[str, Any]] = None
    include_metadata: bool = False


@dataclass
class ScoredDocument:
    """A single retrieval hit."""
    id: str
    content: str
    score: float
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "content": self.content, "score": self.score}
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass
class RetrievalResult:
    """Ranked hits for a query.

    Attributes
    ----------
    documents : list[ScoredDocument]
        Hits sorted by ``score`` descending, at most ``top_k`` of them.
    total_results : int
        Number of filter-matching candidates before top-k truncation.
    query_time_ms : int
        Wall time spent in the store search.
    """
    documents: List[ScoredDocument] = field(default_factory=list)
    total_results: int = 0
    query_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documents": [doc.to_dict() for doc in self.documents],
            "total_results": self.total_results,
            "query_time_ms": self.query_time_ms,
        }


@dataclass
class CacheEntry:
    result: RetrievalResult
    timestamp: float


@dataclass(frozen=True)
class VectorStoreStats:
    """Size information for a vector store.

    ``index_size`` is an estimate in bytes assuming 32-bit floats.
    """
    document_count: int
    index_size: int
    dimensions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documentCount": self.document_count,
            "indexSize": self.index_size,
            "dimensions": self.dimensions,
        }
