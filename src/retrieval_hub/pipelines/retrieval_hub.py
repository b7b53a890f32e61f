"""retrieval_hub.pipelines.retrieval_hub

Retrieval orchestration: chunking, indexing, cached search and
iterative-retrieval helpers.

This module defines the :class:`RetrievalHub`, which coordinates the document
processor, a vector store, a query cache and result post-processing. The hub
is constructed explicitly (typically by the application container) and holds
no global state.

Classes
-------
RetrievalHub
    Orchestrates processing → indexing, and cache → search → post-processing.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Mapping, Optional

from retrieval_hub.common import ProcessingOptions, RetrievalQuery, RetrievalResult
from retrieval_hub.config import RetrievalHubConfig
from retrieval_hub.retrieval.document_processor import DocumentProcessor
from retrieval_hub.retrieval.query_cache import QueryCache
from retrieval_hub.retrieval.reranker import BaseReranker, ExactMatchReranker, deduplicate, highlight_documents
from retrieval_hub.retrieval.vector_store import VectorStore, create_vector_store

logger = logging.getLogger(__name__)

RETRIEVE_DIRECTIVE = re.compile(r"\[RETRIEVE:\s*(.+?)\]")
IRCOT_TOP_K = 3
DELETE_SCAN_LIMIT = 1000
NO_RESULTS_MESSAGE = "No relevant information found."
RERANK_FLAG = "rerank"


def _cache_key(query: RetrievalQuery, rerank: bool) -> tuple:
    # filter values may be unhashable (lists, dicts)
    filters = tuple(sorted((str(k), repr(v)) for k, v in (query.filters or {}).items()))
    return (query.query, query.top_k, filters, rerank, query.include_metadata)


class RetrievalHub:
    """Retrieval orchestrator.

    This class wires together:
    - a document processor to clean and chunk incoming documents
    - a vector store to embed, hold and search chunks
    - a query cache to short-circuit repeated searches
    - a reranker plus deduplication and highlighting for returned hits

    Parameters
    ----------
    config : RetrievalHubConfig
        Hub settings.
    vector_store : VectorStore or None, optional
        Store to use. Defaults to one created from ``config.vector_store_type``.
    document_processor : DocumentProcessor or None, optional
        Chunker to use. Defaults to a :class:`DocumentProcessor`.
    reranker : BaseReranker or None, optional
        Reranker applied when a query's filters set ``rerank``. Defaults to
        :class:`ExactMatchReranker`.
    clock : Callable[[], float] or None, optional
        Time source for the query cache (seconds).
    """

    def __init__(
        self,
        config: RetrievalHubConfig,
        vector_store: Optional[VectorStore] = None,
        document_processor: Optional[DocumentProcessor] = None,
        reranker: Optional[BaseReranker] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        if vector_store is None:
            vector_store = create_vector_store(config.vector_store_type, dimensions=config.dimensions)
        self.vector_store = vector_store
        self.document_processor = document_processor or DocumentProcessor(
            ProcessingOptions(
                chunk_size=config.default_chunk_size,
                chunk_overlap=config.default_chunk_overlap,
            )
        )
        self.reranker = reranker or ExactMatchReranker()

        cache_kwargs: dict[str, Any] = {}
        if clock is not None:
            cache_kwargs["clock"] = clock
        self.cache = QueryCache(config.cache_size, config.cache_ttl_seconds, **cache_kwargs)

    def _resolve_options(self, options: ProcessingOptions | Mapping[str, Any] | None) -> ProcessingOptions:
        if isinstance(options, ProcessingOptions):
            return options

        merged: dict[str, Any] = {
            "chunk_size": self.config.default_chunk_size,
            "chunk_overlap": self.config.default_chunk_overlap,
        }
        for key, value in (options or {}).items():
            if value is not None:
                # camelCase keys must override the snake_case defaults above
                merged[ProcessingOptions._ALIASES.get(key, key)] = value
        return ProcessingOptions.from_mapping(merged)

    def index_documents(
        self,
        documents: Iterable[Mapping[str, Any]],
        options: ProcessingOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, int]:
        """Chunk and index raw documents.

        Parameters
        ----------
        documents : Iterable[Mapping[str, Any]]
            Raw documents, each with ``content`` and optional ``metadata``.
        options : ProcessingOptions or Mapping[str, Any] or None, optional
            Processing options. Unset chunk geometry falls back to the hub's
            configured defaults.

        Returns
        -------
        dict[str, int]
            ``{"indexed": <documents>, "chunks": <chunks>}``.
        """
        documents = list(documents)
        try:
            opts = self._resolve_options(options)
            chunks = self.document_processor.process_batch(documents, opts)
            self.vector_store.index_batch(chunks)
        except Exception:
            logger.exception("Failed to index %d documents", len(documents))
            raise

        self.cache.clear()
        logger.info("Indexed %d documents as %d chunks", len(documents), len(chunks))
        return {"indexed": len(documents), "chunks": len(chunks)}

    def search(self, query: RetrievalQuery) -> RetrievalResult:
        """Run a similarity search, serving repeated queries from the cache.

        Cache entries are keyed by the query text together with the
        effective ``top_k``, the filters, the ``rerank`` flag and
        ``include_metadata``, so a hit always honours the request. When the
        query's filters contain a truthy ``rerank`` entry the reranker is applied;
        the flag itself is not used as a metadata filter. Near-duplicate hits
        are dropped and query terms are highlighted in returned content.

        Parameters
        ----------
        query : RetrievalQuery
            Query text, result limit, filters and metadata flag.

        Returns
        -------
        RetrievalResult
            Post-processed hits.
        """
        filters = dict(query.filters or {})
        rerank = bool(filters.pop(RERANK_FLAG, False))
        store_query = RetrievalQuery(
            query=query.query,
            top_k=query.top_k if query.top_k is not None else self.config.default_top_k,
            filters=filters or None,
            include_metadata=query.include_metadata,
        )

        cache_key = _cache_key(store_query, rerank)
        if self.config.enable_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            result = self.vector_store.search(store_query)
        except Exception:
            logger.exception("Search failed for query %r", query.query)
            raise

        documents = result.documents
        if rerank:
            documents = self.reranker.rerank(query.query, documents)
        documents = deduplicate(documents)
        documents = highlight_documents(documents, query.query)

        processed = RetrievalResult(
            documents=documents,
            total_results=result.total_results,
            query_time_ms=result.query_time_ms,
        )

        if self.config.enable_cache:
            self.cache.set(cache_key, processed)

        return processed

    def retrieve_for_ircot(self, query: str, context: Optional[str] = None) -> str:
        """Retrieve supporting text for an interleaved reasoning step.

        A ``[RETRIEVE: ...]`` directive inside ``query`` selects the text to
        search for; otherwise the whole query is used. When ``context`` is
        given it is appended as ``"(Context: ...)"``.

        Parameters
        ----------
        query : str
            Reasoning step or plain query.
        context : str or None, optional
            Prior reasoning to bias the search.

        Returns
        -------
        str
            A ``"Retrieved Information:"`` block with one ``[source]`` section
            per hit, or ``"No relevant information found."``.
        """
        match = RETRIEVE_DIRECTIVE.search(query)
        search_query = match.group(1) if match else query
        if context:
            search_query = f"{search_query} (Context: {context})"

        result = self.search(
            RetrievalQuery(query=search_query, top_k=IRCOT_TOP_K, include_metadata=True)
        )
        if not result.documents:
            return NO_RESULTS_MESSAGE

        sections = []
        for i, doc in enumerate(result.documents):
            source = (doc.metadata or {}).get("source") or f"Document {i + 1}"
            sections.append(f"[{source}]\n{doc.content}")

        return "Retrieved Information:\n\n" + "\n\n---\n\n".join(sections)

    def delete_document(self, doc_id: str) -> int:
        """Delete every chunk produced from a source document.

        Parameters
        ----------
        doc_id : str
            Identifier of the source document (the ``id`` it was indexed with).

        Returns
        -------
        int
            Number of chunks removed. ``0`` when nothing matched.
        """
        try:
            result = self.vector_store.search(
                RetrievalQuery(query="", top_k=DELETE_SCAN_LIMIT, filters={"source_doc_id": doc_id})
            )
            for doc in result.documents:
                self.vector_store.delete(doc.id)
        except Exception:
            logger.exception("Failed to delete document %s", doc_id)
            raise

        self.cache.clear()
        logger.info("Deleted %d chunks of document %s", len(result.documents), doc_id)
        return len(result.documents)

    def get_stats(self) -> dict[str, Any]:
        """Return vector store and cache statistics."""
        return {
            "vectorStore": self.vector_store.get_stats().to_dict(),
            "cache": {
                "size": len(self.cache),
                "enabled": self.config.enable_cache,
            },
        }


__all__ = ["RetrievalHub"]
