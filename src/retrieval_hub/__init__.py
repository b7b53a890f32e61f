"""retrieval_hub

Retrieval hub package.

This package contains the building blocks of a document retrieval service:
configuration, text processing and chunking, embedding, vector storage with
cosine search, query result caching, and an HTTP service wrapping them.

Attributes
----------
__version__ : str
    Package version string. Defaults to ``"0.0.0-dev"`` when package metadata is
    unavailable.

Modules
-------
config
    Global configuration loader, cached accessors and hub settings.
app
    Application container, HTTP API and HTTP client.
pipelines
    Retrieval orchestration (processing → indexing, cache → search).
retrieval
    Chunking, embedding, vector stores, caching and post-processing.
common
    Shared schemas (documents, queries and results).

Exports
-------
GlobalConfig
    Global configuration loader and accessor.
RetrievalHubConfig
    Typed hub settings.
RetrievalHubContainer
    Cached runtime component container for applications.
build_container
    Factory function to construct a configured :class:`~retrieval_hub.app.container.RetrievalHubContainer`.
RetrievalHub
    Retrieval orchestrator.
Document
    Canonical document container schema.
RetrievalQuery
    Search request schema.
RetrievalResult
    Search response schema.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("retrieval-hub")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from .config import GlobalConfig, RetrievalHubConfig
from .app.container import RetrievalHubContainer, build_container
from .pipelines.retrieval_hub import RetrievalHub
from .common import Document, RetrievalQuery, RetrievalResult

__all__ = [
    "__version__",
    "GlobalConfig",
    "RetrievalHubConfig",
    "RetrievalHubContainer",
    "build_container",
    "RetrievalHub",
    "Document",
    "RetrievalQuery",
    "RetrievalResult",
]
