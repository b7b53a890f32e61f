"""retrieval_hub.pipelines

Pipeline orchestration components for the retrieval hub.

This package contains the high-level orchestrator that coordinates document
processing, vector storage, query caching and result post-processing. The
orchestrator holds only its configured components and its cache, and is
shared across requests by the application container.

Modules
-------
retrieval_hub
    Indexing, cached search, IRCoT retrieval and deletion.
"""
from .retrieval_hub import RetrievalHub

__all__ = ["RetrievalHub"]
