"""retrieval_hub.app.container

Composition root for the retrieval hub.

This module is the single place where concrete implementations are wired
together from configuration (embedder, vector store, reranker and the
retrieval hub itself). Components are constructed lazily and cached on first
access to avoid repeated expensive initialisation.

Notes
-----
- Keep this module importable with minimal side effects:
  - do not perform network calls at import time
  - do not read files at import time
  - construct expensive objects lazily (cached on first access)

- Components are created via the existing factories (embedder, vector store,
  reranker). This module centralises those calls so that a single hub, and
  therefore a single store and cache, is shared by every request.

Examples
--------
>>> from retrieval_hub.config import GlobalConfig
>>> from retrieval_hub.app.container import build_container
>>> cfg = GlobalConfig.load("config.yaml")
>>> c = build_container(cfg)
>>> result = c.hub.search(RetrievalQuery(query="my question"))
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Mapping


@dataclass(frozen=True)
class RetrievalHubContainer:
    """Holds the configured, cached runtime components for the application.

    Parameters
    ----------
    config : Any
        Loaded global configuration object (typically :class:`retrieval_hub.config.GlobalConfig`).
    """

    config: Any

    @cached_property
    def settings(self) -> Any:
        """Return the typed hub settings.

        Returns
        -------
        RetrievalHubConfig
            Settings from ``config.retrieval_hub``.
        """
        from retrieval_hub.config import RetrievalHubConfig

        settings = self.config.retrieval_hub
        if isinstance(settings, RetrievalHubConfig):
            return settings
        return RetrievalHubConfig.from_mapping(_as_mapping(settings))

    @cached_property
    def embedder(self) -> Any:
        """Return the embedding model/client.

        The hub's ``dimensions`` setting is used when the embedder section
        does not set its own.

        Returns
        -------
        Any
            Configured embedder instance used to embed documents and queries.
        """
        from retrieval_hub.retrieval.embedder import create_embedder

        section = dict(_as_mapping(getattr(self.config, "embedder", {}) or {}))
        section.setdefault("dimensions", self.settings.dimensions)
        return create_embedder(section)

    @cached_property
    def vector_store(self) -> Any:
        """Return the vector store.

        Returns
        -------
        Any
            Store for ``retrieval_hub.vector_store_type``, using :attr:`embedder`.
        """
        from retrieval_hub.retrieval.vector_store import create_vector_store

        return create_vector_store(
            self.settings.vector_store_type,
            embedder=self.embedder,
            dimensions=self.settings.dimensions,
        )

    @cached_property
    def reranker(self) -> Any:
        """Return the reranker applied to flagged searches."""
        from retrieval_hub.retrieval.reranker import create_reranker

        return create_reranker(_as_mapping(getattr(self.config, "reranker", {}) or {}))

    @cached_property
    def hub(self) -> Any:
        """Return the fully wired retrieval hub.

        Returns
        -------
        Any
            A :class:`retrieval_hub.pipelines.retrieval_hub.RetrievalHub` instance.
        """
        from retrieval_hub.pipelines.retrieval_hub import RetrievalHub

        return RetrievalHub(
            self.settings,
            vector_store=self.vector_store,
            reranker=self.reranker,
        )


def build_container(config: Any) -> RetrievalHubContainer:
    """Create a :class:`~retrieval_hub.app.container.RetrievalHubContainer`.

    This function is intentionally small so it can serve as a single entry point
    for FastAPI startup hooks, CLI scripts, and tests.

    Parameters
    ----------
    config : Any
        Loaded global configuration object (typically :class:`retrieval_hub.config.GlobalConfig`).

    Returns
    -------
    RetrievalHubContainer
        Container instance with cached component accessors.
    """

    return RetrievalHubContainer(config=config)


def _as_mapping(obj: Any) -> Mapping[str, Any]:
    """Coerce an object into a mapping.

    Parameters
    ----------
    obj : Any
        Object to interpret as a mapping. If ``obj`` is already a mapping it is
        returned as-is. If it has a ``__dict__``, that dictionary is returned.

    Returns
    -------
    Mapping[str, Any]
        A dictionary-like view of ``obj``.

    Raises
    ------
    TypeError
        If ``obj`` cannot be interpreted as a mapping.
    """
    if isinstance(obj, Mapping):
        return obj

    if hasattr(obj, "__dict__"):
        return dict(vars(obj))

    raise TypeError(f"Expected mapping type but got {type(obj)}")


__all__ = ["RetrievalHubContainer", "build_container"]
