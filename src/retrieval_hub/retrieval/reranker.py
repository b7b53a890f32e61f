"""retrieval_hub.retrieval.reranker

Post-processing applied to search hits before they are returned.

This module defines:
- an abstract reranker interface
- a concrete exact-match reranker that boosts hits containing the query
- near-duplicate removal and keyword highlighting helpers
- a small reranker factory for configuration-driven construction
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Mapping, Sequence

from retrieval_hub.common import ScoredDocument

FINGERPRINT_CHARS = 100
MIN_HIGHLIGHT_TERM_CHARS = 3

_WHITESPACE = re.compile(r"\s+")


class BaseReranker(ABC):
    """Abstract interface for reordering scored hits."""

    @abstractmethod
    def rerank(self, query: str, documents: Sequence[ScoredDocument]) -> list[ScoredDocument]:
        """Return ``documents`` rescored and sorted by descending score."""
        raise NotImplementedError


class ExactMatchReranker(BaseReranker):
    """Boost hits whose content contains the query verbatim (case-insensitive)."""

    def __init__(self, *, boost: float = 0.1):
        self.boost = float(boost)

    def rerank(self, query: str, documents: Sequence[ScoredDocument]) -> list[ScoredDocument]:
        needle = query.lower()
        rescored = [
            replace(doc, score=doc.score + self.boost) if needle and needle in doc.content.lower() else doc
            for doc in documents
        ]
        rescored.sort(key=lambda d: d.score, reverse=True)
        return rescored


def _fingerprint(content: str) -> str:
    return _WHITESPACE.sub(" ", content.lower()).strip()[:FINGERPRINT_CHARS]


def deduplicate(documents: Sequence[ScoredDocument]) -> list[ScoredDocument]:
    """Drop hits whose leading text repeats an earlier hit.

    Two hits are duplicates when the first 100 characters of their
    lower-cased, whitespace-collapsed content are equal. The first
    occurrence is kept and order is preserved.
    """
    seen: set[str] = set()
    unique: list[ScoredDocument] = []
    for doc in documents:
        key = _fingerprint(doc.content)
        if key in seen:
            continue
        seen.add(key)
        unique.append(doc)
    return unique


def highlight(content: str, query: str) -> str:
    """Wrap whole-word occurrences of query terms in ``**...**``.

    Terms shorter than three characters are ignored. Matching is
    case-insensitive and the matched text keeps its casing.
    """
    terms = dict.fromkeys(t for t in query.lower().split() if len(t) >= MIN_HIGHLIGHT_TERM_CHARS)
    for term in terms:
        content = re.sub(rf"\b({re.escape(term)})\b", r"**\1**", content, flags=re.IGNORECASE)
    return content


def highlight_documents(documents: Sequence[ScoredDocument], query: str) -> list[ScoredDocument]:
    """Return copies of ``documents`` with query terms highlighted."""
    return [replace(doc, content=highlight(doc.content, query)) for doc in documents]


def create_reranker(config: Mapping[str, Any] | None = None) -> BaseReranker:
    """Create a reranker from configuration."""
    cfg = dict(config or {})
    kind = str(cfg.get("type", "exact_match")).lower().strip().replace("-", "_")

    if kind in {"exact_match", "exact"}:
        return ExactMatchReranker(boost=float(cfg.get("boost", 0.1)))

    raise ValueError(f"Unsupported rerank type {kind!r}. Supported rerankers: ['exact_match'].")


__all__ = [
    "BaseReranker",
    "ExactMatchReranker",
    "create_reranker",
    "deduplicate",
    "highlight",
    "highlight_documents",
]
