"""retrieval_hub.retrieval.document_processor

Text cleaning, section detection and chunking for the retrieval layer.

This module converts raw text into :class:`~retrieval_hub.common.schemas.Document`
chunks suitable for embedding and retrieval. Markdown headings are used to
group content into named sections; sections that do not fit the configured
window are split into overlapping, size-bounded pieces that prefer to break
at sentence or line boundaries.

Classes
-------
TextSpan
    A chunk of text with its character offsets and optional section name.
DocumentProcessor
    Cleans, sections and chunks documents; extracts lightweight metadata.

Functions
---------
chunk_by_size
    Split text into overlapping windows of at most ``chunk_size`` characters.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional
from uuid import uuid4

from retrieval_hub.common import ChunkMetadata, Document, ProcessingOptions

logger = logging.getLogger(__name__)

DEFAULT_SECTION_TITLE = "Document"
MAX_TITLE_CHARS = 100
MIN_LANGUAGE_MATCHES = 5

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
H1_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
DATE_PATTERN = re.compile(r"\b(\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{4})\b")
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
HORIZONTAL_WS_PATTERN = re.compile(r"[^\S\n]+")

LANGUAGE_PATTERNS = {
    "en": re.compile(r"\b(the|and|of|to|in|is|was|for|that|with)\b", re.IGNORECASE),
    "es": re.compile(r"\b(el|la|de|que|y|en|un|una|por|para)\b", re.IGNORECASE),
    "fr": re.compile(r"\b(le|la|de|et|un|une|pour|que|dans|avec)\b", re.IGNORECASE),
    "de": re.compile(r"\b(der|die|das|und|in|von|zu|mit|auf|für)\b", re.IGNORECASE),
}


@dataclass
class TextSpan:
    """A piece of text cut from a larger string.

    Attributes
    ----------
    text : str
        Stripped chunk text.
    start : int
        Start offset of the window the text was cut from.
    end : int
        End offset (exclusive) of the window.
    section : str or None
        Section heading the span belongs to.
    """

    text: str
    start: int
    end: int
    section: Optional[str] = None


def chunk_by_size(text: str, chunk_size: int, chunk_overlap: int) -> list[TextSpan]:
    """Split text into overlapping windows of at most ``chunk_size`` characters.

    When a window ends strictly inside ``text``, its end is pulled back to just
    after the last ``.`` or newline lying strictly inside the window, provided
    that boundary lies beyond the window midpoint. A window therefore never
    exceeds ``chunk_size`` characters. The next window starts
    ``chunk_overlap`` characters before the previous end, or exactly at the
    previous end if that would not make progress.

    Parameters
    ----------
    text : str
        Text to split.
    chunk_size : int
        Maximum window size in characters. Values below ``1`` are treated as ``1``.
    chunk_overlap : int
        Number of characters to step back between windows. Negative values
        are treated as ``0``.

    Returns
    -------
    list[TextSpan]
        Non-empty spans in text order.
    """
    size = max(1, int(chunk_size))
    overlap = max(0, int(chunk_overlap))
    spans: list[TextSpan] = []

    start = 0
    length = len(text)
    while start < length:
        end = min(start + size, length)

        if end < length:
            break_point = max(text.rfind(".", 0, end), text.rfind("\n", 0, end))
            if break_point > start + size / 2:
                end = break_point + 1

        chunk_text = text[start:end].strip()
        if chunk_text:
            spans.append(TextSpan(text=chunk_text, start=start, end=end))

        next_start = end - overlap
        if next_start <= start:
            next_start = end
        start = next_start

    return spans


class DocumentProcessor:
    """Cleans, sections and chunks raw text into retrievable documents.

    Parameters
    ----------
    defaults : ProcessingOptions or None, optional
        Options applied when a call does not pass its own. Defaults to
        :class:`~retrieval_hub.common.schemas.ProcessingOptions` defaults.
    """

    def __init__(self, defaults: Optional[ProcessingOptions] = None) -> None:
        self.defaults = defaults or ProcessingOptions()

    def process_document(
        self,
        content: str,
        metadata: Optional[Mapping[str, Any]] = None,
        options: Optional[ProcessingOptions] = None,
    ) -> list[Document]:
        """Split a single document into chunk documents.

        Parameters
        ----------
        content : str
            Raw document text.
        metadata : Mapping[str, Any] or None, optional
            Caller metadata. ``metadata["id"]`` becomes the base identifier of
            every chunk when present.
        options : ProcessingOptions or None, optional
            Cleaning and chunking options. Defaults to the processor defaults.

        Returns
        -------
        list[Document]
            Chunks with IDs ``{base_id}_chunk_{index}``. Each chunk's metadata
            holds the caller metadata (unless ``include_metadata`` is false),
            the section title, and the :class:`ChunkMetadata` keys, both flat
            and nested under ``chunk_metadata``.
        """
        opts = options or self.defaults
        metadata = dict(metadata or {})

        text = self.clean_text(content, preserve_formatting=opts.preserve_formatting) if opts.clean_text else content
        sections = self.extract_sections(text)
        single_title = sections[0][0] if len(sections) == 1 and sections[0][0] != DEFAULT_SECTION_TITLE else None

        if len(sections) > 1:
            spans = self._chunk_by_sections(sections, opts)
        elif len(text) <= opts.chunk_size:
            stripped = text.strip()
            spans = [TextSpan(text=stripped, start=0, end=len(text), section=single_title)] if stripped else []
        else:
            spans = chunk_by_size(text, opts.chunk_size, opts.chunk_overlap)
            for span in spans:
                span.section = single_title

        base_id = str(metadata.get("id") or uuid4())
        total = len(spans)
        documents: list[Document] = []

        for index, span in enumerate(spans):
            chunk_meta = ChunkMetadata(
                source_doc_id=base_id,
                chunk_index=index,
                total_chunks=total,
                start_char=span.start,
                end_char=span.end,
                section=span.section,
            )
            record = {k: v for k, v in chunk_meta.to_dict().items() if v is not None}

            merged: dict[str, Any] = dict(metadata) if opts.include_metadata else {}
            merged.update(record)
            merged["chunk_metadata"] = chunk_meta.to_dict()

            documents.append(
                Document(
                    id=f"{base_id}_chunk_{index}",
                    content=span.text,
                    metadata=merged,
                )
            )

        logger.debug("Split document %s into %d chunks", base_id, total)
        return documents

    def process_batch(
        self,
        documents: Iterable[Mapping[str, Any]],
        options: Optional[ProcessingOptions] = None,
    ) -> list[Document]:
        """Process several raw documents and concatenate their chunks.

        Parameters
        ----------
        documents : Iterable[Mapping[str, Any]]
            Raw documents, each with ``content`` and optional ``metadata``.
        options : ProcessingOptions or None, optional
            Options applied to every document.

        Returns
        -------
        list[Document]
            All chunks, in input order.
        """
        all_chunks: list[Document] = []
        count = 0
        for doc in documents:
            count += 1
            all_chunks.extend(
                self.process_document(doc.get("content") or "", doc.get("metadata"), options)
            )

        logger.info("Processed %d documents into %d chunks", count, len(all_chunks))
        return all_chunks

    @staticmethod
    def clean_text(text: str, *, preserve_formatting: bool = False) -> str:
        """Strip control characters and normalise whitespace.

        Runs of spaces and tabs collapse to a single space, lines are trimmed
        and empty lines dropped. Line breaks are kept so that headings remain
        at line starts. With ``preserve_formatting`` only control characters
        are removed.
        """
        text = CONTROL_CHARS_PATTERN.sub("", text or "")
        if preserve_formatting:
            return text

        lines = (HORIZONTAL_WS_PATTERN.sub(" ", line).strip() for line in text.split("\n"))
        return "\n".join(line for line in lines if line)

    @staticmethod
    def extract_sections(text: str) -> list[tuple[str, str]]:
        """Group text under markdown headings.

        Returns
        -------
        list[tuple[str, str]]
            ``(title, content)`` pairs. Sections with no content are dropped.
            If no non-empty section is found the whole text is returned as a
            single section titled ``"Document"``.
        """
        matches = list(HEADING_PATTERN.finditer(text))
        sections: list[tuple[str, str]] = []

        for i, match in enumerate(matches):
            start = match.end()
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            body = text[start:end].strip()
            if body:
                sections.append((match.group(2).strip(), body))

        if not sections:
            sections.append((DEFAULT_SECTION_TITLE, text))

        return sections

    def _chunk_by_sections(
        self,
        sections: list[tuple[str, str]],
        options: ProcessingOptions,
    ) -> list[TextSpan]:
        spans: list[TextSpan] = []
        position = 0

        for title, body in sections:
            section_text = f"{title}\n\n{body}"

            if len(section_text) <= options.chunk_size:
                spans.append(
                    TextSpan(
                        text=section_text,
                        start=position,
                        end=position + len(section_text),
                        section=title,
                    )
                )
            else:
                for span in chunk_by_size(section_text, options.chunk_size, options.chunk_overlap):
                    spans.append(
                        TextSpan(
                            text=span.text,
                            start=position + span.start,
                            end=position + span.end,
                            section=title,
                        )
                    )

            # +1 for the newline separating rendered sections
            position += len(section_text) + 1

        return spans

    def extract_metadata(self, content: str) -> dict[str, Any]:
        """Derive lightweight metadata from document text.

        Parameters
        ----------
        content : str
            Raw document text.

        Returns
        -------
        dict[str, Any]
            ``title`` (first H1, else the first line up to 100 characters),
            ``word_count``, ``language`` (``"en"``, ``"es"``, ``"fr"``,
            ``"de"`` or ``"unknown"``) and, when any are found, ``dates``.
        """
        metadata: dict[str, Any] = {}
        content = content or ""

        h1 = H1_PATTERN.search(content)
        if h1:
            metadata["title"] = h1.group(1).strip()
        else:
            first_line = content.strip().split("\n", 1)[0][:MAX_TITLE_CHARS].strip()
            if first_line:
                metadata["title"] = first_line

        metadata["word_count"] = len(content.split())
        metadata["language"] = self.detect_language(content)

        dates = [m.group(0) for m in DATE_PATTERN.finditer(content)]
        if dates:
            metadata["dates"] = dates

        return metadata

    @staticmethod
    def detect_language(text: str) -> str:
        """Guess the language from stop-word frequency."""
        scores = {lang: len(pattern.findall(text or "")) for lang, pattern in LANGUAGE_PATTERNS.items()}
        best = max(scores, key=scores.get)
        return best if scores[best] > MIN_LANGUAGE_MATCHES else "unknown"


__all__ = [
    "DocumentProcessor",
    "TextSpan",
    "chunk_by_size",
]
