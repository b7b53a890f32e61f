"""Document ingestion entrypoint.

This script reads Markdown and plain-text files, attaches lightweight
metadata, and indexes them either into an in-process retrieval hub built from
a configuration file or into a running service over HTTP.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from retrieval_hub.app.client import RetrievalHubClient
from retrieval_hub.app.container import build_container
from retrieval_hub.config import GlobalConfig
from retrieval_hub.retrieval.document_processor import DocumentProcessor

SUPPORTED_SUFFIXES = {".md", ".markdown", ".txt"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest text documents into the retrieval hub")

    parser.add_argument(
        "paths",
        nargs="+",
        type=str,
        help="Files or directories to ingest (.md / .txt).",
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--config-file",
        "-c",
        type=str,
        default=None,
        help="Path to the YAML configuration file (index in-process).",
    )
    target.add_argument(
        "--url",
        "-u",
        type=str,
        default=None,
        help="Base URL of a running retrieval hub service.",
    )

    parser.add_argument(
        "--chunk-size",
        required=False,
        type=int,
        default=None,
        help="Override the configured chunk size (optional).",
    )
    parser.add_argument(
        "--chunk-overlap",
        required=False,
        type=int,
        default=None,
        help="Override the configured chunk overlap (optional).",
    )
    parser.add_argument(
        "--batch-size",
        "-b",
        required=False,
        type=int,
        default=16,
        help="Documents per index request (default: 16).",
    )

    return parser.parse_args()


def collect_files(paths: list[str]) -> list[Path]:
    files: list[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            files.extend(
                p for p in sorted(path.rglob("*"))
                if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
            )
        elif path.is_file():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")
    return files


def load_documents(files: list[Path], processor: DocumentProcessor) -> list[dict]:
    documents = []
    for path in files:
        content = path.read_text(encoding="utf-8")
        metadata = processor.extract_metadata(content)
        metadata["id"] = path.stem
        metadata["source"] = str(path)
        documents.append({"content": content, "metadata": metadata})
    return documents


def main() -> None:
    args = parse_args()

    options = {}
    if args.chunk_size is not None:
        options["chunk_size"] = args.chunk_size
    if args.chunk_overlap is not None:
        options["chunk_overlap"] = args.chunk_overlap

    files = collect_files(args.paths)
    print(f"Loading documents: {len(files)} file(s)")
    documents = load_documents(files, DocumentProcessor())

    if args.url:
        index = RetrievalHubClient(args.url).index_documents
    else:
        container = build_container(GlobalConfig.load(args.config_file))
        index = container.hub.index_documents

    batch_size = max(1, int(args.batch_size))
    total_chunks = 0
    for i in range(0, len(documents), batch_size):
        batch = documents[i:i + batch_size]
        result = index(batch, options or None)
        total_chunks += int(result["chunks"])
        print(f"Indexed {i + len(batch)}/{len(documents)} documents")

    print(f"Done. {len(documents)} documents, {total_chunks} chunks.")


if __name__ == "__main__":
    main()
