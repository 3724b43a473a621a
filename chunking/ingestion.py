"""
chunking/ingestion.py
---------------------
Knowledge-base import layer for the reader bot.

Walks a directory of Markdown / plaintext knowledge articles, reads the
front-matter header of each file (title, category, language, tags, ...) into
document metadata, and chunks every article independently. The resulting
chunk set is what the vector-store client embeds and indexes.

Each chunk retains its source filename plus the article's front matter,
enabling source attribution when a retrieved passage is quoted back to a
reader.

No embedding and no database writes. The vector store is a separate service.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from chunking.chunker        import ChunkingConfig, ConfigLike, TextChunker
from chunking.logging_config import get_logger
from validator.chunk_validator import Chunk, ChunkingStats, Document

log = get_logger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────────
KNOWLEDGE_SUFFIXES = (".md", ".txt")

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING      = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)
# ──────────────────────────────────────────────────────────────────────────────


def _parse_value(raw: str) -> Any:
    value = raw.strip()
    if value.startswith("[") and value.endswith("]"):
        return [_parse_value(item) for item in value[1:-1].split(",") if item.strip()]
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Splits a leading '---' front-matter block off a knowledge article.

    Only flat `key: value` lines are understood; `[a, b]` becomes a list.
    Lines without a colon are ignored.

    Args:
        text: Full file contents.

    Returns:
        (metadata, body). Metadata is empty and body is the full text when
        the file has no front matter.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text

    metadata: Dict[str, Any] = {}
    for line in match.group(1).splitlines():
        key, sep, value = line.partition(":")
        if not sep or not key.strip() or line.startswith((" ", "\t", "#")):
            continue
        metadata[key.strip()] = _parse_value(value)

    return metadata, text[match.end():]


def load_documents(data_dir: Path) -> List[Document]:
    """
    Loads every knowledge file under data_dir as a Document.

    Document ids are the file's path relative to data_dir, suffix included
    (e.g. "troubleshooting/en/faq.md"), so they stay stable across imports and
    same-named articles in different formats do not collide.

    Args:
        data_dir: Root of the knowledge tree.

    Returns:
        Documents sorted by path.

    Raises:
        FileNotFoundError: If data_dir does not exist or holds no knowledge files.
    """
    root = Path(data_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Knowledge directory {root} does not exist.")

    files = sorted(
        path for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() in KNOWLEDGE_SUFFIXES
    )
    if not files:
        raise FileNotFoundError(
            f"No knowledge files ({', '.join(KNOWLEDGE_SUFFIXES)}) found in {root}."
        )

    documents: List[Document] = []
    for path in files:
        metadata, body = parse_front_matter(path.read_text(encoding="utf-8"))

        if not metadata.get("title"):
            heading = _HEADING.search(body)
            metadata["title"] = heading.group(1) if heading else path.stem
        metadata["source"] = path.name

        documents.append({
            "id":       path.relative_to(root).as_posix(),
            "content":  body,
            "metadata": metadata,
        })
        log.debug("Loaded %s (%d chars)", path.name, len(body))

    return documents


# ── Public API ─────────────────────────────────────────────────────────────────

def ingest(
    data_dir: Path,
    config: ConfigLike = None,
    chunker: Optional[TextChunker] = None,
) -> Tuple[List[Chunk], ChunkingStats]:
    """
    Loads every knowledge file in data_dir and chunks it for the vector store.

    Args:
        data_dir: Root of the knowledge tree.
        config:   Chunking settings applied to every article.
        chunker:  Chunker to use (defaults to a fresh TextChunker).

    Returns:
        chunks (List[Chunk]):   All chunks, in document order.
        stats (ChunkingStats):  Aggregate figures over the chunk set.

    Raises:
        FileNotFoundError: If data_dir does not exist or holds no knowledge files.
    """
    log.info("Ingestion started — scanning %s", data_dir)
    documents = load_documents(data_dir)
    log.info("Found %d knowledge document(s)", len(documents))

    chunker  = chunker or TextChunker()
    settings = config if config is not None else ChunkingConfig()
    chunks   = chunker.chunk_documents(documents, settings)
    stats    = chunker.get_chunking_stats(chunks)

    log.info(
        "Ingestion complete — %d chunk(s) from %d of %d document(s)",
        stats["total_chunks"], stats["unique_documents"], len(documents),
    )
    return chunks, stats
