"""
chunking/chunker.py
-------------------
Document segmentation layer for the reader knowledge base.

Splits knowledge articles and prompts into bounded, overlapping chunks that
carry enough provenance metadata to be traced back to their source document
once they sit in the vector store. Two interchangeable strategies:

  paragraph-aware  — greedily packs whole paragraphs, never splitting one
  fixed-width      — character windows that back off to a word boundary

Sizes are measured in characters, not model tokens.

Every public method returns a value and never raises: malformed input is
logged as a warning and internal failures as errors, so one bad record does
not abort a bulk import. The chunker holds no mutable state beyond its
injected logger and is safe to share across threads.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel

from chunking.logging_config import get_logger
from validator.chunk_validator import (
    PROVENANCE_KEYS,
    Chunk,
    ChunkingStats,
    Document,
    ValidationError,
    validate_document,
)

# ── Constants ──────────────────────────────────────────────────────────────────
DEFAULT_CHUNK_SIZE     = 500
DEFAULT_OVERLAP        = 100
DEFAULT_SEPARATOR      = "\n\n"
DEFAULT_MIN_CHUNK_SIZE = 50

SMALL_CHUNK_LIMIT  = 200   # distribution buckets: small < 200 <= medium < 500 <= large
MEDIUM_CHUNK_LIMIT = 500

# Sentence end followed by whitespace; used to align overlap tails.
_SENTENCE_END = re.compile(r"[.!?]\s+")
_WHITESPACE   = (" ", "\n", "\t")
# ──────────────────────────────────────────────────────────────────────────────


class ChunkingConfig(BaseModel):
    """Chunking settings. Every field is optional."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap: int = DEFAULT_OVERLAP
    separator: str = DEFAULT_SEPARATOR
    preserve_paragraphs: bool = True
    min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE


ConfigLike = Union[ChunkingConfig, Mapping, None]


class _Piece(NamedTuple):
    text:  str
    start: int
    end:   int


def _empty_stats() -> ChunkingStats:
    return {
        "total_chunks":         0,
        "unique_documents":     0,
        "average_chunk_size":   0,
        "total_content_length": 0,
    }


class TextChunker:
    """
    Splits documents into overlapping chunks for embedding.

    Args:
        logger: Anything with debug/info/warning/error methods. Defaults to
                the module logger under the 'chunking' namespace.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._log = logger or get_logger(__name__)

    # ── Public API ─────────────────────────────────────────────────────────────

    def chunk_document(
        self,
        document: Document,
        config: ConfigLike = None,
    ) -> List[Chunk]:
        """
        Splits one document into chunks.

        Args:
            document: Mapping with 'id', 'content' and optional 'metadata'.
            config:   ChunkingConfig, dict of overrides, or None for defaults.

        Returns:
            Chunks in document order, zero-indexed. Empty when the document
            is malformed or chunking fails.
        """
        doc_id = document.get("id") if isinstance(document, Mapping) else None
        try:
            try:
                validate_document(document)
            except ValidationError as exc:
                self._log.warning("Skipping document for chunking: %s", exc)
                return []

            settings = self._resolve_config(config)
            raw      = document["content"]
            content  = raw.strip()
            # offsets are reported against the untrimmed content
            lead     = len(raw) - len(raw.lstrip())
            metadata = document.get("metadata") or {}

            if len(content) <= settings.chunk_size:
                self._log.debug(
                    "Document %s is too short to chunk (%d chars)", doc_id, len(content)
                )
                pieces = [_Piece(content, 0, len(content))]
            else:
                self._log.info(
                    "Chunking document %s (%d chars) with chunk size %d",
                    doc_id, len(content), settings.chunk_size,
                )
                if settings.preserve_paragraphs:
                    pieces = self._paragraph_chunks(content, settings)
                else:
                    pieces = self._fixed_width_chunks(content, settings)

            chunks = self._assemble(doc_id, metadata, pieces, lead)

            self._log.info("Document %s split into %d chunk(s)", doc_id, len(chunks))
            for chunk in chunks:
                meta = chunk["metadata"]
                self._log.debug(
                    "Chunk %d: %d chars (positions %d-%d)",
                    meta["chunk_index"], len(chunk["content"]),
                    meta["start_position"], meta["end_position"],
                )
            return chunks

        except Exception as exc:
            self._log.error("Failed to chunk document %s: %s", doc_id, exc)
            return []

    def chunk_documents(
        self,
        documents: Sequence[Document],
        config: ConfigLike = None,
    ) -> List[Chunk]:
        """
        Chunks every document and concatenates the results in input order.

        A document that cannot be chunked contributes nothing; the rest of the
        batch is still processed.

        Args:
            documents: List or tuple of documents.
            config:    Applied to every document.

        Returns:
            Flat list of chunks across all documents.
        """
        if not isinstance(documents, (list, tuple)) or not documents:
            self._log.warning("No list of documents provided for chunking")
            return []

        try:
            self._log.info("Chunking %d document(s)", len(documents))

            all_chunks: List[Chunk] = []
            original_size = 0

            for document in documents:
                all_chunks.extend(self.chunk_document(document, config))
                if isinstance(document, Mapping) and isinstance(document.get("content"), str):
                    original_size += len(document["content"])

            average = int(original_size / len(all_chunks) + 0.5) if all_chunks else 0
            self._log.info(
                "Chunking complete — %d document(s) → %d chunk(s) (average size %d chars)",
                len(documents), len(all_chunks), average,
            )
            return all_chunks

        except Exception as exc:
            self._log.error("Failed to chunk documents: %s", exc)
            return []

    def reconstruct_document(self, chunks: Sequence[Chunk]) -> Optional[Document]:
        """
        Rebuilds a document from its chunks for debugging.

        Only chunks sharing the original_id of the lowest-indexed chunk are
        used. Overlapping text is duplicated, not merged, so the result is
        never an exact inverse of chunking.

        Args:
            chunks: Chunks as produced by chunk_document / chunk_documents.

        Returns:
            {'id', 'content', 'metadata'} or None for empty/malformed input.
        """
        try:
            if not isinstance(chunks, (list, tuple)) or not chunks:
                return None

            traceable = [
                chunk for chunk in chunks
                if isinstance(chunk, Mapping)
                and isinstance(chunk.get("metadata"), Mapping)
                and chunk["metadata"].get("original_id") is not None
            ]
            if not traceable:
                return None

            ordered     = sorted(traceable, key=lambda c: c["metadata"].get("chunk_index", 0))
            first       = ordered[0]
            original_id = first["metadata"]["original_id"]
            own_chunks  = [c for c in ordered if c["metadata"]["original_id"] == original_id]

            return {
                "id":       original_id,
                "content":  DEFAULT_SEPARATOR.join(c["content"] for c in own_chunks),
                "metadata": {
                    key: value
                    for key, value in first["metadata"].items()
                    if key not in PROVENANCE_KEYS
                },
            }

        except Exception as exc:
            self._log.error("Failed to reconstruct document from chunks: %s", exc)
            return None

    def get_chunking_stats(self, chunks: Sequence[Chunk]) -> ChunkingStats:
        """
        Aggregates size figures over a chunk set.

        Returns:
            Stats dict; zeroed for empty input, zeroed plus 'error' when the
            chunk set cannot be measured.
        """
        try:
            if not isinstance(chunks, (list, tuple)) or not chunks:
                return _empty_stats()

            sizes = np.array([len(chunk["content"]) for chunk in chunks], dtype=np.int64)
            documents = {
                chunk["metadata"].get("original_id")
                for chunk in chunks
                if isinstance(chunk.get("metadata"), Mapping)
            }
            documents.discard(None)

            total = int(sizes.sum())
            return {
                "total_chunks":         len(chunks),
                "unique_documents":     len(documents),
                "average_chunk_size":   int(total / len(chunks) + 0.5),
                "total_content_length": total,
                "min_chunk_size":       int(sizes.min()),
                "max_chunk_size":       int(sizes.max()),
                "chunk_size_distribution": {
                    "small":  int(np.count_nonzero(sizes < SMALL_CHUNK_LIMIT)),
                    "medium": int(np.count_nonzero(
                        (sizes >= SMALL_CHUNK_LIMIT) & (sizes < MEDIUM_CHUNK_LIMIT)
                    )),
                    "large":  int(np.count_nonzero(sizes >= MEDIUM_CHUNK_LIMIT)),
                },
            }

        except Exception as exc:
            self._log.error("Failed to compute chunking stats: %s", exc)
            stats = _empty_stats()
            stats["error"] = str(exc)
            return stats

    # ── Internal helpers ───────────────────────────────────────────────────────

    def _resolve_config(self, config: ConfigLike) -> ChunkingConfig:
        """Builds a ChunkingConfig and clamps values that would break splitting."""
        if config is None:
            settings = ChunkingConfig()
        elif isinstance(config, ChunkingConfig):
            settings = config
        else:
            settings = ChunkingConfig(**dict(config))

        fixes: Dict[str, Any] = {}

        chunk_size = settings.chunk_size
        if chunk_size <= 0:
            chunk_size = fixes["chunk_size"] = DEFAULT_CHUNK_SIZE
        if settings.overlap < 0:
            fixes["overlap"] = 0
        elif settings.overlap >= chunk_size:
            fixes["overlap"] = chunk_size - 1
        if settings.min_chunk_size < 0:
            fixes["min_chunk_size"] = 0
        elif settings.min_chunk_size > chunk_size:
            fixes["min_chunk_size"] = chunk_size
        if not settings.separator:
            fixes["separator"] = DEFAULT_SEPARATOR

        if not fixes:
            return settings

        self._log.warning(
            "Adjusted invalid chunking settings %s",
            ", ".join(f"{key}: {getattr(settings, key)!r} → {value!r}"
                      for key, value in fixes.items()),
        )
        return settings.model_copy(update=fixes)

    def _paragraph_chunks(self, text: str, config: ChunkingConfig) -> List[_Piece]:
        """
        Packs whole paragraphs into chunks of at most chunk_size characters.

        A paragraph longer than chunk_size on its own is kept whole in an
        oversized chunk. Positions are tracked from the split offsets; the
        start of a chunk seeded with an overlap tail is approximate.
        """
        separator = config.separator
        pieces: List[_Piece] = []

        buffer    = ""
        buf_start = 0
        buf_end   = 0
        cursor    = 0

        for raw in text.split(separator):
            para_start = cursor + len(raw) - len(raw.lstrip())
            cursor    += len(raw) + len(separator)

            paragraph = raw.strip()
            if not paragraph:
                continue
            para_end = para_start + len(paragraph)

            candidate = f"{buffer}{separator}{paragraph}" if buffer else paragraph

            if len(candidate) > config.chunk_size and buffer:
                if len(buffer) >= config.min_chunk_size:
                    pieces.append(_Piece(buffer, buf_start, buf_end))

                tail = self._overlap_tail(buffer, config.overlap)
                if tail:
                    buffer    = f"{tail}{separator}{paragraph}"
                    buf_start = max(0, buf_end - len(tail))
                else:
                    buffer    = paragraph
                    buf_start = para_start
            else:
                if not buffer:
                    buf_start = para_start
                buffer = candidate
            buf_end = para_end

        if buffer and len(buffer) >= config.min_chunk_size:
            pieces.append(_Piece(buffer, buf_start, buf_end))

        return pieces

    def _fixed_width_chunks(self, text: str, config: ChunkingConfig) -> List[_Piece]:
        """
        Cuts chunk_size windows, backing off to the last whitespace when that
        leaves more than min_chunk_size characters in the window.
        """
        pieces: List[_Piece] = []
        length = len(text)
        start  = 0

        while start < length:
            end = min(start + config.chunk_size, length)

            if end < length:
                boundary = max(text.rfind(ch, start, end + 1) for ch in _WHITESPACE)
                if boundary > start + config.min_chunk_size:
                    end = boundary

            chunk_text = text[start:end].strip()
            if chunk_text and len(chunk_text) >= config.min_chunk_size:
                pieces.append(_Piece(chunk_text, start, end))

            if end >= length:
                break
            start = max(start + 1, end - config.overlap)

        return pieces

    @staticmethod
    def _overlap_tail(text: str, overlap: int) -> str:
        """
        Returns the trailing `overlap` characters of a chunk, starting after
        a sentence end when one falls inside the first half of that slice.
        """
        if not text or overlap <= 0:
            return ""

        tail  = text[-overlap:]
        match = _SENTENCE_END.search(tail)
        if match and 0 < match.start() < overlap / 2:
            tail = tail[match.end():]

        return tail.strip()

    @staticmethod
    def _assemble(
        doc_id: Any,
        metadata: Mapping,
        pieces: List[_Piece],
        offset: int,
    ) -> List[Chunk]:
        total = len(pieces)
        return [
            {
                "id":      f"{doc_id}_chunk_{index}",
                "content": piece.text,
                "metadata": {
                    **metadata,
                    "original_id":    doc_id,
                    "chunk_index":    index,
                    "total_chunks":   total,
                    "start_position": offset + piece.start,
                    "end_position":   offset + piece.end,
                },
            }
            for index, piece in enumerate(pieces)
        ]
