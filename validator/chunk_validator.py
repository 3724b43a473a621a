"""
validator/chunk_validator.py
----------------------------
Schema layer for the knowledge chunking pipeline.

Defines the Document / Chunk / ChunkingStats TypedDicts exchanged with the
knowledge importer and the vector-store client, and validates both ends of
the pipeline: incoming documents before they are chunked, and produced chunk
sets before they leave the process. Raises a typed ValidationError on any
schema violation.
"""

from collections.abc import Mapping
from typing import Any, Dict, List

from typing_extensions import TypedDict

from chunking.logging_config import get_logger

log = get_logger(__name__)


# ── Schema definition ──────────────────────────────────────────────────────────

class Document(TypedDict):
    """A knowledge article or prompt to be chunked."""
    id:       str              # unique within the source corpus
    content:  str              # full text body
    metadata: Dict[str, Any]   # caller-defined; propagated, never interpreted


class Chunk(TypedDict):
    """A bounded slice of a Document, ready for embedding."""
    id:       str              # "{document_id}_chunk_{index}"
    content:  str
    metadata: Dict[str, Any]   # document metadata + provenance fields


class SizeDistribution(TypedDict):
    small:  int   # < 200 characters
    medium: int   # 200–499 characters
    large:  int   # >= 500 characters


class ChunkingStats(TypedDict, total=False):
    """Aggregate figures over a chunk set."""
    total_chunks:            int
    unique_documents:        int
    average_chunk_size:      int
    total_content_length:    int
    min_chunk_size:          int
    max_chunk_size:          int
    chunk_size_distribution: SizeDistribution
    error:                   str


# Keys the chunker adds on top of the document metadata.
PROVENANCE_KEYS = (
    "original_id",
    "chunk_index",
    "total_chunks",
    "start_position",
    "end_position",
)


# ── Custom exception ───────────────────────────────────────────────────────────

class ValidationError(ValueError):
    """Raised when a Document or a chunk set fails schema validation."""


# ── Validators ─────────────────────────────────────────────────────────────────

def validate_document(document: Any) -> Document:
    """
    Checks that a mapping can be chunked.

    Checks:
      - document is a mapping
      - 'id' is present and non-empty
      - 'content' is a string with at least one non-whitespace character
      - 'metadata', when present, is a mapping

    Args:
        document: Candidate document.

    Returns:
        The same object cast as a typed Document.

    Raises:
        ValidationError: If the document cannot be chunked.
    """
    if not isinstance(document, Mapping):
        raise ValidationError(
            f"document must be a mapping, got {type(document).__name__}."
        )

    doc_id = document.get("id")
    if doc_id is None or (isinstance(doc_id, str) and not doc_id.strip()):
        raise ValidationError("document 'id' is missing or empty.")

    content = document.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError(f"document {doc_id!r} has no content.")

    metadata = document.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise ValidationError(
            f"document {doc_id!r} metadata must be a mapping, "
            f"got {type(metadata).__name__}."
        )

    return document  # type: ignore[return-value]


def validate_chunks(chunks: List[Dict[str, Any]]) -> List[Chunk]:
    """
    Validates a chunk set produced by the chunker.

    Checks:
      - every chunk has a non-empty string 'id' and a string 'content'
      - every chunk's metadata carries an 'original_id'
      - per document, 'chunk_index' values run 0..n-1 without gaps or repeats
      - per document, every 'total_chunks' equals n

    Args:
        chunks: Chunk dicts, possibly spanning several documents.

    Returns:
        The same list cast as typed Chunks.

    Raises:
        ValidationError: If any chunk or any document's chunk run is malformed.
    """
    if not isinstance(chunks, list):
        log.error("Validation failed — chunks is not a list")
        raise ValidationError("chunks must be a list.")

    indices: Dict[Any, List[int]] = {}
    totals:  Dict[Any, set]       = {}

    for i, chunk in enumerate(chunks):
        if not isinstance(chunk, Mapping):
            log.error("Validation failed — chunks[%d] is not a mapping", i)
            raise ValidationError(
                f"chunks[{i}] must be a mapping, got {type(chunk).__name__}."
            )
        if not isinstance(chunk.get("id"), str) or not chunk["id"]:
            log.error("Validation failed — chunks[%d] has no id", i)
            raise ValidationError(f"chunks[{i}]['id'] must be a non-empty string.")
        if not isinstance(chunk.get("content"), str):
            log.error("Validation failed — chunks[%d] content is not a string", i)
            raise ValidationError(f"chunks[{i}]['content'] must be a string.")

        metadata = chunk.get("metadata")
        if not isinstance(metadata, Mapping) or metadata.get("original_id") is None:
            log.error("Validation failed — chunks[%d] has no original_id", i)
            raise ValidationError(
                f"chunks[{i}]['metadata'] must carry an 'original_id'."
            )

        original_id = metadata["original_id"]
        indices.setdefault(original_id, []).append(metadata.get("chunk_index"))
        totals.setdefault(original_id, set()).add(metadata.get("total_chunks"))

    for original_id, seen in indices.items():
        expected = list(range(len(seen)))
        if not all(isinstance(v, int) for v in seen) or sorted(seen) != expected:
            log.error(
                "Validation failed — document %r chunk indices %s", original_id, seen
            )
            raise ValidationError(
                f"document {original_id!r} chunk_index values must run 0..{len(seen) - 1}."
            )
        if totals[original_id] != {len(seen)}:
            log.error(
                "Validation failed — document %r total_chunks %s, expected %d",
                original_id, sorted(map(str, totals[original_id])), len(seen),
            )
            raise ValidationError(
                f"document {original_id!r} total_chunks must equal {len(seen)}."
            )

    log.debug("Validation succeeded — %d chunk(s) from %d document(s)",
              len(chunks), len(indices))
    return chunks  # type: ignore[return-value]
