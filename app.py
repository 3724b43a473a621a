"""
app.py
------
Entry point for the reader knowledge-base chunking pipeline.

  data/**/*.md → load_documents() → TextChunker.chunk_documents()
               → validate_chunks() → chunk set for the vector store
                                   → get_chunking_stats() → JSON report

Chunking settings come from the constants below, each overridable through an
environment variable (a local .env file is honoured). The chunk set itself
is handed to the vector-store importer; this script prints the stats report
so an import can be checked before it is embedded.

Usage:
    python app.py [data_dir]
"""

import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from chunking.chunker   import ChunkingConfig
from chunking.ingestion import ingest
from validator.chunk_validator import ValidationError, validate_chunks

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ── Configuration ───────────────────────────────────────────────────────────────

DATA_DIR            = Path(os.getenv("KNOWLEDGE_DIR", str(Path(__file__).parent / "data")))
CHUNK_SIZE          = int(os.getenv("CHUNK_SIZE", "500"))
CHUNK_OVERLAP       = int(os.getenv("CHUNK_OVERLAP", "100"))
MIN_CHUNK_SIZE      = int(os.getenv("MIN_CHUNK_SIZE", "50"))
PRESERVE_PARAGRAPHS = _env_bool("PRESERVE_PARAGRAPHS", True)


def default_config() -> ChunkingConfig:
    """Chunking settings built from the module configuration."""
    return ChunkingConfig(
        chunk_size          = CHUNK_SIZE,
        overlap             = CHUNK_OVERLAP,
        min_chunk_size      = MIN_CHUNK_SIZE,
        preserve_paragraphs = PRESERVE_PARAGRAPHS,
    )


# ── Entry point ─────────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    argv     = sys.argv[1:] if argv is None else argv
    data_dir = Path(argv[0]) if argv else DATA_DIR

    try:
        chunks, stats = ingest(data_dir, config=default_config())
    except FileNotFoundError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1

    try:
        validate_chunks(chunks)
    except ValidationError as exc:
        print(f"[VALIDATION ERROR] {exc}", file=sys.stderr)
        return 2

    print(json.dumps(stats, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
