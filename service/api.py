"""
service/api.py
--------------
FastAPI service layer for the knowledge chunking pipeline.

Lets ingestion tooling (knowledge importer, prompt synchronizer) chunk text
over HTTP instead of importing the library:

    GET  /health                                 →  status + default settings
    POST /chunk        { document, config? }     →  { chunks, stats }
    POST /chunk/batch  { documents, config? }    →  { chunks, stats }
    POST /reconstruct  { chunks }                →  Document
    POST /stats        { chunks }                →  ChunkingStats

Chunking is pure and in-process; no state is kept between requests.

Run with:
    uvicorn service.api:app --host 0.0.0.0 --port 8000
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from app import default_config
from chunking.chunker        import ChunkingConfig, TextChunker
from chunking.logging_config import get_logger
from validator.chunk_validator import ValidationError, validate_chunks

log = get_logger(__name__)


# ── Request models ─────────────────────────────────────────────────────────────

class DocumentIn(BaseModel):
    """A document to chunk. Malformed documents yield no chunks, not a 422."""
    id:       Optional[str] = None
    content:  Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ChunkRequest(BaseModel):
    document: DocumentIn
    config:   Optional[ChunkingConfig] = None


class BatchChunkRequest(BaseModel):
    documents: List[DocumentIn]
    config:    Optional[ChunkingConfig] = None


class ChunkSetRequest(BaseModel):
    chunks: List[Dict[str, Any]]


# ── FastAPI app ────────────────────────────────────────────────────────────────

app = FastAPI(
    title       = "Reader Knowledge Chunking API",
    description = "Splits knowledge articles and prompts into overlapping chunks for the vector store.",
    version     = "1.0.0",
)

_chunker = TextChunker(logger=log)


def _respond(chunks: List[Dict[str, Any]]) -> Dict[str, Any]:
    try:
        validate_chunks(chunks)
    except ValidationError as exc:
        log.error("Chunk set failed validation: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"chunks": chunks, "stats": _chunker.get_chunking_stats(chunks)}


# ── Endpoints ──────────────────────────────────────────────────────────────────

@app.get("/health", tags=["ops"])
def health_check():
    """Liveness probe with the server-side default chunking settings."""
    return {"status": "ok", "default_config": default_config().model_dump()}


@app.post("/chunk", tags=["chunking"])
def chunk(request: ChunkRequest):
    """Chunk a single document."""
    config = request.config or default_config()
    log.info("POST /chunk — document=%s", request.document.id)
    chunks = _chunker.chunk_document(request.document.model_dump(), config)
    return _respond(chunks)


@app.post("/chunk/batch", tags=["chunking"])
def chunk_batch(request: BatchChunkRequest):
    """Chunk several documents; malformed ones are skipped."""
    config = request.config or default_config()
    log.info("POST /chunk/batch — %d document(s)", len(request.documents))
    chunks = _chunker.chunk_documents(
        [document.model_dump() for document in request.documents], config
    )
    return _respond(chunks)


@app.post("/reconstruct", tags=["chunking"])
def reconstruct(request: ChunkSetRequest):
    """
    Rebuild a document from its chunks (debugging aid; overlaps are duplicated).

    Raises:
        404 Not Found: if no chunk references an original document
    """
    document = _chunker.reconstruct_document(request.chunks)
    if document is None:
        raise HTTPException(status_code=404, detail="No reconstructable chunks supplied.")
    return document


@app.post("/stats", tags=["chunking"])
def stats(request: ChunkSetRequest):
    """Aggregate size figures over a chunk set."""
    return _chunker.get_chunking_stats(request.chunks)
