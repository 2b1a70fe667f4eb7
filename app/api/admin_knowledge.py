"""Admin knowledge base: chunk stats, free-text ingestion and file uploads."""

from collections import Counter
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.config import get_settings
from app.core.file_text import UnsupportedFileType, extract_text_from_upload, strip_extension
from app.core.logging import get_logger
from app.core.schemas_content import KnowledgeDeleteRequest, KnowledgeTextRequest
from app.db import chunks as chunks_db

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/knowledge")

MIN_TEXT_CHARS = 50
MIN_UPLOAD_CHARS = 10


# ============================================================================
# Helpers
# ============================================================================


def group_chunk_files(chunks: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Group chunk summaries into one entry per ``source_type::source_id``.

    Input is newest first, so each file keeps the title and timestamp of its
    newest chunk.
    """
    files: dict[str, dict[str, Any]] = {}
    for chunk in chunks:
        key = f"{chunk.get('source_type')}::{chunk.get('source_id')}"
        if key in files:
            files[key]["chunks"] += 1
            continue
        metadata = chunk.get("metadata") or {}
        files[key] = {
            "name": metadata.get("title") or "Unknown",
            "chunks": 1,
            "type": chunk.get("source_type"),
            "source_id": chunk.get("source_id"),
            "created_at": chunk.get("created_at"),
        }
    return list(files.values())


# ============================================================================
# Stats / delete
# ============================================================================


@router.get("")
async def get_knowledge(owner_id: str = Depends(get_owner_id)) -> dict[str, Any]:
    """Chunk totals per source type plus the list of indexed files."""
    try:
        total = chunks_db.count_chunks(owner_id)
        chunks = chunks_db.list_chunk_summaries(owner_id)

        by_type = Counter(chunk.get("source_type") for chunk in chunks)
        stats = {
            "total": total,
            "byType": {source_type: by_type.get(source_type, 0) for source_type in chunks_db.SOURCE_TYPES},
        }
        return {"stats": stats, "files": group_chunk_files(chunks)}

    except Exception as e:
        logger.error(f"Error fetching knowledge stats: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch knowledge base stats") from e


@router.delete("")
async def delete_knowledge(
    body: KnowledgeDeleteRequest | None = Body(None),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    body = body or KnowledgeDeleteRequest()

    if not (body.source_type and body.source_id) and not body.file_name:
        raise HTTPException(status_code=400, detail="sourceId and sourceType are required")

    try:
        if body.source_type and body.source_id:
            chunks_db.delete_source_chunks(owner_id, body.source_type, body.source_id)
        else:
            chunks_db.delete_chunks_by_title(owner_id, body.file_name)
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting knowledge chunks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete chunks") from e


# ============================================================================
# Ingestion
# ============================================================================


@router.post("/text")
async def ingest_text(
    body: KnowledgeTextRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    """Chunk, embed and store pasted text under its title."""
    title = body.title.strip()
    content = body.content.strip()

    if not title:
        raise HTTPException(status_code=400, detail="title is required")
    if len(content) < MIN_TEXT_CHARS:
        raise HTTPException(status_code=400, detail="content is too short")

    try:
        result = indexer.ingest_text(
            owner_id,
            title,
            content,
            source_type=body.source_type,
            extra_metadata={"input_method": "text"},
        )
        return {"success": True, **result}

    except Exception as e:
        logger.error(f"Error ingesting text '{title}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to ingest text") from e


@router.post("/upload")
async def upload_knowledge_file(
    file: UploadFile | None = File(None),
    source_type: str = Form(default="article", alias="sourceType"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    """
    Extract text from an uploaded .txt/.md/.pdf/.docx file and ingest it.

    The filename without its extension becomes the document title, replacing
    any chunks previously stored under that title.

    Raises:
        HTTPException 400: No file, unsupported type, or no readable text
        HTTPException 413: File larger than MAX_UPLOAD_BYTES
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    file_bytes = await file.read()
    if len(file_bytes) > get_settings().MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        content = extract_text_from_upload(file.filename, file_bytes).text
    except UnsupportedFileType as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to parse {file.filename}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to parse file") from e

    if len(content.strip()) < MIN_UPLOAD_CHARS:
        raise HTTPException(status_code=400, detail="File appears to be empty or unreadable")

    title = strip_extension(file.filename)
    try:
        result = indexer.ingest_text(
            owner_id,
            title,
            content,
            source_type=source_type,
            extra_metadata={"original_filename": file.filename},
        )
    except Exception as e:
        logger.error(f"Error ingesting upload {file.filename}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process file") from e

    return {
        "success": True,
        "fileName": title,
        "totalChunks": result["totalChunks"],
        "inserted": result["inserted"],
        "failed": result["failed"],
    }
