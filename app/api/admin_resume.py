"""Admin resume management: stored in a private bucket, indexed as ``resume``."""

from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.config import get_settings
from app.core.file_text import CONTENT_TYPES, DOCUMENT_EXTENSIONS, extract_text_from_upload, get_extension
from app.core.logging import get_logger
from app.db import resume_storage

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/resume")

MIN_RESUME_BYTES = 1024
MIN_RESUME_TEXT_CHARS = 50


@router.get("")
async def get_resume_status() -> dict[str, Any]:
    try:
        return resume_storage.get_resume_status()
    except Exception as e:
        logger.error(f"Error fetching resume status: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch resume status") from e


@router.post("")
async def upload_resume(
    file: UploadFile | None = File(None),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    """
    Store a PDF/DOCX resume and re-index its text.

    Raises:
        HTTPException 400: Missing file, wrong type, too small, or no text
        HTTPException 413: File larger than MAX_UPLOAD_BYTES
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    filename = file.filename or "resume.pdf"
    extension = get_extension(filename)
    if extension not in DOCUMENT_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Resume must be a PDF or DOCX file")

    file_bytes = await file.read()
    if len(file_bytes) < MIN_RESUME_BYTES:
        raise HTTPException(status_code=400, detail="File appears to be empty")
    if len(file_bytes) > get_settings().MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        resume_storage.upload_resume(file_bytes, file.content_type or CONTENT_TYPES[extension])

        text = extract_text_from_upload(filename, file_bytes, DOCUMENT_EXTENSIONS).text.strip()
        if len(text) < MIN_RESUME_TEXT_CHARS:
            raise HTTPException(
                status_code=400,
                detail="Could not extract meaningful text from the resume file",
            )

        chunk_count = indexer.index_resume(owner_id, text)
        logger.info(f"Indexed resume into {chunk_count} chunks")

        settings = get_settings()
        return {"success": True, "bucket": settings.RESUME_BUCKET, "path": settings.RESUME_OBJECT_PATH}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading resume: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload resume") from e


@router.delete("")
async def delete_resume(owner_id: str = Depends(get_owner_id)) -> dict[str, bool]:
    try:
        resume_storage.delete_resume()
        indexer.delete_source_chunks(owner_id, "resume", "resume")
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting resume: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete resume") from e
