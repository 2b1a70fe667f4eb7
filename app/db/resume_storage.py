"""Resume file storage in a private Supabase storage bucket."""

from typing import Any

from app.core.config import get_settings
from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)


def _object_name(path: str) -> str:
    return path.rsplit("/", 1)[-1] or path


def ensure_resume_bucket() -> str:
    """Create the private resume bucket if it does not exist; returns its name."""
    settings = get_settings()
    supabase = get_supabase()

    buckets = supabase.storage.list_buckets() or []
    if any(getattr(bucket, "name", None) == settings.RESUME_BUCKET for bucket in buckets):
        return settings.RESUME_BUCKET

    supabase.storage.create_bucket(settings.RESUME_BUCKET, options={"public": False})
    logger.info(f"Created storage bucket {settings.RESUME_BUCKET}")
    return settings.RESUME_BUCKET


def get_resume_status() -> dict[str, Any]:
    """Describe the stored resume object, if any."""
    settings = get_settings()
    bucket = ensure_resume_bucket()
    file_name = _object_name(settings.RESUME_OBJECT_PATH)

    files = get_supabase().storage.from_(bucket).list("", {"limit": 100, "search": file_name}) or []
    match = next((f for f in files if f.get("name") == file_name), None)

    return {
        "exists": match is not None,
        "bucket": bucket,
        "path": settings.RESUME_OBJECT_PATH,
        "file": (
            {
                "name": match.get("name"),
                "created_at": match.get("created_at"),
                "updated_at": match.get("updated_at"),
                "metadata": match.get("metadata"),
            }
            if match
            else None
        ),
    }


def upload_resume(file_bytes: bytes, content_type: str) -> None:
    """Upload (upsert) the resume object."""
    settings = get_settings()
    bucket = ensure_resume_bucket()
    get_supabase().storage.from_(bucket).upload(
        path=settings.RESUME_OBJECT_PATH,
        file=file_bytes,
        file_options={"content-type": content_type, "upsert": "true"},
    )
    logger.info(
        f"Uploaded resume to {bucket}/{settings.RESUME_OBJECT_PATH}",
        extra={"bytes": len(file_bytes)},
    )


def delete_resume() -> None:
    settings = get_settings()
    bucket = ensure_resume_bucket()
    get_supabase().storage.from_(bucket).remove([settings.RESUME_OBJECT_PATH])
    logger.info(f"Removed resume {bucket}/{settings.RESUME_OBJECT_PATH}")
