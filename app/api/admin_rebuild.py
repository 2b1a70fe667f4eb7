"""Admin endpoint to rebuild the whole chunk index."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/rebuild")


@router.post("")
async def rebuild_index(owner_id: str = Depends(get_owner_id)) -> dict[str, Any]:
    """Re-index all published content and drop chunks of unpublished content."""
    try:
        counts = indexer.rebuild_all(owner_id)
        logger.info("Rebuilt chunk index", extra=counts)
        return {"success": True, "counts": counts}

    except Exception as e:
        logger.error(f"Error rebuilding index: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to rebuild embeddings") from e
