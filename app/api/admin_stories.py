"""Admin CRUD for STAR stories. Public stories are indexed for chat."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_owner_id
from app.core import indexer
from app.core.logging import get_logger
from app.core.schemas_content import StoryCreateRequest, StoryUpdateRequest
from app.db import stories as stories_db

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/stories")


def _sync_index(owner_id: str, story: dict[str, Any]) -> None:
    if story.get("is_public"):
        indexer.index_story(owner_id, story)
    else:
        indexer.delete_source_chunks(owner_id, "story", story["id"])


@router.get("")
async def list_stories(owner_id: str = Depends(get_owner_id)) -> list[dict[str, Any]]:
    try:
        return stories_db.list_stories(owner_id, public_only=False)
    except Exception as e:
        logger.error(f"Error listing stories: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("", status_code=201)
async def create_story(
    body: StoryCreateRequest,
    owner_id: str = Depends(get_owner_id),
) -> JSONResponse:
    try:
        data = body.model_dump()
        data["project_id"] = data.get("project_id") or None
        story = stories_db.create_story(owner_id, data)
        if story.get("is_public"):
            indexer.index_story(owner_id, story)
        return JSONResponse(story, status_code=201)

    except Exception as e:
        logger.error(f"Error creating story: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.put("")
async def update_story(
    body: StoryUpdateRequest,
    owner_id: str = Depends(get_owner_id),
) -> dict[str, Any]:
    try:
        updates = body.updates()
        if "project_id" in updates:
            updates["project_id"] = updates["project_id"] or None

        story = stories_db.update_story(owner_id, body.id, updates)
        if not story:
            raise HTTPException(status_code=404, detail="Story not found")

        _sync_index(owner_id, story)
        return story

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating story {body.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.delete("")
async def delete_story(
    id: str | None = Query(None, description="Story id"),
    owner_id: str = Depends(get_owner_id),
) -> dict[str, bool]:
    if not id:
        raise HTTPException(status_code=400, detail="Story ID is required")

    try:
        stories_db.delete_story(owner_id, id)
        indexer.delete_source_chunks(owner_id, "story", id)
        return {"success": True}

    except Exception as e:
        logger.error(f"Error deleting story {id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error") from e
