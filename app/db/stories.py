"""STAR stories database operations."""

from datetime import UTC, datetime
from typing import Any

from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "stories"


def list_stories(owner_id: str, public_only: bool = True) -> list[dict[str, Any]]:
    """List stories, most recently updated first."""
    supabase = get_supabase()
    query = supabase.table(TABLE).select("*").eq("owner_id", owner_id)
    if public_only:
        query = query.eq("is_public", True)
    response = query.order("updated_at", desc=True).execute()
    return response.data or []


def create_story(owner_id: str, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    response = supabase.table(TABLE).insert({**data, "owner_id": owner_id}).execute()
    if not response.data:
        raise ValueError("No data returned from create_story")
    story = response.data[0]
    logger.info(f"Created story {story['id']}: {story.get('title')}", extra={"story_id": story["id"]})
    return story


def update_story(owner_id: str, story_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    supabase = get_supabase()
    payload = {**updates, "updated_at": datetime.now(UTC).isoformat()}
    response = (
        supabase.table(TABLE).update(payload).eq("id", story_id).eq("owner_id", owner_id).execute()
    )
    return response.data[0] if response.data else None


def delete_story(owner_id: str, story_id: str) -> None:
    supabase = get_supabase()
    supabase.table(TABLE).delete().eq("id", story_id).eq("owner_id", owner_id).execute()
    logger.info(f"Deleted story {story_id}", extra={"story_id": story_id})
