"""Skills database operations."""

from typing import Any

from app.core.logging import get_logger
from app.db.errors import maybe_single
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "skills"


def list_skills(owner_id: str) -> list[dict[str, Any]]:
    """List skills, primary skills first, then strongest first."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("owner_id", owner_id)
        .order("is_primary", desc=True)
        .order("proficiency", desc=True)
        .execute()
    )
    return response.data or []


def get_skill(owner_id: str, skill_id: str) -> dict[str, Any] | None:
    supabase = get_supabase()
    return maybe_single(supabase.table(TABLE).select("*").eq("id", skill_id).eq("owner_id", owner_id))


def create_skill(owner_id: str, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    response = supabase.table(TABLE).insert({**data, "owner_id": owner_id}).execute()
    if not response.data:
        raise ValueError("No data returned from create_skill")
    skill = response.data[0]
    logger.info(f"Created skill {skill['id']}: {skill.get('name')}", extra={"skill_id": skill["id"]})
    return skill


def update_skill(owner_id: str, skill_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    supabase = get_supabase()
    response = (
        supabase.table(TABLE).update(updates).eq("id", skill_id).eq("owner_id", owner_id).execute()
    )
    return response.data[0] if response.data else None


def delete_skill(owner_id: str, skill_id: str) -> None:
    supabase = get_supabase()
    supabase.table(TABLE).delete().eq("id", skill_id).eq("owner_id", owner_id).execute()
    logger.info(f"Deleted skill {skill_id}", extra={"skill_id": skill_id})
