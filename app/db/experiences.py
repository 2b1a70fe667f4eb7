"""Work experience database operations.

The ``experiences`` table arrived in a later migration. Callers should treat a
``42P01`` error (see ``app.db.errors.is_missing_table``) as "not set up yet".
"""

from datetime import UTC, datetime
from typing import Any

from app.core.logging import get_logger
from app.db.errors import is_missing_column
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "experiences"

MIGRATION_HINT = (
    "Experiences table is not set up yet. Run migrations/001_portfolio_schema.sql "
    "in the Supabase SQL editor, then retry."
)


def list_experiences(owner_id: str, published_only: bool = True) -> list[dict[str, Any]]:
    """List experiences, most recent start date first."""
    supabase = get_supabase()
    query = supabase.table(TABLE).select("*").eq("owner_id", owner_id)
    if published_only:
        query = query.eq("status", "published")
    response = query.order("start_date", desc=True).order("created_at", desc=True).execute()
    return response.data or []


def _write_without_missing_details(write, payload: dict[str, Any]):
    try:
        return write(payload)
    except Exception as e:
        if "details" not in payload or not is_missing_column(e):
            raise
        logger.warning("experiences.details column missing, writing without it")
        return write({k: v for k, v in payload.items() if k != "details"})


def create_experience(owner_id: str, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    response = _write_without_missing_details(
        lambda payload: supabase.table(TABLE).insert(payload).execute(),
        {**data, "owner_id": owner_id},
    )
    if not response.data:
        raise ValueError("No data returned from create_experience")
    experience = response.data[0]
    logger.info(
        f"Created experience {experience['id']}: {experience.get('role')} @ {experience.get('company')}",
        extra={"experience_id": experience["id"]},
    )
    return experience


def update_experience(
    owner_id: str, experience_id: str, updates: dict[str, Any]
) -> dict[str, Any] | None:
    supabase = get_supabase()
    response = _write_without_missing_details(
        lambda payload: (
            supabase.table(TABLE)
            .update(payload)
            .eq("id", experience_id)
            .eq("owner_id", owner_id)
            .execute()
        ),
        {**updates, "updated_at": datetime.now(UTC).isoformat()},
    )
    return response.data[0] if response.data else None


def delete_experience(owner_id: str, experience_id: str) -> None:
    supabase = get_supabase()
    supabase.table(TABLE).delete().eq("id", experience_id).eq("owner_id", owner_id).execute()
    logger.info(f"Deleted experience {experience_id}", extra={"experience_id": experience_id})
