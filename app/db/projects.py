"""Projects database operations."""

from datetime import UTC, datetime
from typing import Any

from app.core.logging import get_logger
from app.db.content_rows import insert_with_auto_slug, resolve_update_slug
from app.db.errors import is_missing_column, maybe_single
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "projects"


def list_projects(
    owner_id: str,
    published_only: bool = True,
    featured: bool | None = None,
) -> list[dict[str, Any]]:
    """
    List non-deleted projects ordered by display order.

    Args:
        owner_id: Tenant id
        published_only: Only return published projects (public listing)
        featured: If True, only featured projects

    Returns:
        List of project rows
    """
    supabase = get_supabase()

    query = supabase.table(TABLE).select("*").eq("owner_id", owner_id).is_("deleted_at", "null")
    if published_only:
        query = query.eq("status", "published")
    if featured:
        query = query.eq("is_featured", True)

    response = query.order("display_order").execute()
    return response.data or []


def get_project_by_slug(owner_id: str, slug: str) -> dict[str, Any] | None:
    """Get a published, non-deleted project by slug."""
    supabase = get_supabase()
    return maybe_single(
        supabase.table(TABLE)
        .select("*")
        .eq("owner_id", owner_id)
        .eq("status", "published")
        .is_("deleted_at", "null")
        .eq("slug", slug)
    )


def create_project(owner_id: str, data: dict[str, Any], slug: str | None = None) -> dict[str, Any]:
    """
    Create a project with an auto-resolved slug.

    When the ``details`` column is missing from an older schema the insert is
    retried without it.

    Raises:
        SlugConflictError: If a provided slug is taken
    """
    omit_details = False

    def _insert(row: dict[str, Any]) -> dict[str, Any]:
        nonlocal omit_details
        supabase = get_supabase()
        payload = {k: v for k, v in row.items() if not (omit_details and k == "details")}
        try:
            response = supabase.table(TABLE).insert(payload).execute()
        except Exception as e:
            if omit_details or "details" not in row or not is_missing_column(e):
                raise
            logger.warning("projects.details column missing, inserting without it")
            omit_details = True
            payload.pop("details", None)
            response = supabase.table(TABLE).insert(payload).execute()
        if not response.data:
            raise ValueError("No data returned from create_project")
        return response.data[0]

    project = insert_with_auto_slug(
        TABLE,
        owner_id,
        data,
        title=data.get("title", ""),
        slug=slug,
        fallback_prefix="project",
        insert=_insert,
    )
    logger.info(
        f"Created project {project['id']}: {project.get('title')}",
        extra={"project_id": project["id"], "slug": project.get("slug")},
    )
    return project


def update_project(owner_id: str, project_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
    """
    Update a project; returns None when no row matched.

    Raises:
        SlugConflictError: If the new slug belongs to another project
    """
    supabase = get_supabase()
    updates = dict(updates)

    if isinstance(updates.get("details"), str):
        updates["details"] = updates["details"].strip() or None
    resolve_update_slug(TABLE, owner_id, project_id, updates)
    updates["updated_at"] = datetime.now(UTC).isoformat()

    def _update(payload: dict[str, Any]):
        return (
            supabase.table(TABLE)
            .update(payload)
            .eq("id", project_id)
            .eq("owner_id", owner_id)
            .execute()
        )

    try:
        response = _update(updates)
    except Exception as e:
        if "details" not in updates or not is_missing_column(e):
            raise
        logger.warning("projects.details column missing, updating without it")
        updates.pop("details")
        response = _update(updates)

    return response.data[0] if response.data else None


def soft_delete_project(owner_id: str, project_id: str) -> None:
    """Mark a project deleted by setting ``deleted_at``."""
    supabase = get_supabase()
    (
        supabase.table(TABLE)
        .update({"deleted_at": datetime.now(UTC).isoformat()})
        .eq("id", project_id)
        .eq("owner_id", owner_id)
        .execute()
    )
    logger.info(f"Soft-deleted project {project_id}", extra={"project_id": project_id})
