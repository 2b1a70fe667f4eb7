"""Shared helpers for slugged content tables (projects, articles)."""

from collections.abc import Callable
from typing import Any

from app.core.logging import get_logger
from app.core.slugs import ensure_unique_slug, fallback_slug, slugify
from app.db.errors import is_unique_violation, maybe_single
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)


class SlugConflictError(ValueError):
    """A caller-provided slug is already used by another row."""

    def __init__(self, slug: str):
        super().__init__("Slug already exists")
        self.slug = slug


def find_id_by_slug(table: str, owner_id: str, slug: str) -> str | None:
    supabase = get_supabase()
    row = maybe_single(
        supabase.table(table).select("id").eq("owner_id", owner_id).eq("slug", slug)
    )
    return row["id"] if row else None


def slug_exists(table: str, owner_id: str, slug: str) -> bool:
    return find_id_by_slug(table, owner_id, slug) is not None


def unique_slug(table: str, owner_id: str, base: str, fallback_prefix: str) -> str:
    return ensure_unique_slug(
        base,
        lambda candidate: slug_exists(table, owner_id, candidate),
        fallback_prefix=fallback_prefix,
    )


def insert_with_auto_slug(
    table: str,
    owner_id: str,
    row: dict[str, Any],
    title: str,
    slug: str | None,
    fallback_prefix: str,
    insert: Callable[[dict[str, Any]], dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Insert a slugged row, resolving slug collisions.

    The slug is the caller's (trimmed) value, else ``slugify(title)``, else
    ``{fallback_prefix}-{millis}``. On a unique violation an auto-generated
    slug is retried once with a free suffixed slug; a caller-provided slug
    raises SlugConflictError instead.

    Args:
        table: Target table name
        owner_id: Tenant id written onto the row
        row: Column values without ``slug`` and ``owner_id``
        title: Title used to derive the slug
        slug: Caller-provided slug, may be None or blank
        fallback_prefix: Prefix for the timestamp fallback slug
        insert: Optional insert callable (defaults to a plain table insert)

    Returns:
        The inserted row

    Raises:
        SlugConflictError: If a provided slug collides
    """
    provided = (slug or "").strip()
    base = provided or slugify(title) or fallback_slug(fallback_prefix)
    do_insert = insert or (lambda data: _insert_row(table, data))

    try:
        return do_insert({**row, "owner_id": owner_id, "slug": base})
    except Exception as e:
        if not is_unique_violation(e):
            raise
        if provided:
            raise SlugConflictError(provided) from e

    candidate = unique_slug(table, owner_id, base, fallback_prefix)
    logger.info(f"Slug '{base}' taken in {table}, retrying with '{candidate}'")
    return do_insert({**row, "owner_id": owner_id, "slug": candidate})


def resolve_update_slug(
    table: str,
    owner_id: str,
    row_id: str,
    updates: dict[str, Any],
) -> None:
    """
    Validate ``updates["slug"]`` in place before an update.

    A non-empty slug must not belong to another row. A blank slug is dropped
    so the stored one is kept.

    Raises:
        SlugConflictError: If the slug belongs to another row
    """
    if "slug" not in updates:
        return

    raw = updates.get("slug")
    trimmed = raw.strip() if isinstance(raw, str) else ""
    if not trimmed:
        updates.pop("slug", None)
        return

    existing_id = find_id_by_slug(table, owner_id, trimmed)
    if existing_id and str(existing_id) != str(row_id):
        raise SlugConflictError(trimmed)
    updates["slug"] = trimmed


def _insert_row(table: str, data: dict[str, Any]) -> dict[str, Any]:
    supabase = get_supabase()
    response = supabase.table(table).insert(data).execute()
    if not response.data:
        raise ValueError(f"No data returned from insert into {table}")
    return response.data[0]
